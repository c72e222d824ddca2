"""Validasi input berbasis aturan (rules) per field.

Contoh rules::

    {
        "name": {"required": True, "max_length": 100},
        "latitude": {"required": True, "type": "float", "callback": check_latitude},
    }

Urutan cek per field: required -> type -> panjang -> callback -> sanitize.
Semua error dikumpulkan, bukan hanya yang pertama.
"""
import html
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .models import CATEGORIES

Rule = Dict[str, Any]
Callback = Callable[[Any], Union[bool, str]]

_email_adapter = TypeAdapter(EmailStr)


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)


def is_empty(value: Any) -> bool:
    # angka 0 dianggap terisi (latitude 0 itu valid)
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict, tuple)):
        return len(value) == 0
    return False


def _coerce(value: Any, type_: str, name: str, errors: List[str]) -> Optional[Any]:
    """Return the coerced value, or None after appending a type error."""
    if type_ == "email":
        try:
            return str(_email_adapter.validate_python(str(value).strip()))
        except PydanticValidationError:
            errors.append(f"Field '{name}' must be a valid email")
            return None
    if type_ == "float":
        if isinstance(value, bool):
            errors.append(f"Field '{name}' must be a number")
            return None
        try:
            number = float(str(value).strip())
        except ValueError:
            number = None
        # nan / inf bukan angka
        if number is None or not math.isfinite(number):
            errors.append(f"Field '{name}' must be a number")
            return None
        return number
    if type_ == "int":
        if isinstance(value, bool):
            errors.append(f"Field '{name}' must be an integer")
            return None
        try:
            number = float(str(value).strip())
        except ValueError:
            number = None
        if number is None or not math.isfinite(number):
            errors.append(f"Field '{name}' must be an integer")
            return None
        return int(number)
    return value if isinstance(value, str) else str(value)


def _check_length(value: Any, rule: Rule, name: str, errors: List[str]) -> None:
    length = len(str(value))
    max_length = rule.get("max_length")
    min_length = rule.get("min_length")
    if max_length is not None and length > max_length:
        errors.append(f"Field '{name}' must not exceed {max_length} characters")
    if min_length is not None and length < min_length:
        errors.append(f"Field '{name}' must be at least {min_length} characters")


def sanitize(value: Any) -> Any:
    if isinstance(value, str):
        return html.escape(value.strip(), quote=True)
    return value


def validate(data: Optional[Dict[str, Any]], rules: Dict[str, Rule]) -> ValidationResult:
    data = data or {}
    errors: List[str] = []
    clean: Dict[str, Any] = {}

    for name, rule in rules.items():
        value = data.get(name)

        if is_empty(value):
            if rule.get("required", False):
                errors.append(f"Field '{name}' is required")
            else:
                clean[name] = None
            continue

        value = _coerce(value, rule.get("type", "string"), name, errors)
        if value is None:
            continue

        before = len(errors)
        _check_length(value, rule, name, errors)
        if len(errors) > before:
            continue

        callback = rule.get("callback")
        if callback is not None:
            result = callback(value)
            if result is not True:
                errors.append(str(result))
                continue

        clean[name] = sanitize(value) if rule.get("sanitize", True) else value

    return ValidationResult(valid=not errors, errors=errors, data=clean)


# --- Callback domain fasilitas ---

def check_latitude(value: float) -> Union[bool, str]:
    return True if -90 <= value <= 90 else "Latitude must be between -90 and 90"


def check_longitude(value: float) -> Union[bool, str]:
    return True if -180 <= value <= 180 else "Longitude must be between -180 and 180"


def check_category(value: str) -> Union[bool, str]:
    return True if value.strip() in CATEGORIES else "Invalid category"


FACILITY_RULES: Dict[str, Rule] = {
    "name": {"required": True, "max_length": 100},
    "address": {"required": False},
    "description": {"required": False},
    "latitude": {"required": True, "type": "float", "callback": check_latitude},
    "longitude": {"required": True, "type": "float", "callback": check_longitude},
    "category": {"required": True, "max_length": 50, "callback": check_category},
}

LOGIN_RULES: Dict[str, Rule] = {
    "email": {"required": True, "type": "email", "max_length": 40},
    "password": {"required": True, "min_length": 3, "sanitize": False},
}

REGISTER_RULES: Dict[str, Rule] = {
    "name": {"required": True, "max_length": 50},
    "email": {"required": True, "type": "email", "max_length": 40},
    "password": {"required": True, "min_length": 6, "sanitize": False},
    "confirm_password": {"required": True, "sanitize": False},
}
