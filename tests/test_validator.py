"""Tests for the rule-based input validator."""

from gis_app.validator import (
    FACILITY_RULES,
    check_category,
    check_latitude,
    check_longitude,
    validate,
)


def _facility(**overrides):
    data = {
        "name": "Puskesmas Cirendeu",
        "latitude": "-6.31",
        "longitude": "106.77",
        "category": "Kesehatan",
    }
    data.update(overrides)
    return data


def test_valid_facility_is_coerced_and_cleaned():
    result = validate(_facility(name="  Puskesmas Cirendeu  "), FACILITY_RULES)
    assert result.valid
    assert result.errors == []
    assert result.data["name"] == "Puskesmas Cirendeu"
    assert result.data["latitude"] == -6.31
    assert isinstance(result.data["longitude"], float)


def test_missing_optional_fields_become_none():
    result = validate(_facility(), FACILITY_RULES)
    assert result.data["address"] is None
    assert result.data["description"] is None


def test_errors_accumulate_across_fields():
    result = validate(_facility(name="", latitude=95), FACILITY_RULES)
    assert not result.valid
    assert result.errors == [
        "Field 'name' is required",
        "Latitude must be between -90 and 90",
    ]


def test_out_of_range_coordinates_always_rejected():
    result = validate(_facility(latitude=-90.5, longitude=180.01), FACILITY_RULES)
    assert not result.valid
    assert "Latitude must be between -90 and 90" in result.errors
    assert "Longitude must be between -180 and 180" in result.errors


def test_zero_coordinates_are_not_empty():
    result = validate(_facility(latitude=0, longitude="0"), FACILITY_RULES)
    assert result.valid
    assert result.data["latitude"] == 0.0


def test_non_numeric_latitude_is_a_type_error():
    result = validate(_facility(latitude="utara"), FACILITY_RULES)
    assert result.errors == ["Field 'latitude' must be a number"]


def test_invalid_category_has_its_own_message():
    result = validate(_facility(category="InvalidCategory"), FACILITY_RULES)
    assert result.errors == ["Invalid category"]


def test_markup_is_escaped():
    result = validate(_facility(name="<b>Masjid</b> & 'Musholla'"), FACILITY_RULES)
    assert result.data["name"] == "&lt;b&gt;Masjid&lt;/b&gt; &amp; &#x27;Musholla&#x27;"


def test_length_bounds():
    rules = {"kode": {"required": True, "min_length": 3, "max_length": 5}}
    assert validate({"kode": "ab"}, rules).errors == ["Field 'kode' must be at least 3 characters"]
    assert validate({"kode": "abcdef"}, rules).errors == ["Field 'kode' must not exceed 5 characters"]
    assert validate({"kode": "abcd"}, rules).valid


def test_email_and_int_types():
    rules = {"email": {"required": True, "type": "email"}, "umur": {"type": "int"}}
    result = validate({"email": "bukan-email", "umur": "x"}, rules)
    assert result.errors == [
        "Field 'email' must be a valid email",
        "Field 'umur' must be an integer",
    ]
    ok = validate({"email": "admin@cirendeu.com", "umur": "42"}, rules)
    assert ok.valid
    assert ok.data == {"email": "admin@cirendeu.com", "umur": 42}


def test_callback_string_result_is_reported():
    rules = {"kode": {"callback": lambda v: True if v.startswith("C") else "Kode harus diawali C"}}
    assert validate({"kode": "X1"}, rules).errors == ["Kode harus diawali C"]


def test_sanitize_can_be_disabled():
    rules = {"password": {"required": True, "sanitize": False}}
    assert validate({"password": " a<b "}, rules).data["password"] == " a<b "


def test_none_input_reports_required_fields():
    result = validate(None, {"email": {"required": True}})
    assert result.errors == ["Field 'email' is required"]


def test_domain_callbacks():
    assert check_latitude(90) is True
    assert check_latitude(-90.0001) == "Latitude must be between -90 and 90"
    assert check_longitude(-180) is True
    assert check_longitude(181) == "Longitude must be between -180 and 180"
    assert check_category("Prasarana Umum") is True
    assert check_category("Pasar") == "Invalid category"


def test_non_finite_numbers_are_type_errors():
    rules = {"n": {"type": "int"}, "x": {"type": "float"}}
    for raw in ("nan", "inf", "-Infinity", "1e400"):
        result = validate({"n": raw, "x": raw}, rules)
        assert result.errors == [
            "Field 'n' must be an integer",
            "Field 'x' must be a number",
        ]


def test_nan_latitude_rejected_as_number():
    result = validate(_facility(latitude="nan"), FACILITY_RULES)
    assert result.errors == ["Field 'latitude' must be a number"]
