"""Membaca body request: JSON biasa, atau multipart (field `data` berisi JSON + file `foto`)."""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from .errors import BadRequestError


@dataclass
class FacilityPayload:
    data: Dict[str, Any] = field(default_factory=dict)
    photo: Optional[UploadFile] = None


def loads_object(raw) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raise BadRequestError("Invalid JSON data")
    if not isinstance(data, dict):
        raise BadRequestError("Invalid JSON data")
    return data


async def read_json_body(request: Request) -> Dict[str, Any]:
    body = await request.body()
    if not body.strip():
        return {}
    return loads_object(body)


async def read_facility_payload(request: Request) -> FacilityPayload:
    content_type = request.headers.get("content-type", "").lower()
    if "multipart/form-data" in content_type or "application/x-www-form-urlencoded" in content_type:
        form = await request.form()
        raw = form.get("data")
        if isinstance(raw, str) and raw.strip():
            data = loads_object(raw)
        else:
            data = {k: v for k, v in form.items() if isinstance(v, str)}
        photo = form.get("foto")
        if not isinstance(photo, UploadFile) or not photo.filename:
            photo = None
        return FacilityPayload(data=data, photo=photo)

    return FacilityPayload(data=await read_json_body(request))
