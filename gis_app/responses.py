"""Envelope JSON seragam untuk semua respons API.

    {"success": bool, "message": str, "timestamp": ISO-8601, "data"?: ..., "details"?: ...}

Handler cukup ``return success(...)`` / ``return error(...)``; request selesai di situ.
"""
from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from . import config


class EnvelopeResponse(JSONResponse):
    # Starlette sudah render dengan ensure_ascii=False, unicode tetap utuh
    media_type = "application/json; charset=utf-8"


def now_iso() -> str:
    return datetime.now(ZoneInfo(config.TIMEZONE)).isoformat(timespec="seconds")


def success(data: Any = None, message: str = "Success", status_code: int = 200) -> EnvelopeResponse:
    body = {"success": True, "message": message, "timestamp": now_iso()}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return EnvelopeResponse(status_code=status_code, content=body)


def error(message: str, status_code: int = 400, details: Optional[Any] = None) -> EnvelopeResponse:
    body = {"success": False, "message": message, "timestamp": now_iso()}
    # detail internal hanya untuk mode debug
    if details is not None and config.APP_DEBUG:
        body["details"] = jsonable_encoder(details)
    return EnvelopeResponse(status_code=status_code, content=body)
