"""Rate limiting fixed-window per identifier (mis. IP + aksi).

Counter disimpan di storage `limits` (default memory://, bisa redis://
untuk dibagi antar proses). Race saat request bersamaan bisa sedikit
over-admit; itu diterima.
"""
import logging
from dataclasses import dataclass

from fastapi import Request
from limits import RateLimitItemPerSecond
from slowapi import Limiter
from slowapi.util import get_remote_address

from . import config

log = logging.getLogger(__name__)

# Shared limiter instance, keyed by client IP
limiter = Limiter(
    key_func=get_remote_address,
    strategy="fixed-window",
    storage_uri=config.RATE_LIMIT_STORAGE_URI,
)

LOGIN_MAX_ATTEMPTS = 10
LOGIN_WINDOW = 900  # 15 menit


@dataclass
class RateWindow:
    identifier: str
    request_count: int
    window_reset_time: float


def client_identifier(request: Request, action: str) -> str:
    return f"{get_remote_address(request)}_{action}"


def check(identifier: str, max_requests: int = config.RATE_LIMIT_REQUESTS,
          window_seconds: int = config.RATE_LIMIT_WINDOW) -> bool:
    """True jika request masih boleh; counter tidak naik lagi setelah mencapai batas."""
    item = RateLimitItemPerSecond(max_requests, window_seconds)
    strategy = limiter.limiter
    if not strategy.test(item, identifier):
        log.warning("Rate limit exceeded identifier=%s max=%s window=%ss", identifier, max_requests, window_seconds)
        return False
    return strategy.hit(item, identifier)


def window(identifier: str, max_requests: int = config.RATE_LIMIT_REQUESTS,
           window_seconds: int = config.RATE_LIMIT_WINDOW) -> RateWindow:
    item = RateLimitItemPerSecond(max_requests, window_seconds)
    stats = limiter.limiter.get_window_stats(item, identifier)
    return RateWindow(
        identifier=identifier,
        request_count=max_requests - stats.remaining,
        window_reset_time=stats.reset_time,
    )


def reset() -> None:
    limiter.reset()
