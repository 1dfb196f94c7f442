"""
Rate limiter infrastructure using slowapi.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from vault_core.config import settings

# Memory storage is per-process; point RATE_LIMIT_STORAGE_URI at Redis when running several workers
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render a 429 in the standard error envelope."""
    return JSONResponse(
        status_code=429,
        content={"success": False, "message": f"Too many requests: {exc.detail}"},
    )
