"""
FastAPI application for docvault.

Usage:
    uvicorn app.main:app --reload --port 8081
"""

import psycopg
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.activities.routes import router as activities_router
from app.auth.routes import router as auth_router
from app.documents.routes import files_router, router as documents_router
from app.stats.routes import router as stats_router
from app.users.routes import router as users_router
from vault_core.auth.middleware import AuthMiddleware
from vault_core.config import settings
from vault_core.domain.exceptions import VaultError
from vault_core.infrastructure.rate_limiter import limiter, rate_limit_exceeded_handler
from vault_core.logging import setup_logging

# Initialize logging
setup_logging()

app = FastAPI(
    title="DocVault",
    description="Personal document vault API",
    version="1.0.0",
)

# Rate limiter setup
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(AuthMiddleware)

# NOTE: CORS must be the last middleware added so it runs FIRST
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


@app.exception_handler(VaultError)
async def vault_error_handler(request: Request, exc: VaultError):
    log = logger.error if exc.status_code >= 500 else logger.info
    stage = f" at stage {exc.stage}" if exc.stage else ""
    log(f"[{_request_id(request)}] {type(exc).__name__}{stage}: {exc.message}")
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{field}: {error.get('msg')}" if field else error.get("msg", ""))
    logger.info(f"[{_request_id(request)}] Request validation failed: {messages}")
    return _error(400, ", ".join(messages) or "Validation failed")


@app.exception_handler(psycopg.Error)
async def database_error_handler(request: Request, exc: psycopg.Error):
    logger.error(f"[{_request_id(request)}] Database error: {type(exc).__name__}: {exc}")
    return _error(503, "Database temporarily unavailable")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"[{_request_id(request)}] Unhandled error: {exc}")
    return _error(500, "Internal server error")


app.include_router(auth_router, tags=["Auth"])
app.include_router(documents_router)
app.include_router(files_router)
app.include_router(activities_router)
app.include_router(stats_router)
app.include_router(users_router)


@app.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
        dict: Status and service information.
    """
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "storage": settings.storage_mode,
        "version": "1.0.0",
    }
