"""
Provider-level error model with retry semantics.

Storage adapters raise these errors so callers can decide whether an
operation is worth repeating. The ingestion pipeline translates them into
the user-facing VaultError hierarchy (see vault_core.domain.exceptions).
"""

from __future__ import annotations

import uuid
from typing import Any


class ServiceError(Exception):
    """Provider error with retry classification.

    Attributes:
        code: Error code for programmatic handling (see ErrorCode).
        message_safe: Message safe for logs.
        message_debug: Optional provider detail, kept out of responses.
        retryable: Whether this error can be retried.
        cause: Optional underlying exception.
        debug_id: Unique identifier for log correlation.
    """

    def __init__(
        self,
        code: str,
        message_safe: str,
        message_debug: str | None = None,
        retryable: bool = False,
        cause: Exception | None = None,
        debug_id: str | None = None,
    ):
        super().__init__(message_safe)
        self.code = code
        self.message_safe = message_safe
        self.message_debug = message_debug
        self.retryable = retryable
        self.cause = cause
        self.debug_id = debug_id or str(uuid.uuid4())[:8]

    def __str__(self) -> str:
        return f"[{self.code}] {self.message_safe}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"message_safe={self.message_safe!r}, "
            f"retryable={self.retryable}, "
            f"debug_id={self.debug_id!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a log-friendly dictionary (excludes debug info)."""
        return {
            "code": self.code,
            "message": self.message_safe,
            "debug_id": self.debug_id,
        }


class RetryableError(ServiceError):
    """Transient failure: timeouts, connection resets, provider 5xx."""

    def __init__(
        self,
        code: str,
        message_safe: str,
        message_debug: str | None = None,
        cause: Exception | None = None,
        debug_id: str | None = None,
    ):
        super().__init__(
            code=code,
            message_safe=message_safe,
            message_debug=message_debug,
            retryable=True,
            cause=cause,
            debug_id=debug_id,
        )


class TerminalError(ServiceError):
    """Permanent failure: bad credentials, missing bucket, malformed response."""

    def __init__(
        self,
        code: str,
        message_safe: str,
        message_debug: str | None = None,
        cause: Exception | None = None,
        debug_id: str | None = None,
    ):
        super().__init__(
            code=code,
            message_safe=message_safe,
            message_debug=message_debug,
            retryable=False,
            cause=cause,
            debug_id=debug_id,
        )


class ErrorCode:
    """Standard error codes for storage failure scenarios."""

    TIMEOUT = "TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"

    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    STORAGE_WRITE_ERROR = "STORAGE_WRITE_ERROR"
    STORAGE_DELETE_ERROR = "STORAGE_DELETE_ERROR"
    STORAGE_BAD_RESPONSE = "STORAGE_BAD_RESPONSE"

    INVALID_LOCATOR = "INVALID_LOCATOR"
