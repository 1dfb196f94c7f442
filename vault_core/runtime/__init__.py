"""
Service runtime layer for docvault.

This package provides shared reliability primitives:
- ServiceError: Provider errors with retry semantics
- RetryPolicy / sync_with_retry: Configurable retry behavior
"""

from .errors import ErrorCode, RetryableError, ServiceError, TerminalError
from .retry import RetryPolicy, sync_with_retry

__all__ = [
    "ErrorCode",
    "ServiceError",
    "RetryableError",
    "TerminalError",
    "RetryPolicy",
    "sync_with_retry",
]
