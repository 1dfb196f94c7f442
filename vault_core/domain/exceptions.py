"""
Standard exceptions for docvault.

This module defines the hierarchy of exceptions raised by the vault
services. Every VaultError carries the HTTP status it maps to and a
message that is safe to show to the client.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base exception for all docvault errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, stage: str | None = None):
        self.message = message or self.default_message
        # Ingestion stage at which the error was raised, if any
        self.stage = stage
        super().__init__(self.message)


class ValidationError(VaultError):
    """Bad input shape or type."""

    status_code = 400
    default_message = "Validation failed"


class NoFileError(ValidationError):
    default_message = "No file uploaded"


class UnsupportedTypeError(ValidationError):
    default_message = "Invalid file type. Only PDF, JPG, PNG, WebP, and GIF files are allowed."


class GuestStorageError(ValidationError):
    default_message = "Guest sessions cannot store documents. Create an account to upload files."


class NotFoundError(VaultError):
    """Unknown id, or an id owned by another user."""

    status_code = 404
    default_message = "Document not found"


class QuotaExceededError(VaultError):
    """Upload would push the user past their storage limit."""

    status_code = 400

    def __init__(self, used: int, limit: int, requested: int, *, stage: str | None = None):
        self.used = used
        self.limit = limit
        self.requested = requested
        super().__init__(
            f"Storage limit exceeded: {used} of {limit} bytes used, "
            f"upload needs {requested} bytes",
            stage=stage,
        )


class StorageFailure(VaultError):
    """Upstream storage provider error. Provider details stay in the logs."""

    status_code = 500
    default_message = "Error storing file. Please try again later."


class ConflictError(VaultError):
    status_code = 400
    default_message = "Resource already exists"


class AuthenticationError(VaultError):
    status_code = 401
    default_message = "Invalid credentials"


class PersistenceError(VaultError):
    """A database write could not be completed consistently."""

    status_code = 500
    default_message = "Error saving document"
