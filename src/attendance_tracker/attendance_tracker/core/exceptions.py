from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(ValidationError):
    """Raised when a lifecycle transition clashes with the stored record.

    The conflicting record is attached so callers can show what is already there.
    """

    def __init__(self, message: str, record: Optional[Any] = None):
        super().__init__(message)
        self.record = record


class NotFoundError(DomainError):
    """Raised when a record (or one half of it) does not exist."""


class DuplicateRecordError(DomainError):
    """Raised by repositories when the (user, date) unique key is violated."""


class UploadError(DomainError):
    """Raised when the image store rejects or cannot receive an upload."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
