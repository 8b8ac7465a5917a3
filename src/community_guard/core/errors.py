"""Typed failures raised by the moderation services.

The HTTP layer maps each kind to a status code; services never raise
``HTTPException`` themselves.
"""

from __future__ import annotations


class ModerationError(Exception):
    """Base class for every failure surfaced by a moderation operation."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ModerationError):
    """The referenced row does not exist in the expected state."""

    status_code = 404


class ConflictError(ModerationError):
    """The operation would violate a uniqueness or state invariant."""

    status_code = 409


class PermissionDeniedError(ModerationError):
    """The acting user lacks the capability required for the operation."""

    status_code = 403


class TransactionFailureError(ModerationError):
    """A storage error aborted the unit of work; nothing was committed."""

    status_code = 500

    def __init__(self, message: str = "The operation could not be completed") -> None:
        super().__init__(message)
