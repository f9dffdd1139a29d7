"""Errors raised by the messaging and notification use cases."""

from __future__ import annotations


class InvalidInputError(ValueError):
    """A required field is missing or malformed. Not retried."""


class ForbiddenError(Exception):
    """The requesting user may not perform the operation. Not retried."""


class MessageNotFoundError(LookupError):
    """No durable message exists for the requested identifier."""


class UniqueConstraintViolation(Exception):
    """An insert collided with an existing row on a unique key."""


class RetryableStoreFailure(Exception):
    """The durable store is transiently unavailable; the caller may retry."""


__all__ = [
    "ForbiddenError",
    "InvalidInputError",
    "MessageNotFoundError",
    "RetryableStoreFailure",
    "UniqueConstraintViolation",
]
