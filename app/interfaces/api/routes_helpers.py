"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from app.domain.exceptions import (
    ForbiddenError,
    InvalidInputError,
    MessageNotFoundError,
    RetryableStoreFailure,
)

_STATUS_BY_ERROR: tuple[tuple[type[Exception], int], ...] = (
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (MessageNotFoundError, status.HTTP_404_NOT_FOUND),
    (RetryableStoreFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
)

HANDLED_ERRORS = tuple(error for error, _ in _STATUS_BY_ERROR)


def http_error_from(exc: Exception) -> HTTPException:
    """Return the ``HTTPException`` matching a domain error."""

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            detail = str(exc)
            if isinstance(exc, RetryableStoreFailure):
                detail = "Storage temporarily unavailable, please retry"
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
