"""Translation of SQLAlchemy failures into domain errors."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from app.domain.exceptions import RetryableStoreFailure, UniqueConstraintViolation

logger = logging.getLogger(__name__)


@contextmanager
def translate_store_errors(session: Session, operation: str) -> Iterator[None]:
    """Roll back ``session`` and re-raise driver errors as domain errors."""

    try:
        yield
    except IntegrityError as exc:
        session.rollback()
        raise UniqueConstraintViolation(f"{operation}: {exc.orig}") from exc
    except DBAPIError as exc:
        session.rollback()
        logger.error("Durable store failure during %s: %s", operation, exc.orig)
        raise RetryableStoreFailure(f"{operation} failed; retry later") from exc


__all__ = ["translate_store_errors"]
