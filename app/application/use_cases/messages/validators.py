"""Common validation helpers for message use cases."""

from __future__ import annotations

from collections.abc import Iterable

from app.domain.exceptions import InvalidInputError

MAX_IDS_PER_REQUEST = 100
MAX_EXTERNAL_ID_LENGTH = 128
MAX_CONVERSATION_ID_LENGTH = 64
MAX_SUBJECT_LENGTH = 255


def require_text(value: str | None, field_name: str, *, max_length: int | None = None) -> str:
    """Return ``value`` stripped or raise ``InvalidInputError`` when blank or too long."""

    if value is None or not str(value).strip():
        raise InvalidInputError(f"Missing required field: {field_name}")
    return _bounded(str(value).strip(), field_name, max_length)


def optional_text(
    value: str | None, field_name: str, *, max_length: int | None = None
) -> str | None:
    """Return ``value`` stripped, ``None`` when blank."""

    text = (value or "").strip()
    if not text:
        return None
    return _bounded(text, field_name, max_length)


def _bounded(text: str, field_name: str, max_length: int | None) -> str:
    if max_length is not None and len(text) > max_length:
        raise InvalidInputError(f"{field_name} must be at most {max_length} characters")
    return text


def require_present(value: object, field_name: str) -> None:
    if value is None or value == "":
        raise InvalidInputError(f"Missing required field: {field_name}")


def unique_ids(values: Iterable, field_name: str, *, limit: int = MAX_IDS_PER_REQUEST) -> list:
    """Return ``values`` without duplicates preserving order, bounded by ``limit``."""

    unique: list = []
    seen: set = set()
    for value in values or ():
        if value is None or value in seen:
            continue
        seen.add(value)
        unique.append(value)
    if not unique:
        raise InvalidInputError(f"{field_name} is required and cannot be empty")
    if len(unique) > limit:
        raise InvalidInputError(f"Cannot process more than {limit} {field_name} at once")
    return unique
