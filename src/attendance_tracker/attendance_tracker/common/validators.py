from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.constants import MAX_CONFIDENCE
from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_enum(value: Any, enum_cls: Type[E], field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ValidationError(f"Invalid {field_name}: {value!r} (expected one of: {allowed})")


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}")
    if number <= 0:
        raise ValidationError(f"Invalid {field_name}")
    return number


def optional_confidence(value: Any) -> Optional[float]:
    """Validate a confidence score on the 0-100 scale."""
    if value is None or value == "":
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Confidence must be a number")
    if score < 0 or score > MAX_CONFIDENCE:
        raise ValidationError(f"Confidence must be between 0 and {MAX_CONFIDENCE:g}")
    return score


def parse_pagination(page: Any, limit: Any, *, default_size: int, max_size: int) -> tuple[int, int]:
    """Return (page, page_size), 1-based, clamped to sane bounds."""
    try:
        page_n = int(page) if page not in (None, "") else 1
        size_n = int(limit) if limit not in (None, "") else default_size
    except (TypeError, ValueError):
        raise ValidationError("Invalid pagination parameters")
    return max(page_n, 1), min(max(size_n, 1), max_size)
