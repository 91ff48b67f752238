"""Time source for use cases; tests pass a fixed clock instead."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from ordercore.domain.exceptions import ValidationError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def require_aware(moment: datetime, name: str) -> datetime:
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise ValidationError(f"{name} must include a timezone")
    return moment
