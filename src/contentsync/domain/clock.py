"""Reference time providers."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC).replace(microsecond=0)


def fixed_clock(reference: datetime) -> Clock:
    """Clock that always answers ``reference``."""

    def _clock() -> datetime:
        return reference

    return _clock
