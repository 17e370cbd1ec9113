"""Validity periods deciding whether content is currently effective."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import Final

DEFAULT_FROM: Final[datetime] = datetime(2000, 1, 1, tzinfo=UTC)
DEFAULT_TO: Final[datetime] = datetime(2999, 12, 31, 23, 59, 59, tzinfo=UTC)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC, treating naive datetimes as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class ValidityPeriod:
    """From/to window plus a ``ban`` flag that forbids the content from being valid."""

    valid_from: datetime = DEFAULT_FROM
    valid_to: datetime = DEFAULT_TO
    ban: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "valid_from", ensure_utc(self.valid_from))
        object.__setattr__(self, "valid_to", ensure_utc(self.valid_to))
        if self.valid_from > self.valid_to:
            raise ValueError("Validity period start must not be after its end")

    def is_enabled(self, reference_time: datetime) -> bool:
        """Return whether ``reference_time`` lies within the period and the period is not banned."""

        reference = ensure_utc(reference_time)
        return not self.ban and self.valid_from <= reference <= self.valid_to

    def closed_before(self, reference_time: datetime) -> ValidityPeriod:
        """Return a copy that ends one second before ``reference_time``."""

        end = ensure_utc(reference_time) - timedelta(seconds=1)
        if self.valid_to <= end:
            return self
        return replace(self, valid_from=min(self.valid_from, end), valid_to=end)
