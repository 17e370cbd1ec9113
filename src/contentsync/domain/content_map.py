"""Deduplicating collection of content records for one import run."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, KeysView

    from contentsync.domain.model import ContentRecord


class ContentMap:
    """Records keyed by id in first-seen order; the last record seen for an id wins.

    Earlier occurrences of a recurring id are kept aside in :meth:`duplicates`, so
    the primary mapping stays one record per id.
    """

    __slots__ = ("_duplicates", "_records")

    def __init__(self) -> None:
        self._records: dict[str, ContentRecord] = {}
        self._duplicates: list[ContentRecord] = []

    @classmethod
    def from_records(cls, records: Iterable[ContentRecord]) -> ContentMap:
        """Consume ``records`` once and return the resulting map."""

        content_map = cls()
        for record in records:
            content_map.put(record)
        return content_map

    def put(self, record: ContentRecord) -> None:
        previous = self._records.get(record.id)
        if previous is not None:
            self._duplicates.append(previous)
        # Re-assigning an existing key keeps its original position.
        self._records[record.id] = record

    def get(self, content_id: str) -> ContentRecord | None:
        return self._records.get(content_id)

    def keys(self) -> KeysView[str]:
        return self._records.keys()

    def values(self) -> Iterator[ContentRecord]:
        return iter(self._records.values())

    def has_duplicates(self) -> bool:
        return bool(self._duplicates)

    def duplicates(self) -> Iterator[ContentRecord]:
        return iter(self._duplicates)

    def __contains__(self, content_id: object) -> bool:
        return content_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ContentRecord]:
        return self.values()
