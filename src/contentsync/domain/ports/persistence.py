"""Ports for persisting reconciled content."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from datetime import datetime

    from contentsync.domain.condition import Condition
    from contentsync.domain.model import (
        ContentKind,
        ContentRecord,
        TransformSuccess,
        ValidationFailure,
    )


@runtime_checkable
class PersistenceContext(Protocol):
    """Unit-of-work cache that can be flushed at chunk boundaries."""

    def flush_and_clear(self) -> None:
        """Write pending changes and release the in-memory cache."""
        ...


@runtime_checkable
class ImportationService(Protocol):
    """Kind-specific diff and persistence contract driven by the importation facade.

    One instance serves exactly one :class:`ContentKind`; every query it issues is
    scoped to that kind.
    """

    @property
    def kind(self) -> ContentKind: ...

    def initialize_work(self) -> None:
        """Forget the ids observed by a previous run."""
        ...

    def to_content_record(
        self, result: TransformSuccess, reference_time: datetime
    ) -> ContentRecord | ValidationFailure:
        """Validate a transformed record. Failures are returned, never raised."""
        ...

    def prepare_diff_working_set(self, records: Sequence[ContentRecord]) -> None:
        """Mark ``records`` as observed and load their persisted counterparts."""
        ...

    def classify_explicit_deletions(self, records: Sequence[ContentRecord]) -> list[ContentRecord]:
        """Return the enabled persisted records the source asks to remove."""
        ...

    def classify_to_register(self, records: Sequence[ContentRecord]) -> list[ContentRecord]:
        """Return records that are new or differ from their persisted state."""
        ...

    def register(self, record: ContentRecord) -> None: ...

    def logical_delete(self, record: ContentRecord, reference_time: datetime) -> ContentRecord:
        """Close ``record`` before ``reference_time`` without removing it and return the stored version."""
        ...

    def build_implicit_deletion_condition(self, additional: Condition) -> Condition:
        """Condition selecting enabled records of this kind not observed in this run."""
        ...

    def count_matching(self, condition: Condition) -> int: ...

    def stream_matching(self, condition: Condition) -> Iterator[list[ContentRecord]]:
        """Yield chunks of persisted records matching ``condition``."""
        ...

    def rebuild_scope(self, reference_time: datetime) -> Iterator[list[ContentRecord]]:
        """Yield chunks of records whose stored enabled flag drifted at ``reference_time``."""
        ...

    def rebuild(self, record: ContentRecord, reference_time: datetime) -> ContentRecord: ...

    def rebuild_persisted_contents(self) -> None:
        """Refresh state derived from the persisted contents of this kind."""
        ...
