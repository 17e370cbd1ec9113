"""Reconciliation pipeline importing external content into the content store.

Processing favours continuing over aborting: records that fail a stage are
recorded through the job recorder and excluded from later stages. Only errors
raised by the source, the transformer or the store abort a run, and the caller's
unit of work then rolls back everything the run wrote.

Stages, each completing before the next starts:

1. fetch and transform the source records,
2. validate them into :class:`ContentRecord` instances,
3. fold them into a :class:`ContentMap`, recording duplicate ids as failures,
4. apply explicit deletions and registrations chunk by chunk,
5. optionally delete lost contents implicitly, unless the deletion limit is exceeded,
6. rebuild contents whose enabled state drifted with the passage of time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import batched
from typing import TYPE_CHECKING, Final

from contentsync.domain.clock import utcnow
from contentsync.domain.condition import empty_condition
from contentsync.domain.content_map import ContentMap
from contentsync.domain.model import (
    JobPhase,
    RecordKind,
    TransformFailure,
    TransformSuccess,
    ValidationFailure,
    failure,
    success,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from datetime import datetime

    from contentsync.domain.clock import Clock
    from contentsync.domain.condition import Condition
    from contentsync.domain.model import ContentRecord, TransformResult
    from contentsync.domain.ports import (
        ImportationService,
        JobRecorder,
        PersistenceContext,
        SourceFetcher,
        Transformer,
    )

DEFAULT_CHUNK_SIZE: Final[int] = 500

DUPLICATES_DETECTED: Final[str] = "Duplicate content detected."
DUPLICATE_ID: Final[str] = "Duplicate id."
DELETION_LIMIT_IGNORED: Final[str] = "Ignored because the limit was exceeded."

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportContext:
    """Read-only configuration of one import run."""

    fetcher: SourceFetcher
    transformer: Transformer
    allow_implicit_deletion: bool = False
    implicit_deletion_condition: Condition = field(default_factory=empty_condition)
    deletion_limit: int | None = None  # None means unlimited

    def __post_init__(self) -> None:
        if self.deletion_limit is not None and self.deletion_limit < 0:
            raise ValueError("Deletion limit must be non-negative")


@dataclass(slots=True)
class ReconciliationResult:
    """Counters describing the outcome of one run."""

    transformation_failures: int = 0
    validation_failures: int = 0
    duplicates: int = 0
    registered: int = 0
    explicitly_deleted: int = 0
    implicitly_deleted: int = 0
    deletion_skipped: int = 0
    deletion_limit_exceeded: bool = False
    rebuilt: int = 0

    @property
    def deleted(self) -> int:
        return self.explicitly_deleted + self.implicitly_deleted


@dataclass(slots=True)
class ImportationFacade:
    """Run the reconciliation stages for the content kind served by ``service``."""

    service: ImportationService
    recorder: JobRecorder
    persistence: PersistenceContext
    clock: Clock = utcnow
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError("Chunk size must be positive")

    def import_contents(self, context: ImportContext) -> ReconciliationResult:
        """Import the contents provided by ``context`` into the store."""

        reference_time = self.clock()
        result = ReconciliationResult()
        log.info(f"Starting {self.service.kind} import at reference time {reference_time}")

        self.service.initialize_work()
        self.persistence.flush_and_clear()

        with (
            context.fetcher.fetch() as raw_records,
            context.transformer.transform(raw_records) as transformed,
        ):
            content_map = ContentMap.from_records(
                self._to_content_records(transformed, reference_time, result)
            )
        log.info(
            f"Collected {len(content_map)} {self.service.kind} contents "
            f"({result.transformation_failures} transformation failures, "
            f"{result.validation_failures} validation failures)"
        )

        if content_map.has_duplicates():
            self._record_duplicates(content_map.duplicates(), result)

        self._register_contents(content_map, reference_time, result)

        if context.allow_implicit_deletion:
            self._delete_lost_contents(context, reference_time, result)

        self._rebuild_contents(reference_time, result)

        log.info(
            f"Finished {self.service.kind} import: registered={result.registered}, "
            f"deleted={result.deleted}, rebuilt={result.rebuilt}"
        )
        return result

    def rebuild_contents(self, reference_time: datetime | None = None) -> ReconciliationResult:
        """Rebuild drifted contents without importing anything."""

        result = ReconciliationResult()
        self._rebuild_contents(reference_time or self.clock(), result)
        log.info(f"Rebuilt {result.rebuilt} {self.service.kind} contents")
        return result

    def _to_content_records(
        self,
        transformed: Iterable[TransformResult],
        reference_time: datetime,
        result: ReconciliationResult,
    ) -> Iterator[ContentRecord]:
        for transform_result in transformed:
            match transform_result:
                case TransformFailure(reason=reason):
                    result.transformation_failures += 1
                    self.recorder.record(
                        failure(transform_result, JobPhase.TRANSFORMATION, reason)
                    )
                case TransformSuccess():
                    converted = self.service.to_content_record(transform_result, reference_time)
                    if isinstance(converted, ValidationFailure):
                        result.validation_failures += 1
                        self.recorder.record(
                            failure(converted, JobPhase.VALIDATION, converted.message)
                        )
                        continue
                    yield converted

    def _record_duplicates(
        self, duplicates: Iterable[ContentRecord], result: ReconciliationResult
    ) -> None:
        self.recorder.record_message(DUPLICATES_DETECTED)
        for chunk in batched(duplicates, self.chunk_size):
            for duplicate in chunk:
                result.duplicates += 1
                self.recorder.record(failure(duplicate, JobPhase.VALIDATION, DUPLICATE_ID))
            self.persistence.flush_and_clear()
        log.warning(f"Excluded {result.duplicates} duplicate {self.service.kind} contents")

    def _register_contents(
        self,
        content_map: ContentMap,
        reference_time: datetime,
        result: ReconciliationResult,
    ) -> None:
        for chunk in batched(content_map.values(), self.chunk_size):
            self.service.prepare_diff_working_set(chunk)

            for persisted in self.service.classify_explicit_deletions(chunk):
                deleted = self.service.logical_delete(persisted, reference_time)
                result.explicitly_deleted += 1
                self.recorder.record(success(deleted, RecordKind.DELETION))

            for record in self.service.classify_to_register(chunk):
                self.service.register(record)
                result.registered += 1
                self.recorder.record(success(record, RecordKind.REGISTER))

            self.persistence.flush_and_clear()

    def _delete_lost_contents(
        self,
        context: ImportContext,
        reference_time: datetime,
        result: ReconciliationResult,
    ) -> None:
        condition = self.service.build_implicit_deletion_condition(
            context.implicit_deletion_condition
        )
        count = self.service.count_matching(condition)
        limit = context.deletion_limit
        exceeded = limit is not None and count > limit

        if exceeded:
            result.deletion_limit_exceeded = True
            self.recorder.record_message(f"Deletion limit count exceeded: {count}/{limit}")
            log.warning(
                f"Skipping implicit deletion of {count} {self.service.kind} contents "
                f"(limit {limit})"
            )

        for chunk in self.service.stream_matching(condition):
            for persisted in chunk:
                if exceeded:
                    result.deletion_skipped += 1
                    self.recorder.record(
                        failure(persisted, JobPhase.PROVISIONING, DELETION_LIMIT_IGNORED)
                    )
                    continue
                deleted = self.service.logical_delete(persisted, reference_time)
                result.implicitly_deleted += 1
                self.recorder.record(success(deleted, RecordKind.DELETION))
            self.persistence.flush_and_clear()

    def _rebuild_contents(self, reference_time: datetime, result: ReconciliationResult) -> None:
        for chunk in self.service.rebuild_scope(reference_time):
            for persisted in chunk:
                rebuilt = self.service.rebuild(persisted, reference_time)
                self.service.register(rebuilt)
                result.rebuilt += 1
                kind = RecordKind.REGISTER if rebuilt.enabled else RecordKind.DELETION
                self.recorder.record(success(rebuilt, kind))
            self.persistence.flush_and_clear()

        self.service.rebuild_persisted_contents()
        self.persistence.flush_and_clear()
