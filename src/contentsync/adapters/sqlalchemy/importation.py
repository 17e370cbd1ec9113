"""SQLAlchemy implementation of the importation service contract."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import and_, delete, func, insert, not_, or_, select

from contentsync.adapters.sqlalchemy.entities import ContentEntity, ContentSummaryEntity
from contentsync.adapters.sqlalchemy.mappings import content_table, import_work_table
from contentsync.adapters.sqlalchemy.predicates import ConditionCompiler
from contentsync.domain.clock import utcnow
from contentsync.domain.condition import SingleCondition, SingleOperator, all_of
from contentsync.domain.importation import DEFAULT_CHUNK_SIZE

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from datetime import datetime

    from sqlalchemy import ColumnElement
    from sqlalchemy.orm import Session

    from contentsync.adapters.kinds import ContentKindSpec
    from contentsync.domain.clock import Clock
    from contentsync.domain.condition import Condition
    from contentsync.domain.model import (
        ContentKind,
        ContentRecord,
        TransformSuccess,
        ValidationFailure,
    )

log = logging.getLogger(__name__)


class SqlAlchemyImportationService:
    """Diff and persist the contents of one kind against the ``content`` table.

    Ids observed during a run are written to ``import_work`` so that lost contents
    can be selected in SQL. Persisted rows are paged by id, which keeps each page
    independent of writes made to earlier pages.
    """

    def __init__(
        self,
        session: Session,
        spec: ContentKindSpec,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        clock: Clock = utcnow,
        compiler: ConditionCompiler | None = None,
    ) -> None:
        self.session = session
        self._spec = spec
        self._chunk_size = chunk_size
        self._clock = clock
        self._compiler = compiler or ConditionCompiler()
        self._working_set: dict[str, ContentEntity] = {}
        self._unpersisted_ids: set[str] = set()

    @property
    def kind(self) -> ContentKind:
        return self._spec.kind

    def initialize_work(self) -> None:
        self.session.execute(delete(import_work_table).where(import_work_table.c.kind == self.kind))
        self._working_set = {}
        self._unpersisted_ids = set()

    def to_content_record(
        self, result: TransformSuccess, reference_time: datetime
    ) -> ContentRecord | ValidationFailure:
        return self._spec.to_content_record(result, reference_time)

    def prepare_diff_working_set(self, records: Sequence[ContentRecord]) -> None:
        self.session.flush()
        self._working_set = {}
        self._unpersisted_ids = set()
        if not records:
            return

        ids = [record.id for record in records]
        self.session.execute(
            insert(import_work_table),
            [{"kind": self.kind, "id": record.id, "digest": record.digest} for record in records],
        )
        stmt = (
            select(ContentEntity)
            .where(content_table.c.kind == self.kind)
            .where(content_table.c.id.in_(ids))
        )
        self._working_set = {entity.id: entity for entity in self.session.scalars(stmt)}
        self._unpersisted_ids = set(ids) - self._working_set.keys()

    def classify_explicit_deletions(self, records: Sequence[ContentRecord]) -> list[ContentRecord]:
        deletions: list[ContentRecord] = []
        for record in records:
            if not record.delete_requested:
                continue
            persisted = self._working_set.get(record.id)
            # Already disabled contents stay untouched, so reruns are no-ops.
            if persisted is not None and persisted.enabled:
                deletions.append(persisted.to_record())
        return deletions

    def classify_to_register(self, records: Sequence[ContentRecord]) -> list[ContentRecord]:
        changed: list[ContentRecord] = []
        for record in records:
            if record.delete_requested:
                continue
            persisted = self._working_set.get(record.id)
            if persisted is None or persisted.digest != record.digest:
                changed.append(record)
        return changed

    def register(self, record: ContentRecord) -> None:
        if record.kind != self.kind:
            raise ValueError(f"Cannot register {record.kind} content as {self.kind}")

        now = self._clock()
        if record.id in self._unpersisted_ids:
            self._unpersisted_ids.discard(record.id)
            self.session.add(ContentEntity.from_record(record, updated_at=now))
            return

        entity = self.session.get(ContentEntity, (self.kind, record.id))
        if entity is None:
            self.session.add(ContentEntity.from_record(record, updated_at=now))
        else:
            entity.apply(record, updated_at=now)

    def logical_delete(self, record: ContentRecord, reference_time: datetime) -> ContentRecord:
        deleted = record.as_logical_deletion(reference_time)
        self.register(deleted)
        return deleted

    def build_implicit_deletion_condition(self, additional: Condition) -> Condition:
        return all_of(
            SingleCondition(SingleOperator.EQUAL, "kind", self.kind.value),
            SingleCondition(SingleOperator.EQUAL, "enabled", "true"),
            SingleCondition(SingleOperator.IS_NULL, "observed_id"),
            additional,
        )

    def count_matching(self, condition: Condition) -> int:
        self.session.flush()
        stmt = (
            select(func.count())
            .select_from(content_table)
            .where(content_table.c.kind == self.kind)
            .where(self._compiler.compile(condition))
        )
        return self.session.execute(stmt).scalar_one()

    def stream_matching(self, condition: Condition) -> Iterator[list[ContentRecord]]:
        return self._stream(self._compiler.compile(condition))

    def rebuild_scope(self, reference_time: datetime) -> Iterator[list[ContentRecord]]:
        columns = content_table.c
        within = and_(
            columns.banned.is_(False),
            columns.valid_from <= reference_time,
            columns.valid_to >= reference_time,
        )
        drifted = or_(
            and_(within, columns.enabled.is_(False)),
            and_(not_(within), columns.enabled.is_(True)),
        )
        return self._stream(drifted)

    def rebuild(self, record: ContentRecord, reference_time: datetime) -> ContentRecord:
        return record.with_reference_time(reference_time)

    def rebuild_persisted_contents(self) -> None:
        self.session.flush()
        columns = content_table.c
        stmt = (
            select(columns.enabled, func.count())
            .where(columns.kind == self.kind)
            .group_by(columns.enabled)
        )
        counts = {bool(enabled): count for enabled, count in self.session.execute(stmt).tuples()}

        now = self._clock()
        summary = self.session.get(ContentSummaryEntity, self.kind)
        if summary is None:
            summary = ContentSummaryEntity(kind=self.kind, rebuilt_at=now)
            self.session.add(summary)
        summary.enabled_count = counts.get(True, 0)
        summary.disabled_count = counts.get(False, 0)
        summary.rebuilt_at = now
        log.info(
            f"{self.kind} contents: {summary.enabled_count} enabled, "
            f"{summary.disabled_count} disabled"
        )

    def _stream(self, predicate: ColumnElement[bool]) -> Iterator[list[ContentRecord]]:
        last_id: str | None = None
        while True:
            self.session.flush()
            stmt = (
                select(ContentEntity)
                .where(content_table.c.kind == self.kind)
                .where(predicate)
                .order_by(content_table.c.id)
                .limit(self._chunk_size)
            )
            if last_id is not None:
                stmt = stmt.where(content_table.c.id > last_id)
            entities = self.session.scalars(stmt).all()
            if not entities:
                return
            last_id = entities[-1].id
            yield [entity.to_record() for entity in entities]
