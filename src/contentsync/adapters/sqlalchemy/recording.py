"""Job recorder persisting job events to the ``job_record`` table."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from contentsync.adapters.sqlalchemy.entities import JobRecordEntity
from contentsync.domain.clock import utcnow

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from contentsync.domain.clock import Clock
    from contentsync.domain.model import ContentKind, JobRecord

log = logging.getLogger(__name__)


class SqlAlchemyJobRecorder:
    def __init__(
        self,
        session: Session,
        *,
        content_kind: ContentKind,
        job_id: uuid.UUID | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.session = session
        self.content_kind = content_kind
        self.job_id = job_id or uuid.uuid4()
        self._clock = clock

    def record(self, record: JobRecord) -> None:
        if record.successful:
            log.debug(f"{record.kind} {self.content_kind} {record.content_id}")
        else:
            log.warning(
                f"{record.phase} failure for {self.content_kind} "
                f"{record.content_id or '<unknown>'}: {record.message}"
            )
        self.session.add(
            JobRecordEntity(
                job_id=self.job_id,
                content_kind=self.content_kind,
                record_kind=record.kind,
                recorded_at=self._clock(),
                content_id=record.content_id,
                phase=record.phase,
                message=record.message,
                content=dict(record.content),
            )
        )

    def record_message(self, message: str) -> None:
        log.warning(f"{self.content_kind} job {self.job_id}: {message}")
        self.session.add(
            JobRecordEntity(
                job_id=self.job_id,
                content_kind=self.content_kind,
                record_kind=None,
                recorded_at=self._clock(),
                message=message,
            )
        )
