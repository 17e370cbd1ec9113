"""Persisted row objects mapped onto the content store tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from contentsync.domain.model import AttKey, ContentRecord, ValidityPeriod

if TYPE_CHECKING:
    import uuid
    from datetime import datetime

    from contentsync.domain.model import ContentKind, JobPhase, RecordKind


@dataclass(kw_only=True, eq=False)
class ContentEntity:
    """Stored state of one content, keyed by ``(kind, id)``."""

    kind: ContentKind
    id: str
    name: str | None = None
    att01: str | None = None
    att02: str | None = None
    att03: str | None = None
    att04: str | None = None
    att05: str | None = None
    att06: str | None = None
    att07: str | None = None
    att08: str | None = None
    att09: str | None = None
    att10: str | None = None
    valid_from: datetime
    valid_to: datetime
    banned: bool = False
    enabled: bool = False
    payload: dict[str, Any] = field(default_factory=dict[str, Any])
    digest: str
    updated_at: datetime

    @classmethod
    def from_record(cls, record: ContentRecord, *, updated_at: datetime) -> ContentEntity:
        entity = cls(
            kind=record.kind,
            id=record.id,
            valid_from=record.validity_period.valid_from,
            valid_to=record.validity_period.valid_to,
            digest=record.digest,
            updated_at=updated_at,
        )
        entity.apply(record, updated_at=updated_at)
        return entity

    def apply(self, record: ContentRecord, *, updated_at: datetime) -> None:
        """Overwrite every stored field with the values of ``record``."""

        self.name = record.name
        for key in AttKey:
            setattr(self, key.value, record.attributes.get(key))
        self.valid_from = record.validity_period.valid_from
        self.valid_to = record.validity_period.valid_to
        self.banned = record.validity_period.ban
        self.enabled = record.enabled
        self.payload = dict(record.payload)
        self.digest = record.digest
        self.updated_at = updated_at

    def to_record(self) -> ContentRecord:
        """Rebuild the record as stored, keeping the persisted ``enabled`` flag."""

        return ContentRecord(
            kind=self.kind,
            id=self.id,
            name=self.name,
            attributes=MappingProxyType({key: getattr(self, key.value) for key in AttKey}),
            validity_period=ValidityPeriod(self.valid_from, self.valid_to, self.banned),
            enabled=self.enabled,
            digest=self.digest,
            payload=MappingProxyType(dict(self.payload)),
        )


@dataclass(kw_only=True, eq=False)
class JobRecordEntity:
    """One row of the job recording side channel."""

    job_id: uuid.UUID
    content_kind: ContentKind
    record_kind: RecordKind | None
    recorded_at: datetime
    content_id: str | None = None
    phase: JobPhase | None = None
    message: str | None = None
    content: dict[str, Any] = field(default_factory=dict[str, Any])
    id: int | None = None


@dataclass(kw_only=True, eq=False)
class ContentSummaryEntity:
    """Enabled and disabled counts of one content kind as of the last rebuild."""

    kind: ContentKind
    enabled_count: int = 0
    disabled_count: int = 0
    rebuilt_at: datetime
