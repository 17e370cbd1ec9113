"""SQLAlchemy mapping metadata for the content store."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from contentsync.adapters.sqlalchemy.entities import (
    ContentEntity,
    ContentSummaryEntity,
    JobRecordEntity,
)
from contentsync.domain.model import MAX_ID_LENGTH, AttKey, ContentKind, JobPhase, RecordKind

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _enum_column_type(enum_cls: type[StrEnum]) -> Enum:
    # Store the lower-case values rather than member names.
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

content_table = Table(
    "content",
    mapper_registry.metadata,
    Column("kind", _enum_column_type(ContentKind), primary_key=True),
    Column("id", String(MAX_ID_LENGTH), primary_key=True),
    Column("name", String, nullable=True),
    *(Column(key.value, String, nullable=True) for key in AttKey),
    Column("valid_from", UTCDateTime(), nullable=False),
    Column("valid_to", UTCDateTime(), nullable=False),
    Column("banned", Boolean, nullable=False, default=False),
    Column("enabled", Boolean, nullable=False, default=False),
    Column("payload", JSON, nullable=False, default=dict),
    Column("digest", String(64), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_content_kind_enabled", "kind", "enabled"),
)

import_work_table = Table(
    "import_work",
    mapper_registry.metadata,
    Column("kind", _enum_column_type(ContentKind), primary_key=True),
    Column("id", String(MAX_ID_LENGTH), primary_key=True),
    Column("digest", String(64), nullable=False),
)

job_record_table = Table(
    "job_record",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("job_id", UUIDColumnType, nullable=False, index=True),
    Column("content_kind", _enum_column_type(ContentKind), nullable=False),
    Column("content_id", String(255), nullable=True),
    Column("record_kind", _enum_column_type(RecordKind), nullable=True),
    Column("phase", _enum_column_type(JobPhase), nullable=True),
    Column("message", Text, nullable=True),
    Column("content", JSON, nullable=False, default=dict),
    Column("recorded_at", UTCDateTime(), nullable=False),
)

content_summary_table = Table(
    "content_summary",
    mapper_registry.metadata,
    Column("kind", _enum_column_type(ContentKind), primary_key=True),
    Column("enabled_count", Integer, nullable=False, default=0),
    Column("disabled_count", Integer, nullable=False, default=0),
    Column("rebuilt_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the persisted entities."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(ContentEntity, content_table)
    mapper_registry.map_imperatively(JobRecordEntity, job_record_table)
    mapper_registry.map_imperatively(ContentSummaryEntity, content_summary_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
