"""Domain model for reconciled identity content."""

from __future__ import annotations

from .content import (
    MAX_ID_LENGTH,
    ContentRecord,
    ValidationFailure,
    compute_digest,
    empty_attributes,
)
from .enums import AttKey, ContentKind, JobPhase, RecordKind
from .records import JobRecord, failure, success
from .transform import TransformFailure, TransformResult, TransformSuccess
from .validity import DEFAULT_FROM, DEFAULT_TO, ValidityPeriod, ensure_utc

__all__ = [
    "DEFAULT_FROM",
    "DEFAULT_TO",
    "MAX_ID_LENGTH",
    "AttKey",
    "ContentKind",
    "ContentRecord",
    "JobPhase",
    "JobRecord",
    "RecordKind",
    "TransformFailure",
    "TransformResult",
    "TransformSuccess",
    "ValidationFailure",
    "ValidityPeriod",
    "compute_digest",
    "empty_attributes",
    "ensure_utc",
    "failure",
    "success",
]
