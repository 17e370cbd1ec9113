"""Job records describing the outcome of each processed content."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from contentsync.domain.model.content import ContentRecord, ValidationFailure
from contentsync.domain.model.enums import JobPhase, RecordKind
from contentsync.domain.model.transform import TransformFailure, TransformSuccess

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True, kw_only=True)
class JobRecord:
    """A single success or failure event recorded by an import job."""

    kind: RecordKind
    content_id: str | None = None
    content: Mapping[str, object] = field(default_factory=dict[str, object])
    phase: JobPhase | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if self.kind is RecordKind.FAILURE and self.phase is None:
            raise ValueError("Failure records require a job phase")
        if self.kind is not RecordKind.FAILURE and self.phase is not None:
            raise ValueError("Only failure records carry a job phase")

    @property
    def successful(self) -> bool:
        return self.kind.is_successful


type Recordable = ContentRecord | ValidationFailure | TransformSuccess | TransformFailure


def success(record: ContentRecord, kind: RecordKind) -> JobRecord:
    """Build a REGISTER or DELETION record for ``record``."""

    if not kind.is_successful:
        raise ValueError(f"{kind} is not a success kind")
    return JobRecord(kind=kind, content_id=record.id, content=record.describe())


def failure(value: Recordable, phase: JobPhase, reason: str) -> JobRecord:
    """Build a failure record for any value that can be rejected by the pipeline."""

    match value:
        case ContentRecord():
            return JobRecord(
                kind=RecordKind.FAILURE,
                content_id=value.id,
                content={**value.describe(), "source": dict(value.source)},
                phase=phase,
                message=reason,
            )
        case ValidationFailure(content=content, source=source) | TransformSuccess(
            content=content, source=source
        ):
            return JobRecord(
                kind=RecordKind.FAILURE,
                content_id=content.get("id"),
                content={"content": dict(content), "source": dict(source)},
                phase=phase,
                message=reason,
            )
        case TransformFailure(source=source):
            return JobRecord(
                kind=RecordKind.FAILURE,
                content={"source": dict(source)},
                phase=phase,
                message=reason,
            )
        case _:
            raise TypeError(f"Unsupported value for a failure record: {type(value).__name__}")
