"""Per-kind validation strategies turning transformed records into content records."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from contentsync.domain.model import ContentKind, ValidationFailure

from .schema import (
    BelongGroupPayload,
    BelongOrgPayload,
    ContentPayload,
    GroupPayload,
    MediumPayload,
    OrganizationPayload,
    UserPayload,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from pydantic_core import ErrorDetails

    from contentsync.domain.model import ContentRecord, TransformSuccess


def format_error(error: ErrorDetails) -> str:
    location = ".".join(str(part) for part in error["loc"]) or "record"
    return f"{location}: {error['msg']}"


@dataclass(frozen=True, slots=True)
class ContentKindSpec:
    kind: ContentKind
    model: type[ContentPayload]

    def to_content_record(
        self, result: TransformSuccess, reference_time: datetime
    ) -> ContentRecord | ValidationFailure:
        try:
            payload = self.model.model_validate(dict(result.content))
        except ValidationError as exc:
            return ValidationFailure(
                reasons=tuple(format_error(error) for error in exc.errors()),
                source=result.source,
                content=result.content,
            )
        return payload.to_content_record(self.kind, reference_time, source=result.source)


KIND_SPECS: Final[Mapping[ContentKind, ContentKindSpec]] = MappingProxyType(
    {
        ContentKind.USER: ContentKindSpec(ContentKind.USER, UserPayload),
        ContentKind.MEDIUM: ContentKindSpec(ContentKind.MEDIUM, MediumPayload),
        ContentKind.ORG1: ContentKindSpec(ContentKind.ORG1, OrganizationPayload),
        ContentKind.ORG2: ContentKindSpec(ContentKind.ORG2, OrganizationPayload),
        ContentKind.GROUP: ContentKindSpec(ContentKind.GROUP, GroupPayload),
        ContentKind.BELONG_ORG: ContentKindSpec(ContentKind.BELONG_ORG, BelongOrgPayload),
        ContentKind.BELONG_GROUP: ContentKindSpec(ContentKind.BELONG_GROUP, BelongGroupPayload),
    }
)


def get_kind_spec(kind: ContentKind) -> ContentKindSpec:
    return KIND_SPECS[kind]
