"""Pydantic models validating transformed records, one per content kind."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import TYPE_CHECKING, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from contentsync.domain.model import (
    DEFAULT_FROM,
    DEFAULT_TO,
    MAX_ID_LENGTH,
    AttKey,
    ContentRecord,
    ValidityPeriod,
    ensure_utc,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from contentsync.domain.model import ContentKind


class ContentPayload(BaseModel):
    """Fields shared by every content kind."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(max_length=MAX_ID_LENGTH)
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
    valid_from: datetime | None = Field(default=None, alias="from")
    valid_to: datetime | None = Field(default=None, alias="to")
    ban: bool = False
    do_delete: bool = Field(default=False, alias="doDelete")

    payload_fields: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, data: object) -> object:
        # Blank source cells count as absent.
        if isinstance(data, dict):
            return {
                key: value
                for key, value in data.items()  # pyright: ignore[reportUnknownVariableType]
                if not (isinstance(value, str) and not value.strip())
            }
        return data

    @model_validator(mode="after")
    def _period_in_order(self) -> Self:
        if self.valid_from is not None and self.valid_to is not None:
            if ensure_utc(self.valid_from) > ensure_utc(self.valid_to):
                raise ValueError("from must not be after to")
        return self

    def validity_period(self) -> ValidityPeriod:
        return ValidityPeriod(
            valid_from=self.valid_from or DEFAULT_FROM,
            valid_to=self.valid_to or DEFAULT_TO,
            ban=self.ban,
        )

    def to_content_record(
        self,
        kind: ContentKind,
        reference_time: datetime,
        *,
        source: Mapping[str, str] | None = None,
    ) -> ContentRecord:
        return ContentRecord.create(
            kind=kind,
            content_id=self.id,
            reference_time=reference_time,
            name=self.name,
            attributes={key: getattr(self, key.value) for key in AttKey},
            validity_period=self.validity_period(),
            payload={name: getattr(self, name) for name in self.payload_fields},
            source=source,
            delete_requested=self.do_delete,
        )


class UserPayload(ContentPayload):
    note: str | None = None

    payload_fields: ClassVar[tuple[str, ...]] = ("note",)


class MediumPayload(ContentPayload):
    owner_id: str = Field(min_length=1)
    note: str | None = None

    payload_fields: ClassVar[tuple[str, ...]] = ("owner_id", "note")


class OrganizationPayload(ContentPayload):
    parent_id: str | None = None

    payload_fields: ClassVar[tuple[str, ...]] = ("parent_id",)


class GroupPayload(ContentPayload):
    note: str | None = None

    payload_fields: ClassVar[tuple[str, ...]] = ("note",)


class BelongOrgPayload(ContentPayload):
    user_id: str = Field(min_length=1)
    org_id: str = Field(min_length=1)

    payload_fields: ClassVar[tuple[str, ...]] = ("user_id", "org_id")


class BelongGroupPayload(ContentPayload):
    user_id: str = Field(min_length=1)
    group_id: str = Field(min_length=1)

    payload_fields: ClassVar[tuple[str, ...]] = ("user_id", "group_id")
