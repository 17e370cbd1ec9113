"""Content records reconciled against the store."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from contentsync.domain.model.enums import AttKey, ContentKind
from contentsync.domain.model.validity import ValidityPeriod

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


MAX_ID_LENGTH: Final[int] = 36

type Attributes = Mapping[AttKey, str | None]


def empty_attributes() -> dict[AttKey, str | None]:
    return dict.fromkeys(AttKey)


def compute_digest(
    content_id: str,
    name: str | None,
    attributes: Attributes,
    validity_period: ValidityPeriod,
    payload: Mapping[str, str | None],
) -> str:
    """Hash every source-derived field of a record.

    ``enabled`` is left out: it depends on the reference time, not on the source.
    """

    document = [
        content_id,
        name,
        [attributes.get(key) for key in AttKey],
        validity_period.valid_from.isoformat(),
        validity_period.valid_to.isoformat(),
        validity_period.ban,
        sorted(payload.items()),
    ]
    encoded = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True, kw_only=True)
class ContentRecord:
    """One transformed and validated content instance.

    Build instances with :meth:`create` so that ``enabled`` and ``digest`` stay
    consistent with the other fields.
    """

    kind: ContentKind
    id: str
    name: str | None
    attributes: Attributes
    validity_period: ValidityPeriod
    enabled: bool
    digest: str
    payload: Mapping[str, str | None] = field(default_factory=dict[str, "str | None"])
    source: Mapping[str, str] = field(default_factory=dict[str, str])
    delete_requested: bool = False

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValueError("Content id must not be blank")
        if len(self.id) > MAX_ID_LENGTH:
            raise ValueError(f"Content id must be at most {MAX_ID_LENGTH} characters")

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        *,
        kind: ContentKind,
        content_id: str,
        reference_time: datetime,
        name: str | None = None,
        attributes: Attributes | None = None,
        validity_period: ValidityPeriod | None = None,
        payload: Mapping[str, str | None] | None = None,
        source: Mapping[str, str] | None = None,
        delete_requested: bool = False,
    ) -> ContentRecord:
        atts = empty_attributes()
        atts.update(attributes or {})
        period = validity_period or ValidityPeriod()
        fields = dict(payload or {})
        return cls(
            kind=kind,
            id=content_id,
            name=name,
            attributes=MappingProxyType(atts),
            validity_period=period,
            enabled=period.is_enabled(reference_time),
            digest=compute_digest(content_id, name, atts, period, fields),
            payload=MappingProxyType(fields),
            source=MappingProxyType(dict(source or {})),
            delete_requested=delete_requested,
        )

    def with_reference_time(self, reference_time: datetime) -> ContentRecord:
        """Return a copy whose ``enabled`` flag is evaluated at ``reference_time``."""

        return replace(self, enabled=self.validity_period.is_enabled(reference_time))

    def as_logical_deletion(self, reference_time: datetime) -> ContentRecord:
        """Return the disabled counterpart of this record, closed before ``reference_time``."""

        period = self.validity_period.closed_before(reference_time)
        return replace(
            self,
            validity_period=period,
            enabled=False,
            digest=compute_digest(self.id, self.name, self.attributes, period, self.payload),
        )

    def describe(self) -> dict[str, object]:
        """JSON-friendly representation used for job records."""

        return {
            "kind": self.kind.value,
            "id": self.id,
            "name": self.name,
            "attributes": {key.value: value for key, value in self.attributes.items()},
            "validity_period": {
                "from": self.validity_period.valid_from.isoformat(),
                "to": self.validity_period.valid_to.isoformat(),
                "ban": self.validity_period.ban,
            },
            "enabled": self.enabled,
            "payload": dict(self.payload),
        }


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    """Reasons a transformed record could not become a :class:`ContentRecord`."""

    reasons: tuple[str, ...]
    source: Mapping[str, str] = field(default_factory=dict[str, str])
    content: Mapping[str, str] = field(default_factory=dict[str, str])

    @property
    def message(self) -> str:
        return "; ".join(self.reasons)
