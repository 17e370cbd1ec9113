"""Transformers mapping raw source records onto content fields."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from string import Template
from typing import TYPE_CHECKING

from pydantic import TypeAdapter

from contentsync.domain.model import TransformFailure, TransformSuccess

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from pathlib import Path

    from contentsync.domain.model import TransformResult
    from contentsync.domain.ports import RawRecord

log = logging.getLogger(__name__)

_MAPPING_ADAPTER: TypeAdapter[dict[str, str]] = TypeAdapter(dict[str, str])


@dataclass(frozen=True, slots=True)
class PassThroughTransformer:
    """Use raw records as transformed content unchanged."""

    @contextmanager
    def transform(self, records: Iterable[RawRecord]) -> Iterator[Iterator[TransformResult]]:
        yield (TransformSuccess(content=dict(record), source=dict(record)) for record in records)


@dataclass(frozen=True, slots=True)
class TemplateTransformer:
    """Build each target field from a ``string.Template`` over the raw record.

    ``{"id": "${login}", "name": "${last} ${first}"}`` maps a record with
    ``login``, ``first`` and ``last`` fields. A record missing a referenced field
    becomes a :class:`TransformFailure`.
    """

    templates: Mapping[str, str]
    _compiled: dict[str, Template] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        compiled = {key: Template(text) for key, text in self.templates.items()}
        invalid = sorted(key for key, template in compiled.items() if not template.is_valid())
        if invalid:
            raise ValueError(f"Invalid templates for: {', '.join(invalid)}")
        object.__setattr__(self, "_compiled", compiled)

    @classmethod
    def from_file(cls, path: Path) -> TemplateTransformer:
        with path.open(encoding="utf-8") as handle:
            return cls(_MAPPING_ADAPTER.validate_python(json.load(handle)))

    @contextmanager
    def transform(self, records: Iterable[RawRecord]) -> Iterator[Iterator[TransformResult]]:
        yield (self._apply(record) for record in records)

    def _apply(self, record: RawRecord) -> TransformResult:
        source = dict(record)
        try:
            content = {key: template.substitute(record) for key, template in self._compiled.items()}
        except KeyError as exc:
            log.debug(f"Record lacks field {exc.args[0]!r}")
            return TransformFailure(reason=f"Missing source field: {exc.args[0]}", source=source)
        return TransformSuccess(content=content, source=source)
