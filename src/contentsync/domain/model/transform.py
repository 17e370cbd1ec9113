"""Results emitted by a transformer for each raw source record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class TransformSuccess:
    """Transformed key-value content plus the raw record it came from."""

    content: Mapping[str, str]
    source: Mapping[str, str] = field(default_factory=dict[str, str])
    successful: Literal[True] = True


@dataclass(frozen=True, slots=True)
class TransformFailure:
    """Reason a raw record could not be transformed."""

    reason: str
    source: Mapping[str, str] = field(default_factory=dict[str, str])
    successful: Literal[False] = False


type TransformResult = TransformSuccess | TransformFailure
