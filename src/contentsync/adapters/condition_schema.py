"""JSON representation of filter conditions.

A single condition reads ``{"operation": "EQUAL", "name": "att01", "value": "x"}``;
a multi condition reads ``{"operation": "AND", "children": [...]}``. An empty
object is the empty AND, which matches everything.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from contentsync.domain.condition import (
    MultiCondition,
    MultiOperator,
    SingleCondition,
    SingleOperator,
)

if TYPE_CHECKING:
    from pathlib import Path

    from contentsync.domain.condition import Condition


class SingleConditionPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    operation: SingleOperator
    name: str = Field(min_length=1)
    value: str = ""

    def to_condition(self) -> SingleCondition:
        return SingleCondition(self.operation, self.name, self.value)


class MultiConditionPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    operation: MultiOperator = MultiOperator.AND
    children: list[SingleConditionPayload | MultiConditionPayload] = Field(
        default_factory=list["SingleConditionPayload | MultiConditionPayload"]
    )

    def to_condition(self) -> MultiCondition:
        return MultiCondition(
            self.operation, tuple(child.to_condition() for child in self.children)
        )


_CONDITION_ADAPTER: TypeAdapter[SingleConditionPayload | MultiConditionPayload] = TypeAdapter(
    SingleConditionPayload | MultiConditionPayload
)


def parse_condition(payload: object) -> Condition:
    """Validate a decoded JSON document into a condition.

    Raises ``pydantic.ValidationError`` for malformed documents.
    """

    return _CONDITION_ADAPTER.validate_python(payload).to_condition()


def load_condition(path: Path) -> Condition:
    with path.open(encoding="utf-8") as handle:
        return parse_condition(json.load(handle))
