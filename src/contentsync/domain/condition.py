"""Boolean filter expressions over named content fields.

A condition is either a :class:`SingleCondition` comparing one field against a
literal, or a :class:`MultiCondition` combining child conditions. The two are a
closed union discriminated by ``tag``; consumers dispatch with ``match``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable


class SingleOperator(StrEnum):
    EQUAL = "EQUAL"
    FORWARD_MATCH = "FORWARD_MATCH"
    PARTIAL_MATCH = "PARTIAL_MATCH"
    BACKWARD_MATCH = "BACKWARD_MATCH"
    LESS_THAN = "LESS_THAN"
    GRATER_THAN = "GRATER_THAN"
    IS_NULL = "IS_NULL"


class MultiOperator(StrEnum):
    AND = "AND"
    OR = "OR"
    NOT_OR = "NOT_OR"


@dataclass(frozen=True, slots=True)
class SingleCondition:
    """Compare the field ``name`` against ``value``. ``value`` is ignored by IS_NULL."""

    operator: SingleOperator
    name: str
    value: str = ""
    tag: Literal["single"] = field(default="single", init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.operator, SingleOperator):  # pyright: ignore[reportUnnecessaryIsInstance]
            raise TypeError(f"Incorrect filtering operation for a single condition: {self.operator}")


@dataclass(frozen=True, slots=True)
class MultiCondition:
    """Combine ``children`` with ``operator``."""

    operator: MultiOperator
    children: tuple[Condition, ...] = ()
    tag: Literal["multi"] = field(default="multi", init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.operator, MultiOperator):  # pyright: ignore[reportUnnecessaryIsInstance]
            raise TypeError(f"Incorrect filtering operation for a multi condition: {self.operator}")
        object.__setattr__(self, "children", tuple(self.children))

    @property
    def is_empty(self) -> bool:
        return not self.children


type Condition = SingleCondition | MultiCondition


def empty_condition() -> MultiCondition:
    """Condition that matches everything."""

    return MultiCondition(MultiOperator.AND)


def all_of(*conditions: Condition) -> MultiCondition:
    return MultiCondition(MultiOperator.AND, conditions)


def any_of(*conditions: Condition) -> MultiCondition:
    return MultiCondition(MultiOperator.OR, conditions)


def field_names(condition: Condition) -> Iterable[str]:
    """Yield every field name referenced by ``condition``, depth first."""

    match condition:
        case SingleCondition(name=name):
            yield name
        case MultiCondition(children=children):
            for child in children:
                yield from field_names(child)
