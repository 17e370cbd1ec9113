"""Compile domain conditions into SQLAlchemy boolean expressions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, case, not_, or_, select, true

from contentsync.adapters.sqlalchemy.mappings import content_table, import_work_table
from contentsync.domain.condition import (
    MultiCondition,
    MultiOperator,
    SingleCondition,
    SingleOperator,
)
from contentsync.domain.errors import UnresolvedFieldError
from contentsync.domain.model import AttKey

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement

    from contentsync.domain.condition import Condition

type FieldResolver = Callable[[str], ColumnElement[Any]]


def _content_fields() -> dict[str, ColumnElement[Any]]:
    columns = content_table.c
    fields: dict[str, ColumnElement[Any]] = {
        "kind": columns.kind,
        "id": columns.id,
        "name": columns.name,
        "enabled": case((columns.enabled.is_(True), "true"), else_="false"),
        "observed_id": (
            select(import_work_table.c.id)
            .where(import_work_table.c.kind == columns.kind)
            .where(import_work_table.c.id == columns.id)
            .scalar_subquery()
        ),
    }
    for key in AttKey:
        fields[key.value] = columns[key.value]
    return fields


_CONTENT_FIELDS = _content_fields()


def resolve_content_field(name: str) -> ColumnElement[Any]:
    """Map a condition field name onto the ``content`` table.

    ``enabled`` compares as the text ``"true"``/``"false"``; ``observed_id`` is the
    id recorded in the import work table for the current run, null when unseen.
    """

    try:
        return _CONTENT_FIELDS[name]
    except KeyError:
        raise UnresolvedFieldError(name) from None


class ConditionCompiler:
    """Translate a :class:`Condition` tree into a single SQL predicate."""

    def __init__(self, resolve: FieldResolver = resolve_content_field) -> None:
        self._resolve = resolve

    def compile(self, condition: Condition) -> ColumnElement[bool]:
        match condition:
            case SingleCondition():
                return self._single(condition)
            case MultiCondition():
                return self._multi(condition)

    def _single(self, condition: SingleCondition) -> ColumnElement[bool]:
        column = self._resolve(condition.name)
        value = condition.value
        match condition.operator:
            case SingleOperator.EQUAL:
                return column == value
            case SingleOperator.FORWARD_MATCH:
                return column.startswith(value, autoescape=True)
            case SingleOperator.PARTIAL_MATCH:
                return column.contains(value, autoescape=True)
            case SingleOperator.BACKWARD_MATCH:
                return column.endswith(value, autoescape=True)
            case SingleOperator.LESS_THAN:
                return column < value
            case SingleOperator.GRATER_THAN:
                return column > value
            case SingleOperator.IS_NULL:
                return column.is_(None)

    def _multi(self, condition: MultiCondition) -> ColumnElement[bool]:
        # Single children first, then nested groups.
        clauses = [
            self._single(child) for child in condition.children if isinstance(child, SingleCondition)
        ]
        clauses.extend(
            self._multi(child) for child in condition.children if isinstance(child, MultiCondition)
        )
        if not clauses:
            return true()
        match condition.operator:
            case MultiOperator.AND:
                return and_(*clauses)
            case MultiOperator.OR:
                return or_(*clauses)
            case MultiOperator.NOT_OR:
                return not_(or_(*clauses))
