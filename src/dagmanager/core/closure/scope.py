# src/dagmanager/core/closure/scope.py
"""RelationScope: restrict any query to vertices related through the closure.

Produces, without executing anything:

    <reference_column> IN (
        SELECT dag_edges.<select_field> FROM dag_edges
        WHERE dag_edges.source = :source
          AND dag_edges.hops <= :max_hops
          AND dag_edges.<where_field> IN (:vertex_ids)
    )

The reference column usually is the primary key of an application
table, e.g. ``employees.c.id``, so the caller gets "every employee
under manager 7" from their own query.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, Select, or_, select

from dagmanager.contracts.enums import Direction
from dagmanager.contracts.errors import InvalidArgumentError
from dagmanager.core.closure._helpers import require_source, require_vertex_ids, resolve_max_hops
from dagmanager.core.closure.schema import dag_edges_table

_t = dag_edges_table


@dataclass(frozen=True)
class RelationScope:
    """A validated, ready-to-apply closure predicate.

    Build instances with ``RelationScope.build`` so arguments are checked
    and the hop bound is resolved against the ceiling.
    """

    reference_column: ColumnElement[Any]
    vertex_ids: tuple[int, ...]
    source: str
    direction: Direction
    max_hops: int
    combine_with_or: bool = False

    @classmethod
    def build(
        cls,
        reference_column: ColumnElement[Any],
        vertex_ids: Iterable[int] | int,
        source: str,
        direction: Direction | str,
        *,
        ceiling: int,
        max_hops: int | None = None,
        combine_with_or: bool = False,
    ) -> "RelationScope":
        """Validate arguments and resolve the effective hop bound.

        Raises:
            InvalidArgumentError: If any vertex id is not a positive int,
                the source is empty, or the direction is unknown
        """
        ids = require_vertex_ids(vertex_ids)
        try:
            resolved_direction = Direction(direction)
        except ValueError:
            raise InvalidArgumentError(f"direction must be one of {[d.value for d in Direction]}, got {direction!r}") from None
        return cls(
            reference_column=reference_column,
            vertex_ids=tuple(ids),
            source=require_source(source),
            direction=resolved_direction,
            max_hops=resolve_max_hops(max_hops, ceiling),
            combine_with_or=combine_with_or,
        )

    def subquery(self) -> Select[Any]:
        """The correlated SELECT over dag_edges."""
        return select(_t.c[self.direction.select_field]).where(
            _t.c.source == self.source,
            _t.c.hops <= self.max_hops,
            _t.c[self.direction.where_field].in_(self.vertex_ids),
        )

    def criterion(self) -> ColumnElement[bool]:
        """``reference_column IN (subquery)``."""
        return self.reference_column.in_(self.subquery())

    def apply(self, query: Select[Any]) -> Select[Any]:
        """Return ``query`` narrowed (AND) or widened (OR) by this scope.

        OR on a statement with no WHERE yet behaves like a plain WHERE.
        """
        criterion = self.criterion()
        existing = query.whereclause
        if not self.combine_with_or or existing is None:
            return query.where(criterion)
        return _replace_where(query, or_(existing, criterion))


def _replace_where(query: Select[Any], clause: ColumnElement[bool]) -> Select[Any]:
    """Copy of ``query`` whose whole WHERE is ``clause``.

    Select only exposes ``where()``, which ANDs. Everything else on the
    statement (joins, ORDER BY, GROUP BY, LIMIT, options) must survive;
    tests/unit/core/closure/test_scope.py pins that for the installed
    SQLAlchemy.
    """
    if not hasattr(query, "_where_criteria"):
        raise RuntimeError(f"Unsupported SQLAlchemy Select layout: {type(query).__name__} has no _where_criteria")
    replaced = query._generate()  # noqa: SLF001
    replaced._where_criteria = (clause,)  # noqa: SLF001
    return replaced
