# src/dagmanager/service.py
"""DagService: the public entry point for closure maintenance.

Each mutating call validates its arguments, opens exactly one
transaction, delegates to the matching operation, and commits. Any
exception rolls the transaction back and propagates unchanged; there is
no retry.

Concurrency: the service does no locking of its own. Two calls that
mutate overlapping parts of the same source must be serialized by the
caller, e.g. with SERIALIZABLE isolation (``isolation_level`` in the
connection settings) or row locks on the affected vertices.
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Self

from sqlalchemy import ColumnElement, Connection, Select

from dagmanager.contracts.edges import DagEdge
from dagmanager.contracts.enums import Direction
from dagmanager.contracts.errors import InvalidArgumentError
from dagmanager.core.closure._helpers import require_source, require_vertex, resolve_max_hops
from dagmanager.core.closure.add_edge import AddEdgeOperation
from dagmanager.core.closure.database import ClosureDB
from dagmanager.core.closure.remove_edge import RemoveEdgeOperation
from dagmanager.core.closure.scope import RelationScope
from dagmanager.core.closure.store import EdgeStore
from dagmanager.core.closure.verify import ClosureReport, rebuild_closure, verify_closure
from dagmanager.core.config import DEFAULT_MAX_HOPS, DagSettings
from dagmanager.core.logging import get_logger, operation_context

logger = get_logger(__name__)


class DagService:
    """Create and delete edges, and scope queries by ancestry.

    Args:
        db: Transaction provider for the connection this service writes to
        max_hops: Global ceiling on closure path length, captured once
    """

    def __init__(self, db: ClosureDB, *, max_hops: int = DEFAULT_MAX_HOPS) -> None:
        if type(max_hops) is not int or max_hops < 0:
            raise InvalidArgumentError(f"max_hops must be a non-negative integer, got {max_hops!r}")
        self._db = db
        self._store = EdgeStore(db)
        self._max_hops = max_hops

    @classmethod
    def from_settings(cls, settings: DagSettings, connection: str | None = None) -> Self:
        """Build a service for a named connection (the default one when None)."""
        return cls(ClosureDB.from_settings(settings, connection), max_hops=settings.max_hops)

    @property
    def max_hops(self) -> int:
        return self._max_hops

    @property
    def store(self) -> EdgeStore:
        return self._store

    @contextmanager
    def _transaction(self, operation: str, **context: Any) -> Iterator[Connection]:
        try:
            with operation_context(operation, **context), self._db.connection() as conn:
                yield conn
        except Exception as e:
            logger.warning(
                "transaction_rolled_back",
                operation=operation,
                error_type=type(e).__name__,
                error=str(e),
                **context,
            )
            raise

    def create_edge(self, start_vertex: int, end_vertex: int, source: str) -> list[DagEdge]:
        """Insert a direct edge and every transitive row it implies.

        Returns:
            Rows inserted or shortened, ordered by (start_vertex, end_vertex);
            empty if the direct edge was already stored

        Raises:
            InvalidArgumentError: Malformed vertex or source (no transaction opened)
            CircularReferenceError: The edge would create a cycle
            TooManyHopsError: A derived path would exceed the hop ceiling
            DuplicateEdgeError: A concurrent writer inserted one of the rows first
        """
        start_vertex = require_vertex(start_vertex, "start_vertex")
        end_vertex = require_vertex(end_vertex, "end_vertex")
        source = require_source(source)

        with self._transaction("create_edge", source=source, start_vertex=start_vertex, end_vertex=end_vertex) as conn:
            new_edges = AddEdgeOperation(start_vertex, end_vertex, source, self._max_hops, self._store).execute(conn)

        if not new_edges:
            logger.debug("edge_already_present", source=source, start_vertex=start_vertex, end_vertex=end_vertex)
            return new_edges

        logger.info(
            "edge_created",
            source=source,
            start_vertex=start_vertex,
            end_vertex=end_vertex,
            rows_written=len(new_edges),
        )
        return new_edges

    def delete_edge(self, start_vertex: int, end_vertex: int, source: str) -> bool:
        """Delete a direct edge and repair the closure.

        Returns:
            True if the edge existed and was removed, False if there was nothing to remove
        """
        start_vertex = require_vertex(start_vertex, "start_vertex")
        end_vertex = require_vertex(end_vertex, "end_vertex")
        source = require_source(source)

        with self._transaction("delete_edge", source=source, start_vertex=start_vertex, end_vertex=end_vertex) as conn:
            removed = RemoveEdgeOperation(start_vertex, end_vertex, source, self._store).execute(conn)

        if removed:
            logger.info("edge_removed", source=source, start_vertex=start_vertex, end_vertex=end_vertex)
        return removed

    def apply_relation_scope(
        self,
        query: Select[Any],
        reference_column: ColumnElement[Any],
        vertex_ids: Iterable[int] | int,
        source: str,
        direction: Direction | str,
        max_hops: int | None = None,
        combine_with_or: bool = False,
    ) -> Select[Any]:
        """Restrict ``query`` to rows whose ``reference_column`` is related to ``vertex_ids``.

        Example:
            stmt = select(employees).where(employees.c.active)
            stmt = service.apply_relation_scope(
                stmt, employees.c.id, [manager_id], "org-chart", Direction.DESCENDANTS
            )

        Returns:
            A new statement; Select objects are immutable

        Raises:
            InvalidArgumentError: If any vertex id is not a positive int
        """
        scope = RelationScope.build(
            reference_column,
            vertex_ids,
            source,
            direction,
            ceiling=self._max_hops,
            max_hops=max_hops,
            combine_with_or=combine_with_or,
        )
        return scope.apply(query)

    def ancestors(self, vertex: int, source: str, max_hops: int | None = None) -> dict[int, int]:
        """Vertices that reach ``vertex`` within the effective hop bound, with distances."""
        vertex = require_vertex(vertex)
        bound = resolve_max_hops(max_hops, self._max_hops)
        found = self._store.ancestors(require_source(source), vertex, max_hops=bound)
        return dict(sorted(found.items()))

    def descendants(self, vertex: int, source: str, max_hops: int | None = None) -> dict[int, int]:
        """Vertices reachable from ``vertex`` within the effective hop bound, with distances."""
        vertex = require_vertex(vertex)
        bound = resolve_max_hops(max_hops, self._max_hops)
        found = self._store.descendants(require_source(source), vertex, max_hops=bound)
        return dict(sorted(found.items()))

    def edges(self, source: str) -> list[DagEdge]:
        """Every closure row of a source, ordered by (start_vertex, end_vertex)."""
        return sorted(self._store.find(require_source(source)), key=lambda edge: edge.key)

    def verify(self, source: str) -> ClosureReport:
        """Compare the stored closure with the one implied by its direct edges."""
        return verify_closure(self._store, require_source(source))

    def rebuild(self, source: str) -> int:
        """Rewrite the closure of ``source`` from its direct edges in one transaction."""
        source = require_source(source)
        with self._transaction("rebuild", source=source) as conn:
            return rebuild_closure(self._store, source, conn)
