# src/dagmanager/core/closure/store.py
"""EdgeStore: reads and writes against the dag_edges closure table.

Every method takes an optional Connection. Operations pass the
connection of their enclosing transaction; standalone callers can omit
it and the store opens a short transaction of its own on its default
database.
"""

from collections.abc import Collection, Iterable, Iterator
from contextlib import contextmanager

from sqlalchemy import Connection, and_, delete, select
from sqlalchemy.exc import IntegrityError

from dagmanager.contracts.edges import DagEdge, EdgeKey
from dagmanager.contracts.errors import DuplicateEdgeError
from dagmanager.core.closure.database import ClosureDB
from dagmanager.core.closure.repositories import DagEdgeRepository
from dagmanager.core.closure.schema import dag_edges_table

_t = dag_edges_table


class EdgeStore:
    """Closure table access for all sources.

    Holds no connection state beyond the default ClosureDB.
    """

    def __init__(self, db: ClosureDB) -> None:
        self._db = db
        self._repo = DagEdgeRepository()

    @property
    def db(self) -> ClosureDB:
        return self._db

    @contextmanager
    def _connect(self, conn: Connection | None) -> Iterator[Connection]:
        if conn is not None:
            yield conn
            return
        with self._db.connection() as own:
            yield own

    # === Reads ===

    def find(
        self,
        source: str,
        start: int | None = None,
        end: int | None = None,
        *,
        conn: Connection | None = None,
    ) -> set[DagEdge]:
        """All rows of a source, optionally narrowed by start and/or end vertex."""
        query = select(_t).where(_t.c.source == source)
        if start is not None:
            query = query.where(_t.c.start_vertex == start)
        if end is not None:
            query = query.where(_t.c.end_vertex == end)
        with self._connect(conn) as c:
            return {self._repo.load(row) for row in c.execute(query)}

    def get(self, source: str, start: int, end: int, *, conn: Connection | None = None) -> DagEdge | None:
        """The row for one (start, end) pair, or None."""
        query = select(_t).where(
            _t.c.source == source,
            _t.c.start_vertex == start,
            _t.c.end_vertex == end,
        )
        with self._connect(conn) as c:
            row = c.execute(query).fetchone()
        return self._repo.load(row) if row is not None else None

    def ancestors(
        self,
        source: str,
        vertex: int,
        *,
        max_hops: int | None = None,
        conn: Connection | None = None,
    ) -> dict[int, int]:
        """Vertices that reach ``vertex`` (within ``max_hops`` if given), mapped to their hop distance."""
        query = select(_t.c.start_vertex, _t.c.hops).where(_t.c.source == source, _t.c.end_vertex == vertex)
        if max_hops is not None:
            query = query.where(_t.c.hops <= max_hops)
        with self._connect(conn) as c:
            return {row.start_vertex: row.hops for row in c.execute(query)}

    def descendants(
        self,
        source: str,
        vertex: int,
        *,
        max_hops: int | None = None,
        conn: Connection | None = None,
    ) -> dict[int, int]:
        """Vertices reachable from ``vertex`` (within ``max_hops`` if given), mapped to their hop distance."""
        query = select(_t.c.end_vertex, _t.c.hops).where(_t.c.source == source, _t.c.start_vertex == vertex)
        if max_hops is not None:
            query = query.where(_t.c.hops <= max_hops)
        with self._connect(conn) as c:
            return {row.end_vertex: row.hops for row in c.execute(query)}

    def find_between(
        self,
        source: str,
        starts: Collection[int],
        ends: Collection[int],
        *,
        conn: Connection | None = None,
    ) -> dict[EdgeKey, DagEdge]:
        """Rows whose start is in ``starts`` and end is in ``ends``, keyed by pair."""
        if not starts or not ends:
            return {}
        query = select(_t).where(
            _t.c.source == source,
            _t.c.start_vertex.in_(sorted(starts)),
            _t.c.end_vertex.in_(sorted(ends)),
        )
        with self._connect(conn) as c:
            edges = (self._repo.load(row) for row in c.execute(query))
            return {edge.key: edge for edge in edges}

    def direct_edges_into(
        self,
        source: str,
        ends: Collection[int],
        *,
        excluding_starts: Collection[int] = (),
        conn: Connection | None = None,
    ) -> list[DagEdge]:
        """Direct (hops = 1) edges ending in ``ends`` whose start is outside ``excluding_starts``."""
        if not ends:
            return []
        query = select(_t).where(
            _t.c.source == source,
            _t.c.hops == 1,
            _t.c.end_vertex.in_(sorted(ends)),
        )
        if excluding_starts:
            query = query.where(_t.c.start_vertex.not_in(sorted(excluding_starts)))
        query = query.order_by(_t.c.start_vertex, _t.c.end_vertex)
        with self._connect(conn) as c:
            return [self._repo.load(row) for row in c.execute(query)]

    def direct_edges(self, source: str, *, conn: Connection | None = None) -> list[DagEdge]:
        """All direct edges of a source in (start, end) order."""
        query = select(_t).where(_t.c.source == source, _t.c.hops == 1).order_by(_t.c.start_vertex, _t.c.end_vertex)
        with self._connect(conn) as c:
            return [self._repo.load(row) for row in c.execute(query)]

    def sources(self, *, conn: Connection | None = None) -> list[str]:
        """Every source namespace with at least one row."""
        query = select(_t.c.source).distinct().order_by(_t.c.source)
        with self._connect(conn) as c:
            return [row.source for row in c.execute(query)]

    # === Writes ===

    def insert(self, edge: DagEdge, *, conn: Connection | None = None) -> None:
        """Insert one row.

        Raises:
            DuplicateEdgeError: If (source, start, end) already exists
        """
        with self._connect(conn) as c:
            try:
                c.execute(_t.insert().values(**edge.as_row()))
            except IntegrityError as e:
                raise DuplicateEdgeError(edge.start_vertex, edge.end_vertex, edge.source) from e

    def insert_many(self, edges: Iterable[DagEdge], *, conn: Connection | None = None) -> None:
        """Insert rows one by one inside a single transaction.

        Raises:
            DuplicateEdgeError: On the first row whose key already exists
        """
        with self._connect(conn) as c:
            for edge in edges:
                self.insert(edge, conn=c)

    def delete(self, source: str, start: int, end: int, *, conn: Connection | None = None) -> bool:
        """Delete one row. Returns True if a row existed and was removed."""
        stmt = delete(_t).where(
            _t.c.source == source,
            _t.c.start_vertex == start,
            _t.c.end_vertex == end,
        )
        with self._connect(conn) as c:
            return c.execute(stmt).rowcount > 0

    def delete_between(
        self,
        source: str,
        starts: Collection[int],
        ends: Collection[int],
        *,
        conn: Connection | None = None,
    ) -> int:
        """Delete every row whose start is in ``starts`` and end is in ``ends``.

        Returns:
            Number of rows deleted
        """
        if not starts or not ends:
            return 0
        stmt = delete(_t).where(
            and_(
                _t.c.source == source,
                _t.c.start_vertex.in_(sorted(starts)),
                _t.c.end_vertex.in_(sorted(ends)),
            )
        )
        with self._connect(conn) as c:
            return c.execute(stmt).rowcount

    def delete_source(self, source: str, *, conn: Connection | None = None) -> int:
        """Delete every row of a source. Returns the number of rows deleted."""
        with self._connect(conn) as c:
            return c.execute(delete(_t).where(_t.c.source == source)).rowcount
