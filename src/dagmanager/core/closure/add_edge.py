# src/dagmanager/core/closure/add_edge.py
"""Edge insertion with closure derivation.

Adding start -> end makes every ancestor of start (and start itself)
reach every descendant of end (and end itself). The closure already
holds shortest distances on both sides, so the shortest route through
the new edge for a pair (a, d) is ``up[a] + 1 + down[d]``. The stored
value for the pair becomes the minimum of that and what was there.

All checks run before the first write. A rejected edge leaves the
table exactly as it was, even outside a transaction. Re-adding a
direct edge that is already stored is a no-op that writes nothing.
"""

from collections.abc import Mapping, MutableMapping

from sqlalchemy import Connection

from dagmanager.contracts.edges import DagEdge, EdgeKey
from dagmanager.contracts.errors import CircularReferenceError, TooManyHopsError
from dagmanager.core.closure.store import EdgeStore
from dagmanager.core.logging import get_logger

logger = get_logger(__name__)


def derive_edges(upstream: Mapping[int, int], downstream: Mapping[int, int]) -> dict[EdgeKey, int]:
    """Hop counts for every pair joined through one new link.

    Args:
        upstream: Vertex -> distance to the link's start (start itself at 0)
        downstream: Vertex -> distance from the link's end (end itself at 0)

    Returns:
        (upstream vertex, downstream vertex) -> hops through the link
    """
    return {(a, d): up + 1 + down for a, up in upstream.items() for d, down in downstream.items()}


def merge_shortest(target: MutableMapping[EdgeKey, int], candidates: Mapping[EdgeKey, int]) -> None:
    """Fold candidates into target keeping the smaller hop count per pair."""
    for key, hops in candidates.items():
        current = target.get(key)
        if current is None or hops < current:
            target[key] = hops


def write_shortest_paths(
    store: EdgeStore,
    source: str,
    candidates: Mapping[EdgeKey, int],
    conn: Connection,
) -> list[DagEdge]:
    """Persist candidate pairs, keeping the minimal hop count per pair.

    Absent pairs are inserted. A pair stored with a larger hop count is
    deleted and re-inserted with the smaller one. Pairs already stored
    with an equal or smaller count are left alone.

    Returns:
        Rows written, ordered by (start_vertex, end_vertex)
    """
    if not candidates:
        return []
    starts = {a for a, _ in candidates}
    ends = {d for _, d in candidates}
    existing = store.find_between(source, starts, ends, conn=conn)

    written: list[DagEdge] = []
    for (start, end), hops in sorted(candidates.items()):
        current = existing.get((start, end))
        if current is not None:
            if current.hops <= hops:
                continue
            store.delete(source, start, end, conn=conn)
        edge = DagEdge(source=source, start_vertex=start, end_vertex=end, hops=hops)
        store.insert(edge, conn=conn)
        written.append(edge)
    return written


class AddEdgeOperation:
    """Insert a direct edge and every transitive row it implies.

    Args:
        start_vertex: Vertex the edge leaves
        end_vertex: Vertex the edge enters
        source: Namespace of the graph
        max_hops: Effective ceiling on any derived path
        store: Closure table access
    """

    def __init__(
        self,
        start_vertex: int,
        end_vertex: int,
        source: str,
        max_hops: int,
        store: EdgeStore,
    ) -> None:
        self.start_vertex = start_vertex
        self.end_vertex = end_vertex
        self.source = source
        self.max_hops = max_hops
        self._store = store

    def execute(self, conn: Connection) -> list[DagEdge]:
        """Validate, then write.

        Returns:
            Rows inserted or shortened (the direct edge included); empty
            when the direct edge is already stored

        Raises:
            CircularReferenceError: Self-loop, or end already reaches start
            TooManyHopsError: A derived path would exceed max_hops
        """
        self._guard_against_cycle(conn)
        if self._is_already_direct(conn):
            return []

        upstream = {self.start_vertex: 0, **self._store.ancestors(self.source, self.start_vertex, conn=conn)}
        downstream = {self.end_vertex: 0, **self._store.descendants(self.source, self.end_vertex, conn=conn)}
        candidates = derive_edges(upstream, downstream)

        longest = max(candidates.values())
        if longest > self.max_hops:
            raise TooManyHopsError(
                self.start_vertex,
                self.end_vertex,
                self.source,
                hops=longest,
                max_hops=self.max_hops,
            )

        written = write_shortest_paths(self._store, self.source, candidates, conn)
        logger.debug(
            "closure_extended",
            source=self.source,
            start_vertex=self.start_vertex,
            end_vertex=self.end_vertex,
            candidates=len(candidates),
            written=len(written),
        )
        return written

    def _guard_against_cycle(self, conn: Connection) -> None:
        if self.start_vertex == self.end_vertex:
            raise CircularReferenceError(self.start_vertex, self.end_vertex, self.source)
        if self._store.get(self.source, self.end_vertex, self.start_vertex, conn=conn) is not None:
            raise CircularReferenceError(self.start_vertex, self.end_vertex, self.source)

    def _is_already_direct(self, conn: Connection) -> bool:
        current = self._store.get(self.source, self.start_vertex, self.end_vertex, conn=conn)
        return current is not None and current.is_direct
