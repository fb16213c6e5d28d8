# src/dagmanager/core/closure/remove_edge.py
"""Edge removal with closure recomputation.

Only pairs (a, d) with a in A = {start} + ancestors(start) and d in
D = {end} + descendants(end) can have had a shortest path through the
removed edge, so those rows are deleted and recomputed; every other row
is left as is.

Recomputation: any surviving a -> d path enters D for the first time
over some direct edge (u, v) with u outside D and v inside it. The
segment a -> u never touches D and the segment v -> d never touches A,
so both distances are still correct in the table after the delete.
Re-deriving through every such boundary edge and keeping the minimum
per pair yields exactly the closure the graph would have had without
the removed edge, however many alternate paths exist.
"""

from sqlalchemy import Connection

from dagmanager.contracts.edges import DagEdge, EdgeKey
from dagmanager.core.closure.add_edge import derive_edges, merge_shortest
from dagmanager.core.closure.store import EdgeStore
from dagmanager.core.logging import get_logger

logger = get_logger(__name__)


class RemoveEdgeOperation:
    """Delete a direct edge and repair the closure around it.

    Args:
        start_vertex: Vertex the edge leaves
        end_vertex: Vertex the edge enters
        source: Namespace of the graph
        store: Closure table access
    """

    def __init__(self, start_vertex: int, end_vertex: int, source: str, store: EdgeStore) -> None:
        self.start_vertex = start_vertex
        self.end_vertex = end_vertex
        self.source = source
        self._store = store

    def execute(self, conn: Connection) -> bool:
        """Remove the edge.

        Returns:
            True if the direct edge existed and was removed, False otherwise
        """
        current = self._store.get(self.source, self.start_vertex, self.end_vertex, conn=conn)
        if current is None or not current.is_direct:
            return False

        upstream = {self.start_vertex, *self._store.ancestors(self.source, self.start_vertex, conn=conn)}
        downstream = {self.end_vertex, *self._store.descendants(self.source, self.end_vertex, conn=conn)}

        deleted = self._store.delete_between(self.source, upstream, downstream, conn=conn)
        restored = self._recompute(upstream, downstream, conn)
        self._store.insert_many(restored, conn=conn)

        logger.debug(
            "closure_recomputed",
            source=self.source,
            start_vertex=self.start_vertex,
            end_vertex=self.end_vertex,
            deleted=deleted,
            restored=len(restored),
        )
        return True

    def _recompute(self, upstream: set[int], downstream: set[int], conn: Connection) -> list[DagEdge]:
        """Shortest surviving paths from upstream into downstream."""
        best: dict[EdgeKey, int] = {}
        boundary = self._store.direct_edges_into(self.source, downstream, excluding_starts=downstream, conn=conn)
        for edge in boundary:
            reaching = {edge.start_vertex: 0, **self._store.ancestors(self.source, edge.start_vertex, conn=conn)}
            affected = {vertex: hops for vertex, hops in reaching.items() if vertex in upstream}
            if not affected:
                continue
            reached = {edge.end_vertex: 0, **self._store.descendants(self.source, edge.end_vertex, conn=conn)}
            merge_shortest(best, derive_edges(affected, reached))

        return [DagEdge(source=self.source, start_vertex=a, end_vertex=d, hops=hops) for (a, d), hops in sorted(best.items())]
