"""Closure table contracts.

DagEdge is the in-memory form of one dag_edges row. Repository code
builds these from database rows; operations build them for writes.
"""

from dataclasses import dataclass

EdgeKey = tuple[int, int]


@dataclass(frozen=True, slots=True)
class DagEdge:
    """One reachable (start, end) pair within a source namespace.

    hops is the length of the shortest known path; 1 means a direct edge.
    """

    source: str
    start_vertex: int
    end_vertex: int
    hops: int

    def __post_init__(self) -> None:
        if self.hops < 0:
            raise ValueError(f"hops must be >= 0, got {self.hops}")

    @property
    def key(self) -> EdgeKey:
        """(start_vertex, end_vertex) pair, unique within a source."""
        return (self.start_vertex, self.end_vertex)

    @property
    def is_direct(self) -> bool:
        return self.hops == 1

    def as_row(self) -> dict[str, object]:
        """Column mapping suitable for a dag_edges insert."""
        return {
            "source": self.source,
            "start_vertex": self.start_vertex,
            "end_vertex": self.end_vertex,
            "hops": self.hops,
        }
