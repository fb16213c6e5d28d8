"""Exceptions raised by closure operations.

All of them derive from DagError so callers can catch the family.
Each carries the identifying fields of the edge it concerns, so the
message is never the only record of what went wrong.
"""


class DagError(Exception):
    """Base class for closure table errors."""


class InvalidArgumentError(DagError, ValueError):
    """Raised when a caller passes a malformed vertex id or source.

    Detected before any query runs or any transaction is opened.
    """


class CircularReferenceError(DagError):
    """Raised when an edge would close a cycle (including self-loops)."""

    def __init__(self, start_vertex: int, end_vertex: int, source: str) -> None:
        self.start_vertex = start_vertex
        self.end_vertex = end_vertex
        self.source = source
        if start_vertex == end_vertex:
            detail = f"vertex {start_vertex} cannot point at itself"
        else:
            detail = f"{end_vertex} is already an ancestor of {start_vertex}"
        super().__init__(f"Edge {start_vertex} -> {end_vertex} in source {source!r} would create a cycle: {detail}")


class TooManyHopsError(DagError):
    """Raised when an edge would produce a path longer than the hop ceiling.

    Attributes:
        start_vertex: Start of the rejected edge
        end_vertex: End of the rejected edge
        source: Namespace of the rejected edge
        hops: Longest derived path the edge would have created
        max_hops: Effective ceiling at the time of the call
    """

    def __init__(self, start_vertex: int, end_vertex: int, source: str, *, hops: int, max_hops: int) -> None:
        self.start_vertex = start_vertex
        self.end_vertex = end_vertex
        self.source = source
        self.hops = hops
        self.max_hops = max_hops
        super().__init__(
            f"Edge {start_vertex} -> {end_vertex} in source {source!r} would create a path of {hops} hops (maximum is {max_hops})"
        )


class DuplicateEdgeError(DagError):
    """Raised when a (source, start, end) row already exists."""

    def __init__(self, start_vertex: int, end_vertex: int, source: str) -> None:
        self.start_vertex = start_vertex
        self.end_vertex = end_vertex
        self.source = source
        super().__init__(f"Edge {start_vertex} -> {end_vertex} already exists in source {source!r}")
