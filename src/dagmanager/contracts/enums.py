"""Modes and kinds shared across the closure subsystem."""

from enum import StrEnum


class Direction(StrEnum):
    """Which way to walk the closure from a set of vertices.

    Each direction names the closure column that is selected and the
    column that is filtered on.
    """

    ANCESTORS = "ancestors"
    DESCENDANTS = "descendants"

    @property
    def select_field(self) -> str:
        """Column holding the vertices this direction yields."""
        return "start_vertex" if self is Direction.ANCESTORS else "end_vertex"

    @property
    def where_field(self) -> str:
        """Column matched against the reference vertices."""
        return "end_vertex" if self is Direction.ANCESTORS else "start_vertex"
