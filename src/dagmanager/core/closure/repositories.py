"""Repository layer for closure rows.

Handles the seam between SQLAlchemy rows and DagEdge contracts.
This is NOT a trust boundary: rows in dag_edges were written by this
package, so an impossible value (negative hops, non-integer vertex)
means the table was corrupted and we crash rather than coerce.
"""

from typing import Any

from sqlalchemy.engine import Row as SARow

from dagmanager.contracts.edges import DagEdge


class DagEdgeRepository:
    """Repository for dag_edges rows."""

    def load(self, row: SARow[Any]) -> DagEdge:
        """Load DagEdge from database row.

        Crashes on invalid data.
        """
        for field in ("start_vertex", "end_vertex", "hops"):
            value = getattr(row, field)
            if type(value) is not int:
                raise TypeError(f"dag_edges.{field} must be int, got {type(value).__name__}: {value!r}")
        return DagEdge(
            source=row.source,
            start_vertex=row.start_vertex,
            end_vertex=row.end_vertex,
            hops=row.hops,
        )
