"""
dagmanager: Transitive-closure tables for directed acyclic graphs.

Keeps a materialized closure of one or more DAGs in a relational
database so ancestor/descendant questions become a single indexed query.
"""

__version__ = "0.1.0"

from dagmanager.contracts import (  # noqa: E402
    CircularReferenceError,
    DagEdge,
    DagError,
    Direction,
    DuplicateEdgeError,
    InvalidArgumentError,
    TooManyHopsError,
)
from dagmanager.service import DagService  # noqa: E402

__all__ = [
    "CircularReferenceError",
    "DagEdge",
    "DagError",
    "DagService",
    "Direction",
    "DuplicateEdgeError",
    "InvalidArgumentError",
    "TooManyHopsError",
    "__version__",
]
