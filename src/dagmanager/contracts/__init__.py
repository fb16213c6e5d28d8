"""Shared contracts: edge records, enums, and errors."""

from dagmanager.contracts.edges import DagEdge, EdgeKey
from dagmanager.contracts.enums import Direction
from dagmanager.contracts.errors import (
    CircularReferenceError,
    DagError,
    DuplicateEdgeError,
    InvalidArgumentError,
    TooManyHopsError,
)

__all__ = [
    "CircularReferenceError",
    "DagEdge",
    "DagError",
    "Direction",
    "DuplicateEdgeError",
    "EdgeKey",
    "InvalidArgumentError",
    "TooManyHopsError",
]
