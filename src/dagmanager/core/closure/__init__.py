# src/dagmanager/core/closure/__init__.py
"""Closure: the transitive-closure table and the operations that maintain it.

Primary API:
    EdgeStore - Reads and writes against dag_edges
    AddEdgeOperation - Insert an edge and its derived rows
    RemoveEdgeOperation - Delete an edge and repair the closure
    RelationScope - Ancestor/descendant predicate for arbitrary queries
    ClosureDB - Database connection and transaction management

Maintenance:
    verify_closure, rebuild_closure - Compare/rewrite from direct edges
"""

from dagmanager.core.closure._helpers import resolve_max_hops
from dagmanager.core.closure.add_edge import AddEdgeOperation, derive_edges
from dagmanager.core.closure.database import ClosureDB, SchemaCompatibilityError
from dagmanager.core.closure.remove_edge import RemoveEdgeOperation
from dagmanager.core.closure.schema import dag_edges_table, metadata
from dagmanager.core.closure.scope import RelationScope
from dagmanager.core.closure.store import EdgeStore
from dagmanager.core.closure.verify import ClosureReport, rebuild_closure, verify_closure

__all__ = [
    "AddEdgeOperation",
    "ClosureDB",
    "ClosureReport",
    "EdgeStore",
    "RelationScope",
    "RemoveEdgeOperation",
    "SchemaCompatibilityError",
    "dag_edges_table",
    "derive_edges",
    "metadata",
    "rebuild_closure",
    "resolve_max_hops",
    "verify_closure",
]
