# src/dagmanager/core/closure/verify.py
"""Closure verification and rebuild from direct edges.

The direct edges (hops = 1) of a source are the ground truth; every
other row is derived. These functions load the direct edges into a
NetworkX DiGraph, compute the closure the table should hold, and either
report the differences or rewrite the derived rows to match.

Useful after out-of-band writes to dag_edges (manual SQL, restores
from partial backups) and as an independent reference in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import networkx as nx
from sqlalchemy import Connection

from dagmanager.contracts.edges import DagEdge, EdgeKey
from dagmanager.core.closure.store import EdgeStore
from dagmanager.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClosureReport:
    """Differences between the stored and the expected closure of a source."""

    source: str
    direct_edges: int
    expected_rows: int
    stored_rows: int
    is_acyclic: bool
    missing: tuple[DagEdge, ...] = field(default=())
    extra: tuple[DagEdge, ...] = field(default=())
    wrong_hops: tuple[tuple[DagEdge, int], ...] = field(default=())

    @property
    def is_consistent(self) -> bool:
        return self.is_acyclic and not self.missing and not self.extra and not self.wrong_hops


def build_graph(edges: list[DagEdge]) -> nx.DiGraph[int]:
    """DiGraph over the given direct edges."""
    graph: nx.DiGraph[int] = nx.DiGraph()
    graph.add_edges_from(edge.key for edge in edges if edge.is_direct)
    return graph


def expected_closure(graph: nx.DiGraph[int]) -> dict[EdgeKey, int]:
    """Shortest path length for every reachable (start, end) pair, self pairs excluded."""
    closure: dict[EdgeKey, int] = {}
    for start, lengths in nx.all_pairs_shortest_path_length(graph):
        for end, hops in lengths.items():
            if start != end:
                closure[(start, end)] = hops
    return closure


def verify_closure(store: EdgeStore, source: str, *, conn: Connection | None = None) -> ClosureReport:
    """Compare the stored closure of ``source`` with the one its direct edges imply."""
    stored = {edge.key: edge for edge in store.find(source, conn=conn)}
    graph = build_graph(list(stored.values()))
    expected = expected_closure(graph)

    missing = tuple(
        DagEdge(source=source, start_vertex=start, end_vertex=end, hops=hops)
        for (start, end), hops in sorted(expected.items())
        if (start, end) not in stored
    )
    extra = tuple(edge for key, edge in sorted(stored.items()) if key not in expected)
    wrong_hops = tuple(
        (edge, expected[key]) for key, edge in sorted(stored.items()) if key in expected and expected[key] != edge.hops
    )

    return ClosureReport(
        source=source,
        direct_edges=graph.number_of_edges(),
        expected_rows=len(expected),
        stored_rows=len(stored),
        is_acyclic=nx.is_directed_acyclic_graph(graph),
        missing=missing,
        extra=extra,
        wrong_hops=wrong_hops,
    )


def rebuild_closure(store: EdgeStore, source: str, conn: Connection) -> int:
    """Rewrite every row of ``source`` from its direct edges.

    Runs inside the caller's transaction. No hop ceiling applies; the
    direct edges were each accepted under one already.

    Returns:
        Number of rows in the rebuilt closure

    Raises:
        nx.NetworkXUnfeasible: If the direct edges contain a cycle
    """
    direct = store.direct_edges(source, conn=conn)
    graph = build_graph(direct)
    if not nx.is_directed_acyclic_graph(graph):
        cycle = nx.find_cycle(graph)
        raise nx.NetworkXUnfeasible(f"Direct edges of source {source!r} contain a cycle: {cycle}")

    expected = expected_closure(graph)
    store.delete_source(source, conn=conn)
    store.insert_many(
        (DagEdge(source=source, start_vertex=start, end_vertex=end, hops=hops) for (start, end), hops in sorted(expected.items())),
        conn=conn,
    )
    logger.info("closure_rebuilt", source=source, direct_edges=len(direct), rows=len(expected))
    return len(expected)
