# tests/property/conftest.py
"""Shared Hypothesis strategies for closure property tests.

Strategy Categories:
- Vertex ids (small range so random graphs actually share vertices)
- Acyclic edge lists (start < end guarantees no cycle)
- Source names

Usage:
    from tests.property.conftest import dag_edge_lists

    @given(edges=dag_edge_lists())
    def test_closure_matches_reference(edges: list[tuple[int, int]]) -> None:
        ...
"""

from __future__ import annotations

from hypothesis import strategies as st

# Small enough that random edges overlap into diamonds and long chains
MAX_VERTEX = 12

vertex_ids = st.integers(min_value=1, max_value=MAX_VERTEX)

source_names = st.sampled_from(["org", "projects", "bom"])


@st.composite
def dag_edges(draw: st.DrawFn) -> tuple[int, int]:
    """One edge pointing from a lower id to a higher one."""
    start = draw(st.integers(min_value=1, max_value=MAX_VERTEX - 1))
    end = draw(st.integers(min_value=start + 1, max_value=MAX_VERTEX))
    return (start, end)


def dag_edge_lists(min_size: int = 0, max_size: int = 20) -> st.SearchStrategy[list[tuple[int, int]]]:
    """Distinct edges of an acyclic graph, in insertion order."""
    return st.lists(dag_edges(), min_size=min_size, max_size=max_size, unique=True)
