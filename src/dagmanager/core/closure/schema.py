# src/dagmanager/core/closure/schema.py
"""SQLAlchemy table definition for the closure table.

Uses SQLAlchemy Core (not ORM) for explicit control over queries
and compatibility with multiple database backends. The layout of
dag_edges is part of the external contract: application queries
join against it directly.
"""

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
)

metadata = MetaData()

DAG_EDGES_TABLE_NAME = "dag_edges"

dag_edges_table = Table(
    DAG_EDGES_TABLE_NAME,
    metadata,
    Column("source", String(255), nullable=False),
    Column("start_vertex", BigInteger, nullable=False),
    Column("end_vertex", BigInteger, nullable=False),
    # Shortest path length; 1 = direct edge
    Column("hops", Integer, nullable=False),
    PrimaryKeyConstraint("source", "start_vertex", "end_vertex", name="pk_dag_edges"),
    CheckConstraint("hops >= 0", name="ck_dag_edges_hops_non_negative"),
    # PK covers (source, start_vertex) lookups; ancestors need the reverse
    Index("ix_dag_edges_source_end_vertex", "source", "end_vertex"),
)
