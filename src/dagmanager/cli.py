# src/dagmanager/cli.py
"""dagmanager Command Line Interface.

Entry point for the dagmanager CLI tool: inspect and edit closure
tables from a shell, and check them for drift.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from dagmanager import __version__
from dagmanager.contracts.enums import Direction
from dagmanager.contracts.errors import DagError
from dagmanager.core.closure.database import ClosureDB, SchemaCompatibilityError
from dagmanager.core.config import DagSettings, load_settings
from dagmanager.core.logging import configure_logging
from dagmanager.service import DagService

__all__ = ["app"]

app = typer.Typer(
    name="dagmanager",
    help="dagmanager: transitive-closure tables for DAGs.",
    no_args_is_help=True,
)

_SETTINGS_OPTION = typer.Option(None, "--settings", "-s", help="Path to settings YAML file.")
_CONNECTION_OPTION = typer.Option(None, "--connection", "-c", help="Connection name from settings (default connection if omitted).")
_DATABASE_OPTION = typer.Option(None, "--database", "-d", help="SQLAlchemy URL; overrides the connection from settings.")
_SOURCE_OPTION = typer.Option(..., "--source", help="Graph namespace, e.g. 'org-chart'.")

# Set by the callback when --verbose or --json-logs was given; those win over settings
_logging_from_flags = False


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"dagmanager version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs as JSON lines.",
    ),
) -> None:
    """dagmanager: transitive-closure tables for DAGs."""
    global _logging_from_flags
    _logging_from_flags = verbose or json_logs
    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "WARNING")


def _fail(message: str) -> typer.Exit:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    return typer.Exit(1)


def _load(settings: str | None) -> DagSettings:
    if settings is None:
        return DagSettings()
    try:
        config = load_settings(Path(settings).expanduser())
    except FileNotFoundError:
        raise _fail(f"Settings file does not exist: {settings}") from None
    except ValidationError as e:
        raise _fail(f"Invalid settings in {settings}:\n{e}") from None

    if not _logging_from_flags:
        configure_logging(config.logging)
    return config


@contextmanager
def _open_service(settings: str | None, connection: str | None, database: str | None) -> Iterator[DagService]:
    """Service over the chosen database; the engine is disposed on exit."""
    config = _load(settings)
    try:
        if database is not None:
            service = DagService(ClosureDB(database), max_hops=config.max_hops)
        else:
            service = DagService.from_settings(config, connection)
    except KeyError as e:
        raise _fail(str(e.args[0])) from None
    except SchemaCompatibilityError as e:
        raise _fail(str(e)) from None

    try:
        yield service
    finally:
        service.store.db.close()


@app.command("add-edge")
def add_edge(
    start: int = typer.Argument(..., help="Start vertex id."),
    end: int = typer.Argument(..., help="End vertex id."),
    source: str = _SOURCE_OPTION,
    settings: str | None = _SETTINGS_OPTION,
    connection: str | None = _CONNECTION_OPTION,
    database: str | None = _DATABASE_OPTION,
) -> None:
    """Add a direct edge START -> END and derive its closure rows."""
    with _open_service(settings, connection, database) as service:
        try:
            written = service.create_edge(start, end, source)
        except DagError as e:
            raise _fail(str(e)) from None
    if not written:
        typer.echo(f"Edge {start} -> {end} already exists in {source!r}; nothing written.")
        return
    typer.echo(f"Added {start} -> {end} in {source!r}: {len(written)} closure row(s) written.")


@app.command("remove-edge")
def remove_edge(
    start: int = typer.Argument(..., help="Start vertex id."),
    end: int = typer.Argument(..., help="End vertex id."),
    source: str = _SOURCE_OPTION,
    settings: str | None = _SETTINGS_OPTION,
    connection: str | None = _CONNECTION_OPTION,
    database: str | None = _DATABASE_OPTION,
) -> None:
    """Remove the direct edge START -> END and repair the closure."""
    with _open_service(settings, connection, database) as service:
        try:
            removed = service.delete_edge(start, end, source)
        except DagError as e:
            raise _fail(str(e)) from None
    if removed:
        typer.echo(f"Removed {start} -> {end} in {source!r}.")
    else:
        typer.echo(f"No direct edge {start} -> {end} in {source!r}; nothing removed.")


def _print_relations(vertex: int, direction: Direction, related: dict[int, int]) -> None:
    if not related:
        typer.echo(f"No {direction.value} of {vertex}.")
        return
    for other, hops in related.items():
        typer.echo(f"{other}\t{hops}")


@app.command()
def ancestors(
    vertex: int = typer.Argument(..., help="Vertex id."),
    source: str = _SOURCE_OPTION,
    max_hops: int | None = typer.Option(None, "--max-hops", help="Hop bound (clamped to the configured ceiling)."),
    settings: str | None = _SETTINGS_OPTION,
    connection: str | None = _CONNECTION_OPTION,
    database: str | None = _DATABASE_OPTION,
) -> None:
    """List the ancestors of VERTEX with their hop distance."""
    with _open_service(settings, connection, database) as service:
        try:
            related = service.ancestors(vertex, source, max_hops)
        except DagError as e:
            raise _fail(str(e)) from None
    _print_relations(vertex, Direction.ANCESTORS, related)


@app.command()
def descendants(
    vertex: int = typer.Argument(..., help="Vertex id."),
    source: str = _SOURCE_OPTION,
    max_hops: int | None = typer.Option(None, "--max-hops", help="Hop bound (clamped to the configured ceiling)."),
    settings: str | None = _SETTINGS_OPTION,
    connection: str | None = _CONNECTION_OPTION,
    database: str | None = _DATABASE_OPTION,
) -> None:
    """List the descendants of VERTEX with their hop distance."""
    with _open_service(settings, connection, database) as service:
        try:
            related = service.descendants(vertex, source, max_hops)
        except DagError as e:
            raise _fail(str(e)) from None
    _print_relations(vertex, Direction.DESCENDANTS, related)


@app.command()
def edges(
    source: str = _SOURCE_OPTION,
    direct_only: bool = typer.Option(False, "--direct-only", help="Show only direct (1-hop) edges."),
    settings: str | None = _SETTINGS_OPTION,
    connection: str | None = _CONNECTION_OPTION,
    database: str | None = _DATABASE_OPTION,
) -> None:
    """Show the closure rows of a source."""
    with _open_service(settings, connection, database) as service:
        try:
            rows = service.edges(source)
        except DagError as e:
            raise _fail(str(e)) from None
    if direct_only:
        rows = [row for row in rows if row.is_direct]

    table = Table(title=f"dag_edges: {source}")
    table.add_column("start", justify="right")
    table.add_column("end", justify="right")
    table.add_column("hops", justify="right")
    for row in rows:
        table.add_row(str(row.start_vertex), str(row.end_vertex), str(row.hops))
    Console().print(table)


@app.command()
def verify(
    source: str = _SOURCE_OPTION,
    settings: str | None = _SETTINGS_OPTION,
    connection: str | None = _CONNECTION_OPTION,
    database: str | None = _DATABASE_OPTION,
) -> None:
    """Check the stored closure against its direct edges. Exits 1 on drift."""
    with _open_service(settings, connection, database) as service:
        try:
            report = service.verify(source)
        except DagError as e:
            raise _fail(str(e)) from None

    typer.echo(f"Source {source!r}: {report.direct_edges} direct edge(s), {report.stored_rows} stored row(s), {report.expected_rows} expected.")
    if report.is_consistent:
        typer.secho("Closure is consistent.", fg=typer.colors.GREEN)
        return

    if not report.is_acyclic:
        typer.secho("Direct edges contain a cycle.", fg=typer.colors.RED)
    for edge in report.missing:
        typer.echo(f"missing\t{edge.start_vertex} -> {edge.end_vertex} ({edge.hops} hops)")
    for edge in report.extra:
        typer.echo(f"extra\t{edge.start_vertex} -> {edge.end_vertex} ({edge.hops} hops)")
    for edge, expected in report.wrong_hops:
        typer.echo(f"hops\t{edge.start_vertex} -> {edge.end_vertex} stored {edge.hops}, expected {expected}")
    raise typer.Exit(1)


@app.command()
def rebuild(
    source: str = _SOURCE_OPTION,
    settings: str | None = _SETTINGS_OPTION,
    connection: str | None = _CONNECTION_OPTION,
    database: str | None = _DATABASE_OPTION,
) -> None:
    """Rewrite the closure of a source from its direct edges."""
    import networkx as nx

    with _open_service(settings, connection, database) as service:
        try:
            rows = service.rebuild(source)
        except (DagError, nx.NetworkXUnfeasible) as e:
            raise _fail(str(e)) from None
    typer.echo(f"Rebuilt {source!r}: {rows} closure row(s).")


if __name__ == "__main__":
    app()
