"""Tests for the dagmanager CLI."""

from pathlib import Path

import pytest
from sqlalchemy import update
from typer.testing import CliRunner

from dagmanager import __version__
from dagmanager.cli import app
from dagmanager.core.closure.database import ClosureDB
from dagmanager.core.closure.schema import dag_edges_table

runner = CliRunner()


def _invoke(database_url: str, *args: str):
    command, *rest = args
    return runner.invoke(app, [command, "--database", database_url, *rest])


def _add(database_url: str, start: int, end: int, source: str = "org") -> None:
    result = _invoke(database_url, "add-edge", str(start), str(end), "--source", source)
    assert result.exit_code == 0, result.output


class TestCLIBasics:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"dagmanager version {__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("add-edge", "remove-edge", "ancestors", "descendants", "edges", "verify", "rebuild"):
            assert command in result.stdout


class TestEdgeCommands:
    def test_add_edge(self, database_url: str) -> None:
        _add(database_url, 1, 2)
        result = _invoke(database_url, "add-edge", "2", "3", "--source", "org")
        assert result.exit_code == 0
        assert "Added 2 -> 3 in 'org': 2 closure row(s) written." in result.stdout

    def test_readd_edge_reports_nothing_written(self, database_url: str) -> None:
        _add(database_url, 1, 2)
        result = _invoke(database_url, "add-edge", "1", "2", "--source", "org")
        assert result.exit_code == 0
        assert "Edge 1 -> 2 already exists in 'org'; nothing written." in result.stdout

    def test_add_cycle_fails(self, database_url: str) -> None:
        _add(database_url, 1, 2)
        result = _invoke(database_url, "add-edge", "2", "1", "--source", "org")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "cycle" in result.output

    def test_add_invalid_vertex_fails(self, database_url: str) -> None:
        result = _invoke(database_url, "add-edge", "0", "1", "--source", "org")
        assert result.exit_code == 1
        assert "positive integer" in result.output

    def test_remove_edge(self, database_url: str) -> None:
        _add(database_url, 1, 2)
        result = _invoke(database_url, "remove-edge", "1", "2", "--source", "org")
        assert result.exit_code == 0
        assert "Removed 1 -> 2 in 'org'." in result.stdout

    def test_remove_missing_edge(self, database_url: str) -> None:
        result = _invoke(database_url, "remove-edge", "1", "2", "--source", "org")
        assert result.exit_code == 0
        assert "nothing removed" in result.stdout

    def test_source_required(self, database_url: str) -> None:
        result = _invoke(database_url, "add-edge", "1", "2")
        assert result.exit_code != 0


class TestQueryCommands:
    def test_descendants(self, database_url: str) -> None:
        _add(database_url, 1, 2)
        _add(database_url, 2, 3)
        result = _invoke(database_url, "descendants", "1", "--source", "org")
        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["2\t1", "3\t2"]

    def test_ancestors_with_bound(self, database_url: str) -> None:
        _add(database_url, 1, 2)
        _add(database_url, 2, 3)
        result = _invoke(database_url, "ancestors", "3", "--source", "org", "--max-hops", "1")
        assert result.stdout.splitlines() == ["2\t1"]

    def test_no_relations(self, database_url: str) -> None:
        result = _invoke(database_url, "ancestors", "9", "--source", "org")
        assert result.exit_code == 0
        assert "No ancestors of 9." in result.stdout

    def test_edges_table(self, database_url: str) -> None:
        _add(database_url, 1, 2)
        _add(database_url, 2, 3)
        result = _invoke(database_url, "edges", "--source", "org")
        assert result.exit_code == 0
        assert "dag_edges: org" in result.stdout
        assert "hops" in result.stdout


class TestMaintenanceCommands:
    def _damage(self, database_url: str) -> None:
        with ClosureDB(database_url) as db, db.connection() as conn:
            conn.execute(update(dag_edges_table).where(dag_edges_table.c.hops == 2).values(hops=4))

    def test_verify_consistent(self, database_url: str) -> None:
        _add(database_url, 1, 2)
        _add(database_url, 2, 3)
        result = _invoke(database_url, "verify", "--source", "org")
        assert result.exit_code == 0
        assert "Closure is consistent." in result.stdout

    def test_verify_reports_drift(self, database_url: str) -> None:
        _add(database_url, 1, 2)
        _add(database_url, 2, 3)
        self._damage(database_url)
        result = _invoke(database_url, "verify", "--source", "org")
        assert result.exit_code == 1
        assert "hops\t1 -> 3 stored 4, expected 2" in result.stdout

    def test_rebuild_repairs(self, database_url: str) -> None:
        _add(database_url, 1, 2)
        _add(database_url, 2, 3)
        self._damage(database_url)
        result = _invoke(database_url, "rebuild", "--source", "org")
        assert result.exit_code == 0
        assert "Rebuilt 'org': 3 closure row(s)." in result.stdout
        assert _invoke(database_url, "verify", "--source", "org").exit_code == 0


class TestDatabaseLifecycle:
    def test_database_closed_after_each_command(self, database_url: str, monkeypatch: pytest.MonkeyPatch) -> None:
        closed: list[str] = []
        real_close = ClosureDB.close

        def recording_close(self: ClosureDB) -> None:
            closed.append(self.connection_string)
            real_close(self)

        monkeypatch.setattr(ClosureDB, "close", recording_close)
        _add(database_url, 1, 2)
        assert closed == [database_url]

    def test_database_closed_when_command_fails(self, database_url: str, monkeypatch: pytest.MonkeyPatch) -> None:
        _add(database_url, 1, 2)
        closed: list[str] = []
        real_close = ClosureDB.close

        def recording_close(self: ClosureDB) -> None:
            closed.append(self.connection_string)
            real_close(self)

        monkeypatch.setattr(ClosureDB, "close", recording_close)
        result = _invoke(database_url, "add-edge", "2", "1", "--source", "org")
        assert result.exit_code == 1
        assert closed == [database_url]


class TestSettings:
    def test_settings_file_sets_ceiling(self, tmp_path: Path) -> None:
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text(
            f"max_hops: 1\nconnections:\n  default:\n    url: sqlite:///{tmp_path / 'configured.db'}\n"
        )
        ok = runner.invoke(app, ["add-edge", "1", "2", "--source", "org", "--settings", str(settings_file)])
        assert ok.exit_code == 0, ok.output
        too_long = runner.invoke(app, ["add-edge", "2", "3", "--source", "org", "--settings", str(settings_file)])
        assert too_long.exit_code == 1
        assert "maximum is 1" in too_long.output

    def test_missing_settings_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["edges", "--source", "org", "--settings", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "Settings file does not exist" in result.output

    def test_unknown_connection(self, tmp_path: Path) -> None:
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text(f"connections:\n  default:\n    url: sqlite:///{tmp_path / 'a.db'}\n")
        result = runner.invoke(
            app, ["edges", "--source", "org", "--settings", str(settings_file), "--connection", "reporting"]
        )
        assert result.exit_code == 1
        assert "Unknown connection 'reporting'" in result.output
