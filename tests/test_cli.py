"""Tests for CLI module."""

import json
import time
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fleet_registry.cli import app

runner = CliRunner()

SERVER = json.dumps({"id": "srv-1", "name": "edge", "owner": "ops", "type": 0, "state": 1})


@pytest.fixture
def sqlite_args(temp_dir: Path) -> list[str]:
    """Global options pointing every command at one persistent world state."""
    return ["--backend", "sqlite", "--data-dir", str(temp_dir)]


class TestVersionCommand:
    def test_version(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "Fleet Registry v0.1.0" in result.stdout


class TestInputChecks:
    """Tests for argument validation before any registry call."""

    def test_unknown_kind(self) -> None:
        result = runner.invoke(app, ["list", "billing"])
        assert result.exit_code == 1
        assert "Unknown record kind" in result.stdout

    def test_recent_latency_needs_one_filter(self) -> None:
        result = runner.invoke(app, ["recent-latency"])
        assert result.exit_code == 1
        both = runner.invoke(app, ["recent-latency", "--source", "a", "--target", "b"])
        assert both.exit_code == 1

    def test_unknown_fleet_group(self) -> None:
        result = runner.invoke(app, ["fleet-assets", "drones"])
        assert result.exit_code == 1
        assert "Unknown group" in result.stdout

    def test_invalid_selector(self) -> None:
        result = runner.invoke(app, ["query", "inventory", "{owner"])
        assert result.exit_code == 1
        assert "Invalid selector JSON" in result.stdout

    def test_bad_backend_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLEET_BACKEND", "postgres")
        result = runner.invoke(app, ["list", "inventory"])
        assert result.exit_code == 1
        assert "Configuration error" in result.stdout


class TestInMemoryCommands:
    """Each invocation starts from an empty in-memory world state."""

    def test_create(self) -> None:
        result = runner.invoke(app, ["create", "inventory", SERVER])
        assert result.exit_code == 0
        assert "Created inventory record" in result.stdout
        assert "memory backend" in result.stdout

    def test_exists_absent(self) -> None:
        result = runner.invoke(app, ["exists", "inventory", "srv-1"])
        assert result.exit_code == 0
        assert "absent srv-1" in result.stdout

    def test_read_missing(self) -> None:
        result = runner.invoke(app, ["read", "inventory", "srv-1"])
        assert result.exit_code == 1
        assert "Error (404)" in result.stdout

    def test_rejected_latency(self) -> None:
        payload = json.dumps({"id": "lat-1", "results": [], "timestamp": {"timeSeconds": 1}})
        result = runner.invoke(app, ["create", "latency", payload])
        assert result.exit_code == 1
        assert "Error (422)" in result.stdout

    def test_list_empty(self) -> None:
        result = runner.invoke(app, ["list", "inventory"])
        assert result.exit_code == 0
        assert "Inventory Records (0)" in result.stdout


class TestSqliteCommands:
    """Command sequences against a persistent world state."""

    def test_inventory_lifecycle(self, sqlite_args: list[str]) -> None:
        assert runner.invoke(app, [*sqlite_args, "create", "inventory", SERVER]).exit_code == 0

        exists = runner.invoke(app, [*sqlite_args, "exists", "inventory", "srv-1"])
        assert "present srv-1" in exists.stdout

        read = runner.invoke(app, [*sqlite_args, "read", "inventory", "srv-1"])
        assert read.exit_code == 0
        assert '"owner": "ops"' in read.stdout

        disabled = SERVER.replace('"state": 1', '"state": 0')
        updated = runner.invoke(app, [*sqlite_args, "update", "inventory", disabled])
        assert "Updated inventory record" in updated.stdout
        assert "memory backend" not in updated.stdout

        listed = runner.invoke(app, [*sqlite_args, "list", "inventory"])
        assert "Inventory Records (1)" in listed.stdout
        assert "Disabled" in listed.stdout

        transferred = runner.invoke(app, [*sqlite_args, "transfer", "inventory", "srv-1", "srv-2"])
        assert "Transferred srv-1 -> srv-2" in transferred.stdout

        deleted = runner.invoke(app, [*sqlite_args, "delete", "inventory", "srv-1"])
        assert "Deleted inventory record 'srv-1'" in deleted.stdout

        duplicate = runner.invoke(
            app, [*sqlite_args, "create", "inventory", SERVER.replace("srv-1", "srv-2")]
        )
        assert duplicate.exit_code == 1
        assert "Error (409)" in duplicate.stdout

    def test_resource_create_with_key(self, sqlite_args: list[str]) -> None:
        report = json.dumps({"hostname": "edge", "cpu": {"percent": 12.5}})
        result = runner.invoke(
            app, [*sqlite_args, "create", "resource", report, "--key", "10.0.0.5"]
        )
        assert result.exit_code == 0

        listed = runner.invoke(app, [*sqlite_args, "list", "resource"])
        assert "Resource Records (1)" in listed.stdout
        assert "12.5" in listed.stdout

    def test_query(self, sqlite_args: list[str]) -> None:
        runner.invoke(app, [*sqlite_args, "create", "inventory", SERVER])
        result = runner.invoke(app, [*sqlite_args, "query", "inventory", '{"owner": "ops"}'])
        assert result.exit_code == 0
        assert "Query Results (1)" in result.stdout

    def test_fleet_assets_cross_registry(self, sqlite_args: list[str]) -> None:
        runner.invoke(app, [*sqlite_args, "create", "inventory", SERVER])
        result = runner.invoke(app, [*sqlite_args, "fleet-assets", "servers"])
        assert result.exit_code == 0
        assert "Fleet servers (1)" in result.stdout

        excluded = runner.invoke(
            app, [*sqlite_args, "fleet-assets", "servers", "--except-id", "srv-1"]
        )
        assert "Fleet servers (0)" in excluded.stdout

    def test_recent_latency(self, sqlite_args: list[str]) -> None:
        payload = json.dumps(
            {
                "id": "lat-1",
                "source": "drone-7",
                "results": [{"hostname": "srv-1", "latency": 9.0}],
                "timestamp": {"timeSeconds": int(time.time()) - 60},
            }
        )
        runner.invoke(app, [*sqlite_args, "create", "latency", payload])

        by_source = runner.invoke(app, [*sqlite_args, "recent-latency", "--source", "drone-7"])
        assert by_source.exit_code == 0
        assert "lat-1" in by_source.stdout

        by_target = runner.invoke(app, [*sqlite_args, "recent-latency", "-t", "srv-9"])
        assert "lat-1" not in by_target.stdout
