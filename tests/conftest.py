"""Pytest configuration and fixtures."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest

from fleet_registry.config import FleetSettings
from fleet_registry.fleet import Fleet
from fleet_registry.store.base import TransactionContext
from fleet_registry.store.memory import InMemoryStore

# Keep tests on the in-memory backend regardless of the developer's shell
os.environ.setdefault("FLEET_BACKEND", "memory")
os.environ.setdefault("FLEET_LOG_LEVEL", "WARNING")

# 2024-06-01T12:00:00Z
NOW = 1_717_243_200


class FrozenClock:
    """Manually advanced clock for windowed queries."""

    def __init__(self, now: float = NOW):
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def ctx(store: InMemoryStore, clock: FrozenClock) -> TransactionContext:
    """Context bound to a fresh in-memory store and a frozen clock."""
    return TransactionContext(store=store, namespace="mychannel", clock=clock)


@pytest.fixture
def fleet(clock: FrozenClock) -> Generator[Fleet, None, None]:
    """All three registries deployed in memory."""
    deployed = Fleet(FleetSettings(), clock=clock)
    yield deployed
    deployed.close()


@pytest.fixture
def server_asset() -> dict[str, Any]:
    return {
        "id": "srv-1",
        "name": "edge-server-1",
        "owner": "ops",
        "type": 0,
        "state": 1,
        "properties": {"GPU": "TRUE"},
    }


@pytest.fixture
def resource_report() -> dict[str, Any]:
    """Loosely-typed report as posted by a host agent."""
    return {
        "hostId": "10.0.0.5",
        "hostname": "edge-server-1",
        "ip": "10.0.0.5",
        "cpu": {"count": 8, "percent": 37.5},
        "memory": {"total": 16_000, "available": 6_000},
        "disk": {"total": 500_000, "used": 120_000},
        "network": {"bytes_recv": 1024, "bytes_sent": 2048},
        "timestamp": NOW - 60,
    }


def inventory_payload(asset_id: str, **fields: Any) -> dict[str, Any]:
    """Build a complete inventory payload, an enabled server unless overridden."""
    return {"id": asset_id, "name": asset_id, "owner": "ops", "type": 0, "state": 1, **fields}


def latency_payload(
    asset_id: str = "lat-1",
    source: str = "drone-7",
    targets: tuple[str, ...] = ("srv-1",),
    seconds_ago: int = 60,
) -> dict[str, Any]:
    """Build a latency asset payload measured seconds_ago before NOW."""
    return {
        "id": asset_id,
        "source": source,
        "results": [
            {"hostname": target, "latency": 12.5 + index}
            for index, target in enumerate(targets)
        ],
        "timestamp": {"timeSeconds": NOW - seconds_ago, "timeNanos": 0},
    }


@pytest.fixture
def latency_asset() -> dict[str, Any]:
    return latency_payload()


def as_json(document: Any) -> str:
    return json.dumps(document)
