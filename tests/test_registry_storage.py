"""Tests for registry storage CRUD operations."""

import json
from typing import Any

import pytest

from conftest import NOW, inventory_payload, latency_payload
from fleet_registry.core.exceptions import (
    CorruptRecordError,
    RecordExistsError,
    RecordNotFoundError,
    StoreUnavailableError,
    ValidationFailedError,
)
from fleet_registry.core.models import AssetKind, AssetState, InventoryAsset, ResourceStat
from fleet_registry.registry.kinds import INVENTORY, LATENCY, RESOURCE
from fleet_registry.registry.storage import Registry, RegistryOperation
from fleet_registry.store.base import TransactionContext
from fleet_registry.store.memory import InMemoryStore


class FailingStore(InMemoryStore):
    """Store whose single-key calls raise like an unreachable backend."""

    def get(self, key: str) -> bytes | None:
        raise ConnectionError("state database unreachable")


class TestRegistryOperation:
    """Tests for RegistryOperation enum."""

    def test_all_operations_defined(self) -> None:
        """All expected operations are defined."""
        expected = {"exists", "create", "read", "update", "delete", "transfer"}
        actual = {op.value for op in RegistryOperation}
        assert actual == expected


class TestRegistryCreateRead:
    """Tests for create, read and exists."""

    def test_create_then_read_returns_canonical_record(
        self, ctx: TransactionContext, server_asset: dict[str, Any]
    ) -> None:
        """Read returns a record equal to the canonical form of the payload."""
        registry = Registry(INVENTORY)
        registry.create(ctx, "srv-1", server_asset)

        record = registry.read(ctx, "srv-1")

        assert record == InventoryAsset.model_validate(server_asset)
        assert record.type == AssetKind.SERVER

    def test_create_stores_canonical_bytes(
        self, ctx: TransactionContext, store: InMemoryStore, server_asset: dict[str, Any]
    ) -> None:
        """Stored value is compact JSON with sorted keys."""
        registry = Registry(INVENTORY)
        registry.create(ctx, "srv-1", json.dumps(server_asset, indent=4))

        raw = store.get("srv-1")
        assert raw == json.dumps(
            json.loads(raw), sort_keys=True, separators=(",", ":")
        ).encode()

    def test_create_duplicate_fails(
        self, ctx: TransactionContext, server_asset: dict[str, Any]
    ) -> None:
        """A second create on the same key raises RecordExistsError."""
        registry = Registry(INVENTORY)
        registry.create(ctx, "srv-1", server_asset)

        with pytest.raises(RecordExistsError, match="already exists"):
            registry.create(ctx, "srv-1", {**server_asset, "name": "other"})

        assert registry.read(ctx, "srv-1").name == "edge-server-1"

    def test_create_sets_identity_from_key(
        self, ctx: TransactionContext, server_asset: dict[str, Any]
    ) -> None:
        """The stored record always carries the key it is stored under."""
        registry = Registry(INVENTORY)
        record = registry.create(ctx, "srv-9", server_asset)
        assert record.id == "srv-9"
        assert registry.read(ctx, "srv-9").id == "srv-9"

    def test_exists(self, ctx: TransactionContext, server_asset: dict[str, Any]) -> None:
        """Exists reflects presence of a non-empty value."""
        registry = Registry(INVENTORY)
        assert registry.exists(ctx, "srv-1") is False
        registry.create(ctx, "srv-1", server_asset)
        assert registry.exists(ctx, "srv-1") is True

    def test_empty_value_counts_as_absent(
        self, ctx: TransactionContext, store: InMemoryStore
    ) -> None:
        """A key holding empty bytes is not present."""
        store.put("ghost", b"")
        registry = Registry(INVENTORY)
        assert registry.exists(ctx, "ghost") is False
        with pytest.raises(RecordNotFoundError):
            registry.read(ctx, "ghost")

    def test_read_nonexistent_fails(self, ctx: TransactionContext) -> None:
        """Read of an absent key raises RecordNotFoundError."""
        registry = Registry(INVENTORY)
        with pytest.raises(RecordNotFoundError, match="does not exist"):
            registry.read(ctx, "nonexistent")

    def test_read_corrupt_value_fails(self, ctx: TransactionContext, store: InMemoryStore) -> None:
        """Undecodable stored bytes raise CorruptRecordError."""
        store.put("srv-1", b"{not json")
        registry = Registry(INVENTORY)
        with pytest.raises(CorruptRecordError) as exc_info:
            registry.read(ctx, "srv-1")
        assert exc_info.value.key == "srv-1"

    def test_read_out_of_range_enum_is_corrupt(
        self, ctx: TransactionContext, store: InMemoryStore
    ) -> None:
        """Integers outside the enumeration are a data-integrity failure."""
        store.put("srv-1", b'{"id":"srv-1","name":"","owner":"","type":7,"state":1}')
        registry = Registry(INVENTORY)
        with pytest.raises(CorruptRecordError):
            registry.read(ctx, "srv-1")

    def test_read_missing_fields_is_corrupt(
        self, ctx: TransactionContext, store: InMemoryStore
    ) -> None:
        """Stored values lacking required fields are not filled with defaults."""
        store.put("srv-x", b'{"id":"srv-x"}')
        registry = Registry(INVENTORY)
        with pytest.raises(CorruptRecordError) as exc_info:
            registry.read(ctx, "srv-x")
        assert "type" in exc_info.value.reason


class TestRegistryUpdateDelete:
    """Tests for update and delete."""

    def test_update_nonexistent_fails(
        self, ctx: TransactionContext, store: InMemoryStore, server_asset: dict[str, Any]
    ) -> None:
        """Update never creates a record."""
        registry = Registry(INVENTORY)
        with pytest.raises(RecordNotFoundError) as exc_info:
            registry.update(ctx, "srv-1", server_asset)
        assert exc_info.value.operation == "update"
        assert store.keys() == []

    def test_delete_nonexistent_fails(self, ctx: TransactionContext) -> None:
        """Delete of an absent key raises RecordNotFoundError."""
        registry = Registry(INVENTORY)
        with pytest.raises(RecordNotFoundError):
            registry.delete(ctx, "srv-1")

    def test_delete_then_absent(
        self, ctx: TransactionContext, server_asset: dict[str, Any]
    ) -> None:
        """After delete the key is absent and unreadable."""
        registry = Registry(INVENTORY)
        registry.create(ctx, "srv-1", server_asset)
        registry.delete(ctx, "srv-1")

        assert registry.exists(ctx, "srv-1") is False
        with pytest.raises(RecordNotFoundError):
            registry.read(ctx, "srv-1")

    def test_enable_disable_scenario(self, ctx: TransactionContext) -> None:
        """Create enabled server, disable it through update, read back."""
        registry = Registry(INVENTORY)
        registry.create(ctx, "srv-1", inventory_payload("srv-1"))
        assert registry.exists(ctx, "srv-1")

        registry.update(ctx, "srv-1", inventory_payload("srv-1", state=0))

        assert registry.read(ctx, "srv-1").state == AssetState.DISABLED

    def test_update_is_full_replacement(
        self, ctx: TransactionContext, server_asset: dict[str, Any]
    ) -> None:
        """Fields missing from the update payload do not survive."""
        registry = Registry(INVENTORY)
        registry.create(ctx, "srv-1", server_asset)
        registry.update(ctx, "srv-1", inventory_payload("srv-1", name="edge-server-2"))

        record = registry.read(ctx, "srv-1")
        assert record.properties == {}
        assert record.name == "edge-server-2"

    def test_rejected_update_leaves_prior_state(
        self, ctx: TransactionContext, store: InMemoryStore, server_asset: dict[str, Any]
    ) -> None:
        """A failed update does not touch the stored value."""
        registry = Registry(INVENTORY)
        registry.create(ctx, "srv-1", server_asset)
        before = store.get("srv-1")

        with pytest.raises(ValidationFailedError):
            registry.update(ctx, "srv-1", inventory_payload("srv-1", type="spaceship"))

        assert store.get("srv-1") == before


class TestRegistryValidation:
    """Tests for admission rules on create and update."""

    def test_latency_without_results_rejected(self, ctx: TransactionContext) -> None:
        """Empty results fail validation even when everything else is well formed."""
        registry = Registry(LATENCY)
        payload = {**latency_payload(), "results": []}

        with pytest.raises(ValidationFailedError) as exc_info:
            registry.create(ctx, "lat-1", payload)
        assert "no latency results were posted" in exc_info.value.violations

    def test_existence_checked_before_payload(
        self, ctx: TransactionContext, store: InMemoryStore
    ) -> None:
        """Create on a present key fails with RecordExistsError whatever the payload."""
        registry = Registry(LATENCY)
        registry.create(ctx, "lat-1", latency_payload())
        before = store.get("lat-1")

        with pytest.raises(RecordExistsError):
            registry.create(ctx, "lat-1", {**latency_payload(), "results": []})
        assert store.get("lat-1") == before

    def test_latency_update_validated(self, ctx: TransactionContext) -> None:
        """Update applies the same rules as create."""
        registry = Registry(LATENCY)
        registry.create(ctx, "lat-1", latency_payload())

        with pytest.raises(ValidationFailedError):
            registry.update(ctx, "lat-1", {**latency_payload(), "results": []})

    def test_empty_key_rejected(self, ctx: TransactionContext, store: InMemoryStore) -> None:
        """Records need a non-empty identity."""
        registry = Registry(LATENCY)
        with pytest.raises(ValidationFailedError, match="id must be non-empty"):
            registry.create(ctx, "", latency_payload(asset_id=""))
        assert store.keys() == []

    def test_malformed_inventory_kind_rejected(self, ctx: TransactionContext) -> None:
        """Unknown asset kinds are rejected at decode."""
        registry = Registry(INVENTORY)
        with pytest.raises(ValidationFailedError) as exc_info:
            registry.create(ctx, "srv-1", inventory_payload("srv-1", type=3))
        assert any(v.startswith("type") for v in exc_info.value.violations)

    def test_inventory_without_type_rejected(
        self, ctx: TransactionContext, store: InMemoryStore
    ) -> None:
        """A create payload with no asset kind is not stored as a server."""
        registry = Registry(INVENTORY)
        with pytest.raises(ValidationFailedError) as exc_info:
            registry.create(ctx, "s", {"id": "s", "state": 1})
        assert any(v.startswith("type") for v in exc_info.value.violations)
        assert store.keys() == []

    def test_malformed_json_rejected(self, ctx: TransactionContext) -> None:
        """Payloads that are not JSON are rejected, not stored."""
        registry = Registry(INVENTORY)
        with pytest.raises(ValidationFailedError):
            registry.create(ctx, "srv-1", "{oops")


class TestResourceNormalization:
    """Tests for the resource report conversion step."""

    def test_report_normalized(
        self, ctx: TransactionContext, resource_report: dict[str, Any]
    ) -> None:
        """Loose report fields land in canonical metrics."""
        registry = Registry(RESOURCE)
        registry.create(ctx, "10.0.0.5", resource_report)

        stat = registry.read(ctx, "10.0.0.5")
        assert isinstance(stat, ResourceStat)
        assert stat.id == "10.0.0.5"
        assert stat.host.hostname == "edge-server-1"
        assert stat.metrics.cpu_cores == 8
        assert stat.metrics.cpu_percent == 37.5
        assert stat.metrics.memory_used == 10_000
        assert stat.metrics.disk_used == 120_000
        assert stat.metrics.network_rx == 1024
        assert stat.metrics.network_tx == 2048
        assert stat.timestamp.time_seconds == NOW - 60

    def test_report_without_timestamp_uses_clock(self, ctx: TransactionContext) -> None:
        """Missing timestamps are stamped with the context clock."""
        registry = Registry(RESOURCE)
        stat = registry.create(ctx, "10.0.0.6", {"hostname": "sensor-hub"})
        assert stat.timestamp.time_seconds == NOW
        assert stat.host.host_id == "10.0.0.6"

    def test_non_numeric_metric_rejected(self, ctx: TransactionContext) -> None:
        """Metrics that cannot be read as numbers fail validation."""
        registry = Registry(RESOURCE)
        with pytest.raises(ValidationFailedError, match="not numeric"):
            registry.create(ctx, "10.0.0.7", {"cpu": {"percent": "lots"}})

    def test_text_and_dict_payloads_normalize_alike(
        self, ctx: TransactionContext, resource_report: dict[str, Any]
    ) -> None:
        """A stored record resubmitted as JSON text keeps its host and metrics."""
        registry = Registry(RESOURCE)
        registry.create(ctx, "10.0.0.5", resource_report)
        stored = json.dumps(RESOURCE.codec.to_wire(registry.read(ctx, "10.0.0.5")))

        from_text = registry.update(ctx, "10.0.0.5", stored)
        from_bytes = registry.update(ctx, "10.0.0.5", stored.encode())
        from_dict = registry.update(ctx, "10.0.0.5", json.loads(stored))

        assert from_text == from_bytes == from_dict
        assert from_text.host.hostname == "edge-server-1"
        assert from_text.metrics.cpu_cores == 8
        assert from_text.metrics.memory_used == 10_000

    def test_undecodable_bytes_rejected(self, ctx: TransactionContext) -> None:
        registry = Registry(RESOURCE)
        with pytest.raises(ValidationFailedError) as exc_info:
            registry.create(ctx, "10.0.0.8", b"\xff\xfe")
        assert exc_info.value.key == "10.0.0.8"


class TestRegistryCreateMany:
    """Tests for all-or-nothing batch creation."""

    def test_creates_every_entry(self, ctx: TransactionContext) -> None:
        registry = Registry(INVENTORY)
        records = registry.create_many(
            ctx, [("a", inventory_payload("a")), ("b", inventory_payload("b", type=2))]
        )
        assert [r.id for r in records] == ["a", "b"]
        assert registry.read(ctx, "b").type == AssetKind.ROBOT

    def test_rejected_entry_writes_nothing(
        self, ctx: TransactionContext, store: InMemoryStore
    ) -> None:
        """Entries before a rejected one are not committed."""
        registry = Registry(INVENTORY)
        with pytest.raises(ValidationFailedError):
            registry.create_many(
                ctx, [("a", inventory_payload("a")), ("b", inventory_payload("b", type=9))]
            )
        assert store.keys() == []

    def test_repeated_key_rejected(self, ctx: TransactionContext, store: InMemoryStore) -> None:
        registry = Registry(INVENTORY)
        with pytest.raises(RecordExistsError) as exc_info:
            registry.create_many(
                ctx, [("a", inventory_payload("a")), ("a", inventory_payload("a", owner="lab"))]
            )
        assert exc_info.value.key == "a"
        assert store.keys() == []

    def test_present_key_rejected(
        self, ctx: TransactionContext, store: InMemoryStore, server_asset: dict[str, Any]
    ) -> None:
        registry = Registry(INVENTORY)
        registry.create(ctx, "srv-1", server_asset)
        with pytest.raises(RecordExistsError):
            registry.create_many(
                ctx, [("srv-0", inventory_payload("srv-0")), ("srv-1", server_asset)]
            )
        assert store.keys() == ["srv-1"]


class TestRegistryTransfer:
    """Tests for re-keying records."""

    def test_transfer_keeps_source_by_default(
        self, ctx: TransactionContext, server_asset: dict[str, Any]
    ) -> None:
        """Default transfer leaves the old key in place."""
        registry = Registry(INVENTORY)
        registry.create(ctx, "srv-1", server_asset)

        moved = registry.transfer(ctx, "srv-1", "srv-2")

        assert moved.id == "srv-2"
        assert registry.read(ctx, "srv-2").name == "edge-server-1"
        assert registry.exists(ctx, "srv-1")

    def test_transfer_move(
        self, ctx: TransactionContext, server_asset: dict[str, Any]
    ) -> None:
        """With keep_source disabled the old key is removed."""
        registry = Registry(INVENTORY, keep_source_on_transfer=False)
        registry.create(ctx, "srv-1", server_asset)

        registry.transfer(ctx, "srv-1", "srv-2")

        assert not registry.exists(ctx, "srv-1")
        assert registry.read(ctx, "srv-2").id == "srv-2"

    def test_transfer_missing_source_fails(self, ctx: TransactionContext) -> None:
        registry = Registry(INVENTORY)
        with pytest.raises(RecordNotFoundError):
            registry.transfer(ctx, "srv-1", "srv-2")

    def test_transfer_onto_present_key_fails(
        self, ctx: TransactionContext, server_asset: dict[str, Any]
    ) -> None:
        """Transfer never overwrites another record."""
        registry = Registry(INVENTORY)
        registry.create(ctx, "srv-1", server_asset)
        registry.create(ctx, "srv-2", {**server_asset, "name": "second"})

        with pytest.raises(RecordExistsError):
            registry.transfer(ctx, "srv-1", "srv-2")
        assert registry.read(ctx, "srv-2").name == "second"


class TestStoreFailures:
    """Tests for store-level error translation."""

    def test_store_error_becomes_store_unavailable(self, clock) -> None:
        """Backend exceptions surface as StoreUnavailableError."""
        ctx = TransactionContext(store=FailingStore(), clock=clock)
        registry = Registry(INVENTORY)

        with pytest.raises(StoreUnavailableError) as exc_info:
            registry.exists(ctx, "srv-1")
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert exc_info.value.store_operation == "get"
