"""
Latency registry contract.

Owns LatencyAsset telemetry, answers time-windowed queries by source and by
target host, and reaches the inventory registry for fleet composition.
"""

from fleet_registry.contracts.base import TIMESTAMP_FIELD, Contract, parse_minutes, parse_payload
from fleet_registry.core.models import InventoryAsset, LatencyAsset
from fleet_registry.registry.kinds import LATENCY
from fleet_registry.remote.client import DEFAULT_INVENTORY_TARGET, InventoryLookup, Invoker
from fleet_registry.store.base import TransactionContext


class LatencyContract(Contract[LatencyAsset]):
    """Entry point of the latency registry."""

    TRANSACTIONS = {
        **Contract.TRANSACTIONS,
        "CreateAsset": "create_asset",
        "UpdateAsset": "update_asset",
        "GetAssetListTimeSource": "get_asset_list_time_source",
        "GetAssetListTimeTarget": "get_asset_list_time_target",
        "GetServerAssets": "get_server_assets",
        "GetServerAssetsExceptId": "get_server_assets_except_id",
        "GetSensorAssets": "get_sensor_assets",
        "GetSensorAssetsExceptId": "get_sensor_assets_except_id",
        "GetRobotAssets": "get_robot_assets",
        "GetRobotAssetsExceptId": "get_robot_assets_except_id",
        "GetSensorAndRobotAssets": "get_sensor_and_robot_assets",
        "GetSensorAndRobotAssetsExceptId": "get_sensor_and_robot_assets_except_id",
    }

    def __init__(
        self,
        *,
        inventory_target: str = DEFAULT_INVENTORY_TARGET,
        invoker: Invoker | None = None,
    ):
        """
        Initialize the latency contract.

        Args:
            inventory_target: Name the inventory registry is deployed under
            invoker: Cross-registry transport (defaults to the store's)
        """
        super().__init__(LATENCY)
        self.inventory = InventoryLookup(inventory_target, invoker)

    def create_asset(self, ctx: TransactionContext, asset_json: str) -> LatencyAsset:
        document = parse_payload(asset_json, self.name)
        return self.registry.create(ctx, self.seed_key(document), document)

    def update_asset(self, ctx: TransactionContext, asset_json: str) -> LatencyAsset:
        document = parse_payload(asset_json, self.name)
        return self.registry.update(ctx, self.seed_key(document), document)

    def get_asset_list_time_source(
        self, ctx: TransactionContext, source: str, minutes: str
    ) -> list[LatencyAsset]:
        """Measurements taken by source within the last window."""
        return self.queries.query_time_window(
            ctx, TIMESTAMP_FIELD, parse_minutes(minutes), extra={"source": source}
        )

    def get_asset_list_time_target(
        self, ctx: TransactionContext, target: str, minutes: str
    ) -> list[LatencyAsset]:
        """Measurements within the last window in which target was probed."""
        return self.queries.query_nested_match(
            ctx, "results", "hostname", target, parse_minutes(minutes), TIMESTAMP_FIELD
        )

    # Inventory lookups

    def get_server_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self.inventory.get_server_assets(ctx)

    def get_server_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self.inventory.get_server_assets_except_id(ctx, exclude_id)

    def get_sensor_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self.inventory.get_sensor_assets(ctx)

    def get_sensor_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self.inventory.get_sensor_assets_except_id(ctx, exclude_id)

    def get_robot_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self.inventory.get_robot_assets(ctx)

    def get_robot_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self.inventory.get_robot_assets_except_id(ctx, exclude_id)

    def get_sensor_and_robot_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self.inventory.get_sensor_and_robot_assets(ctx)

    def get_sensor_and_robot_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self.inventory.get_sensor_and_robot_assets_except_id(ctx, exclude_id)
