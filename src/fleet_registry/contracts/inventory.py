"""
Inventory registry contract.

Owns InventoryAsset records and serves the kind-filter queries that other
registries reach through cross-registry invocation.
"""

from typing import Any

from fleet_registry.contracts.base import Contract, parse_payload
from fleet_registry.core.models import AssetKind, InventoryAsset
from fleet_registry.registry.kinds import INVENTORY
from fleet_registry.registry.query import all_of
from fleet_registry.store.base import TransactionContext


class InventoryContract(Contract[InventoryAsset]):
    """Entry point of the inventory registry."""

    TRANSACTIONS = {
        **Contract.TRANSACTIONS,
        "CreateAsset": "create_asset",
        "UpdateAsset": "update_asset",
        "TransferAsset": "transfer_asset",
        "GetAssetsByOwner": "get_assets_by_owner",
        "GetServerAssets": "get_server_assets",
        "GetServerAssetsExceptId": "get_server_assets_except_id",
        "GetSensorAssets": "get_sensor_assets",
        "GetSensorAssetsExceptId": "get_sensor_assets_except_id",
        "GetRobotAssets": "get_robot_assets",
        "GetRobotAssetsExceptId": "get_robot_assets_except_id",
        "GetSensorAndRobotAssets": "get_sensor_and_robot_assets",
        "GetSensorAndRobotAssetsExceptId": "get_sensor_and_robot_assets_except_id",
    }

    def __init__(self, *, keep_source_on_transfer: bool = True):
        super().__init__(INVENTORY, keep_source_on_transfer=keep_source_on_transfer)

    def create_asset(self, ctx: TransactionContext, asset_json: str) -> InventoryAsset:
        document = parse_payload(asset_json, self.name)
        return self.registry.create(ctx, self.seed_key(document), document)

    def update_asset(self, ctx: TransactionContext, asset_json: str) -> InventoryAsset:
        document = parse_payload(asset_json, self.name)
        return self.registry.update(ctx, self.seed_key(document), document)

    def transfer_asset(
        self, ctx: TransactionContext, asset_id: str, new_asset_id: str
    ) -> InventoryAsset:
        return self.registry.transfer(ctx, asset_id, new_asset_id)

    def get_assets_by_owner(self, ctx: TransactionContext, owner: str) -> list[InventoryAsset]:
        return self.queries.query(ctx, {"owner": owner})

    def get_assets_by_kind(
        self,
        ctx: TransactionContext,
        kinds: list[AssetKind],
        exclude_id: str | None = None,
    ) -> list[InventoryAsset]:
        """Assets of any of the given kinds, optionally leaving one id out."""
        selector: dict[str, Any] = {"type": {"$in": [int(kind) for kind in kinds]}}
        if exclude_id is not None:
            selector = all_of(selector, {"id": {"$ne": exclude_id}})
        return self.queries.query(ctx, selector)

    def get_server_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self.get_assets_by_kind(ctx, [AssetKind.SERVER])

    def get_server_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self.get_assets_by_kind(ctx, [AssetKind.SERVER], exclude_id)

    def get_sensor_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self.get_assets_by_kind(ctx, [AssetKind.SENSOR])

    def get_sensor_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self.get_assets_by_kind(ctx, [AssetKind.SENSOR], exclude_id)

    def get_robot_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self.get_assets_by_kind(ctx, [AssetKind.ROBOT])

    def get_robot_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self.get_assets_by_kind(ctx, [AssetKind.ROBOT], exclude_id)

    def get_sensor_and_robot_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self.get_assets_by_kind(ctx, [AssetKind.SENSOR, AssetKind.ROBOT])

    def get_sensor_and_robot_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self.get_assets_by_kind(ctx, [AssetKind.SENSOR, AssetKind.ROBOT], exclude_id)
