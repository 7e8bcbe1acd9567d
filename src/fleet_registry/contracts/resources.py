"""
Resource registry contract.

Stores normalized resource snapshots keyed by host identifier.
"""

from typing import Any

from fleet_registry.contracts.base import TIMESTAMP_FIELD, Contract, parse_minutes, parse_payload
from fleet_registry.core.models import ResourceStat
from fleet_registry.registry.kinds import RESOURCE
from fleet_registry.store.base import TransactionContext


class ResourceContract(Contract[ResourceStat]):
    """Entry point of the resources registry."""

    TRANSACTIONS = {
        **Contract.TRANSACTIONS,
        "CreateAsset": "create_asset",
        "UpdateAsset": "update_asset",
        "TransferAsset": "transfer_asset",
        "GetAssetsSince": "get_assets_since",
    }

    def __init__(self, *, keep_source_on_transfer: bool = True):
        super().__init__(RESOURCE, keep_source_on_transfer=keep_source_on_transfer)

    def seed_key(self, item: dict[str, Any]) -> str:
        return str(item.get("id") or item.get("hostId") or item.get("host_id") or "")

    def create_asset(
        self, ctx: TransactionContext, host_key: str, report_json: str
    ) -> ResourceStat:
        return self.registry.create(ctx, host_key, parse_payload(report_json, self.name))

    def update_asset(
        self, ctx: TransactionContext, host_key: str, report_json: str
    ) -> ResourceStat:
        return self.registry.update(ctx, host_key, parse_payload(report_json, self.name))

    def transfer_asset(
        self, ctx: TransactionContext, host_key: str, new_host_key: str
    ) -> ResourceStat:
        return self.registry.transfer(ctx, host_key, new_host_key)

    def get_assets_since(self, ctx: TransactionContext, minutes: str) -> list[ResourceStat]:
        """Snapshots taken within the last window."""
        return self.queries.query_time_window(ctx, TIMESTAMP_FIELD, parse_minutes(minutes))
