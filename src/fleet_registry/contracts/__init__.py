"""
Fleet Registry Contracts Module.

Deployed entry points of the inventory, resources and latency registries.
"""

__all__ = [
    "Contract",
    "InventoryContract",
    "LatencyContract",
    "ResourceContract",
]

from fleet_registry.contracts.base import Contract
from fleet_registry.contracts.inventory import InventoryContract
from fleet_registry.contracts.latency import LatencyContract
from fleet_registry.contracts.resources import ResourceContract
