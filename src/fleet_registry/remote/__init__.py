"""
Fleet Registry Remote Module.

Cross-registry lookups and the dispatchers that carry them.
"""

__all__ = [
    "CrossRegistryClient",
    "HttpDispatcher",
    "InventoryLookup",
    "Invoker",
    "LocalDispatcher",
    "StoreInvoker",
]

from fleet_registry.remote.client import (
    CrossRegistryClient,
    InventoryLookup,
    Invoker,
    StoreInvoker,
)
from fleet_registry.remote.http import HttpDispatcher
from fleet_registry.remote.local import LocalDispatcher
