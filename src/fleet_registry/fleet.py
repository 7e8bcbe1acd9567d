"""
Fleet assembly.

Deploys the inventory, resources and latency contracts side by side, each
with its own world state, and wires cross-registry calls between them.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from fleet_registry.config import FleetSettings, StoreBackend
from fleet_registry.contracts import InventoryContract, LatencyContract, ResourceContract
from fleet_registry.core.models import RecordKindName
from fleet_registry.remote.client import encode_call
from fleet_registry.remote.http import HttpDispatcher
from fleet_registry.remote.local import Deployment, LocalDispatcher
from fleet_registry.store.base import InvokeResponse, KeyValueStore, TransactionContext
from fleet_registry.store.memory import InMemoryStore
from fleet_registry.store.sqlite import SqliteStore

logger = logging.getLogger(__name__)


class Fleet:
    """The three registries deployed in one namespace."""

    def __init__(
        self,
        settings: FleetSettings | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ):
        """
        Deploy all registries.

        Args:
            settings: Runtime settings (defaults to in-memory stores)
            clock: Time source for windowed queries
        """
        self.settings = settings or FleetSettings()
        self.dispatcher = LocalDispatcher(clock)
        self._http: HttpDispatcher | None = None
        if self.settings.gateway_url:
            self._http = HttpDispatcher(
                self.settings.gateway_url, self.settings.gateway_timeout_seconds
            )

        s = self.settings
        self.inventory = InventoryContract(keep_source_on_transfer=s.transfer_keep_source)
        self.resources = ResourceContract(keep_source_on_transfer=s.transfer_keep_source)
        self.latency = LatencyContract(inventory_target=s.inventory_target)

        self._aliases = {
            RecordKindName.INVENTORY.value: s.inventory_target,
            RecordKindName.RESOURCE.value: s.resources_target,
            "resources": s.resources_target,
            RecordKindName.LATENCY.value: s.latency_target,
        }
        for target, contract in (
            (s.inventory_target, self.inventory),
            (s.resources_target, self.resources),
            (s.latency_target, self.latency),
        ):
            self.dispatcher.deploy(target, contract, self._make_store(target), s.namespace)

        logger.info(
            f"Fleet deployed in {s.namespace} on {s.backend.value} backend: "
            f"{', '.join(self.dispatcher.deployments())}"
        )

    def _make_store(self, target: str) -> KeyValueStore:
        peer = self._http or self.dispatcher
        if self.settings.backend == StoreBackend.SQLITE:
            return SqliteStore(self.settings.db_path, namespace=target, dispatcher=peer)
        return InMemoryStore(dispatcher=peer)

    def resolve(self, name: str) -> str:
        """Map a record kind name or deployment name to the deployment name."""
        return self._aliases.get(name, name)

    def deployment(self, name: str) -> Deployment:
        deployment = self.dispatcher.get(self.resolve(name))
        if deployment is None:
            raise KeyError(f"No registry deployed as '{name}'")
        return deployment

    def contract(self, name: str) -> Any:
        return self.deployment(name).contract

    def context(self, name: str) -> TransactionContext:
        """Transaction context bound to the named registry's store."""
        return self.dispatcher.context_for(self.deployment(name))

    def invoke(self, name: str, operation: str, *args: str) -> InvokeResponse:
        """Run a transaction on the named registry through its entry point."""
        return self.dispatcher.dispatch(
            self.resolve(name), encode_call(operation, args), self.settings.namespace
        )

    def close(self) -> None:
        for target in self.dispatcher.deployments():
            store = self.dispatcher.get(target).store
            if isinstance(store, SqliteStore):
                store.close()
        if self._http is not None:
            self._http.close()
