"""
In-process dispatcher.

Routes invocations to contracts deployed in the same process, each with its
own store. Stands in for the platform's chaincode-to-chaincode call.
"""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from fleet_registry.store.base import InvokeResponse, KeyValueStore, TransactionContext

logger = logging.getLogger(__name__)


@dataclass
class Deployment:
    """A contract deployed under a name with its own world state."""

    name: str
    contract: Any
    store: KeyValueStore
    namespace: str


class LocalDispatcher:
    """Name-based router over in-process deployments."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._deployments: dict[str, Deployment] = {}
        self.clock = clock

    def deploy(
        self, name: str, contract: Any, store: KeyValueStore, namespace: str
    ) -> Deployment:
        """Register a contract under name in namespace."""
        deployment = Deployment(name=name, contract=contract, store=store, namespace=namespace)
        self._deployments[name] = deployment
        logger.debug(f"Deployed {name} in namespace {namespace}")
        return deployment

    def deployments(self) -> list[str]:
        return sorted(self._deployments)

    def get(self, name: str) -> Deployment | None:
        return self._deployments.get(name)

    def context_for(self, deployment: Deployment) -> TransactionContext:
        return TransactionContext(
            store=deployment.store, namespace=deployment.namespace, clock=self.clock
        )

    def dispatch(
        self, target: str, args: Sequence[bytes], namespace: str
    ) -> InvokeResponse:
        """Invoke target's entry point with args; unknown targets yield 404."""
        deployment = self._deployments.get(target)
        if deployment is None or deployment.namespace != namespace:
            return InvokeResponse.error(
                f"Registry '{target}' is not deployed in namespace '{namespace}'",
                status=404,
            )
        return deployment.contract.invoke(self.context_for(deployment), args)
