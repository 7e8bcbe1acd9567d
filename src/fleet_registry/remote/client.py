"""
Cross-registry client.

Lets one registry answer questions about another registry's records by
value: the call is serialized, dispatched to the target registry's entry
point and the response decoded into typed records. Failures surface to the
caller unmodified, with no retry and no partial result.
"""

import logging
from collections.abc import Sequence
from typing import Generic, Protocol, TypeVar

from pydantic import BaseModel

from fleet_registry.core.exceptions import RemoteCallFailedError
from fleet_registry.core.models import InventoryAsset
from fleet_registry.registry.codec import RecordCodec
from fleet_registry.registry.kinds import INVENTORY
from fleet_registry.store.base import InvokeResponse, TransactionContext, store_guard

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_INVENTORY_TARGET = "inventory-sc"


def encode_call(operation: str, args: Sequence[str]) -> list[bytes]:
    """Serialize an operation and its arguments as an opaque call."""
    return [operation.encode("utf-8"), *(str(arg).encode("utf-8") for arg in args)]


def decode_call(raw_args: Sequence[bytes | str]) -> tuple[str, list[str]]:
    """Inverse of encode_call, used by the receiving entry point."""
    values = [
        arg.decode("utf-8") if isinstance(arg, (bytes, bytearray)) else str(arg)
        for arg in raw_args
    ]
    if not values:
        return "", []
    return values[0], values[1:]


class Invoker(Protocol):
    """Dispatches a serialized call to a target registry."""

    def invoke(
        self, ctx: TransactionContext, target: str, args: Sequence[bytes]
    ) -> InvokeResponse: ...


class StoreInvoker:
    """Routes calls through the world state's invoke_other capability."""

    def invoke(
        self, ctx: TransactionContext, target: str, args: Sequence[bytes]
    ) -> InvokeResponse:
        with store_guard("invoke_other"):
            return ctx.store.invoke_other(target, args, ctx.namespace)


class CrossRegistryClient(Generic[T]):
    """Typed lookups against another registry."""

    def __init__(self, codec: RecordCodec[T], invoker: Invoker | None = None):
        """
        Initialize the client.

        Args:
            codec: Codec of the record kind returned by the target
            invoker: Call transport (defaults to the store's invoke_other)
        """
        self.codec = codec
        self.invoker = invoker or StoreInvoker()

    def invoke(
        self,
        ctx: TransactionContext,
        target: str,
        operation: str,
        args: Sequence[str] = (),
    ) -> list[T]:
        """
        Call operation on target and decode the returned record list.

        Raises:
            RemoteCallFailedError: If the response status is not success
            CorruptRecordError: If the payload is not a list of records
            StoreUnavailableError: If the dispatch itself fails
        """
        response = self.invoker.invoke(ctx, target, encode_call(operation, args))
        if not response.ok:
            logger.warning(
                f"Cross-registry call {target}.{operation} failed "
                f"with status {response.status}: {response.message}"
            )
            raise RemoteCallFailedError(
                f"Failed to query registry '{target}': {response.message or response.status}",
                target=target,
                operation=operation,
                status=response.status,
                response_message=response.message,
            )
        return self.codec.decode_list(response.payload)


class InventoryLookup:
    """
    Fixed catalog of inventory queries available to other registries.

    Each method is a thin wrapper with a fixed operation name; no ad-hoc
    remote query language is exposed.
    """

    def __init__(
        self,
        target: str = DEFAULT_INVENTORY_TARGET,
        invoker: Invoker | None = None,
    ):
        self.target = target
        self.client: CrossRegistryClient[InventoryAsset] = CrossRegistryClient(
            INVENTORY.codec, invoker
        )

    def _call(
        self, ctx: TransactionContext, operation: str, *args: str
    ) -> list[InventoryAsset]:
        return self.client.invoke(ctx, self.target, operation, args)

    def get_server_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self._call(ctx, "GetServerAssets")

    def get_server_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self._call(ctx, "GetServerAssetsExceptId", exclude_id)

    def get_sensor_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self._call(ctx, "GetSensorAssets")

    def get_sensor_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self._call(ctx, "GetSensorAssetsExceptId", exclude_id)

    def get_robot_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self._call(ctx, "GetRobotAssets")

    def get_robot_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self._call(ctx, "GetRobotAssetsExceptId", exclude_id)

    def get_sensor_and_robot_assets(self, ctx: TransactionContext) -> list[InventoryAsset]:
        return self._call(ctx, "GetSensorAndRobotAssets")

    def get_sensor_and_robot_assets_except_id(
        self, ctx: TransactionContext, exclude_id: str
    ) -> list[InventoryAsset]:
        return self._call(ctx, "GetSensorAndRobotAssetsExceptId", exclude_id)
