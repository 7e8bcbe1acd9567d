"""
Registry contract base.

A contract is the deployed entry point of one registry. It exposes named
transactions taking string arguments, routes them to the generic Registry
and QueryEngine, and renders results for the caller. Errors are translated
into non-success responses only here, at the boundary.
"""

import inspect
import json
import logging
from collections.abc import Sequence
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from fleet_registry.core.exceptions import (
    CorruptRecordError,
    FleetRegistryError,
    RecordExistsError,
    RecordNotFoundError,
    RemoteCallFailedError,
    StoreUnavailableError,
    ValidationFailedError,
)
from fleet_registry.registry.codec import canonical_json
from fleet_registry.registry.kinds import RecordKind
from fleet_registry.registry.query import QueryEngine
from fleet_registry.registry.storage import Registry
from fleet_registry.remote.client import decode_call
from fleet_registry.store.base import ERROR, InvokeResponse, TransactionContext

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

TIMESTAMP_FIELD = "timestamp.timeSeconds"

# Response status per error class, most specific first
ERROR_STATUS: tuple[tuple[type[FleetRegistryError], int], ...] = (
    (RecordExistsError, 409),
    (RecordNotFoundError, 404),
    (ValidationFailedError, 422),
    (CorruptRecordError, 500),
    (RemoteCallFailedError, 502),
    (StoreUnavailableError, 503),
)


def status_for(error: FleetRegistryError) -> int:
    for error_class, status in ERROR_STATUS:
        if isinstance(error, error_class):
            return status
    return ERROR


def render(result: Any) -> bytes:
    """Render a transaction result as response bytes."""
    if result is None:
        return b""
    if isinstance(result, bytes):
        return result
    if isinstance(result, str):
        return result.encode("utf-8")
    if isinstance(result, BaseModel):
        return canonical_json(result.model_dump(mode="json", by_alias=True))
    if isinstance(result, list):
        return canonical_json(
            [
                item.model_dump(mode="json", by_alias=True)
                if isinstance(item, BaseModel)
                else item
                for item in result
            ]
        )
    return canonical_json(result)


def parse_minutes(value: str) -> int:
    """
    Parse a window length argument.

    Raises:
        ValidationFailedError: If value is not a non-negative integer
    """
    try:
        minutes = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationFailedError(
            f"Window length must be an integer number of minutes, got {value!r}",
            violations=[f"minutes: {value!r} is not an integer"],
        ) from e
    if minutes < 0:
        raise ValidationFailedError(
            "Window length must not be negative",
            violations=[f"minutes: {minutes} is negative"],
        )
    return minutes


def parse_payload(payload: str, record_kind: str) -> dict[str, Any]:
    """
    Parse a JSON object argument.

    Raises:
        ValidationFailedError: If payload is not a JSON object
    """
    try:
        document = json.loads(payload)
    except (TypeError, json.JSONDecodeError) as e:
        raise ValidationFailedError(
            f"Malformed {record_kind} payload",
            record_kind=record_kind,
            violations=[f"payload is not valid JSON: {e}"],
        ) from e
    if not isinstance(document, dict):
        raise ValidationFailedError(
            f"Malformed {record_kind} payload",
            record_kind=record_kind,
            violations=["payload must be a JSON object"],
        )
    return document


class Contract(Generic[T]):
    """
    Base entry point for a registry.

    Subclasses list their transactions in TRANSACTIONS as
    wire name -> method name; every method takes the context first.
    """

    TRANSACTIONS: ClassVar[dict[str, str]] = {
        "InitLedger": "init_ledger",
        "ReadAsset": "read_asset",
        "DeleteAsset": "delete_asset",
        "AssetExists": "asset_exists",
        "GetAllAssets": "get_all_assets",
    }

    def __init__(self, kind: RecordKind[T], *, keep_source_on_transfer: bool = True):
        self.kind = kind
        self.registry: Registry[T] = Registry(
            kind, keep_source_on_transfer=keep_source_on_transfer
        )
        self.queries: QueryEngine[T] = QueryEngine(kind)

    @property
    def name(self) -> str:
        return self.kind.name

    def transactions(self) -> list[str]:
        """Wire names this contract answers to."""
        return sorted(self.TRANSACTIONS)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def invoke(self, ctx: TransactionContext, raw_args: Sequence[bytes | str]) -> InvokeResponse:
        """
        Run the transaction named by the first argument.

        Returns a success response carrying the rendered result, or an error
        response whose status reflects the error class.
        """
        function, args = decode_call(raw_args)
        method_name = self.TRANSACTIONS.get(function)
        if method_name is None:
            logger.warning(f"{self.name} registry has no transaction '{function}'")
            return InvokeResponse.error(
                f"Unknown transaction '{function}' on {self.name} registry", status=400
            )

        method = getattr(self, method_name)
        try:
            inspect.signature(method).bind(ctx, *args)
        except TypeError as e:
            return InvokeResponse.error(f"Invalid arguments for {function}: {e}", status=400)

        try:
            result = method(ctx, *args)
        except FleetRegistryError as e:
            logger.info(f"{self.name}.{function} rejected: {e}")
            return InvokeResponse.error(str(e), status=status_for(e))
        return InvokeResponse.success(render(result))

    # -------------------------------------------------------------------------
    # Shared transactions
    # -------------------------------------------------------------------------

    def seed_key(self, item: dict[str, Any]) -> str:
        return self.kind.key_of(item)

    def init_ledger(self, ctx: TransactionContext, seed_json: str = "[]") -> int:
        """
        Create a base set of records; returns how many were written.

        The seed is applied whole: one rejected entry writes nothing.
        """
        try:
            seed = json.loads(seed_json)
        except json.JSONDecodeError as e:
            raise ValidationFailedError(
                "Seed must be a JSON array of records",
                record_kind=self.name,
                violations=[str(e)],
            ) from e
        if not isinstance(seed, list):
            raise ValidationFailedError(
                "Seed must be a JSON array of records",
                record_kind=self.name,
                violations=["seed is not a list"],
            )
        for item in seed:
            if not isinstance(item, dict):
                raise ValidationFailedError(
                    "Seed entries must be JSON objects",
                    record_kind=self.name,
                    violations=[f"unexpected seed entry {item!r}"],
                )
        created = self.registry.create_many(ctx, [(self.seed_key(item), item) for item in seed])
        logger.info(f"Initialized {self.name} ledger with {len(created)} records")
        return len(created)

    def read_asset(self, ctx: TransactionContext, key: str) -> T:
        return self.registry.read(ctx, key)

    def delete_asset(self, ctx: TransactionContext, key: str) -> None:
        self.registry.delete(ctx, key)

    def asset_exists(self, ctx: TransactionContext, key: str) -> bool:
        return self.registry.exists(ctx, key)

    def get_all_assets(self, ctx: TransactionContext) -> list[T]:
        return self.queries.scan_all(ctx)
