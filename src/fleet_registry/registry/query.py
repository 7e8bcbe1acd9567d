"""
Query engine.

Produces the full or filtered set of records of one kind without exposing
the store's native query dialect. Every enumeration decodes all values or
fails as a whole; cursors are closed on every exit path.
"""

import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from fleet_registry.registry.kinds import RecordKind
from fleet_registry.store.base import StateCursor, TransactionContext, store_guard

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

SECONDS_PER_MINUTE = 60


def time_window(now: float, window_minutes: int) -> tuple[int, int]:
    """Return the [start, end) window in whole epoch seconds ending at now."""
    end = int(now)
    return end - int(window_minutes) * SECONDS_PER_MINUTE, end


def window_selector(field: str, start: int, end: int) -> dict[str, Any]:
    return {field: {"$gte": start, "$lt": end}}


def elem_match_selector(collection: str, match_key: str, match_value: Any) -> dict[str, Any]:
    return {collection: {"$elemMatch": {match_key: match_value}}}


def all_of(*selectors: dict[str, Any]) -> dict[str, Any]:
    """Combine selectors with logical AND."""
    parts = [selector for selector in selectors if selector]
    if len(parts) == 1:
        return parts[0]
    return {"$and": parts}


class QueryEngine(Generic[T]):
    """Range and predicate enumeration for one record kind."""

    def __init__(self, kind: RecordKind[T]):
        self.kind = kind

    def _drain(self, cursor: StateCursor, operation: str) -> list[T]:
        records: list[T] = []
        with cursor:
            while True:
                with store_guard(operation):
                    if not cursor.has_next():
                        break
                    entry = cursor.next()
                records.append(self.kind.codec.decode(entry.value, entry.key))
        return records

    def scan_all(self, ctx: TransactionContext) -> list[T]:
        """
        Every record in the namespace, in store key order.

        Raises:
            CorruptRecordError: If any stored value does not decode
            StoreUnavailableError: If the scan fails
        """
        with store_guard("range_scan"):
            cursor = ctx.store.range_scan("", "")
        records = self._drain(cursor, "range_scan")
        logger.debug(f"Scanned {len(records)} {self.kind.name} records")
        return records

    def query(self, ctx: TransactionContext, selector: dict[str, Any]) -> list[T]:
        """
        Records matching a declarative selector, evaluated by the store.

        Raises:
            CorruptRecordError: If any matched value does not decode
            StoreUnavailableError: If the query fails
        """
        with store_guard("predicate_query"):
            cursor = ctx.store.predicate_query({"selector": selector})
        records = self._drain(cursor, "predicate_query")
        logger.debug(f"Selector {selector} matched {len(records)} {self.kind.name} records")
        return records

    def query_time_window(
        self,
        ctx: TransactionContext,
        field: str,
        window_minutes: int,
        extra: dict[str, Any] | None = None,
    ) -> list[T]:
        """
        Records whose epoch-seconds field lies in [now - window, now).

        Results are a live snapshot of the clock at call time.
        """
        start, end = time_window(ctx.now(), window_minutes)
        return self.query(ctx, all_of(extra or {}, window_selector(field, start, end)))

    def query_nested_match(
        self,
        ctx: TransactionContext,
        collection: str,
        match_key: str,
        match_value: Any,
        window_minutes: int,
        field: str,
    ) -> list[T]:
        """Time-windowed records with at least one collection element matching."""
        return self.query_time_window(
            ctx,
            field,
            window_minutes,
            extra=elem_match_selector(collection, match_key, match_value),
        )
