"""
In-memory world state store.

Reference KeyValueStore used for tests, local development and the default
CLI backend. Keys are kept in sorted order so range scans follow key order
like the ledger state database does.
"""

import json
import logging
import threading
from collections.abc import Sequence
from typing import Any, Protocol

from fleet_registry.store.base import (
    InvokeResponse,
    KeyValueStore,
    ListCursor,
    StateCursor,
    StateEntry,
)
from fleet_registry.store.selector import matches, unwrap_query

logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    """Routes an invocation to the registry deployed under a target name."""

    def dispatch(
        self, target: str, args: Sequence[bytes], namespace: str
    ) -> InvokeResponse: ...


def in_range(key: str, start_key: str, end_key: str) -> bool:
    """Whether key falls inside [start_key, end_key) with open empty bounds."""
    if start_key and key < start_key:
        return False
    if end_key and key >= end_key:
        return False
    return True


def decode_document(value: bytes) -> Any:
    """Parse a stored value as JSON, returning None for non-JSON values."""
    try:
        return json.loads(value)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


class InMemoryStore(KeyValueStore):
    """
    Dictionary-backed world state for a single registry namespace.

    Thread-safe; every cursor is a snapshot taken at query time.
    """

    def __init__(
        self,
        initial: dict[str, bytes] | None = None,
        dispatcher: Dispatcher | None = None,
    ):
        """
        Initialize the store.

        Args:
            initial: Optional key/value pairs to preload
            dispatcher: Router used for invoke_other (None disables it)
        """
        self._data: dict[str, bytes] = dict(initial or {})
        self._lock = threading.RLock()
        self.dispatcher = dispatcher
        self._cursors: list[ListCursor] = []

    def get(self, key: str) -> bytes | None:
        with self._lock:
            value = self._data.get(key)
        if not value:
            return None
        return value

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        """All keys currently held, in key order."""
        with self._lock:
            return sorted(self._data)

    def unclosed_cursors(self) -> list[ListCursor]:
        """Cursors handed out and not yet closed."""
        return [cursor for cursor in self._cursors if not cursor.closed]

    def _cursor(self, entries: list[StateEntry]) -> StateCursor:
        cursor = ListCursor(entries)
        self._cursors = self.unclosed_cursors()
        self._cursors.append(cursor)
        return cursor

    def range_scan(self, start_key: str, end_key: str) -> StateCursor:
        with self._lock:
            entries = [
                StateEntry(key, self._data[key])
                for key in sorted(self._data)
                if in_range(key, start_key, end_key)
            ]
        return self._cursor(entries)

    def predicate_query(self, selector: dict[str, Any]) -> StateCursor:
        selector = unwrap_query(selector)
        with self._lock:
            snapshot = sorted(self._data.items())

        entries = []
        for key, value in snapshot:
            document = decode_document(value)
            if isinstance(document, dict) and matches(document, selector):
                entries.append(StateEntry(key, value))
        logger.debug(f"Predicate query matched {len(entries)} of {len(snapshot)} entries")
        return self._cursor(entries)

    def invoke_other(
        self, target: str, args: Sequence[bytes], namespace: str
    ) -> InvokeResponse:
        if self.dispatcher is None:
            return InvokeResponse.error(f"No dispatcher configured to reach '{target}'")
        return self.dispatcher.dispatch(target, args, namespace)
