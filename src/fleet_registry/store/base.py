"""
World state store contract.

The registry core never owns storage. It talks to an externally managed
key-value store through the narrow interface defined here and receives the
store handle through a TransactionContext on every call.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from fleet_registry.core.exceptions import FleetRegistryError, StoreUnavailableError

# Response status codes used by cross-registry invocation
OK = 200
ERRORTHRESHOLD = 400
ERROR = 500


@dataclass(frozen=True)
class StateEntry:
    """A single key/value pair yielded by a cursor."""

    key: str
    value: bytes


@dataclass
class InvokeResponse:
    """Result of dispatching a call to another registry."""

    status: int
    payload: bytes = b""
    message: str = ""

    @property
    def ok(self) -> bool:
        """Whether the status denotes success."""
        return self.status < ERRORTHRESHOLD

    @classmethod
    def success(cls, payload: bytes = b"") -> "InvokeResponse":
        return cls(status=OK, payload=payload)

    @classmethod
    def error(cls, message: str, status: int = ERROR) -> "InvokeResponse":
        return cls(status=status, message=message)


class StateCursor(ABC):
    """
    Iterator over query results held open against the store.

    Cursors must be closed on every exit path; use them as context managers.
    """

    @abstractmethod
    def has_next(self) -> bool:
        """Whether another entry is available."""

    @abstractmethod
    def next(self) -> StateEntry:
        """Return the next entry."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resource."""

    def __iter__(self) -> Iterator[StateEntry]:
        while self.has_next():
            yield self.next()

    def __enter__(self) -> "StateCursor":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class ListCursor(StateCursor):
    """Cursor over a materialized list of entries."""

    def __init__(self, entries: Sequence[StateEntry]):
        self._entries = list(entries)
        self._position = 0
        self.closed = False

    def has_next(self) -> bool:
        if self.closed:
            return False
        return self._position < len(self._entries)

    def next(self) -> StateEntry:
        if not self.has_next():
            raise IndexError("cursor exhausted")
        entry = self._entries[self._position]
        self._position += 1
        return entry

    def close(self) -> None:
        self.closed = True


class KeyValueStore(ABC):
    """
    Abstract world state store.

    Implementations must provide:
    - get(), put(), delete(): single-key access
    - range_scan(): key-ordered enumeration, empty bounds meaning unbounded
    - predicate_query(): declarative selector evaluated by the store
    - invoke_other(): dispatch to another registry in the same namespace
    """

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the stored bytes for key, or None when absent."""

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Write value under key."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key."""

    @abstractmethod
    def range_scan(self, start_key: str, end_key: str) -> StateCursor:
        """Enumerate keys in [start_key, end_key); empty bounds are open."""

    @abstractmethod
    def predicate_query(self, selector: dict[str, Any]) -> StateCursor:
        """Enumerate entries whose JSON value matches selector."""

    @abstractmethod
    def invoke_other(
        self, target: str, args: Sequence[bytes], namespace: str
    ) -> InvokeResponse:
        """Dispatch args to the registry deployed under target."""


@dataclass
class TransactionContext:
    """
    Per-call handle threaded through every registry operation.

    Carries the store for the registry being invoked, the namespace it is
    deployed in and the clock used for time-windowed queries.
    """

    store: KeyValueStore
    namespace: str = "mychannel"
    clock: Callable[[], float] = field(default=time.time)

    def now(self) -> float:
        """Current time in epoch seconds."""
        return self.clock()


@contextmanager
def store_guard(operation: str, key: str | None = None) -> Iterator[None]:
    """
    Translate store-level failures into StoreUnavailableError.

    Errors already in the registry taxonomy pass through untouched.
    """
    try:
        yield
    except FleetRegistryError:
        raise
    except Exception as e:
        raise StoreUnavailableError(
            f"Store {operation} failed: {e}",
            store_operation=operation,
            key=key,
        ) from e
