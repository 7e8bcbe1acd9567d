"""
Fleet Registry Store Module.

World state contract plus the bundled in-memory and SQLite stores.
"""

__all__ = [
    "InMemoryStore",
    "InvokeResponse",
    "KeyValueStore",
    "ListCursor",
    "SqliteStore",
    "StateCursor",
    "StateEntry",
    "TransactionContext",
    "store_guard",
]

from fleet_registry.store.base import (
    InvokeResponse,
    KeyValueStore,
    ListCursor,
    StateCursor,
    StateEntry,
    TransactionContext,
    store_guard,
)
from fleet_registry.store.memory import InMemoryStore
from fleet_registry.store.sqlite import SqliteStore
