"""
SQLite-backed world state store.

Persists one registry namespace per store instance in a shared SQLite file:
- world_state(namespace, key, value) with (namespace, key) as primary key

Thread-safe through thread-local connections.
"""

import logging
import sqlite3
import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from fleet_registry.store.base import (
    InvokeResponse,
    KeyValueStore,
    StateCursor,
    StateEntry,
)
from fleet_registry.store.memory import Dispatcher, decode_document
from fleet_registry.store.selector import matches, unwrap_query

logger = logging.getLogger(__name__)


class SqliteCursor(StateCursor):
    """
    Lazy cursor over a SQLite result set.

    An optional predicate filters rows as they are fetched.
    """

    def __init__(
        self,
        cursor: sqlite3.Cursor,
        predicate: Callable[[bytes], bool] | None = None,
    ):
        self._cursor = cursor
        self._predicate = predicate
        self._pending: StateEntry | None = None
        self.closed = False

    def _advance(self) -> None:
        while self._pending is None and not self.closed:
            row = self._cursor.fetchone()
            if row is None:
                return
            key, value = row[0], bytes(row[1])
            if self._predicate is None or self._predicate(value):
                self._pending = StateEntry(key, value)

    def has_next(self) -> bool:
        self._advance()
        return self._pending is not None

    def next(self) -> StateEntry:
        if not self.has_next():
            raise IndexError("cursor exhausted")
        entry = self._pending
        self._pending = None
        return entry

    def close(self) -> None:
        if not self.closed:
            self._cursor.close()
            self.closed = True


class SqliteStore(KeyValueStore):
    """
    SQLite world state for a single registry namespace.

    Several stores may share one database file; each sees only its namespace.
    """

    def __init__(
        self,
        db_path: Path,
        namespace: str,
        dispatcher: Dispatcher | None = None,
    ):
        """
        Initialize the store.

        Args:
            db_path: Path to the SQLite database file
            namespace: Registry namespace (one per record kind)
            dispatcher: Router used for invoke_other (None disables it)
        """
        self._db_path = Path(db_path)
        self._namespace = namespace
        self._local = threading.local()
        self.dispatcher = dispatcher

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def namespace(self) -> str:
        return self._namespace

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local SQLite connection."""
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(
                str(self._db_path),
                check_same_thread=False,
            )
            self._local.conn.execute("PRAGMA journal_mode = WAL")
            self._local.conn.execute("PRAGMA synchronous = NORMAL")
        return self._local.conn

    def _init_schema(self) -> None:
        """Create the world_state table if needed."""
        conn = self._get_connection()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS world_state (
                namespace TEXT NOT NULL,
                key TEXT NOT NULL,
                value BLOB NOT NULL,
                PRIMARY KEY (namespace, key)
            )
        """
        )
        conn.commit()

    def close(self) -> None:
        """Close this thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    def get(self, key: str) -> bytes | None:
        row = self._get_connection().execute(
            "SELECT value FROM world_state WHERE namespace = ? AND key = ?",
            (self._namespace, key),
        ).fetchone()
        if row is None or not row[0]:
            return None
        return bytes(row[0])

    def put(self, key: str, value: bytes) -> None:
        conn = self._get_connection()
        with conn:
            conn.execute(
                "INSERT OR REPLACE INTO world_state (namespace, key, value) VALUES (?, ?, ?)",
                (self._namespace, key, sqlite3.Binary(value)),
            )

    def delete(self, key: str) -> None:
        conn = self._get_connection()
        with conn:
            conn.execute(
                "DELETE FROM world_state WHERE namespace = ? AND key = ?",
                (self._namespace, key),
            )

    def range_scan(self, start_key: str, end_key: str) -> StateCursor:
        conditions = ["namespace = ?"]
        params: list[Any] = [self._namespace]
        if start_key:
            conditions.append("key >= ?")
            params.append(start_key)
        if end_key:
            conditions.append("key < ?")
            params.append(end_key)

        sql = (
            "SELECT key, value FROM world_state WHERE "
            + " AND ".join(conditions)
            + " ORDER BY key"
        )
        return SqliteCursor(self._get_connection().execute(sql, params))

    def predicate_query(self, selector: dict[str, Any]) -> StateCursor:
        selector = unwrap_query(selector)

        def predicate(value: bytes) -> bool:
            document = decode_document(value)
            return isinstance(document, dict) and matches(document, selector)

        cursor = self._get_connection().execute(
            "SELECT key, value FROM world_state WHERE namespace = ? ORDER BY key",
            (self._namespace,),
        )
        return SqliteCursor(cursor, predicate)

    def invoke_other(
        self, target: str, args: Sequence[bytes], namespace: str
    ) -> InvokeResponse:
        if self.dispatcher is None:
            return InvokeResponse.error(f"No dispatcher configured to reach '{target}'")
        return self.dispatcher.dispatch(target, args, namespace)
