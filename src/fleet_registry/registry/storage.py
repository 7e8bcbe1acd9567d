"""
Registry Storage - existence-guarded CRUD over the world state.

One generic Registry is instantiated per record kind. The store handle is
never held by the registry; it arrives in the TransactionContext passed to
every operation.
"""

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel

from fleet_registry.core.exceptions import RecordExistsError, RecordNotFoundError
from fleet_registry.registry.codec import Payload
from fleet_registry.registry.kinds import RecordKind
from fleet_registry.store.base import TransactionContext, store_guard

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class RegistryOperation(Enum):
    """Operations on registry records."""

    EXISTS = "exists"
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    TRANSFER = "transfer"


class Registry(Generic[T]):
    """
    CRUD engine for one record kind.

    States per key are Absent and Present:
    - create: Absent -> Present (else RecordExistsError)
    - update: Present -> Present (else RecordNotFoundError)
    - delete: Present -> Absent (else RecordNotFoundError)
    - read/exists: non-mutating
    """

    def __init__(self, kind: RecordKind[T], *, keep_source_on_transfer: bool = True):
        """
        Initialize registry for a record kind.

        Args:
            kind: Capability set of the record type
            keep_source_on_transfer: Leave the old key in place after transfer
        """
        self.kind = kind
        self.keep_source_on_transfer = keep_source_on_transfer

    @property
    def name(self) -> str:
        return self.kind.name

    def _get(self, ctx: TransactionContext, key: str) -> bytes | None:
        with store_guard("get", key):
            return ctx.store.get(key)

    def _put(self, ctx: TransactionContext, key: str, record: T) -> None:
        # A failed encode must never reach the store
        self._write(ctx, key, self.kind.codec.encode(record))

    def _write(self, ctx: TransactionContext, key: str, value: bytes) -> None:
        with store_guard("put", key):
            ctx.store.put(key, value)

    def _not_found(self, key: str, operation: RegistryOperation) -> RecordNotFoundError:
        return RecordNotFoundError(
            f"The {self.name} record '{key}' does not exist",
            record_kind=self.name,
            key=key,
            operation=operation.value,
        )

    def _exists_error(self, key: str, operation: RegistryOperation) -> RecordExistsError:
        return RecordExistsError(
            f"The {self.name} record '{key}' already exists",
            record_kind=self.name,
            key=key,
            operation=operation.value,
        )

    def _admit(self, ctx: TransactionContext, key: str, payload: Payload) -> T:
        """Decode, normalize and validate a payload for storage under key."""
        record = self.kind.build(payload, key, ctx.now())
        self.kind.policy.check(record, key)
        return record

    def exists(self, ctx: TransactionContext, key: str) -> bool:
        """True iff the store holds a non-empty value for key."""
        return bool(self._get(ctx, key))

    def create(self, ctx: TransactionContext, key: str, payload: Payload) -> T:
        """
        Create a new record.

        Raises:
            RecordExistsError: If key is already present
            ValidationFailedError: If the payload is malformed or rejected
        """
        if self.exists(ctx, key):
            raise self._exists_error(key, RegistryOperation.CREATE)

        record = self._admit(ctx, key, payload)
        self._put(ctx, key, record)
        logger.info(f"Created {self.name} record '{key}'")
        return record

    def create_many(
        self, ctx: TransactionContext, entries: Sequence[tuple[str, Payload]]
    ) -> list[T]:
        """
        Create several records, all or none.

        Every entry is checked, admitted and encoded before the first write,
        so a rejected entry leaves the store as it was.

        Raises:
            RecordExistsError: If a key is present or repeats within entries
            ValidationFailedError: If any payload is malformed or rejected
        """
        staged: list[tuple[str, bytes]] = []
        records: list[T] = []
        seen: set[str] = set()
        for key, payload in entries:
            if key in seen or self.exists(ctx, key):
                raise self._exists_error(key, RegistryOperation.CREATE)
            seen.add(key)
            record = self._admit(ctx, key, payload)
            staged.append((key, self.kind.codec.encode(record)))
            records.append(record)

        for key, value in staged:
            self._write(ctx, key, value)
        logger.info(f"Created {len(records)} {self.name} records")
        return records

    def read(self, ctx: TransactionContext, key: str) -> T:
        """
        Read a record.

        Raises:
            RecordNotFoundError: If key is absent
            CorruptRecordError: If the stored value does not decode
        """
        raw = self._get(ctx, key)
        if not raw:
            raise self._not_found(key, RegistryOperation.READ)
        return self.kind.codec.decode(raw, key)

    def update(self, ctx: TransactionContext, key: str, payload: Payload) -> T:
        """
        Replace an existing record. Full replacement, not a merge.

        Raises:
            RecordNotFoundError: If key is absent
            ValidationFailedError: If the payload is malformed or rejected
        """
        if not self.exists(ctx, key):
            raise self._not_found(key, RegistryOperation.UPDATE)

        record = self._admit(ctx, key, payload)
        self._put(ctx, key, record)
        logger.info(f"Updated {self.name} record '{key}'")
        return record

    def delete(self, ctx: TransactionContext, key: str) -> None:
        """
        Remove a record.

        Raises:
            RecordNotFoundError: If key is absent
        """
        if not self.exists(ctx, key):
            raise self._not_found(key, RegistryOperation.DELETE)

        with store_guard("delete", key):
            ctx.store.delete(key)
        logger.info(f"Deleted {self.name} record '{key}'")

    def transfer(
        self,
        ctx: TransactionContext,
        old_key: str,
        new_key: str,
        *,
        keep_source: bool | None = None,
    ) -> T:
        """
        Re-key a record: rewrite its identity field and store it under new_key.

        The deployed registries leave the old key in place, which duplicates
        the record; that stays the default and is logged. Pass
        keep_source=False (or configure the registry) to move instead.

        Raises:
            RecordNotFoundError: If old_key is absent
            RecordExistsError: If new_key is already present
            CorruptRecordError: If the stored value does not decode
        """
        keep = self.keep_source_on_transfer if keep_source is None else keep_source

        record = self.read(ctx, old_key)
        if old_key == new_key:
            return record
        if self.exists(ctx, new_key):
            raise self._exists_error(new_key, RegistryOperation.TRANSFER)

        moved = self.kind.with_key(record, new_key)
        self._put(ctx, new_key, moved)

        if keep:
            logger.warning(
                f"Transferred {self.name} record '{old_key}' -> '{new_key}' "
                f"without removing the source key; both keys now hold the record"
            )
        else:
            with store_guard("delete", old_key):
                ctx.store.delete(old_key)
            logger.info(f"Moved {self.name} record '{old_key}' -> '{new_key}'")
        return moved
