"""
Record codec.

Converts between typed records and their canonical serialized form:
compact UTF-8 JSON with sorted keys and wire (camelCase) field names.
Decoding never zero-fills: bytes either produce a complete record or an error.
"""

import json
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from fleet_registry.core.exceptions import CorruptRecordError, ValidationFailedError

T = TypeVar("T", bound=BaseModel)

Payload = str | bytes | bytearray | dict[str, Any] | BaseModel


def canonical_json(data: Any) -> bytes:
    """Serialize JSON-compatible data in canonical form."""
    return json.dumps(
        data, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def _error_summary(error: ValidationError) -> list[str]:
    summary = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "<root>"
        summary.append(f"{location}: {item.get('msg', 'invalid')}")
    return summary


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Outcome of a decode attempt: a record or the reason it failed."""

    record: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self, *, record_kind: str | None = None, key: str | None = None) -> T:
        """Return the record or raise CorruptRecordError."""
        if self.error is not None:
            raise CorruptRecordError(
                "Stored value could not be decoded",
                record_kind=record_kind,
                key=key,
                reason=self.error,
            )
        return self.record


class RecordCodec(Generic[T]):
    """Canonical encoder/decoder for one record model."""

    def __init__(self, model: type[T], kind: str):
        """
        Initialize the codec.

        Args:
            model: Pydantic model of the record kind
            kind: Record kind name used in error details
        """
        self.model = model
        self.kind = kind
        self._list_adapter = TypeAdapter(list[model])

    def to_wire(self, record: T) -> dict[str, Any]:
        """Record as a JSON-compatible dict using wire field names."""
        return record.model_dump(mode="json", by_alias=True)

    def encode(self, record: T) -> bytes:
        return canonical_json(self.to_wire(record))

    def try_decode(self, raw: bytes | str) -> DecodeResult[T]:
        """Decode stored bytes without raising."""
        if not raw:
            return DecodeResult(error="empty value")
        try:
            return DecodeResult(record=self.model.model_validate_json(raw))
        except ValidationError as e:
            return DecodeResult(error="; ".join(_error_summary(e)))

    def decode(self, raw: bytes | str, key: str | None = None) -> T:
        """
        Decode stored bytes.

        Raises:
            CorruptRecordError: If the bytes are not a valid record
        """
        return self.try_decode(raw).unwrap(record_kind=self.kind, key=key)

    def decode_list(self, raw: bytes | str) -> list[T]:
        """
        Decode a JSON array of records, as returned by another registry.

        Raises:
            CorruptRecordError: If the payload is not a list of valid records
        """
        if not raw:
            raise CorruptRecordError(
                "Record list payload is empty",
                record_kind=self.kind,
                reason="empty payload",
            )
        try:
            return self._list_adapter.validate_json(raw)
        except ValidationError as e:
            raise CorruptRecordError(
                "Record list could not be decoded",
                record_kind=self.kind,
                reason="; ".join(_error_summary(e)),
            ) from e

    def decode_payload(self, payload: Payload, key: str | None = None) -> T:
        """
        Decode a caller-supplied payload into a record.

        Malformed input is a rejected submission, not corrupt state.

        Raises:
            ValidationFailedError: If the payload does not describe a record
        """
        if isinstance(payload, self.model):
            return payload.model_copy(deep=True)
        try:
            if isinstance(payload, BaseModel):
                return self.model.model_validate(payload.model_dump(by_alias=True))
            if isinstance(payload, dict):
                return self.model.model_validate(payload)
            return self.model.model_validate_json(payload)
        except ValidationError as e:
            raise ValidationFailedError(
                f"Malformed {self.kind} payload",
                record_kind=self.kind,
                key=key,
                violations=_error_summary(e),
            ) from e
