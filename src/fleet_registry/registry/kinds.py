"""
Record kind capability sets.

A RecordKind bundles everything the generic Registry needs to handle one
record type: codec, admission policy, identity field and the conversion from
a caller payload to the canonical record.
"""

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from fleet_registry.core.exceptions import ValidationFailedError
from fleet_registry.core.models import (
    HostIdentity,
    InventoryAsset,
    LatencyAsset,
    RecordKindName,
    ResourceMetrics,
    ResourceReport,
    ResourceStat,
    Timestamp,
)
from fleet_registry.registry.codec import Payload, RecordCodec
from fleet_registry.registry.validation import (
    INVENTORY_POLICY,
    LATENCY_POLICY,
    RESOURCE_POLICY,
    ValidationPolicy,
)

T = TypeVar("T", bound=BaseModel)

Builder = Callable[["RecordKind[Any]", Payload, str, float], Any]


@dataclass(frozen=True)
class RecordKind(Generic[T]):
    """Capabilities of one record type."""

    name: str
    codec: RecordCodec[T]
    policy: ValidationPolicy
    identity_field: str = "id"
    builder: Builder | None = None

    def key_of(self, item: T | Mapping[str, Any]) -> str:
        """Primary key of a record, or of a raw document in wire form."""
        if isinstance(item, Mapping):
            return str(item.get(self.identity_field) or "")
        return getattr(item, self.identity_field)

    def with_key(self, record: T, key: str) -> T:
        """Copy of record with its identity field set to key."""
        return record.model_copy(update={self.identity_field: key})

    def build(self, payload: Payload, key: str, now: float) -> T:
        """Turn a caller payload into the canonical record stored under key."""
        if self.builder is not None:
            return self.builder(self, payload, key, now)
        return self.with_key(self.codec.decode_payload(payload, key), key)


# =============================================================================
# Resource normalization
# =============================================================================

_report_codec = RecordCodec(ResourceReport, RecordKindName.RESOURCE.value)


def _first(section: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if section.get(name) is not None:
            return section[name]
    return None


def _as_int(value: Any, field_name: str) -> int | None:
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError) as e:
        raise ValidationFailedError(
            f"resource field {field_name} is not numeric",
            record_kind=RecordKindName.RESOURCE.value,
            violations=[f"{field_name}: expected a number, got {value!r}"],
        ) from e


def _as_float(value: Any, field_name: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationFailedError(
            f"resource field {field_name} is not numeric",
            record_kind=RecordKindName.RESOURCE.value,
            violations=[f"{field_name}: expected a number, got {value!r}"],
        ) from e


def _used(section: Mapping[str, Any], prefix: str) -> int | None:
    total = _as_int(_first(section, "total"), f"{prefix}.total")
    used = _as_int(_first(section, "used"), f"{prefix}.used")
    if used is None and total is not None:
        free = _as_int(_first(section, "available", "free"), f"{prefix}.free")
        if free is not None:
            used = max(total - free, 0)
    return used


def _to_timestamp(value: int | float | Timestamp | None, now: float) -> Timestamp:
    if isinstance(value, Timestamp):
        return value
    seconds = now if value is None else float(value)
    whole = int(seconds)
    return Timestamp(time_seconds=whole, time_nanos=int(round((seconds - whole) * 1e9)))


def normalize_report(report: ResourceReport, key: str, now: float) -> ResourceStat:
    """
    Convert a loose resource report into canonical storage form.

    Section keys accept the spellings emitted by common host agents
    (psutil-style ``bytes_recv``, camelCase, short ``rx``/``tx``).
    """
    cpu, memory, disk, network = report.cpu, report.memory, report.disk, report.network
    metrics = ResourceMetrics(
        cpu_cores=_as_int(_first(cpu, "cores", "count", "cpuCores"), "cpu.cores"),
        cpu_percent=_as_float(
            _first(cpu, "percent", "usage", "usedPercent", "cpuPercent"), "cpu.percent"
        ),
        memory_total=_as_int(_first(memory, "total"), "memory.total"),
        memory_used=_used(memory, "memory"),
        disk_total=_as_int(_first(disk, "total"), "disk.total"),
        disk_used=_used(disk, "disk"),
        network_rx=_as_int(
            _first(network, "rx", "bytesRecv", "bytes_recv"), "network.rx"
        ),
        network_tx=_as_int(
            _first(network, "tx", "bytesSent", "bytes_sent"), "network.tx"
        ),
    )
    host = HostIdentity(
        host_id=report.host_id or key,
        hostname=report.hostname,
        ip=report.ip,
        platform=report.platform,
    )
    return ResourceStat(
        id=key,
        host=host,
        metrics=metrics,
        timestamp=_to_timestamp(report.timestamp, now),
    )


def _parse_document(payload: Payload, key: str) -> Payload:
    if not isinstance(payload, (str, bytes, bytearray)):
        return payload
    try:
        document = json.loads(payload)
    except ValueError as e:
        raise ValidationFailedError(
            "Malformed resource payload",
            record_kind=RecordKindName.RESOURCE.value,
            key=key,
            violations=[str(e)],
        ) from e
    # Non-object JSON is left for the codec to reject
    return document if isinstance(document, dict) else payload


def build_resource_stat(
    kind: "RecordKind[ResourceStat]", payload: Payload, key: str, now: float
) -> ResourceStat:
    payload = _parse_document(payload, key)
    if isinstance(payload, ResourceStat):
        return kind.with_key(payload.model_copy(deep=True), key)
    if isinstance(payload, dict) and "host" in payload:
        # Already in storage form, e.g. a seed exported from another ledger
        return kind.with_key(kind.codec.decode_payload(payload, key), key)
    report = _report_codec.decode_payload(payload, key)
    return normalize_report(report, key, now)


INVENTORY = RecordKind(
    name=RecordKindName.INVENTORY.value,
    codec=RecordCodec(InventoryAsset, RecordKindName.INVENTORY.value),
    policy=INVENTORY_POLICY,
)

RESOURCE = RecordKind(
    name=RecordKindName.RESOURCE.value,
    codec=RecordCodec(ResourceStat, RecordKindName.RESOURCE.value),
    policy=RESOURCE_POLICY,
    builder=build_resource_stat,
)

LATENCY = RecordKind(
    name=RecordKindName.LATENCY.value,
    codec=RecordCodec(LatencyAsset, RecordKindName.LATENCY.value),
    policy=LATENCY_POLICY,
)
