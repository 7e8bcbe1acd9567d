"""
Core data models for Fleet Registry.

Every record kind stored in the world state uses these type-safe schemas.
Wire names follow the camelCase JSON of the deployed registries; Python
attributes are snake_case and either form is accepted on input.
"""

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, Field


class AssetKind(IntEnum):
    """Kinds of inventory asset. Stored as integers on the wire."""

    SERVER = 0
    SENSOR = 1
    ROBOT = 2


class AssetState(IntEnum):
    """Operational state of an inventory asset."""

    DISABLED = 0
    ENABLED = 1


class RecordKindName(Enum):
    """Names of the record kinds, one registry per kind."""

    INVENTORY = "inventory"
    RESOURCE = "resource"
    LATENCY = "latency"


class Timestamp(BaseModel):
    """Epoch timestamp attached to telemetry records."""

    time_seconds: int = Field(alias="timeSeconds", ge=0)
    time_nanos: int = Field(default=0, alias="timeNanos", ge=0)

    model_config = {"populate_by_name": True}


# =============================================================================
# Inventory
# =============================================================================


class InventoryAsset(BaseModel):
    """A physical or virtual node in the fleet inventory."""

    id: str
    name: str
    owner: str
    type: AssetKind
    state: AssetState
    properties: dict[str, str] = Field(default_factory=dict)

    @property
    def is_enabled(self) -> bool:
        """Whether the asset is currently enabled."""
        return self.state == AssetState.ENABLED


# =============================================================================
# Resources
# =============================================================================


class HostIdentity(BaseModel):
    """Identity of the host a resource snapshot was taken from."""

    host_id: str = Field(alias="hostId")
    hostname: str = ""
    ip: str = ""
    platform: str = ""

    model_config = {"populate_by_name": True}


class ResourceMetrics(BaseModel):
    """Canonical resource usage figures for one host."""

    cpu_cores: int | None = Field(default=None, alias="cpuCores")
    cpu_percent: float | None = Field(default=None, alias="cpuPercent")
    memory_total: int | None = Field(default=None, alias="memoryTotal")
    memory_used: int | None = Field(default=None, alias="memoryUsed")
    disk_total: int | None = Field(default=None, alias="diskTotal")
    disk_used: int | None = Field(default=None, alias="diskUsed")
    network_rx: int | None = Field(default=None, alias="networkRx")
    network_tx: int | None = Field(default=None, alias="networkTx")

    model_config = {"populate_by_name": True}


class ResourceStat(BaseModel):
    """Stored resource snapshot for one host, keyed by host identifier."""

    id: str
    host: HostIdentity
    metrics: ResourceMetrics = Field(default_factory=ResourceMetrics)
    timestamp: Timestamp

    model_config = {"populate_by_name": True}


class ResourceReport(BaseModel):
    """
    Loosely-typed resource report as posted by a host agent.

    Sections are free-form mappings; unknown keys are kept so that
    normalization can pick up whatever the reporting agent provides.
    """

    host_id: str = Field(default="", alias="hostId")
    hostname: str = ""
    ip: str = ""
    platform: str = ""
    cpu: dict[str, Any] = Field(default_factory=dict)
    memory: dict[str, Any] = Field(default_factory=dict)
    disk: dict[str, Any] = Field(default_factory=dict)
    network: dict[str, Any] = Field(default_factory=dict)
    timestamp: int | float | Timestamp | None = None

    model_config = {"populate_by_name": True, "extra": "allow"}


# =============================================================================
# Latency
# =============================================================================


class LatencyResult(BaseModel):
    """One measured round trip from the source to a target host."""

    hostname: str
    latency: float = Field(ge=0)
    packet_loss: float | None = Field(default=None, alias="packetLoss")

    model_config = {"populate_by_name": True, "extra": "allow"}


class LatencyAsset(BaseModel):
    """A batch of latency measurements taken by one source node."""

    id: str
    source: str = ""
    results: list[LatencyResult] = Field(default_factory=list)
    timestamp: Timestamp

    model_config = {"populate_by_name": True}

    def targets(self) -> list[str]:
        """Hostnames measured in this batch, in measurement order."""
        return [result.hostname for result in self.results]
