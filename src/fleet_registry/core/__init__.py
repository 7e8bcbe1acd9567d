"""
Fleet Registry Core Module.

Provides the record schemas and the error taxonomy shared by every registry.
"""

__all__ = [
    "AssetKind",
    "AssetState",
    "HostIdentity",
    "InventoryAsset",
    "LatencyAsset",
    "LatencyResult",
    "RecordKindName",
    "ResourceMetrics",
    "ResourceReport",
    "ResourceStat",
    "Timestamp",
    # Exceptions
    "FleetRegistryError",
    "RegistryError",
    "RecordExistsError",
    "RecordNotFoundError",
    "CorruptRecordError",
    "ValidationFailedError",
    "StoreUnavailableError",
    "RemoteCallFailedError",
    "ConfigurationError",
]

from fleet_registry.core.exceptions import (
    ConfigurationError,
    CorruptRecordError,
    FleetRegistryError,
    RecordExistsError,
    RecordNotFoundError,
    RegistryError,
    RemoteCallFailedError,
    StoreUnavailableError,
    ValidationFailedError,
)
from fleet_registry.core.models import (
    AssetKind,
    AssetState,
    HostIdentity,
    InventoryAsset,
    LatencyAsset,
    LatencyResult,
    RecordKindName,
    ResourceMetrics,
    ResourceReport,
    ResourceStat,
    Timestamp,
)
