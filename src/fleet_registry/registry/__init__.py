"""
Fleet Registry Registry Module.

Generic CRUD and query engines plus the per-kind capability sets.
"""

__all__ = [
    "DecodeResult",
    "INVENTORY",
    "LATENCY",
    "QueryEngine",
    "RESOURCE",
    "RecordCodec",
    "RecordKind",
    "Registry",
    "RegistryOperation",
    "ValidationPolicy",
]

from fleet_registry.registry.codec import DecodeResult, RecordCodec
from fleet_registry.registry.kinds import INVENTORY, LATENCY, RESOURCE, RecordKind
from fleet_registry.registry.query import QueryEngine
from fleet_registry.registry.storage import Registry, RegistryOperation
from fleet_registry.registry.validation import ValidationPolicy
