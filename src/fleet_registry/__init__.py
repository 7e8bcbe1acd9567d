"""
Fleet Registry - asset registries over an append-only world state.

Typed, existence-guarded records of inventory, resource and latency facts
about a fleet of distributed nodes, with range, predicate and cross-registry
queries.
"""

__version__ = "0.1.0"

# API module is available but not exported by default
# Import explicitly: from fleet_registry.api import create_app

__all__ = []
