"""
Fleet Registry API Module.

HTTP gateway exposing the registry entry points.
"""

__all__ = ["create_app"]

from fleet_registry.api.app import create_app
