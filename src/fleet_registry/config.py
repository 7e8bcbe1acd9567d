"""
Fleet Registry configuration.

Settings are read from the environment:
- FLEET_BACKEND: memory | sqlite (default: memory)
- FLEET_DATA_DIR: Directory for the SQLite world state (default: var/fleet)
- FLEET_NAMESPACE: Channel the registries are deployed in (default: mychannel)
- FLEET_INVENTORY_TARGET: Name of the inventory registry (default: inventory-sc)
- FLEET_RESOURCES_TARGET: Name of the resources registry (default: resources-sc)
- FLEET_LATENCY_TARGET: Name of the latency registry (default: latency-sc)
- FLEET_TRANSFER_KEEP_SOURCE: Keep the old key after transfer (default: true)
- FLEET_LOG_LEVEL: Logging level (default: INFO)
- FLEET_GATEWAY_URL: Remote gateway for cross-registry calls (optional)
- FLEET_GATEWAY_TIMEOUT: Gateway timeout in seconds (default: 30)
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from fleet_registry.core.exceptions import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class StoreBackend(Enum):
    """World state backends bundled with the registry."""

    MEMORY = "memory"
    SQLITE = "sqlite"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}", env_var=name)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", env_var=name) from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}", env_var=name)
    return value


@dataclass(frozen=True)
class FleetSettings:
    """Runtime settings for the registries and their surfaces."""

    backend: StoreBackend = StoreBackend.MEMORY
    data_dir: Path = Path("var/fleet")
    namespace: str = "mychannel"
    inventory_target: str = "inventory-sc"
    resources_target: str = "resources-sc"
    latency_target: str = "latency-sc"
    transfer_keep_source: bool = True
    log_level: str = "INFO"
    gateway_url: str | None = None
    gateway_timeout_seconds: float = 30.0

    @property
    def db_path(self) -> Path:
        return self.data_dir / "world_state.db"

    @classmethod
    def from_env(cls) -> "FleetSettings":
        """
        Load settings from environment variables.

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        backend_raw = os.getenv("FLEET_BACKEND", StoreBackend.MEMORY.value).lower()
        try:
            backend = StoreBackend(backend_raw)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown store backend {backend_raw!r}",
                env_var="FLEET_BACKEND",
                details={"allowed": [b.value for b in StoreBackend]},
            ) from e

        log_level = os.getenv("FLEET_LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(
                f"Unknown log level {log_level!r}", env_var="FLEET_LOG_LEVEL"
            )

        namespace = os.getenv("FLEET_NAMESPACE", "mychannel")
        if not namespace:
            raise ConfigurationError("Namespace must not be empty", env_var="FLEET_NAMESPACE")

        return cls(
            backend=backend,
            data_dir=Path(os.getenv("FLEET_DATA_DIR", "var/fleet")),
            namespace=namespace,
            inventory_target=os.getenv("FLEET_INVENTORY_TARGET", "inventory-sc"),
            resources_target=os.getenv("FLEET_RESOURCES_TARGET", "resources-sc"),
            latency_target=os.getenv("FLEET_LATENCY_TARGET", "latency-sc"),
            transfer_keep_source=_env_bool("FLEET_TRANSFER_KEEP_SOURCE", True),
            log_level=log_level,
            gateway_url=os.getenv("FLEET_GATEWAY_URL") or None,
            gateway_timeout_seconds=_env_float("FLEET_GATEWAY_TIMEOUT", 30.0),
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for CLI and gateway processes."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
