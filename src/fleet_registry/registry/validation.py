"""
Per-kind admission rules.

A ValidationPolicy runs before every create and update; there is no weaker
path for updates. Each rule returns the violations it found, and the policy
reports all of them together.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from fleet_registry.core.exceptions import ValidationFailedError
from fleet_registry.core.models import (
    AssetKind,
    AssetState,
    InventoryAsset,
    LatencyAsset,
    ResourceStat,
)

Rule = Callable[[Any], list[str]]


@dataclass(frozen=True)
class ValidationPolicy:
    """Ordered admission rules for one record kind."""

    kind: str
    rules: Sequence[Rule] = field(default_factory=tuple)

    def violations(self, record: Any) -> list[str]:
        """Collect violations from every rule."""
        found: list[str] = []
        for rule in self.rules:
            found.extend(rule(record))
        return found

    def check(self, record: Any, key: str | None = None) -> None:
        """
        Run all rules against a record.

        Raises:
            ValidationFailedError: If any rule reports a violation
        """
        found = self.violations(record)
        if found:
            raise ValidationFailedError(
                f"{self.kind} record rejected: {found[0]}",
                record_kind=self.kind,
                key=key,
                violations=found,
            )


def require_identity(record: Any) -> list[str]:
    if not getattr(record, "id", ""):
        return ["id must be non-empty"]
    return []


def inventory_enums(record: InventoryAsset) -> list[str]:
    found = []
    if record.type not in AssetKind.__members__.values():
        found.append(f"type {record.type!r} is not a known asset kind")
    if record.state not in AssetState.__members__.values():
        found.append(f"state {record.state!r} is not a known asset state")
    return found


def resource_host(record: ResourceStat) -> list[str]:
    if not record.host.host_id:
        return ["host.hostId must be non-empty"]
    return []


def latency_results(record: LatencyAsset) -> list[str]:
    if not record.results:
        return ["no latency results were posted"]
    found = []
    for index, result in enumerate(record.results):
        if not result.hostname:
            found.append(f"results[{index}].hostname must be non-empty")
    return found


INVENTORY_POLICY = ValidationPolicy("inventory", (require_identity, inventory_enums))
RESOURCE_POLICY = ValidationPolicy("resource", (require_identity, resource_host))
LATENCY_POLICY = ValidationPolicy("latency", (require_identity, latency_results))
