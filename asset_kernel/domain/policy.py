"""
WorkflowPolicy -- tunable workflow constants.

Built by ``asset_config.bridges`` from the YAML configuration; the kernel
itself never reads configuration files.  ``WorkflowPolicy()`` with no
arguments gives the stock defaults.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

DEFAULT_SALVAGE_WEIGHTS: Mapping[str, Decimal] = MappingProxyType({
    "laptop": Decimal("2.5"),
    "desktop": Decimal("8.0"),
    "monitor": Decimal("5.0"),
    "printer": Decimal("15.0"),
    "server": Decimal("25.0"),
    "network equipment": Decimal("3.0"),
})

DEFAULT_KNOWN_SITES: frozenset[str] = frozenset({
    "100CHURCH",
    "LIC",
    "BROOKLYN",
    "BRONX",
    "STATEN ISLAND",
    "66JOHN",
})

DEFAULT_ASSET_STATUSES: frozenset[str] = frozenset({
    "Active",
    "Inactive",
    "Maintenance",
    "Retired",
})


@dataclass(frozen=True)
class WorkflowPolicy:
    """Defaults applied by the transfer and salvage workflows."""

    default_delivery_location: str = "Main Delivery Area"
    default_delivery_floor: str = "Ground"
    storage_floor: str = "Storage"
    storage_location_suffix: str = "Storage"
    batch_code_prefix: str = "SAL"
    default_pickup_vendor: str = "RecycleCo"
    salvage_weights: Mapping[str, Decimal] = field(
        default_factory=lambda: DEFAULT_SALVAGE_WEIGHTS
    )
    known_sites: frozenset[str] = DEFAULT_KNOWN_SITES
    asset_statuses: frozenset[str] = DEFAULT_ASSET_STATUSES

    def estimated_weight(self, category: str | None) -> Decimal | None:
        """Weight for a category, matched case-insensitively; None if unknown."""
        if not category:
            return None
        return self.salvage_weights.get(category.strip().lower())

    def storage_location_for(self, site: str) -> str:
        return f"{site} {self.storage_location_suffix}"

    def batch_code_for(self, now_utc: datetime) -> str:
        """Batch code ``{prefix}-{yyyy-MM-dd}-{HHmmss}`` from a UTC timestamp."""
        return f"{self.batch_code_prefix}-{now_utc:%Y-%m-%d-%H%M%S}"
