"""
Asset lifecycle configuration schema.

The human-authored YAML set is parsed by the loader into these frozen
dataclasses.  ``AssetLifecycleConfig`` is the only object callers receive;
``bridges`` turns it into kernel inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings handed to ``asset_kernel.db.init_engine_from_url``."""

    url: str = "sqlite:///asset_lifecycle.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Workflow defaults
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkflowConfig:
    """Site, status and salvage defaults used by the workflows."""

    default_delivery_location: str = "Main Delivery Area"
    default_delivery_floor: str = "Ground"
    storage_floor: str = "Storage"
    storage_location_suffix: str = "Storage"
    batch_code_prefix: str = "SAL"
    default_pickup_vendor: str = "RecycleCo"
    known_sites: tuple[str, ...] = ()
    asset_statuses: tuple[str, ...] = ()
    salvage_weights: tuple[tuple[str, Decimal], ...] = ()


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AssetLifecycleConfig:
    """A loaded, checksummed configuration set."""

    config_id: str
    version: int
    checksum: str
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)
