"""
Config -> Kernel Bridges.

Functions that convert an ``AssetLifecycleConfig`` into kernel inputs.
They live here because the kernel must never import asset_config.

Usage:
    from asset_config import get_active_config
    from asset_config.bridges import bootstrap_kernel, build_workflow_policy

    config = get_active_config()
    bootstrap_kernel(config)
    policy = build_workflow_policy(config)
"""

from __future__ import annotations

from types import MappingProxyType

from sqlalchemy.engine import Engine

from asset_config.schema import AssetLifecycleConfig
from asset_kernel.db.engine import init_engine_from_url
from asset_kernel.db.immutability import register_immutability_listeners
from asset_kernel.domain.policy import (
    DEFAULT_ASSET_STATUSES,
    DEFAULT_KNOWN_SITES,
    DEFAULT_SALVAGE_WEIGHTS,
    WorkflowPolicy,
)
from asset_kernel.logging_config import configure_logging, get_logger

logger = get_logger("config.bridges")


def build_workflow_policy(config: AssetLifecycleConfig) -> WorkflowPolicy:
    """
    Build the kernel's WorkflowPolicy from config.

    Empty site, status or weight lists fall back to the kernel defaults.
    """
    wf = config.workflow
    return WorkflowPolicy(
        default_delivery_location=wf.default_delivery_location,
        default_delivery_floor=wf.default_delivery_floor,
        storage_floor=wf.storage_floor,
        storage_location_suffix=wf.storage_location_suffix,
        batch_code_prefix=wf.batch_code_prefix,
        default_pickup_vendor=wf.default_pickup_vendor,
        salvage_weights=(
            MappingProxyType(dict(wf.salvage_weights))
            if wf.salvage_weights
            else DEFAULT_SALVAGE_WEIGHTS
        ),
        known_sites=frozenset(wf.known_sites) or DEFAULT_KNOWN_SITES,
        asset_statuses=frozenset(wf.asset_statuses) or DEFAULT_ASSET_STATUSES,
    )


def bootstrap_kernel(config: AssetLifecycleConfig) -> Engine:
    """Configure logging, initialize the engine and register ORM guards."""
    configure_logging(level=config.logging.level)
    engine = init_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
        pool_timeout=config.database.pool_timeout,
    )
    register_immutability_listeners()
    logger.info(
        "kernel_bootstrapped",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
        },
    )
    return engine
