"""
Configuration Loader (``asset_config.loader``).

Responsibility
--------------
Reads one YAML configuration set and parses it into the frozen dataclasses
in ``asset_config.schema``.  Runtime callers go through
``asset_config.get_active_config()``; this module is the file-reading half
of it.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id`` / ``version``  -> ``KeyError`` propagates.
* Wrongly typed values  -> ``ValueError`` with the offending key.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from asset_config.schema import (
    AssetLifecycleConfig,
    DatabaseConfig,
    LoggingConfig,
    WorkflowConfig,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form; identical data gives identical checksums."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _string_tuple(data: dict[str, Any], key: str) -> tuple[str, ...]:
    raw = data.get(key) or []
    if not isinstance(raw, list):
        raise ValueError(f"workflow.{key} must be a list, got {type(raw).__name__}")
    return tuple(str(item) for item in raw)


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    return DatabaseConfig(
        url=data.get("url", defaults.url),
        echo=bool(data.get("echo", defaults.echo)),
        pool_size=int(data.get("pool_size", defaults.pool_size)),
        max_overflow=int(data.get("max_overflow", defaults.max_overflow)),
        pool_timeout=int(data.get("pool_timeout", defaults.pool_timeout)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    return LoggingConfig(level=str(data.get("level", LoggingConfig.level)).upper())


def parse_salvage_weights(data: dict[str, Any]) -> tuple[tuple[str, Decimal], ...]:
    """
    Parse the category -> weight table.

    Categories are lower-cased; weights go through ``str`` so YAML floats do
    not leak binary rounding into the Decimal.
    """
    weights = []
    for category, weight in sorted(data.items()):
        try:
            value = Decimal(str(weight))
        except InvalidOperation:
            raise ValueError(
                f"workflow.salvage_weights.{category}: {weight!r} is not a number"
            ) from None
        weights.append((str(category).strip().lower(), value))
    return tuple(weights)


def parse_workflow(data: dict[str, Any]) -> WorkflowConfig:
    defaults = WorkflowConfig()
    return WorkflowConfig(
        default_delivery_location=data.get(
            "default_delivery_location", defaults.default_delivery_location
        ),
        default_delivery_floor=data.get(
            "default_delivery_floor", defaults.default_delivery_floor
        ),
        storage_floor=data.get("storage_floor", defaults.storage_floor),
        storage_location_suffix=data.get(
            "storage_location_suffix", defaults.storage_location_suffix
        ),
        batch_code_prefix=data.get("batch_code_prefix", defaults.batch_code_prefix),
        default_pickup_vendor=data.get(
            "default_pickup_vendor", defaults.default_pickup_vendor
        ),
        known_sites=tuple(s.upper() for s in _string_tuple(data, "known_sites")),
        asset_statuses=_string_tuple(data, "asset_statuses"),
        salvage_weights=parse_salvage_weights(data.get("salvage_weights") or {}),
    )


def parse_config(data: dict[str, Any]) -> AssetLifecycleConfig:
    """Parse a full configuration set from its YAML dict."""
    return AssetLifecycleConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        checksum=compute_checksum(data),
        database=parse_database(data.get("database") or {}),
        logging=parse_logging(data.get("logging") or {}),
        workflow=parse_workflow(data.get("workflow") or {}),
    )


def load_config(path: Path) -> AssetLifecycleConfig:
    return parse_config(load_yaml_file(path))
