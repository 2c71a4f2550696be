"""
asset_config -- single public entrypoint for asset lifecycle configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration.  This package sits above ``asset_kernel``; the kernel
    never imports from ``asset_config``.  ``asset_config.bridges``
    translates the loaded config into kernel inputs.

Environment:
    ASSET_LIFECYCLE_CONFIG        path to a YAML set (default: sets/default.yaml)
    ASSET_LIFECYCLE_DATABASE_URL  overrides ``database.url`` from the file

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` / ``ValueError`` -- the file does not parse into the schema.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path

from asset_config.loader import load_config
from asset_config.schema import AssetLifecycleConfig

_logger = logging.getLogger("asset_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV = "ASSET_LIFECYCLE_CONFIG"
DATABASE_URL_ENV = "ASSET_LIFECYCLE_DATABASE_URL"


def get_active_config(config_path: Path | str | None = None) -> AssetLifecycleConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``config_path``, then
    ``$ASSET_LIFECYCLE_CONFIG``, then the bundled default set.  A
    ``$ASSET_LIFECYCLE_DATABASE_URL`` value replaces the file's database URL.
    The checksum always describes the file as written.
    """
    path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH)
    config = load_config(path)

    url_override = os.environ.get(DATABASE_URL_ENV)
    if url_override:
        config = dataclasses.replace(
            config,
            database=dataclasses.replace(config.database, url=url_override),
        )

    _logger.info(
        "ASSET_CONFIG_TRACE",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "database_url_overridden": bool(url_override),
        },
    )
    return config


__all__ = [
    "AssetLifecycleConfig",
    "CONFIG_PATH_ENV",
    "DATABASE_URL_ENV",
    "get_active_config",
]
