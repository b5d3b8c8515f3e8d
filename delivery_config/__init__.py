"""
delivery_config -- single public entrypoint for runtime configuration.

Responsibility:
    ``get_active_config()`` is the one place that reads configuration
    files and environment variables.  Everything else receives the typed
    ``DeliveryConfig`` (or one of its sections) by injection.

Environment:
    DELIVERY_CONFIG  path to a YAML file; defaults to the bundled
                     ``defaults.yaml``.
    DATABASE_URL     overrides ``database.url``.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path
from typing import Mapping

from delivery_config.loader import load_config, parse_config
from delivery_config.schema import DatabaseConfig, DeliveryConfig, ReminderConfig
from delivery_kernel.logging_config import get_logger

logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> DeliveryConfig:
    """Load the active configuration.

    Args:
        path: Explicit file; wins over DELIVERY_CONFIG.
        environ: Environment mapping (defaults to ``os.environ``).

    Raises:
        FileNotFoundError, yaml.YAMLError, ValueError: see ``load_config``.
    """
    env = os.environ if environ is None else environ
    source = Path(path or env.get("DELIVERY_CONFIG") or DEFAULT_CONFIG_PATH)
    config = load_config(source)

    database_url = env.get("DATABASE_URL")
    if database_url:
        config = replace(config, database=replace(config.database, url=database_url))

    logger.info("config_loaded", extra={
        "source": str(source),
        "dialect": config.database.url.split(":", 1)[0],
        "database_url_override": bool(database_url),
    })
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DatabaseConfig",
    "DeliveryConfig",
    "ReminderConfig",
    "get_active_config",
    "load_config",
    "parse_config",
]
