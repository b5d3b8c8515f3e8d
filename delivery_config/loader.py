"""
Configuration Loader (``delivery_config.loader``).

Responsibility
--------------
Loads a YAML file and parses it into the frozen ``delivery_config.schema``
dataclasses.  Runtime callers go through
``delivery_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown section or key  -> ``ValueError`` naming it.
* Out-of-range values  -> ``ValueError`` from the dataclass validators.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from delivery_config.schema import DatabaseConfig, DeliveryConfig, ReminderConfig
from delivery_modules.ledger.config import LedgerConfig
from delivery_modules.packing.config import PackingConfig

_SECTIONS = {
    "database": DatabaseConfig,
    "ledger": LedgerConfig,
    "packing": PackingConfig,
    "reminders": ReminderConfig,
}

_TOP_LEVEL = ("request_timeout_seconds", "log_level")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _parse_section(name: str, cls: type, data: Mapping[str, Any] | None) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise ValueError(f"Section '{name}' must be a mapping")

    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown keys in section '{name}': {sorted(unknown)}")

    values = dict(data)
    if name == "ledger" and "allowed_payment_methods" in values:
        values["allowed_payment_methods"] = tuple(values["allowed_payment_methods"])
    return cls(**values)


def parse_config(data: Mapping[str, Any]) -> DeliveryConfig:
    """Build a ``DeliveryConfig`` from an already-loaded mapping."""
    unknown = set(data) - set(_SECTIONS) - set(_TOP_LEVEL)
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

    sections = {name: _parse_section(name, cls, data.get(name)) for name, cls in _SECTIONS.items()}
    top_level = {key: data[key] for key in _TOP_LEVEL if key in data}
    return DeliveryConfig(**sections, **top_level)


def load_config(path: Path | str) -> DeliveryConfig:
    """Load and validate a configuration file."""
    return parse_config(load_yaml_file(Path(path)))
