"""
DeliveryConfig schema.

Typed, frozen view of the YAML configuration.  The ledger and packing
sections reuse the module config classes so their own validation applies
whichever way they are built.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from delivery_modules.ledger.config import LedgerConfig
from delivery_modules.packing.config import PackingConfig

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings passed to ``init_engine_from_url``."""

    url: str = "sqlite+pysqlite:///:memory:"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def __post_init__(self):
        if not self.url:
            raise ValueError("database url cannot be empty")
        if self.pool_size < 1:
            raise ValueError("pool_size must be at least 1")


@dataclass(frozen=True)
class ReminderConfig:
    """Overdue-payment reminder schedule."""

    enabled: bool = False
    cron: str = "0 9 * * 1"
    tick_interval_seconds: float = 60.0

    def __post_init__(self):
        if self.tick_interval_seconds <= 0:
            raise ValueError("tick_interval_seconds must be positive")


@dataclass(frozen=True)
class DeliveryConfig:
    """Root configuration object returned by ``get_active_config()``."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    packing: PackingConfig = field(default_factory=PackingConfig)
    reminders: ReminderConfig = field(default_factory=ReminderConfig)

    # Per-request budget for façade calls; None disables deadlines
    request_timeout_seconds: float | None = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got '{self.log_level}'")
        if self.request_timeout_seconds is not None and self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
