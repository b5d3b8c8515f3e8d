"""
Process wiring for scripts and an HTTP host.

``bootstrap(config)`` configures logging, initializes the engine,
registers the append-only guards, optionally creates tables and returns
a ready ``FulfillmentService``.  ``build_reminder_scheduler`` does the
same for the reminder loop.
"""

from __future__ import annotations

from concurrent.futures import Executor

from delivery_config import DeliveryConfig
from delivery_kernel.db.engine import get_session_factory, init_engine_from_url
from delivery_kernel.db.immutability import register_immutability_listeners
from delivery_kernel.domain.clock import Clock
from delivery_kernel.logging_config import configure_logging, get_logger
from delivery_modules._orm_registry import create_all_tables
from delivery_services.authorization import AuthorizationPolicy
from delivery_services.fulfillment_service import FulfillmentService
from delivery_services.reminders import Messenger, ReminderScheduler

logger = get_logger("services.bootstrap")


def init_database(config: DeliveryConfig, create_schema: bool = False) -> None:
    """Engine, append-only guards and (optionally) tables."""
    db = config.database
    init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
    )
    register_immutability_listeners()
    if create_schema:
        create_all_tables()


def bootstrap(
    config: DeliveryConfig,
    clock: Clock | None = None,
    policy: AuthorizationPolicy | None = None,
    executor: Executor | None = None,
    create_schema: bool = False,
) -> FulfillmentService:
    """Configure the process and return the façade."""
    configure_logging(level=config.log_level.upper())
    init_database(config, create_schema=create_schema)

    service = FulfillmentService(
        get_session_factory(),
        clock=clock,
        policy=policy,
        packing_config=config.packing,
        ledger_config=config.ledger,
        timeout_seconds=config.request_timeout_seconds,
        executor=executor,
    )
    logger.info("fulfillment_service_ready", extra={
        "request_timeout_seconds": config.request_timeout_seconds,
        "render_executor": executor is not None,
    })
    return service


def build_reminder_scheduler(
    config: DeliveryConfig,
    messenger: Messenger,
    clock: Clock | None = None,
) -> ReminderScheduler:
    """Scheduler bound to the initialized engine; call ``init_database`` first."""
    return ReminderScheduler(
        get_session_factory(),
        messenger,
        clock=clock,
        cron=config.reminders.cron,
        tick_interval_seconds=config.reminders.tick_interval_seconds,
        ledger_config=config.ledger,
    )
