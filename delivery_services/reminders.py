"""
ReminderScheduler -- overdue-payment reminders on a cron schedule.

Contract:
    ``tick()`` fires at most once per matching minute: it asks the ledger
    for overdue invoices, groups them by customer and hands one
    ``ReminderMessage`` per customer to the injected ``Messenger``.
    Delivery (email, WhatsApp, SMS) is the messenger's business.

Architecture: delivery_services.  Reads through LedgerService and
    OrderRepository; never writes.  Shares no state with the ledger.

Invariants enforced:
    - All timestamps come from the injected Clock.
    - One customer's failed send does not stop the others.
    - ``stop()`` is honoured between customers.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from delivery_kernel.db.types import ZERO
from delivery_kernel.domain.clock import Clock, SystemClock
from delivery_kernel.domain.dtos import CustomerRecord
from delivery_kernel.logging_config import LogContext, get_logger
from delivery_modules.ledger.config import LedgerConfig
from delivery_modules.ledger.models import InvoiceSummary
from delivery_modules.ledger.service import LedgerService
from delivery_modules.repository import OrderRepository
from delivery_services.schedule import matches_cron, next_match, parse_cron

logger = get_logger("services.reminders")

DEFAULT_REMINDER_CRON = "0 9 * * 1"


@dataclass(frozen=True)
class ReminderMessage:
    """Everything a messenger needs to chase one customer."""

    customer: CustomerRecord
    invoices: tuple[InvoiceSummary, ...]
    total_due: Decimal
    as_of: date


class Messenger(Protocol):
    """Outbound channel for reminders."""

    def send_overdue_reminder(self, message: ReminderMessage) -> None:
        ...


class ReminderScheduler:
    """In-process polling scheduler for overdue-payment reminders.

    Non-goals:
        - NOT a distributed scheduler (run one per deployment).
        - Does NOT convert timezones; the clock's wall time is matched.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        messenger: Messenger,
        clock: Clock | None = None,
        cron: str = DEFAULT_REMINDER_CRON,
        tick_interval_seconds: float = 60,
        ledger_config: LedgerConfig | None = None,
    ):
        self._session_factory = session_factory
        self._messenger = messenger
        self._clock = clock or SystemClock()
        self._spec = parse_cron(cron)
        self._tick_interval = tick_interval_seconds
        self._ledger_config = ledger_config or LedgerConfig()
        self._last_fired: datetime | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> int:
        """Send reminders if the current minute matches the schedule.

        Returns the number of reminders sent.
        """
        now = self._clock.now()
        minute = now.replace(second=0, microsecond=0)
        if not matches_cron(self._spec, minute) or minute == self._last_fired:
            return 0
        self._last_fired = minute

        try:
            sent = self.run_once(now.date())
        except Exception:
            logger.exception("reminder_tick_failed", extra={"as_of": now.date().isoformat()})
            return 0

        logger.info("reminder_tick_completed", extra={
            "sent": sent,
            "next_run_at": next_match(self._spec, minute).isoformat(),
        })
        return sent

    def run_once(self, as_of: date) -> int:
        """Send one reminder per customer with overdue invoices as of ``as_of``.

        Errors reading the ledger propagate; messenger errors are logged
        per customer.
        """
        session = self._session_factory()
        try:
            ledger = LedgerService(session, self._clock, self._ledger_config)
            repository = OrderRepository(session)
            messages = self._build_messages(ledger.get_overdue_invoices(as_of), repository, as_of)
        finally:
            session.close()

        sent = 0
        for message in messages:
            if self._stop_event.is_set():
                break
            with LogContext.bind(customer_id=message.customer.id):
                try:
                    self._messenger.send_overdue_reminder(message)
                except Exception:
                    logger.exception("reminder_send_failed", extra={
                        "invoice_count": len(message.invoices),
                    })
                    continue
                logger.info("reminder_sent", extra={
                    "invoice_count": len(message.invoices),
                    "total_due": message.total_due,
                })
            sent += 1
        return sent

    def start(self) -> None:
        """Start polling in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="reminder-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("reminder_scheduler_started", extra={
            "cron": self._spec.expression,
            "tick_interval": self._tick_interval,
        })

    def stop(self, timeout: float = 30.0) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("reminder_scheduler_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(timeout=self._tick_interval)

    def _build_messages(
        self,
        overdue: list[InvoiceSummary],
        repository: OrderRepository,
        as_of: date,
    ) -> list[ReminderMessage]:
        grouped: OrderedDict[UUID, list[InvoiceSummary]] = OrderedDict()
        for summary in overdue:
            grouped.setdefault(summary.invoice.customer_id, []).append(summary)

        messages = []
        for customer_id, invoices in grouped.items():
            customer = repository.find_customer(customer_id)
            if customer is None:
                logger.warning("reminder_customer_missing", extra={
                    "customer_id": str(customer_id),
                })
                continue
            invoices.sort(key=lambda s: (s.invoice.due_date, s.invoice.invoice_number))
            messages.append(ReminderMessage(
                customer=customer,
                invoices=tuple(invoices),
                total_due=sum((s.amount_due for s in invoices), ZERO),
                as_of=as_of,
            ))

        messages.sort(key=lambda m: (m.customer.name.casefold(), str(m.customer.id)))
        return messages
