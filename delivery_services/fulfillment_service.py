"""
FulfillmentService -- the façade an HTTP layer (or a script) talks to.

Responsibility:
    Composes PackingListBuilder + PackingListRenderer for packing-list
    requests and LedgerService for payment, credit and invoice requests.
    Applies the AuthorizationPolicy before delegating, so the builder and
    the ledger stay usable by admin and self-service callers alike.

Architecture position:
    Services layer.  Imports from delivery_modules and delivery_kernel.

Invariants enforced:
    - Stateless between calls: every call opens its own session from the
      factory, builds fresh collaborators and closes the session.
    - Every call carries a RequestContext (actor, correlation id and, when
      configured, a deadline) into the repository.
    - Rendering never touches the database; when an executor is supplied
      it runs there and is bounded by the remaining deadline.

HTTP mapping (documentation only):
    GET  /packing-lists/order/:orderId        -> get_packing_list
    GET  /packing-lists/date/:date?sortBy=     -> get_packing_lists_by_date
    POST /packing-lists/pdf                    -> render_packing_list_pdf
    POST /payments                             -> record_payment
    GET  /payments/:id                         -> get_payment
    GET  /payments/customer/:customerId        -> get_customer_payments
    GET  /payments/invoice/:invoiceId          -> get_invoice_payments
    GET  /credits/customer/:customerId         -> get_customer_credits
    POST /credits/short-delivery               -> record_short_delivery
"""

from __future__ import annotations

from concurrent.futures import Executor
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterator, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from delivery_kernel.domain.clock import Clock, SystemClock
from delivery_kernel.domain.context import Actor, RequestContext
from delivery_kernel.exceptions import (
    DeadlineExceededError,
    InvalidPackingRequestError,
)
from delivery_kernel.logging_config import LogContext, get_logger
from delivery_modules.ledger.config import LedgerConfig
from delivery_modules.ledger.models import (
    BulkInvoiceResult,
    CreditRecord,
    InvoiceStats,
    InvoiceSummary,
    PaymentMethod,
    PaymentRecord,
    ShortDeliveryItem,
)
from delivery_modules.ledger.service import LedgerService
from delivery_modules.packing.config import PackingConfig
from delivery_modules.packing.models import PackingBatch, PackingSheet, SortBy
from delivery_modules.packing.renderer import PackingListRenderer, RenderedPdf
from delivery_modules.packing.service import PackingListBuilder
from delivery_services.authorization import Action, AuthorizationPolicy

logger = get_logger("services.fulfillment")

PDF_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class PdfDocument:
    """Rendered document ready to be streamed to the caller."""

    content: bytes
    filename: str
    content_type: str = PDF_CONTENT_TYPE
    page_count: int = 1


class FulfillmentService:
    """
    Façade over packing lists and the ledger.

    Args:
        session_factory: Returns a new Session per call.
        clock: Injected time source (invoice dates, row timestamps).
        policy: Authorization policy; defaults to the standard role policy.
        timeout_seconds: Per-call budget; None means no deadline.
        executor: Optional pool for PDF rendering.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
        policy: AuthorizationPolicy | None = None,
        packing_config: PackingConfig | None = None,
        ledger_config: LedgerConfig | None = None,
        timeout_seconds: float | None = None,
        executor: Executor | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._policy = policy or AuthorizationPolicy()
        self._packing_config = packing_config or PackingConfig()
        self._ledger_config = ledger_config or LedgerConfig()
        self._timeout = timeout_seconds
        self._executor = executor
        self._renderer = PackingListRenderer(self._packing_config)

    # =========================================================================
    # Packing lists
    # =========================================================================

    def get_packing_list(self, actor: Actor, order_id: UUID) -> PackingSheet:
        self._policy.require(actor, Action.VIEW_PACKING_LIST)
        with self._request(actor) as (session, context):
            return self._builder(session, context).build_sheet(order_id)

    def get_packing_lists_by_date(
        self,
        actor: Actor,
        delivery_date: date | datetime | str,
        sort_by: SortBy | str | None = None,
    ) -> PackingBatch:
        self._policy.require(actor, Action.VIEW_PACKING_LIST)
        with self._request(actor) as (session, context):
            return self._builder(session, context).build_batch(delivery_date, sort_by)

    def render_packing_list_pdf(
        self,
        actor: Actor,
        order_ids: Sequence[UUID] | None = None,
        delivery_date: date | datetime | str | None = None,
        sort_by: SortBy | str | None = None,
    ) -> PdfDocument:
        """
        PDF for hand-picked orders or for every order on a date.

        Exactly one of ``order_ids`` and ``delivery_date`` must be given.

        Raises:
            InvalidPackingRequestError, OrderNotFoundError,
            InvalidSortKeyError, InvalidDeliveryDateError,
            DeadlineExceededError.
        """
        self._policy.require(actor, Action.RENDER_PACKING_LIST)
        if bool(order_ids) == (delivery_date is not None):
            raise InvalidPackingRequestError(
                "give either order ids or a delivery date"
                if not order_ids else "order ids and a delivery date are mutually exclusive"
            )

        with self._request(actor) as (session, context):
            builder = self._builder(session, context)
            if order_ids:
                batch = builder.build_sheets(order_ids, sort_by)
            else:
                batch = builder.build_batch(delivery_date, sort_by)
            rendered = self._render(batch, context)

        return PdfDocument(
            content=rendered.content,
            filename=self._filename(batch),
            page_count=rendered.page_count,
        )

    # =========================================================================
    # Payments
    # =========================================================================

    def record_payment(
        self,
        actor: Actor,
        invoice_id: UUID,
        customer_id: UUID,
        amount: Decimal | int | str,
        method: PaymentMethod | str,
        payment_date: date,
        notes: str | None = None,
    ) -> PaymentRecord:
        self._policy.require(actor, Action.RECORD_PAYMENT)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).record_payment(
                invoice_id=invoice_id,
                customer_id=customer_id,
                amount=amount,
                method=method,
                payment_date=payment_date,
                actor_id=actor.id,
                notes=notes,
            )

    def get_payment(self, actor: Actor, payment_id: UUID) -> PaymentRecord:
        self._require_permission(actor, Action.VIEW_PAYMENTS)
        with self._request(actor) as (session, context):
            payment = self._ledger(session, context).get_payment(payment_id)
        self._policy.require(actor, Action.VIEW_PAYMENTS, owner_id=payment.customer_id)
        return payment

    def get_customer_payments(self, actor: Actor, customer_id: UUID) -> list[PaymentRecord]:
        self._policy.require(actor, Action.VIEW_PAYMENTS, owner_id=customer_id)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).get_customer_payments(customer_id)

    def get_invoice_payments(self, actor: Actor, invoice_id: UUID) -> list[PaymentRecord]:
        self._require_permission(actor, Action.VIEW_PAYMENTS)
        with self._request(actor) as (session, context):
            ledger = self._ledger(session, context)
            invoice = ledger.get_invoice_summary(invoice_id).invoice
            self._policy.require(actor, Action.VIEW_PAYMENTS, owner_id=invoice.customer_id)
            return ledger.get_invoice_payments(invoice_id)

    # =========================================================================
    # Credits
    # =========================================================================

    def record_short_delivery(
        self,
        actor: Actor,
        order_id: UUID,
        customer_id: UUID,
        items: Sequence[ShortDeliveryItem],
    ) -> list[CreditRecord]:
        self._policy.require(actor, Action.RECORD_SHORT_DELIVERY)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).record_short_delivery(
                order_id=order_id,
                customer_id=customer_id,
                items=items,
                actor_id=actor.id,
            )

    def get_customer_credits(self, actor: Actor, customer_id: UUID) -> list[CreditRecord]:
        self._policy.require(actor, Action.VIEW_CREDITS, owner_id=customer_id)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).get_customer_credits(customer_id)

    def get_credit_balance(self, actor: Actor, customer_id: UUID) -> Decimal:
        self._policy.require(actor, Action.VIEW_CREDITS, owner_id=customer_id)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).get_credit_balance(customer_id)

    def apply_credit(
        self,
        actor: Actor,
        invoice_id: UUID,
        amount: Decimal | int | str | None = None,
    ) -> InvoiceSummary:
        self._policy.require(actor, Action.APPLY_CREDIT)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).apply_credit(
                invoice_id, actor_id=actor.id, amount=amount
            )

    # =========================================================================
    # Invoices
    # =========================================================================

    def generate_invoice(
        self,
        actor: Actor,
        order_id: UUID,
        apply_available_credit: bool | None = None,
    ) -> InvoiceSummary:
        self._policy.require(actor, Action.GENERATE_INVOICE)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).generate_invoice(
                order_id, actor_id=actor.id, apply_available_credit=apply_available_credit
            )

    def generate_invoices(
        self,
        actor: Actor,
        order_ids: list[UUID],
        apply_available_credit: bool | None = None,
    ) -> BulkInvoiceResult:
        self._policy.require(actor, Action.GENERATE_INVOICE)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).generate_invoices(
                order_ids, actor_id=actor.id, apply_available_credit=apply_available_credit
            )

    def get_invoice_stats(self, actor: Actor, customer_id: UUID) -> InvoiceStats:
        self._policy.require(actor, Action.VIEW_INVOICES, owner_id=customer_id)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).calculate_invoice_stats(customer_id)

    def get_invoice(self, actor: Actor, invoice_id: UUID) -> InvoiceSummary:
        self._require_permission(actor, Action.VIEW_INVOICES)
        with self._request(actor) as (session, context):
            summary = self._ledger(session, context).get_invoice_summary(invoice_id)
        self._policy.require(actor, Action.VIEW_INVOICES, owner_id=summary.invoice.customer_id)
        return summary

    def get_customer_invoices(self, actor: Actor, customer_id: UUID) -> list[InvoiceSummary]:
        self._policy.require(actor, Action.VIEW_INVOICES, owner_id=customer_id)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).get_customer_invoices(customer_id)

    def get_overdue_invoices(self, actor: Actor, as_of: date | None = None) -> list[InvoiceSummary]:
        self._policy.require(actor, Action.VIEW_OVERDUE)
        with self._request(actor) as (session, context):
            return self._ledger(session, context).get_overdue_invoices(as_of)

    # =========================================================================
    # Internal
    # =========================================================================

    @contextmanager
    def _request(self, actor: Actor) -> Iterator[tuple[Session, RequestContext]]:
        if self._timeout is not None:
            context = RequestContext.with_timeout(self._timeout, actor=actor)
        else:
            context = RequestContext(actor=actor)
        session = self._session_factory()
        try:
            with LogContext.bind(correlation_id=context.correlation_id, actor_id=actor.id):
                yield session, context
        finally:
            session.close()

    def _require_permission(self, actor: Actor, action: Action) -> None:
        """Role-level check before a lookup; ownership is checked once the record is loaded."""
        self._policy.require(actor, action, owner_id=actor.id)

    def _builder(self, session: Session, context: RequestContext) -> PackingListBuilder:
        return PackingListBuilder(session, context, self._packing_config)

    def _ledger(self, session: Session, context: RequestContext) -> LedgerService:
        return LedgerService(session, self._clock, self._ledger_config, context)

    def _render(self, batch: PackingBatch, context: RequestContext) -> RenderedPdf:
        if self._executor is None:
            context.check("render_packing_list_pdf")
            return self._renderer.render_document(batch)

        future = self._executor.submit(self._renderer.render_document, batch)
        try:
            return future.result(timeout=context.remaining())
        except FutureTimeoutError:
            future.cancel()
            logger.warning("packing_pdf_render_timed_out", extra={
                "sheet_count": len(batch),
                "budget_seconds": context.budget_seconds,
            })
            raise DeadlineExceededError("render_packing_list_pdf", context.budget_seconds) from None

    def _filename(self, batch: PackingBatch) -> str:
        if batch.delivery_date is not None:
            return f"packing-lists-{batch.delivery_date.isoformat()}.pdf"
        if len(batch) == 1:
            return f"packing-list-{batch.sheets[0].order_id.hex[:8].upper()}.pdf"
        return "packing-lists.pdf"
