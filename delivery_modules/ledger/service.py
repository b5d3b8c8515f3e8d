"""
Ledger Module Service - the only component that performs financial writes.

Thin glue layer that:
1. Validates the request against freshly read repository state
2. Calls LedgerWriter (through OrderRepository) to append rows
3. Derives invoice status and credit balances from the full row set

This service owns the transaction boundary: every write operation commits
on success and rolls back on any failure, so callers see either full
success or a single error with nothing persisted.

Usage:
    service = LedgerService(session, clock=clock)
    payment = service.record_payment(
        invoice_id=invoice.id, customer_id=customer.id,
        amount=Decimal("60.00"), method="cash",
        payment_date=date(2024, 6, 4), actor_id=admin.id,
    )
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from delivery_kernel.db.types import ZERO, format_money, format_quantity, round_money, to_decimal
from delivery_kernel.domain.clock import Clock, SystemClock
from delivery_kernel.domain.context import RequestContext
from delivery_kernel.domain.dtos import InvoiceRecord, OrderSnapshot
from delivery_kernel.exceptions import (
    CreditExceedsAmountDueError,
    CustomerMismatchError,
    DeliveryKernelError,
    EmptyItemListError,
    InsufficientCreditError,
    InvalidAmountError,
    InvalidPaymentMethodError,
    InvalidQuantityError,
    InvoiceAlreadyExistsError,
    InvoiceNotFoundError,
    OrderNotFoundError,
    PaymentNotFoundError,
    ProductNotOnOrderError,
    ShortfallExceedsOrderedError,
)
from delivery_kernel.logging_config import LogContext, get_logger
from delivery_kernel.models.customer import CustomerModel
from delivery_modules.ledger.config import LedgerConfig
from delivery_modules.ledger.models import (
    BulkInvoiceResult,
    CreditApplicationRecord,
    CreditDraft,
    CreditRecord,
    InvoiceBucket,
    InvoiceFailure,
    InvoiceStats,
    InvoiceStatus,
    InvoiceSummary,
    PaymentMethod,
    PaymentRecord,
    ShortDeliveryItem,
)
from delivery_modules.repository import OrderRepository

logger = get_logger("modules.ledger.service")


class LedgerService:
    """
    Records payments and short-delivery credits, and derives balances.

    Authorization-agnostic: the calling layer decides who may see or
    write what.  Every call re-reads its inputs; nothing is cached
    between calls.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
        context: RequestContext | None = None,
        repository: OrderRepository | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or LedgerConfig()
        self._repo = repository or OrderRepository(session, context, self._clock)

    # =========================================================================
    # Payments
    # =========================================================================

    def record_payment(
        self,
        invoice_id: UUID,
        customer_id: UUID,
        amount: Decimal | int | str,
        method: PaymentMethod | str,
        payment_date: date,
        actor_id: UUID,
        notes: str | None = None,
    ) -> PaymentRecord:
        """
        Append one immutable payment to an invoice.

        Overpayment is accepted; it leaves a negative amount due.

        Raises:
            InvoiceNotFoundError, CustomerMismatchError, InvalidAmountError,
            InvalidPaymentMethodError.
        """
        method_value = method.value if isinstance(method, PaymentMethod) else method
        with LogContext.bind(invoice_id=invoice_id, customer_id=customer_id, actor_id=actor_id):
            try:
                invoice = self._require_invoice(invoice_id)
                if invoice.customer_id != customer_id:
                    raise CustomerMismatchError(
                        "invoice", str(invoice_id), str(invoice.customer_id), str(customer_id)
                    )
                amount = to_decimal(amount)
                if amount <= ZERO:
                    raise InvalidAmountError(amount)
                if method_value not in self._config.allowed_payment_methods:
                    raise InvalidPaymentMethodError(
                        str(method_value), self._config.allowed_payment_methods
                    )

                logger.info("ledger_record_payment_started", extra={
                    "amount": str(amount),
                    "method": method_value,
                })

                payment = self._repo.create_payment(
                    invoice_id=invoice_id,
                    customer_id=customer_id,
                    amount=amount,
                    method=method_value,
                    payment_date=payment_date,
                    actor_id=actor_id,
                    notes=notes,
                )
                self._session.commit()
                logger.info("ledger_record_payment_committed", extra={
                    "payment_id": str(payment.id),
                })
                return payment

            except Exception:
                self._session.rollback()
                raise

    def get_payment(self, payment_id: UUID) -> PaymentRecord:
        payment = self._repo.find_payment(payment_id)
        if payment is None:
            raise PaymentNotFoundError(str(payment_id))
        return payment

    def get_customer_payments(self, customer_id: UUID) -> list[PaymentRecord]:
        """All payments by the customer, newest payment date first."""
        return self._repo.find_payments_by_customer(customer_id)

    def get_invoice_payments(self, invoice_id: UUID) -> list[PaymentRecord]:
        """All payments against the invoice, newest payment date first."""
        return self._repo.find_payments_by_invoice(invoice_id)

    # =========================================================================
    # Short deliveries and credits
    # =========================================================================

    def record_short_delivery(
        self,
        order_id: UUID,
        customer_id: UUID,
        items: Iterable[ShortDeliveryItem],
        actor_id: UUID,
    ) -> list[CreditRecord]:
        """
        Convert a short delivery into account credit.

        Entries for the same product are merged.  The shortfall is valued
        at the unit price snapshotted on the order line(s); when a product
        sits on several lines the shortfall is taken from them in line
        order and one credit is written per line touched.  All credits of
        the request persist together or not at all.

        Raises:
            OrderNotFoundError, CustomerMismatchError, EmptyItemListError,
            InvalidQuantityError, ProductNotOnOrderError,
            ShortfallExceedsOrderedError.
        """
        items = list(items)
        with LogContext.bind(order_id=order_id, customer_id=customer_id, actor_id=actor_id):
            try:
                order = self._repo.find_order(order_id)
                if order is None:
                    raise OrderNotFoundError(str(order_id))
                if order.customer_id != customer_id:
                    raise CustomerMismatchError(
                        "order", str(order_id), str(order.customer_id), str(customer_id)
                    )
                if not items:
                    raise EmptyItemListError(str(order_id))

                drafts = self._price_shortfall(order, self._merge_items(items))

                logger.info("ledger_short_delivery_started", extra={
                    "product_count": len({d.product_id for d in drafts}),
                    "credit_count": len(drafts),
                })

                credits = self._repo.create_credits(drafts, actor_id)
                self._session.commit()
                logger.info("ledger_short_delivery_committed", extra={
                    "credit_ids": [str(c.id) for c in credits],
                    "total": str(sum((c.amount for c in credits), ZERO)),
                })
                return credits

            except Exception:
                self._session.rollback()
                raise

    def get_credit_balance(self, customer_id: UUID) -> Decimal:
        """Σ credits − Σ applications, recomputed on every call."""
        return self._repo.credit_balance(customer_id)

    def get_customer_credits(self, customer_id: UUID) -> list[CreditRecord]:
        """Full credit history, newest first."""
        return self._repo.find_credits_by_customer(customer_id)

    def apply_credit(
        self,
        invoice_id: UUID,
        actor_id: UUID,
        amount: Decimal | int | str | None = None,
    ) -> InvoiceSummary:
        """
        Consume credit balance towards an invoice.

        With no amount, applies min(credit balance, amount due); nothing is
        written when that is zero.  An explicit amount may not exceed
        either the balance or what the invoice still owes.

        Raises:
            InvoiceNotFoundError, InvalidAmountError, InsufficientCreditError,
            CreditExceedsAmountDueError.
        """
        with LogContext.bind(invoice_id=invoice_id, actor_id=actor_id):
            try:
                invoice = self._require_invoice(invoice_id)
                self._lock_customer(invoice.customer_id)
                balance = self._repo.credit_balance(invoice.customer_id)
                due = max(self._summarize(invoice).amount_due, ZERO)

                if amount is None:
                    amount = min(balance, due)
                    if amount <= ZERO:
                        self._session.commit()
                        return self._summarize(invoice)
                else:
                    amount = to_decimal(amount)
                    if amount <= ZERO:
                        raise InvalidAmountError(amount)
                    if amount > balance:
                        raise InsufficientCreditError(
                            str(invoice.customer_id), amount, balance
                        )
                    if amount > due:
                        raise CreditExceedsAmountDueError(str(invoice.id), amount, due)

                self._repo.create_credit_application(
                    invoice.customer_id, invoice.id, amount, actor_id
                )
                self._session.commit()
                logger.info("ledger_credit_applied", extra={
                    "customer_id": str(invoice.customer_id),
                    "amount": str(amount),
                })
                return self._summarize(invoice)

            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Invoices
    # =========================================================================

    def generate_invoice(
        self,
        order_id: UUID,
        actor_id: UUID,
        apply_available_credit: bool | None = None,
    ) -> InvoiceSummary:
        """
        Invoice an order at its snapshotted line prices.

        Due date is the invoice date plus the configured payment terms.
        Available credit (up to the invoice total) is applied in the same
        transaction unless disabled.

        Raises:
            OrderNotFoundError, InvoiceAlreadyExistsError.
        """
        if apply_available_credit is None:
            apply_available_credit = self._config.apply_credit_on_invoice

        with LogContext.bind(order_id=order_id, actor_id=actor_id):
            try:
                order = self._repo.find_order(order_id)
                if order is None:
                    raise OrderNotFoundError(str(order_id))
                existing = self._repo.find_invoice_by_order(order_id)
                if existing is not None:
                    raise InvoiceAlreadyExistsError(str(order_id), str(existing.id))

                total = round_money(sum((line.line_total for line in order.lines), ZERO))
                invoice_date = self._clock.today()
                invoice = self._repo.create_invoice(
                    customer_id=order.customer_id,
                    order_id=order.id,
                    invoice_number=self._invoice_number(order, invoice_date),
                    total=total,
                    invoice_date=invoice_date,
                    due_date=invoice_date + timedelta(days=self._config.payment_terms_days),
                    actor_id=actor_id,
                )

                if apply_available_credit:
                    self._lock_customer(order.customer_id)
                    to_apply = min(self._repo.credit_balance(order.customer_id), total)
                    if to_apply > ZERO:
                        self._repo.create_credit_application(
                            order.customer_id, invoice.id, to_apply, actor_id
                        )

                self._session.commit()
                logger.info("ledger_invoice_generated", extra={
                    "invoice_id": str(invoice.id),
                    "invoice_number": invoice.invoice_number,
                    "total": str(total),
                })
                return self._summarize(invoice)

            except Exception:
                self._session.rollback()
                raise

    def generate_invoices(
        self,
        order_ids: Iterable[UUID],
        actor_id: UUID,
        apply_available_credit: bool | None = None,
    ) -> BulkInvoiceResult:
        """
        Invoice several orders, each in its own transaction.

        A kernel error on one order is recorded and the run continues, so
        one bad order never undoes the invoices already committed.
        Anything that is not a ``DeliveryKernelError`` propagates.
        """
        invoices: list[InvoiceSummary] = []
        failures: list[InvoiceFailure] = []
        for order_id in order_ids:
            try:
                invoices.append(
                    self.generate_invoice(order_id, actor_id, apply_available_credit)
                )
            except DeliveryKernelError as exc:
                failures.append(InvoiceFailure(order_id, exc.code, str(exc)))

        logger.info("ledger_bulk_invoices_generated", extra={
            "success_count": len(invoices),
            "failed_count": len(failures),
        })
        return BulkInvoiceResult(tuple(invoices), tuple(failures))

    def calculate_invoice_stats(
        self, customer_id: UUID, as_of: date | None = None
    ) -> InvoiceStats:
        """Bucket a customer's invoices by derived status."""
        buckets: dict[str, list[Decimal]] = {
            "outstanding": [], "overdue": [], "partial": [], "paid": [],
        }
        total_invoiced = ZERO
        invoices = self._repo.find_invoices_by_customer(customer_id)
        for invoice in invoices:
            summary = self._summarize(invoice, as_of)
            total_invoiced += invoice.total
            if summary.status is InvoiceStatus.PAID:
                buckets["paid"].append(invoice.total)
                continue
            key = "partial" if summary.status is InvoiceStatus.PARTIAL else "outstanding"
            buckets[key].append(summary.amount_due)
            if summary.is_overdue:
                buckets["overdue"].append(summary.amount_due)

        def bucket(amounts: list[Decimal]) -> InvoiceBucket:
            return InvoiceBucket(len(amounts), round_money(sum(amounts, ZERO)))

        average = round_money(total_invoiced / len(invoices)) if invoices else ZERO
        return InvoiceStats(
            outstanding=bucket(buckets["outstanding"]),
            overdue=bucket(buckets["overdue"]),
            partial=bucket(buckets["partial"]),
            paid=bucket(buckets["paid"]),
            total_invoiced=round_money(total_invoiced),
            average_value=average,
        )

    def get_invoice_summary(self, invoice_id: UUID) -> InvoiceSummary:
        """Invoice with paid amount, amount due and status derived from its rows."""
        return self._summarize(self._require_invoice(invoice_id))

    def get_invoice_status(self, invoice_id: UUID) -> InvoiceStatus:
        return self.get_invoice_summary(invoice_id).status

    def get_overdue_invoices(self, as_of: date | None = None) -> list[InvoiceSummary]:
        """Invoices past their due date on ``as_of`` that still have an amount due."""
        as_of = as_of or self._clock.today()
        summaries = [
            self._summarize(invoice, as_of)
            for invoice in self._repo.find_invoices_due_before(as_of)
        ]
        return [s for s in summaries if s.amount_due > ZERO]

    def get_customer_invoices(self, customer_id: UUID) -> list[InvoiceSummary]:
        return [
            self._summarize(invoice)
            for invoice in self._repo.find_invoices_by_customer(customer_id)
        ]

    def get_invoice_credit_applications(
        self, invoice_id: UUID
    ) -> list[CreditApplicationRecord]:
        return self._repo.find_applications_by_invoice(invoice_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_invoice(self, invoice_id: UUID) -> InvoiceRecord:
        invoice = self._repo.find_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(str(invoice_id))
        return invoice

    def _summarize(self, invoice: InvoiceRecord, as_of: date | None = None) -> InvoiceSummary:
        as_of = as_of or self._clock.today()
        payments_total = self._repo.payments_total_for_invoice(invoice.id)
        credit_applied = self._repo.applied_total_for_invoice(invoice.id)
        paid = payments_total + credit_applied
        return InvoiceSummary(
            invoice=invoice,
            payments_total=payments_total,
            credit_applied=credit_applied,
            status=InvoiceStatus.derive(invoice.total, paid),
            is_overdue=invoice.due_date < as_of and paid < invoice.total,
        )

    def _lock_customer(self, customer_id: UUID) -> None:
        """Serialize balance-consuming writes per customer (no-op on SQLite)."""
        self._session.execute(
            select(CustomerModel.id)
            .where(CustomerModel.id == customer_id)
            .with_for_update()
        )

    def _invoice_number(self, order: OrderSnapshot, invoice_date: date) -> str:
        return (
            f"{self._config.invoice_number_prefix}-{invoice_date:%Y%m%d}-"
            f"{order.id.hex[:8].upper()}"
        )

    @staticmethod
    def _merge_items(items: list[ShortDeliveryItem]) -> OrderedDict[UUID, Decimal]:
        merged: OrderedDict[UUID, Decimal] = OrderedDict()
        for item in items:
            quantity = to_decimal(item.quantity_short)
            if quantity <= ZERO:
                raise InvalidQuantityError(str(item.product_id), quantity)
            merged[item.product_id] = merged.get(item.product_id, ZERO) + quantity
        return merged

    def _price_shortfall(
        self, order: OrderSnapshot, shortfalls: OrderedDict[UUID, Decimal]
    ) -> list[CreditDraft]:
        drafts: list[CreditDraft] = []
        for product_id, quantity_short in shortfalls.items():
            lines = order.lines_for_product(product_id)
            if not lines:
                raise ProductNotOnOrderError(str(order.id), str(product_id))
            ordered = sum((line.quantity for line in lines), ZERO)
            if quantity_short > ordered:
                raise ShortfallExceedsOrderedError(
                    str(order.id), str(product_id), quantity_short, ordered
                )

            remaining = quantity_short
            for line in lines:
                if remaining <= ZERO:
                    break
                taken = min(remaining, line.quantity)
                remaining -= taken
                amount = taken * line.unit_price
                drafts.append(CreditDraft(
                    customer_id=order.customer_id,
                    order_id=order.id,
                    product_id=product_id,
                    quantity_short=taken,
                    unit_price=line.unit_price,
                    amount=amount,
                    reason=(
                        f"Short delivery on order {order.id}: {line.product_name} "
                        f"{format_quantity(taken)} x {format_money(line.unit_price, self._config.currency_symbol)}"
                    ),
                ))
        return drafts
