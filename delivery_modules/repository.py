"""
OrderRepository (``delivery_modules.repository``).

Responsibility
--------------
The narrow query and write interface the packing builder and the ledger
depend on.  Composes the kernel ``OrderSelector`` with the ledger
selector and writer so callers (and test doubles) see one object.

Architecture position
---------------------
**Modules layer** -- composition only.  Holds no state beyond the session
and request context it was built with; construct one per request.

Contract
--------
* Not-found is returned as ``None`` / empty list, never raised.
* ``create_*`` methods flush inside the caller's transaction.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from delivery_kernel.domain.clock import Clock
from delivery_kernel.domain.context import RequestContext
from delivery_kernel.domain.dtos import CustomerRecord, InvoiceRecord, OrderSnapshot
from delivery_kernel.selectors.order_selector import OrderSelector
from delivery_modules.ledger.models import (
    CreditApplicationRecord,
    CreditDraft,
    CreditRecord,
    PaymentRecord,
)
from delivery_modules.ledger.selectors import LedgerSelector
from delivery_modules.ledger.writer import LedgerWriter


class OrderRepository:
    """Facade over order, invoice and ledger persistence for one session."""

    def __init__(
        self,
        session: Session,
        context: RequestContext | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self._orders = OrderSelector(session, context)
        self._ledger = LedgerSelector(session, context)
        self._writer = LedgerWriter(session, context, clock)

    # Orders and invoices

    def find_customer(self, customer_id: UUID) -> CustomerRecord | None:
        return self._orders.find_customer(customer_id)

    def find_order(self, order_id: UUID) -> OrderSnapshot | None:
        return self._orders.find_order(order_id)

    def find_orders_by_delivery_date(
        self, day_start: datetime, day_end: datetime
    ) -> list[OrderSnapshot]:
        return self._orders.find_orders_by_delivery_date(day_start, day_end)

    def find_invoice(self, invoice_id: UUID) -> InvoiceRecord | None:
        return self._orders.find_invoice(invoice_id)

    def find_invoice_by_order(self, order_id: UUID) -> InvoiceRecord | None:
        return self._orders.find_invoice_by_order(order_id)

    def find_invoices_due_before(self, as_of: date) -> list[InvoiceRecord]:
        return self._orders.find_invoices_due_before(as_of)

    def find_invoices_by_customer(self, customer_id: UUID) -> list[InvoiceRecord]:
        return self._orders.find_invoices_by_customer(customer_id)

    # Ledger reads

    def find_payment(self, payment_id: UUID) -> PaymentRecord | None:
        return self._ledger.find_payment(payment_id)

    def find_payments_by_invoice(self, invoice_id: UUID) -> list[PaymentRecord]:
        return self._ledger.find_payments_by_invoice(invoice_id)

    def find_payments_by_customer(self, customer_id: UUID) -> list[PaymentRecord]:
        return self._ledger.find_payments_by_customer(customer_id)

    def find_credits_by_customer(self, customer_id: UUID) -> list[CreditRecord]:
        return self._ledger.find_credits_by_customer(customer_id)

    def find_applications_by_invoice(
        self, invoice_id: UUID
    ) -> list[CreditApplicationRecord]:
        return self._ledger.find_applications_by_invoice(invoice_id)

    def payments_total_for_invoice(self, invoice_id: UUID) -> Decimal:
        return self._ledger.payments_total_for_invoice(invoice_id)

    def applied_total_for_invoice(self, invoice_id: UUID) -> Decimal:
        return self._ledger.applied_total_for_invoice(invoice_id)

    def credit_balance(self, customer_id: UUID) -> Decimal:
        return self._ledger.credit_balance(customer_id)

    # Ledger writes

    def create_payment(
        self,
        invoice_id: UUID,
        customer_id: UUID,
        amount: Decimal,
        method: str,
        payment_date: date,
        actor_id: UUID,
        notes: str | None = None,
    ) -> PaymentRecord:
        return self._writer.create_payment(
            invoice_id=invoice_id,
            customer_id=customer_id,
            amount=amount,
            method=method,
            payment_date=payment_date,
            actor_id=actor_id,
            notes=notes,
        )

    def create_credits(
        self, drafts: Sequence[CreditDraft], actor_id: UUID
    ) -> list[CreditRecord]:
        return self._writer.create_credits(drafts, actor_id)

    def create_credit_application(
        self, customer_id: UUID, invoice_id: UUID, amount: Decimal, actor_id: UUID
    ) -> CreditApplicationRecord:
        return self._writer.create_credit_application(
            customer_id, invoice_id, amount, actor_id
        )

    def create_invoice(
        self,
        customer_id: UUID,
        order_id: UUID,
        invoice_number: str,
        total: Decimal,
        invoice_date: date,
        due_date: date,
        actor_id: UUID,
    ) -> InvoiceRecord:
        return self._writer.create_invoice(
            customer_id=customer_id,
            order_id=order_id,
            invoice_number=invoice_number,
            total=total,
            invoice_date=invoice_date,
            due_date=due_date,
            actor_id=actor_id,
        )
