"""
Ledger Selectors (``delivery_modules.ledger.selectors``).

Read-only queries over payments, credits and credit applications.
Results are returned as frozen DTOs, newest first.  Totals are summed in
Python over the full row set on every call; nothing is cached.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from delivery_kernel.db.types import ZERO
from delivery_kernel.selectors.base import BaseSelector
from delivery_modules.ledger.models import (
    CreditApplicationRecord,
    CreditRecord,
    PaymentRecord,
)
from delivery_modules.ledger.orm import (
    CreditApplicationModel,
    CreditModel,
    PaymentModel,
)


def _total(amounts) -> Decimal:
    return sum(amounts, ZERO)


class LedgerSelector(BaseSelector):
    """Queries over ledger rows."""

    def _payments_newest_first(self):
        return select(PaymentModel).order_by(
            PaymentModel.payment_date.desc(),
            PaymentModel.created_at.desc(),
            PaymentModel.id,
        )

    def find_payment(self, payment_id: UUID) -> PaymentRecord | None:
        self._guard("find_payment")
        payment = self.session.get(PaymentModel, payment_id)
        return payment.to_dto() if payment is not None else None

    def find_payments_by_invoice(self, invoice_id: UUID) -> list[PaymentRecord]:
        self._guard("find_payments_by_invoice")
        rows = self.session.execute(
            self._payments_newest_first().where(PaymentModel.invoice_id == invoice_id)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def find_payments_by_customer(self, customer_id: UUID) -> list[PaymentRecord]:
        self._guard("find_payments_by_customer")
        rows = self.session.execute(
            self._payments_newest_first().where(PaymentModel.customer_id == customer_id)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def find_credits_by_customer(self, customer_id: UUID) -> list[CreditRecord]:
        self._guard("find_credits_by_customer")
        rows = self.session.execute(
            select(CreditModel)
            .where(CreditModel.customer_id == customer_id)
            .order_by(CreditModel.created_at.desc(), CreditModel.id)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def find_applications_by_invoice(self, invoice_id: UUID) -> list[CreditApplicationRecord]:
        self._guard("find_applications_by_invoice")
        rows = self.session.execute(
            select(CreditApplicationModel)
            .where(CreditApplicationModel.invoice_id == invoice_id)
            .order_by(CreditApplicationModel.created_at.desc(), CreditApplicationModel.id)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def payments_total_for_invoice(self, invoice_id: UUID) -> Decimal:
        self._guard("payments_total_for_invoice")
        amounts = self.session.execute(
            select(PaymentModel.amount).where(PaymentModel.invoice_id == invoice_id)
        ).scalars().all()
        return _total(amounts)

    def applied_total_for_invoice(self, invoice_id: UUID) -> Decimal:
        self._guard("applied_total_for_invoice")
        amounts = self.session.execute(
            select(CreditApplicationModel.amount).where(
                CreditApplicationModel.invoice_id == invoice_id
            )
        ).scalars().all()
        return _total(amounts)

    def credit_balance(self, customer_id: UUID) -> Decimal:
        """Σ credits − Σ applications for the customer, never below zero."""
        self._guard("credit_balance")
        credited = self.session.execute(
            select(CreditModel.amount).where(CreditModel.customer_id == customer_id)
        ).scalars().all()
        applied = self.session.execute(
            select(CreditApplicationModel.amount).where(
                CreditApplicationModel.customer_id == customer_id
            )
        ).scalars().all()
        return max(ZERO, _total(credited) - _total(applied))
