"""
Ledger ORM Models (``delivery_modules.ledger.orm``).

Responsibility
--------------
SQLAlchemy persistence for payments, short-delivery credits and credit
applications.  Maps rows to the frozen dataclasses in ``models.py``.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``delivery_kernel.db``
and sibling ``models.py``.  MUST NOT be imported by ``delivery_kernel``.

Invariants enforced
-------------------
* Every model here is append-only (``AppendOnlyMixin``); UPDATE and DELETE
  are rejected at flush time.
* Balances are never stored.  They are sums over these rows.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from delivery_kernel.db.base import TrackedBase
from delivery_kernel.db.immutability import AppendOnlyMixin
from delivery_kernel.db.types import QuantityType


# ---------------------------------------------------------------------------
# 1. PaymentModel
# ---------------------------------------------------------------------------


class PaymentModel(AppendOnlyMixin, TrackedBase):
    """
    ORM model for payments against an invoice.

    Guarantees:
        - amount > 0 (validated by LedgerService before insert).
        - method is one of PaymentMethod values.
    """

    __tablename__ = "payments"

    __table_args__ = (
        Index("idx_payments_invoice_id", "invoice_id"),
        Index("idx_payments_customer_id", "customer_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(ForeignKey("invoices.id"), nullable=False)
    customer_id: Mapped[UUID] = mapped_column(ForeignKey("customers.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from delivery_modules.ledger.models import PaymentRecord

        return PaymentRecord(
            id=self.id,
            invoice_id=self.invoice_id,
            customer_id=self.customer_id,
            amount=self.amount,
            method=self.method,
            payment_date=self.payment_date,
            created_at=self.created_at,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<PaymentModel {self.id}: {self.amount} {self.method}>"


# ---------------------------------------------------------------------------
# 2. CreditModel
# ---------------------------------------------------------------------------


class CreditModel(AppendOnlyMixin, TrackedBase):
    """
    ORM model for short-delivery credits.

    Guarantees:
        - amount == quantity_short * unit_price, where unit_price is the
          price snapshotted on the order line.
        - One row per (request, product).
    """

    __tablename__ = "credits"

    __table_args__ = (
        Index("idx_credits_customer_id", "customer_id"),
        Index("idx_credits_order_id", "order_id"),
    )

    customer_id: Mapped[UUID] = mapped_column(ForeignKey("customers.id"), nullable=False)
    order_id: Mapped[UUID] = mapped_column(ForeignKey("orders.id"), nullable=False)
    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity_short: Mapped[Decimal] = mapped_column(QuantityType, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from delivery_modules.ledger.models import CreditRecord

        return CreditRecord(
            id=self.id,
            customer_id=self.customer_id,
            order_id=self.order_id,
            product_id=self.product_id,
            quantity_short=self.quantity_short,
            unit_price=self.unit_price,
            amount=self.amount,
            created_at=self.created_at,
            reason=self.reason,
        )

    def __repr__(self) -> str:
        return f"<CreditModel {self.id}: {self.quantity_short} x {self.unit_price}>"


# ---------------------------------------------------------------------------
# 3. CreditApplicationModel
# ---------------------------------------------------------------------------


class CreditApplicationModel(AppendOnlyMixin, TrackedBase):
    """
    ORM model for credit consumed towards an invoice.

    Guarantees:
        - amount > 0.
        - Σ applications for a customer never exceeds Σ credits.
    """

    __tablename__ = "credit_applications"

    __table_args__ = (
        Index("idx_credit_applications_customer_id", "customer_id"),
        Index("idx_credit_applications_invoice_id", "invoice_id"),
    )

    customer_id: Mapped[UUID] = mapped_column(ForeignKey("customers.id"), nullable=False)
    invoice_id: Mapped[UUID] = mapped_column(ForeignKey("invoices.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from delivery_modules.ledger.models import CreditApplicationRecord

        return CreditApplicationRecord(
            id=self.id,
            customer_id=self.customer_id,
            invoice_id=self.invoice_id,
            amount=self.amount,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"<CreditApplicationModel {self.id}: {self.amount} -> {self.invoice_id}>"
