"""
Module: delivery_kernel.models.invoice
Responsibility: ORM persistence for customer invoices.
Architecture position: Kernel > Models.

Invariants enforced:
    - No stored status, paid amount or balance.  Status is derived on every
      read from payment rows and credit applications, so it can never drift
      from the rows it summarises.
    - One invoice per order (uq_invoices_order_id).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from delivery_kernel.db.base import TrackedBase


class InvoiceModel(TrackedBase):
    """A customer invoice for one delivered order."""

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        UniqueConstraint("order_id", name="uq_invoices_order_id"),
        Index("idx_invoices_customer_id", "customer_id"),
        Index("idx_invoices_due_date", "due_date"),
    )

    customer_id: Mapped[UUID] = mapped_column(
        ForeignKey("customers.id"), nullable=False
    )

    order_id: Mapped[UUID] = mapped_column(ForeignKey("orders.id"), nullable=False)

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)

    # Total amount due before payments and applied credit
    total: Mapped[Decimal] = mapped_column(nullable=False)

    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)

    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"<InvoiceModel {self.invoice_number}: {self.total}>"
