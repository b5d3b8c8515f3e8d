"""
Ledger Domain Models (``delivery_modules.ledger.models``).

Responsibility
--------------
Frozen dataclass value objects for the credit & payment ledger: payments,
short-delivery credits, credit applications and derived invoice
summaries.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Returned by
``LedgerService`` and ``LedgerSelector``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Invoice status is derived from amounts, never stored.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from delivery_kernel.db.types import ZERO
from delivery_kernel.domain.dtos import InvoiceRecord


class PaymentMethod(str, Enum):
    """Accepted ways of paying an invoice."""
    CASH = "cash"
    YOCO = "yoco"
    EFT = "eft"


class InvoiceStatus(str, Enum):
    """Derived invoice payment state."""
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"

    @classmethod
    def derive(cls, total: Decimal, paid: Decimal) -> "InvoiceStatus":
        """unpaid when nothing is paid, paid once paid >= total, partial in between."""
        if paid >= total:
            return cls.PAID
        if paid <= ZERO:
            return cls.UNPAID
        return cls.PARTIAL


@dataclass(frozen=True)
class PaymentRecord:
    """One immutable payment against an invoice."""
    id: UUID
    invoice_id: UUID
    customer_id: UUID
    amount: Decimal
    method: str
    payment_date: date
    created_at: datetime
    notes: str | None = None


@dataclass(frozen=True)
class CreditRecord:
    """Account credit for a product that was ordered but not delivered."""
    id: UUID
    customer_id: UUID
    order_id: UUID
    product_id: UUID
    quantity_short: Decimal
    unit_price: Decimal  # snapshotted order price, never the catalog price
    amount: Decimal
    created_at: datetime
    reason: str | None = None


@dataclass(frozen=True)
class CreditApplicationRecord:
    """Credit balance consumed towards an invoice."""
    id: UUID
    customer_id: UUID
    invoice_id: UUID
    amount: Decimal
    created_at: datetime


@dataclass(frozen=True)
class ShortDeliveryItem:
    """One entry of a short-delivery request."""
    product_id: UUID
    quantity_short: Decimal


@dataclass(frozen=True)
class CreditDraft:
    """A validated, priced credit waiting to be written."""
    customer_id: UUID
    order_id: UUID
    product_id: UUID
    quantity_short: Decimal
    unit_price: Decimal
    amount: Decimal
    reason: str | None = None


@dataclass(frozen=True)
class InvoiceSummary:
    """
    An invoice with its amounts derived from payment and credit rows.

    ``amount_due`` may be negative when the customer overpaid.
    """
    invoice: InvoiceRecord
    payments_total: Decimal
    credit_applied: Decimal
    status: InvoiceStatus
    is_overdue: bool

    @property
    def amount_paid(self) -> Decimal:
        return self.payments_total + self.credit_applied

    @property
    def amount_due(self) -> Decimal:
        return self.invoice.total - self.amount_paid


@dataclass(frozen=True)
class InvoiceFailure:
    """An order that could not be invoiced in a bulk run."""
    order_id: UUID
    code: str
    message: str


@dataclass(frozen=True)
class BulkInvoiceResult:
    """Outcome of invoicing several orders, one transaction per order."""
    invoices: tuple[InvoiceSummary, ...]
    failures: tuple[InvoiceFailure, ...]

    @property
    def success_count(self) -> int:
        return len(self.invoices)

    @property
    def failed_count(self) -> int:
        return len(self.failures)


@dataclass(frozen=True)
class InvoiceBucket:
    count: int = 0
    amount: Decimal = ZERO


@dataclass(frozen=True)
class InvoiceStats:
    """
    Invoice counts and amounts for one customer.

    ``paid`` carries invoice totals; the other buckets carry what is still
    owed.  ``overdue`` counts unpaid and partial invoices past their due
    date, so it overlaps both.
    """
    outstanding: InvoiceBucket
    overdue: InvoiceBucket
    partial: InvoiceBucket
    paid: InvoiceBucket
    total_invoiced: Decimal
    average_value: Decimal
