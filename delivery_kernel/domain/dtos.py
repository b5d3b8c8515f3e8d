"""
Data Transfer Objects returned by kernel selectors.

Frozen dataclasses detached from the SQLAlchemy session, so callers
(builder, ledger, renderer) can never mutate repository state through
them and can safely hand them to another thread.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class OrderLine:
    """One order line with its snapshotted unit price."""

    line_number: int
    product_id: UUID
    product_name: str
    quantity: Decimal
    unit: str
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class OrderSnapshot:
    """An order as read at one instant, with its customer details inlined."""

    id: UUID
    customer_id: UUID
    customer_name: str
    delivery_date: datetime
    status: str
    delivery_method: str
    lines: tuple[OrderLine, ...] = field(default_factory=tuple)
    customer_address: str | None = None
    route_code: str | None = None
    delivery_address: str | None = None
    special_instructions: str | None = None
    driver_id: UUID | None = None
    delivery_proof_url: str | None = None
    driver_notes: str | None = None

    @property
    def address(self) -> str | None:
        """Where this order goes: the per-order override, else the customer's address."""
        return self.delivery_address or self.customer_address

    def lines_for_product(self, product_id: UUID) -> tuple[OrderLine, ...]:
        return tuple(line for line in self.lines if line.product_id == product_id)


@dataclass(frozen=True)
class InvoiceRecord:
    """A persisted invoice.  Status and balances are derived elsewhere."""

    id: UUID
    customer_id: UUID
    order_id: UUID
    invoice_number: str
    total: Decimal
    invoice_date: date
    due_date: date


@dataclass(frozen=True)
class CustomerRecord:
    """Contact details of a customer."""

    id: UUID
    name: str
    address: str | None = None
    route_code: str | None = None
    phone: str | None = None
    email: str | None = None
