"""
Module: delivery_kernel.models.order
Responsibility: ORM persistence for customer orders and their line items.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models only.

Invariants enforced:
    - OrderItemModel.unit_price is a snapshot taken at checkout.  Historical
      packing lists, invoices and credits stay stable when catalog prices
      change.
    - delivery_date is a naive datetime; a delivery day is the half-open
      interval [date 00:00, date+1 00:00).

Failure modes:
    - IntegrityError if an item references a missing order or product.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from delivery_kernel.db.base import TrackedBase
from delivery_kernel.db.types import QuantityType
from delivery_kernel.models.customer import CustomerModel
from delivery_kernel.models.product import ProductModel


class OrderStatus(str, Enum):
    """Delivery lifecycle of an order."""

    PENDING = "pending"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED = "failed"


class DeliveryMethod(str, Enum):
    """How the order reaches the customer."""

    DELIVERY = "delivery"
    COLLECTION = "collection"


class OrderModel(TrackedBase):
    """
    A customer order for one delivery date.

    Guarantees:
        - items are loaded in line_number order.
        - status is one of OrderStatus values.
    """

    __tablename__ = "orders"

    __table_args__ = (
        Index("idx_orders_delivery_date", "delivery_date"),
        Index("idx_orders_customer_id", "customer_id"),
    )

    customer_id: Mapped[UUID] = mapped_column(
        ForeignKey("customers.id"), nullable=False
    )

    delivery_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=OrderStatus.PENDING.value
    )

    delivery_method: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DeliveryMethod.DELIVERY.value
    )

    # Overrides the customer's address for this order only
    delivery_address: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    special_instructions: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    driver_id: Mapped[UUID | None] = mapped_column(nullable=True)

    delivery_proof_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    driver_notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    customer: Mapped[CustomerModel] = relationship(lazy="joined")

    items: Mapped[list["OrderItemModel"]] = relationship(
        back_populates="order",
        order_by="OrderItemModel.line_number",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<OrderModel {self.id} {self.delivery_date:%Y-%m-%d} [{self.status}]>"


class OrderItemModel(TrackedBase):
    """
    One line on an order.

    The same product may legitimately appear on two lines (added twice at
    checkout); consumers must aggregate by product, never assume uniqueness.
    """

    __tablename__ = "order_items"

    __table_args__ = (
        Index("idx_order_items_order_id", "order_id"),
        Index("idx_order_items_product_id", "product_id"),
    )

    order_id: Mapped[UUID] = mapped_column(ForeignKey("orders.id"), nullable=False)

    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"), nullable=False)

    line_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False)

    unit: Mapped[str] = mapped_column(String(50), nullable=False)

    # Snapshot of the catalog price at checkout
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)

    order: Mapped[OrderModel] = relationship(back_populates="items")

    product: Mapped[ProductModel] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<OrderItemModel {self.product_id} x {self.quantity} @ {self.unit_price}>"
