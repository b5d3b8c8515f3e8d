"""
Module: delivery_kernel.models.customer
Responsibility: ORM persistence for customers the business delivers to.
    Customer rows are owned by the checkout / account layer; the kernel
    only reads them to label packing sheets and to check invoice ownership.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - name is required: every packing sheet is labelled with it.
    - route_code is optional; when absent the delivery address is used as
      the route grouping key.
"""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from delivery_kernel.db.base import TrackedBase


class CustomerModel(TrackedBase):
    """
    A customer who places delivery orders.

    Guarantees:
        - name is non-null.
        - route_code, when set, groups customers served on the same run.
    """

    __tablename__ = "customers"

    __table_args__ = (
        Index("idx_customers_route_code", "route_code"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    address: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Delivery run / area code, e.g. "NORTH-1"
    route_code: Mapped[str | None] = mapped_column(String(50), nullable=True)

    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<CustomerModel {self.id}: {self.name}>"
