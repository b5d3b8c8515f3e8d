"""
Module: delivery_kernel.models.product
Responsibility: ORM persistence for catalog products.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - price is the CURRENT catalog price.  It is never used to value an
      existing order, invoice or credit; those use the unit price snapshotted
      on the order line.
"""

from decimal import Decimal

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from delivery_kernel.db.base import TrackedBase


class ProductModel(TrackedBase):
    """A product in the catalog (vegetables, bread, eggs, ...)."""

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Selling unit: kg, bunch, each, dozen ...
    unit: Mapped[str] = mapped_column(String(50), nullable=False)

    price: Mapped[Decimal] = mapped_column(nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<ProductModel {self.name} ({self.unit})>"
