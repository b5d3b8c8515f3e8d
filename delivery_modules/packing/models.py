"""
Packing Domain Models (``delivery_modules.packing.models``).

Responsibility
--------------
Frozen dataclass value objects for pick sheets: one ``PackingSheet`` per
order, grouped into a ``PackingBatch`` for a delivery date.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Derived from
``OrderSnapshot`` on every request; never persisted.

Invariants enforced
-------------------
* Sheet rows hold one row per product; quantities are Decimal.
* A batch is an ordered tuple; its order is decided once by the builder.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from delivery_kernel.exceptions import InvalidSortKeyError


class SortBy(str, Enum):
    """How sheets in a batch are ordered."""
    NAME = "name"
    ROUTE = "route"

    @classmethod
    def parse(cls, value: "SortBy | str") -> "SortBy":
        """Accept an enum member or its string value; anything else is rejected."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidSortKeyError(str(value), tuple(m.value for m in cls)) from None


@dataclass(frozen=True)
class PackingRow:
    """One product to pick."""
    product_id: UUID
    product_name: str
    quantity: Decimal
    unit: str


@dataclass(frozen=True)
class PackingSheet:
    """The pick list for one order."""
    order_id: UUID
    customer_id: UUID
    customer_name: str
    delivery_date: datetime
    delivery_method: str
    route_key: str
    rows: tuple[PackingRow, ...] = field(default_factory=tuple)
    address: str | None = None
    special_instructions: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def quantities_by_product(self) -> dict[UUID, Decimal]:
        return {row.product_id: row.quantity for row in self.rows}


@dataclass(frozen=True)
class PackingBatch:
    """
    Sheets for a set of orders, in print order.

    ``delivery_date`` is None for hand-picked batches built from order ids.
    """
    sheets: tuple[PackingSheet, ...] = field(default_factory=tuple)
    delivery_date: date | None = None
    sort_by: SortBy | None = None

    def __len__(self) -> int:
        return len(self.sheets)

    def __iter__(self):
        return iter(self.sheets)

    @property
    def is_empty(self) -> bool:
        return not self.sheets
