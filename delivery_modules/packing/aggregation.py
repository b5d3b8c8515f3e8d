"""
Packing aggregation -- pure functions from order snapshots to sheets.

Responsibility:
    Group order lines by product, sum duplicate-product quantities, order
    rows by a stable collation and order sheets within a batch.

Architecture position:
    Modules > Packing -- pure, zero I/O.  Called by PackingListBuilder.

Invariants enforced:
    - For every product the sheet quantity equals the sum of the order's
      line quantities; no line is dropped or counted twice.
    - Row and sheet ordering are strict total orders that do not depend on
      input order or on the process locale, so regenerating a sheet or a
      batch gives identical output.
"""

import unicodedata
from decimal import Decimal
from typing import Iterable, Sequence

from delivery_kernel.db.types import ZERO
from delivery_kernel.domain.dtos import OrderLine, OrderSnapshot
from delivery_modules.packing.models import PackingRow, PackingSheet, SortBy


def collation_key(text: str | None) -> str:
    """Case-insensitive, accent-stable key: NFKD-normalised and casefolded."""
    return unicodedata.normalize("NFKD", text or "").casefold()


def aggregate_rows(lines: Iterable[OrderLine]) -> tuple[PackingRow, ...]:
    """
    One row per product with summed quantity.

    Name and unit come from the first line for the product.  Rows are
    sorted by (collated name, name, product id).
    """
    totals: dict = {}
    firsts: dict = {}
    for line in lines:
        if line.product_id not in firsts:
            firsts[line.product_id] = line
            totals[line.product_id] = ZERO
        totals[line.product_id] += line.quantity

    rows = [
        PackingRow(
            product_id=product_id,
            product_name=firsts[product_id].product_name,
            quantity=quantity,
            unit=firsts[product_id].unit,
        )
        for product_id, quantity in totals.items()
    ]
    rows.sort(key=lambda r: (collation_key(r.product_name), r.product_name, r.product_id))
    return tuple(rows)


def route_key(order: OrderSnapshot) -> str:
    """Route grouping key: the customer's route code, else the delivery address."""
    return order.route_code or order.address or ""


def sheet_from_order(order: OrderSnapshot) -> PackingSheet:
    return PackingSheet(
        order_id=order.id,
        customer_id=order.customer_id,
        customer_name=order.customer_name,
        delivery_date=order.delivery_date,
        delivery_method=order.delivery_method,
        route_key=route_key(order),
        rows=aggregate_rows(order.lines),
        address=order.address,
        special_instructions=order.special_instructions,
    )


def _name_key(sheet: PackingSheet) -> tuple:
    return (
        collation_key(sheet.customer_name),
        sheet.customer_name,
        sheet.customer_id,
        sheet.order_id,
    )


def sheet_sort_key(sheet: PackingSheet, sort_by: SortBy) -> tuple:
    """Total-order key; sheets without a route key go after every route."""
    if sort_by is SortBy.NAME:
        return _name_key(sheet)
    return (
        sheet.route_key == "",
        collation_key(sheet.route_key),
        sheet.route_key,
    ) + _name_key(sheet)


def sort_sheets(sheets: Sequence[PackingSheet], sort_by: SortBy) -> tuple[PackingSheet, ...]:
    return tuple(sorted(sheets, key=lambda s: sheet_sort_key(s, sort_by)))


def total_quantity(sheet: PackingSheet) -> Decimal:
    return sum((row.quantity for row in sheet.rows), ZERO)
