"""
Packing List Builder - turns orders into pick sheets.

Read-only: the builder never writes and never commits.  Each call reads
the orders it needs through OrderRepository and hands them to the pure
functions in ``aggregation``.

Usage:
    builder = PackingListBuilder(session)
    batch = builder.build_batch(date(2024, 6, 4), sort_by="route")
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from delivery_kernel.domain.context import RequestContext
from delivery_kernel.exceptions import InvalidDeliveryDateError, OrderNotFoundError
from delivery_kernel.logging_config import get_logger
from delivery_modules.packing.aggregation import sheet_from_order, sort_sheets
from delivery_modules.packing.config import PackingConfig
from delivery_modules.packing.models import PackingBatch, PackingSheet, SortBy
from delivery_modules.repository import OrderRepository

logger = get_logger("modules.packing.service")


def parse_delivery_date(value: date | datetime | str) -> date:
    """
    Accept a date, a datetime (its calendar day) or an ISO ``YYYY-MM-DD`` string.

    Raises:
        InvalidDeliveryDateError: the string is not an ISO date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidDeliveryDateError(str(value)) from None


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Naive half-open interval [day 00:00, day+1 00:00)."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class PackingListBuilder:
    """
    Builds packing sheets and batches.

    Stateless between calls; construct one per request.
    """

    def __init__(
        self,
        session: Session,
        context: RequestContext | None = None,
        config: PackingConfig | None = None,
        repository: OrderRepository | None = None,
    ):
        self._config = config or PackingConfig()
        self._repo = repository or OrderRepository(session, context)

    def build_sheet(self, order_id: UUID) -> PackingSheet:
        """
        Pick sheet for one order.  An order with no lines gives an empty sheet.

        Raises:
            OrderNotFoundError: order_id does not resolve.
        """
        order = self._repo.find_order(order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        sheet = sheet_from_order(order)
        logger.debug("packing_sheet_built", extra={
            "order_id": str(order_id),
            "row_count": len(sheet.rows),
        })
        return sheet

    def build_batch(
        self,
        delivery_date: date | datetime | str,
        sort_by: SortBy | str | None = None,
    ) -> PackingBatch:
        """
        One sheet per order delivered on ``delivery_date``, sorted.

        Raises:
            InvalidSortKeyError: sort_by is not "name" or "route".
            InvalidDeliveryDateError: delivery_date string cannot be parsed.
        """
        key = SortBy.parse(sort_by if sort_by is not None else self._config.default_sort_by)
        day = parse_delivery_date(delivery_date)
        start, end = day_bounds(day)

        orders = self._repo.find_orders_by_delivery_date(start, end)
        sheets = sort_sheets([sheet_from_order(order) for order in orders], key)

        logger.info("packing_batch_built", extra={
            "delivery_date": day.isoformat(),
            "sort_by": key.value,
            "sheet_count": len(sheets),
        })
        return PackingBatch(sheets=sheets, delivery_date=day, sort_by=key)

    def build_sheets(
        self,
        order_ids: Sequence[UUID],
        sort_by: SortBy | str | None = None,
    ) -> PackingBatch:
        """
        Batch for hand-picked orders.

        Caller order is kept unless ``sort_by`` is given.  Repeated ids
        yield one sheet.

        Raises:
            OrderNotFoundError: any id does not resolve.
            InvalidSortKeyError: sort_by is given and not supported.
        """
        key = SortBy.parse(sort_by) if sort_by is not None else None
        sheets = [self.build_sheet(order_id) for order_id in dict.fromkeys(order_ids)]
        ordered = sort_sheets(sheets, key) if key is not None else tuple(sheets)
        return PackingBatch(sheets=ordered, sort_by=key)
