"""
Module: delivery_kernel.selectors.order_selector
Responsibility: Read access to orders and invoices for the packing-list
    builder and the ledger.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Returns OrderSnapshot / InvoiceRecord DTOs; ORM rows never escape.
    - Delivery-date lookups use the half-open interval [day_start, day_end)
      on naive datetimes, so an order at exactly midnight belongs to the
      day that starts at that midnight.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import joinedload, selectinload

from delivery_kernel.domain.dtos import (
    CustomerRecord,
    InvoiceRecord,
    OrderLine,
    OrderSnapshot,
)
from delivery_kernel.logging_config import get_logger
from delivery_kernel.models.customer import CustomerModel
from delivery_kernel.models.invoice import InvoiceModel
from delivery_kernel.models.order import OrderItemModel, OrderModel
from delivery_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.order")


def order_to_snapshot(order: OrderModel) -> OrderSnapshot:
    """Detach an OrderModel (with customer and items loaded) into a DTO."""
    lines = tuple(
        OrderLine(
            line_number=item.line_number,
            product_id=item.product_id,
            product_name=item.product.name,
            quantity=item.quantity,
            unit=item.unit,
            unit_price=item.unit_price,
        )
        for item in order.items
    )
    customer = order.customer
    return OrderSnapshot(
        id=order.id,
        customer_id=order.customer_id,
        customer_name=customer.name,
        customer_address=customer.address,
        route_code=customer.route_code,
        delivery_date=order.delivery_date,
        status=order.status,
        delivery_method=order.delivery_method,
        delivery_address=order.delivery_address,
        special_instructions=order.special_instructions,
        driver_id=order.driver_id,
        delivery_proof_url=order.delivery_proof_url,
        driver_notes=order.driver_notes,
        lines=lines,
    )


def invoice_to_record(invoice: InvoiceModel) -> InvoiceRecord:
    return InvoiceRecord(
        id=invoice.id,
        customer_id=invoice.customer_id,
        order_id=invoice.order_id,
        invoice_number=invoice.invoice_number,
        total=invoice.total,
        invoice_date=invoice.invoice_date,
        due_date=invoice.due_date,
    )


class OrderSelector(BaseSelector):
    """Queries over orders and invoices."""

    def _order_query(self):
        return select(OrderModel).options(
            joinedload(OrderModel.customer),
            selectinload(OrderModel.items).joinedload(OrderItemModel.product),
        )

    def find_order(self, order_id: UUID) -> OrderSnapshot | None:
        """Return the order, or None if the id does not resolve."""
        self._guard("find_order")
        order = self.session.execute(
            self._order_query().where(OrderModel.id == order_id)
        ).unique().scalar_one_or_none()
        if order is None:
            logger.debug("order_not_found", extra={"order_id": str(order_id)})
            return None
        return order_to_snapshot(order)

    def find_orders_by_delivery_date(
        self, day_start: datetime, day_end: datetime
    ) -> list[OrderSnapshot]:
        """Return every order with day_start <= delivery_date < day_end."""
        self._guard("find_orders_by_delivery_date")
        orders = self.session.execute(
            self._order_query()
            .where(
                OrderModel.delivery_date >= day_start,
                OrderModel.delivery_date < day_end,
            )
            .order_by(OrderModel.delivery_date, OrderModel.id)
        ).unique().scalars().all()
        return [order_to_snapshot(order) for order in orders]

    def find_invoice(self, invoice_id: UUID) -> InvoiceRecord | None:
        self._guard("find_invoice")
        invoice = self.session.get(InvoiceModel, invoice_id)
        return invoice_to_record(invoice) if invoice is not None else None

    def find_invoice_by_order(self, order_id: UUID) -> InvoiceRecord | None:
        self._guard("find_invoice_by_order")
        invoice = self.session.execute(
            select(InvoiceModel).where(InvoiceModel.order_id == order_id)
        ).scalar_one_or_none()
        return invoice_to_record(invoice) if invoice is not None else None

    def find_invoices_due_before(self, as_of: date) -> list[InvoiceRecord]:
        """Invoices whose due date is strictly before ``as_of``."""
        self._guard("find_invoices_due_before")
        invoices = self.session.execute(
            select(InvoiceModel)
            .where(InvoiceModel.due_date < as_of)
            .order_by(InvoiceModel.due_date, InvoiceModel.invoice_number)
        ).scalars().all()
        return [invoice_to_record(invoice) for invoice in invoices]

    def find_invoices_by_customer(self, customer_id: UUID) -> list[InvoiceRecord]:
        self._guard("find_invoices_by_customer")
        invoices = self.session.execute(
            select(InvoiceModel)
            .where(InvoiceModel.customer_id == customer_id)
            .order_by(InvoiceModel.invoice_date.desc(), InvoiceModel.invoice_number.desc())
        ).scalars().all()
        return [invoice_to_record(invoice) for invoice in invoices]

    def find_customer(self, customer_id: UUID) -> CustomerRecord | None:
        self._guard("find_customer")
        customer = self.session.get(CustomerModel, customer_id)
        if customer is None:
            return None
        return CustomerRecord(
            id=customer.id,
            name=customer.name,
            address=customer.address,
            route_code=customer.route_code,
            phone=customer.phone,
            email=customer.email,
        )
