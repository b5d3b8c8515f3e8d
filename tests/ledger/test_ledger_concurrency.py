"""Concurrent credit consumption (PostgreSQL row locks)."""

import os
import threading
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from delivery_kernel.exceptions import InsufficientCreditError
from delivery_kernel.models import CustomerModel, InvoiceModel, OrderItemModel, OrderModel, ProductModel
from delivery_modules.ledger import LedgerService, ShortDeliveryItem
pytestmark = [
    pytest.mark.postgres,
    pytest.mark.skipif(
        not os.environ.get("DATABASE_URL", "").startswith("postgresql"),
        reason="row locks need PostgreSQL (set DATABASE_URL)",
    ),
]


def _seed(session_factory, actor_id):
    session = session_factory()
    try:
        customer = CustomerModel(name="Race Condition", created_by_id=actor_id)
        product = ProductModel(name="Apples", unit="kg", price=Decimal("10"), created_by_id=actor_id)
        session.add_all([customer, product])
        session.flush()

        orders = []
        for _ in range(3):
            order = OrderModel(
                customer_id=customer.id, delivery_date=datetime(2024, 6, 4, 9), created_by_id=actor_id
            )
            session.add(order)
            session.flush()
            session.add(OrderItemModel(
                order_id=order.id, product_id=product.id, quantity=Decimal("5"),
                unit="kg", unit_price=Decimal("10"), created_by_id=actor_id,
            ))
            orders.append(order)
        session.flush()

        invoices = [
            InvoiceModel(
                customer_id=customer.id, order_id=order.id, invoice_number=f"INV-RACE-{i}",
                total=Decimal("50"), invoice_date=date(2024, 6, 1), due_date=date(2024, 6, 15),
                created_by_id=actor_id,
            )
            for i, order in enumerate(orders[1:])
        ]
        session.add_all(invoices)
        session.commit()
        return customer.id, product.id, orders[0].id, [i.id for i in invoices]
    finally:
        session.close()


def test_two_invoices_cannot_spend_the_same_credit(committed_session_factory, deterministic_clock, test_actor_id):
    customer_id, product_id, credited_order_id, invoice_ids = _seed(committed_session_factory, test_actor_id)

    session = committed_session_factory()
    try:
        LedgerService(session, deterministic_clock).record_short_delivery(
            credited_order_id, customer_id, [ShortDeliveryItem(product_id, 4)], test_actor_id
        )
    finally:
        session.close()

    barrier = threading.Barrier(len(invoice_ids))
    outcomes: list = []
    lock = threading.Lock()

    def spend(invoice_id):
        session = committed_session_factory()
        try:
            barrier.wait(timeout=10)
            LedgerService(session, deterministic_clock).apply_credit(
                invoice_id, uuid4(), amount=Decimal("40")
            )
            result = "applied"
        except InsufficientCreditError:
            result = "refused"
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=spend, args=(i,)) for i in invoice_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["applied", "refused"]

    session = committed_session_factory()
    try:
        assert LedgerService(session, deterministic_clock).get_credit_balance(customer_id) == Decimal("0")
    finally:
        session.close()
