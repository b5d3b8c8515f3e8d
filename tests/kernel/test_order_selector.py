"""Order and invoice reads."""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from delivery_kernel.domain.context import RequestContext
from delivery_kernel.exceptions import DeadlineExceededError
from delivery_kernel.selectors.order_selector import OrderSelector


def test_find_order_returns_snapshot_with_lines_in_order(session, make_customer, make_product, make_order):
    customer = make_customer(name="Thandi", route_code="NORTH-1")
    apples, bread = make_product("Apples"), make_product("Bread", unit="loaf", price="20.00")
    order = make_order(customer, [(apples, 5, "10.00"), (bread, 2, "20.00")])

    snapshot = OrderSelector(session).find_order(order.id)

    assert snapshot.customer_name == "Thandi"
    assert snapshot.route_code == "NORTH-1"
    assert [line.product_name for line in snapshot.lines] == ["Apples", "Bread"]
    assert snapshot.lines[1].unit == "loaf"
    assert snapshot.lines[0].line_total == Decimal("50")


def test_unknown_order_is_none(session, db_tables):
    assert OrderSelector(session).find_order(uuid4()) is None


def test_delivery_date_range_is_half_open(session, make_customer, make_order):
    customer = make_customer()
    midnight = make_order(customer, delivery_date=datetime(2024, 6, 4, 0, 0))
    late = make_order(customer, delivery_date=datetime(2024, 6, 4, 23, 59, 59))
    make_order(customer, delivery_date=datetime(2024, 6, 5, 0, 0))
    make_order(customer, delivery_date=datetime(2024, 6, 3, 23, 59, 59))

    found = OrderSelector(session).find_orders_by_delivery_date(
        datetime(2024, 6, 4), datetime(2024, 6, 5)
    )

    assert {o.id for o in found} == {midnight.id, late.id}


def test_delivery_address_overrides_customer_address(session, make_customer, make_order):
    customer = make_customer(address="1 Main Road")
    order = make_order(customer, delivery_address="Farm stall, R44")

    snapshot = OrderSelector(session).find_order(order.id)

    assert snapshot.address == "Farm stall, R44"
    assert snapshot.customer_address == "1 Main Road"


def test_find_customer(session, make_customer):
    customer = make_customer(name="Sipho", phone="082 555 0101")
    record = OrderSelector(session).find_customer(customer.id)
    assert record.name == "Sipho"
    assert record.phone == "082 555 0101"
    assert OrderSelector(session).find_customer(uuid4()) is None


def test_expired_context_fails_before_querying(session, db_tables):
    context = RequestContext.with_timeout(0.0)
    with pytest.raises(DeadlineExceededError):
        OrderSelector(session, context).find_order(uuid4())
