"""Short deliveries become credits valued at the order's snapshotted prices."""

from decimal import Decimal
from uuid import uuid4

import pytest

from delivery_kernel.exceptions import (
    CustomerMismatchError,
    EmptyItemListError,
    InvalidQuantityError,
    OrderNotFoundError,
    ProductNotOnOrderError,
    ShortfallExceedsOrderedError,
)
from delivery_modules.ledger import LedgerService, ShortDeliveryItem
from delivery_modules.ledger.writer import LedgerWriter


@pytest.fixture
def ledger(session, deterministic_clock):
    return LedgerService(session, deterministic_clock)


@pytest.fixture
def apples(make_product):
    return make_product("Apples", price="12.00")


@pytest.fixture
def bread(make_product):
    return make_product("Bread", unit="loaf", price="25.00")


@pytest.fixture
def order(make_customer, make_order, apples, bread):
    # Catalog prices differ from the prices snapshotted on the order
    return make_order(make_customer(), [(apples, 5, "10.00"), (bread, 2, "20.00")])


def test_two_apples_short_gives_twenty_rand_credit(ledger, order, apples, test_actor_id):
    credits = ledger.record_short_delivery(
        order.id, order.customer_id, [ShortDeliveryItem(apples.id, Decimal("2"))], test_actor_id
    )

    assert len(credits) == 1
    assert credits[0].amount == Decimal("20.00")
    assert credits[0].unit_price == Decimal("10.00")
    assert credits[0].quantity_short == Decimal("2")
    assert "Apples" in credits[0].reason
    assert ledger.get_credit_balance(order.customer_id) == Decimal("20")


def test_several_products_in_one_request(ledger, order, apples, bread, test_actor_id):
    credits = ledger.record_short_delivery(
        order.id,
        order.customer_id,
        [ShortDeliveryItem(apples.id, "1.5"), ShortDeliveryItem(bread.id, 2)],
        test_actor_id,
    )

    assert sorted(c.amount for c in credits) == [Decimal("15.00"), Decimal("40.00")]
    assert ledger.get_credit_balance(order.customer_id) == Decimal("55")
    assert len(ledger.get_customer_credits(order.customer_id)) == 2


def test_repeated_product_entries_are_merged(ledger, order, apples, test_actor_id):
    credits = ledger.record_short_delivery(
        order.id,
        order.customer_id,
        [ShortDeliveryItem(apples.id, 1), ShortDeliveryItem(apples.id, 2)],
        test_actor_id,
    )
    assert len(credits) == 1
    assert credits[0].quantity_short == Decimal("3")


def test_product_on_two_lines_is_taken_in_line_order(
    ledger, make_customer, make_order, apples, test_actor_id
):
    order = make_order(make_customer(), [(apples, 2, "10.00"), (apples, 3, "11.00")])

    credits = ledger.record_short_delivery(
        order.id, order.customer_id, [ShortDeliveryItem(apples.id, 4)], test_actor_id
    )

    assert sorted((c.quantity_short, c.amount) for c in credits) == [
        (Decimal("2"), Decimal("20.00")),
        (Decimal("2"), Decimal("22.00")),
    ]
    assert ledger.get_credit_balance(order.customer_id) == Decimal("42")


def test_shortfall_up_to_the_ordered_quantity_is_allowed(ledger, order, bread, test_actor_id):
    ledger.record_short_delivery(order.id, order.customer_id, [ShortDeliveryItem(bread.id, 2)], test_actor_id)
    assert ledger.get_credit_balance(order.customer_id) == Decimal("40")


def test_shortfall_above_ordered_quantity(ledger, order, bread, test_actor_id):
    with pytest.raises(ShortfallExceedsOrderedError) as exc_info:
        ledger.record_short_delivery(
            order.id, order.customer_id, [ShortDeliveryItem(bread.id, 3)], test_actor_id
        )
    assert exc_info.value.quantity_ordered == Decimal("2")


def test_product_not_on_order(ledger, order, make_product, test_actor_id):
    eggs = make_product("Eggs", unit="dozen")
    with pytest.raises(ProductNotOnOrderError):
        ledger.record_short_delivery(
            order.id, order.customer_id, [ShortDeliveryItem(eggs.id, 1)], test_actor_id
        )


@pytest.mark.parametrize("quantity", [0, "-1"])
def test_quantity_must_be_positive(ledger, order, apples, test_actor_id, quantity):
    with pytest.raises(InvalidQuantityError):
        ledger.record_short_delivery(
            order.id, order.customer_id, [ShortDeliveryItem(apples.id, quantity)], test_actor_id
        )


def test_empty_item_list(ledger, order, test_actor_id):
    with pytest.raises(EmptyItemListError):
        ledger.record_short_delivery(order.id, order.customer_id, [], test_actor_id)


def test_unknown_order(ledger, db_tables, test_actor_id):
    with pytest.raises(OrderNotFoundError):
        ledger.record_short_delivery(uuid4(), uuid4(), [ShortDeliveryItem(uuid4(), 1)], test_actor_id)


def test_customer_must_own_the_order(ledger, order, apples, make_customer, test_actor_id):
    other = make_customer(name="Other")
    with pytest.raises(CustomerMismatchError):
        ledger.record_short_delivery(order.id, other.id, [ShortDeliveryItem(apples.id, 1)], test_actor_id)


def test_one_invalid_item_writes_nothing(ledger, order, apples, make_product, test_actor_id):
    eggs = make_product("Eggs")
    with pytest.raises(ProductNotOnOrderError):
        ledger.record_short_delivery(
            order.id,
            order.customer_id,
            [ShortDeliveryItem(apples.id, 1), ShortDeliveryItem(eggs.id, 1)],
            test_actor_id,
        )
    assert ledger.get_customer_credits(order.customer_id) == []


def test_failure_on_second_of_three_credits_rolls_back_all(
    ledger, make_customer, make_order, make_product, apples, bread, test_actor_id, monkeypatch
):
    milk = make_product("Milk", unit="l", price="18.00")
    customer = make_customer(name="Sipho")
    three_lines = make_order(
        customer, [(apples, 5, "10.00"), (bread, 2, "20.00"), (milk, 3, "15.00")]
    )
    original = LedgerWriter.create_credit
    calls = []

    def fail_on_second(self, draft, actor_id):
        calls.append(draft)
        if len(calls) == 2:
            raise RuntimeError("storage went away")
        return original(self, draft, actor_id)

    monkeypatch.setattr(LedgerWriter, "create_credit", fail_on_second)

    with pytest.raises(RuntimeError, match="storage went away"):
        ledger.record_short_delivery(
            three_lines.id,
            three_lines.customer_id,
            [
                ShortDeliveryItem(apples.id, 1),
                ShortDeliveryItem(bread.id, 1),
                ShortDeliveryItem(milk.id, 1),
            ],
            test_actor_id,
        )

    monkeypatch.undo()
    assert len(calls) == 2
    assert ledger.get_customer_credits(customer.id) == []
    assert ledger.get_credit_balance(customer.id) == Decimal("0")


def test_credits_never_change_the_order(ledger, session, order, apples, test_actor_id):
    from delivery_modules.packing import PackingListBuilder

    before = PackingListBuilder(session).build_sheet(order.id)
    ledger.record_short_delivery(order.id, order.customer_id, [ShortDeliveryItem(apples.id, 5)], test_actor_id)
    assert PackingListBuilder(session).build_sheet(order.id) == before
