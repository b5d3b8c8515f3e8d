"""FulfillmentService: authorization, sessions and deadlines around the modules."""

from concurrent.futures import Executor, Future
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from delivery_kernel.domain.context import Actor, Role
from delivery_kernel.exceptions import (
    AccessDeniedError,
    DeadlineExceededError,
    InvalidPackingRequestError,
    OrderNotFoundError,
    PaymentNotFoundError,
)
from delivery_modules.ledger import InvoiceStatus, ShortDeliveryItem
from delivery_modules.packing import PackingListRenderer
from delivery_services.fulfillment_service import FulfillmentService


class _StalledExecutor(Executor):
    """Accepts work and never runs it."""

    def __init__(self):
        self.submitted = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.submitted.append(future)
        return future


@pytest.fixture
def service(session_factory, deterministic_clock):
    return FulfillmentService(session_factory, clock=deterministic_clock)


@pytest.fixture
def apples(make_product):
    return make_product("Apples", price="12.00")


@pytest.fixture
def customer(make_customer):
    return make_customer("Bongani Dlamini", route_code="R2")


@pytest.fixture
def order(make_order, customer, apples):
    return make_order(customer, [(apples, 5, "10.00")])


@pytest.fixture
def customer_actor(customer):
    return Actor(id=customer.id, role=Role.CUSTOMER)


class TestPackingLists:

    def test_packer_reads_a_sheet(self, service, order, apples):
        sheet = service.get_packing_list(Actor(uuid4(), Role.PACKER), order.id)

        assert sheet.order_id == order.id
        assert sheet.customer_name == "Bongani Dlamini"
        assert sheet.quantities_by_product() == {apples.id: Decimal("5")}

    def test_customer_cannot_read_packing_lists(self, service, order, customer_actor):
        with pytest.raises(AccessDeniedError):
            service.get_packing_list(customer_actor, order.id)

    def test_unknown_order(self, service, admin):
        with pytest.raises(OrderNotFoundError):
            service.get_packing_list(admin, uuid4())

    def test_batch_by_date_string(self, service, admin, order, make_order, make_customer, apples):
        make_order(make_customer("Amara Obi"), [(apples, 1, "12.00")])
        make_order(make_customer("Zed Late"), [(apples, 1, "12.00")], delivery_date=datetime(2024, 6, 5, 9))

        batch = service.get_packing_lists_by_date(admin, "2024-06-04")

        assert batch.delivery_date == date(2024, 6, 4)
        assert [sheet.customer_name for sheet in batch] == ["Amara Obi", "Bongani Dlamini"]


class TestPackingPdf:

    def test_pdf_for_a_date(self, service, admin, order):
        document = service.render_packing_list_pdf(admin, delivery_date="2024-06-04")

        assert document.content.startswith(b"%PDF")
        assert document.filename == "packing-lists-2024-06-04.pdf"
        assert document.content_type == "application/pdf"
        assert document.page_count == 1

    def test_batch_is_paginated_once_per_request(self, service, admin, order, monkeypatch):
        calls = []
        original = PackingListRenderer.paginate

        def counting(self, batch):
            calls.append(batch)
            return original(self, batch)

        monkeypatch.setattr(PackingListRenderer, "paginate", counting)

        document = service.render_packing_list_pdf(admin, order_ids=[order.id])

        assert len(calls) == 1
        assert document.page_count == len(original(PackingListRenderer(), calls[0]))

    def test_pdf_for_one_order(self, service, admin, order):
        document = service.render_packing_list_pdf(admin, order_ids=[order.id])
        assert document.filename == f"packing-list-{order.id.hex[:8].upper()}.pdf"

    def test_pdf_for_several_orders(self, service, admin, order, make_order, make_customer, apples):
        other = make_order(make_customer("Amara Obi"), [(apples, 2, "12.00")])
        document = service.render_packing_list_pdf(admin, order_ids=[order.id, other.id])
        assert document.filename == "packing-lists.pdf"

    def test_neither_ids_nor_date(self, service, admin):
        with pytest.raises(InvalidPackingRequestError):
            service.render_packing_list_pdf(admin)

    def test_both_ids_and_date(self, service, admin, order):
        with pytest.raises(InvalidPackingRequestError):
            service.render_packing_list_pdf(admin, order_ids=[order.id], delivery_date="2024-06-04")

    def test_driver_may_print(self, service, order):
        document = service.render_packing_list_pdf(Actor(uuid4(), Role.DRIVER), order_ids=[order.id])
        assert document.content.startswith(b"%PDF")

    def test_stalled_render_hits_the_deadline(self, session_factory, deterministic_clock, admin, order, captured_logs):
        executor = _StalledExecutor()
        service = FulfillmentService(
            session_factory,
            clock=deterministic_clock,
            timeout_seconds=0.5,
            executor=executor,
        )

        with pytest.raises(DeadlineExceededError):
            service.render_packing_list_pdf(admin, order_ids=[order.id])

        assert len(executor.submitted) == 1
        assert executor.submitted[0].cancelled()
        assert any(r["message"] == "packing_pdf_render_timed_out" for r in captured_logs())


class TestLedgerThroughFacade:

    def test_payment_scenario(self, service, admin, order, customer, customer_actor):
        invoice = service.generate_invoice(admin, order.id).invoice
        assert invoice.total == Decimal("50.00")

        payment = service.record_payment(
            admin, invoice.id, customer.id, "20.00", "cash", date(2024, 6, 3)
        )
        service.record_payment(admin, invoice.id, customer.id, "30.00", "eft", date(2024, 6, 3))

        assert service.get_invoice(admin, invoice.id).status is InvoiceStatus.PAID
        assert service.get_payment(customer_actor, payment.id) == payment
        assert len(service.get_invoice_payments(customer_actor, invoice.id)) == 2
        assert len(service.get_customer_payments(customer_actor, customer.id)) == 2

    def test_packer_cannot_record_payments(self, service, order, customer, make_invoice):
        invoice = make_invoice(order)
        with pytest.raises(AccessDeniedError):
            service.record_payment(
                Actor(uuid4(), Role.PACKER), invoice.id, customer.id, "10", "cash", date(2024, 6, 3)
            )

    def test_customer_cannot_read_another_customers_payments(
        self, service, admin, order, customer, make_invoice, make_customer
    ):
        invoice = make_invoice(order)
        payment = service.record_payment(admin, invoice.id, customer.id, "10", "cash", date(2024, 6, 3))
        stranger = Actor(id=make_customer("Someone Else").id, role=Role.CUSTOMER)

        with pytest.raises(AccessDeniedError):
            service.get_payment(stranger, payment.id)
        with pytest.raises(AccessDeniedError):
            service.get_customer_payments(stranger, customer.id)
        with pytest.raises(AccessDeniedError):
            service.get_invoice(stranger, invoice.id)

    def test_permission_is_checked_before_lookup(self, service):
        with pytest.raises(AccessDeniedError):
            service.get_payment(Actor(uuid4(), Role.DRIVER), uuid4())

    def test_missing_payment(self, service, admin):
        with pytest.raises(PaymentNotFoundError):
            service.get_payment(admin, uuid4())

    def test_short_delivery_credit_is_applied_to_the_next_invoice(
        self, service, admin, order, customer, customer_actor, apples, make_order
    ):
        credits = service.record_short_delivery(
            admin, order.id, customer.id, [ShortDeliveryItem(apples.id, Decimal("2"))]
        )

        assert [c.amount for c in credits] == [Decimal("20.00")]
        assert service.get_credit_balance(customer_actor, customer.id) == Decimal("20.00")
        assert len(service.get_customer_credits(customer_actor, customer.id)) == 1

        later = make_order(customer, [(apples, 3, "10.00")], delivery_date=datetime(2024, 6, 11, 9))
        summary = service.generate_invoice(admin, later.id)

        assert summary.credit_applied == Decimal("20.00")
        assert summary.amount_due == Decimal("10.00")
        assert service.get_credit_balance(admin, customer.id) == Decimal("0.00")

    def test_apply_credit_explicitly(self, service, admin, order, customer, apples):
        summary = service.generate_invoice(admin, order.id, apply_available_credit=False)
        service.record_short_delivery(
            admin, order.id, customer.id, [ShortDeliveryItem(apples.id, Decimal("1"))]
        )

        applied = service.apply_credit(admin, summary.invoice.id)

        assert applied.credit_applied == Decimal("10.00")
        assert applied.status is InvoiceStatus.PARTIAL

    def test_overdue_invoices(self, service, admin, order, make_invoice):
        make_invoice(order, invoice_date=date(2024, 5, 1))

        overdue = service.get_overdue_invoices(admin, as_of=date(2024, 6, 3))

        assert [s.invoice.order_id for s in overdue] == [order.id]
        assert overdue[0].is_overdue

    def test_customer_lists_own_invoices(self, service, admin, order, customer_actor, customer):
        service.generate_invoice(admin, order.id)
        invoices = service.get_customer_invoices(customer_actor, customer.id)
        assert [s.invoice.order_id for s in invoices] == [order.id]

    def test_bulk_invoicing_and_stats(self, service, admin, order, customer, customer_actor):
        missing = uuid4()

        result = service.generate_invoices(admin, [order.id, missing])

        assert [s.invoice.order_id for s in result.invoices] == [order.id]
        assert [(f.order_id, f.code) for f in result.failures] == [(missing, "ORDER_NOT_FOUND")]
        stats = service.get_invoice_stats(customer_actor, customer.id)
        assert (stats.outstanding.count, stats.outstanding.amount) == (1, Decimal("50.00"))

    def test_customer_cannot_bulk_invoice(self, service, order, customer_actor):
        with pytest.raises(AccessDeniedError):
            service.generate_invoices(customer_actor, [order.id])


def test_calls_carry_a_correlation_id(service, admin, order, captured_logs):
    service.get_packing_list(admin, order.id)

    built = [r for r in captured_logs() if r.get("order_id") == str(order.id) and "correlation_id" in r]
    assert built
    assert all(r["actor_id"] == str(admin.id) for r in built)
