"""
LedgerWriter -- append-only writes for the credit & payment ledger.

Responsibility:
    Inserts payment, credit, credit-application and invoice rows inside the
    caller's transaction.  Validation and commit/rollback belong to
    ``LedgerService``; the writer only adds and flushes.

Invariants enforced:
    - Rows are inserted, never updated or deleted.
    - created_at comes from the injected clock so "newest first" ordering
      is deterministic under test.
"""

from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from delivery_kernel.domain.clock import Clock, SystemClock
from delivery_kernel.domain.context import RequestContext
from delivery_kernel.domain.dtos import InvoiceRecord
from delivery_kernel.logging_config import get_logger
from delivery_kernel.models.invoice import InvoiceModel
from delivery_kernel.selectors.order_selector import invoice_to_record
from delivery_kernel.services.base import BaseService
from delivery_modules.ledger.models import (
    CreditApplicationRecord,
    CreditDraft,
    CreditRecord,
    PaymentRecord,
)
from delivery_modules.ledger.orm import (
    CreditApplicationModel,
    CreditModel,
    PaymentModel,
)

logger = get_logger("modules.ledger.writer")


class LedgerWriter(BaseService):
    """Flush-only writer for ledger rows."""

    def __init__(
        self,
        session: Session,
        context: RequestContext | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(session, context)
        self._clock = clock or SystemClock()

    def create_payment(
        self,
        invoice_id: UUID,
        customer_id: UUID,
        amount: Decimal,
        method: str,
        payment_date: date,
        actor_id: UUID,
        notes: str | None = None,
    ) -> PaymentRecord:
        self.context.check("create_payment")
        payment = PaymentModel(
            invoice_id=invoice_id,
            customer_id=customer_id,
            amount=amount,
            method=method,
            payment_date=payment_date,
            notes=notes,
            created_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(payment)
        self.session.flush()
        logger.debug("payment_row_inserted", extra={"payment_id": str(payment.id)})
        return payment.to_dto()

    def create_credit(self, draft: CreditDraft, actor_id: UUID) -> CreditRecord:
        credit = CreditModel(
            customer_id=draft.customer_id,
            order_id=draft.order_id,
            product_id=draft.product_id,
            quantity_short=draft.quantity_short,
            unit_price=draft.unit_price,
            amount=draft.amount,
            reason=draft.reason,
            created_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(credit)
        self.session.flush()
        logger.debug("credit_row_inserted", extra={"credit_id": str(credit.id)})
        return credit.to_dto()

    def create_credits(
        self, drafts: Sequence[CreditDraft], actor_id: UUID
    ) -> list[CreditRecord]:
        """Insert one credit per draft.  A failure part-way leaves the rest to the caller's rollback."""
        self.context.check("create_credits")
        return [self.create_credit(draft, actor_id) for draft in drafts]

    def create_credit_application(
        self,
        customer_id: UUID,
        invoice_id: UUID,
        amount: Decimal,
        actor_id: UUID,
    ) -> CreditApplicationRecord:
        self.context.check("create_credit_application")
        application = CreditApplicationModel(
            customer_id=customer_id,
            invoice_id=invoice_id,
            amount=amount,
            created_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(application)
        self.session.flush()
        return application.to_dto()

    def create_invoice(
        self,
        customer_id: UUID,
        order_id: UUID,
        invoice_number: str,
        total: Decimal,
        invoice_date: date,
        due_date: date,
        actor_id: UUID,
    ) -> InvoiceRecord:
        self.context.check("create_invoice")
        invoice = InvoiceModel(
            customer_id=customer_id,
            order_id=order_id,
            invoice_number=invoice_number,
            total=total,
            invoice_date=invoice_date,
            due_date=due_date,
            created_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(invoice)
        self.session.flush()
        logger.debug("invoice_row_inserted", extra={"invoice_number": invoice_number})
        return invoice_to_record(invoice)
