"""
Ledger Configuration Schema.

Defines the structure and defaults for ledger settings.  Actual values
are loaded from ``delivery_config`` at runtime.
"""

from dataclasses import dataclass

from delivery_kernel.logging_config import get_logger
from delivery_modules.ledger.models import PaymentMethod

logger = get_logger("modules.ledger.config")


@dataclass(frozen=True)
class LedgerConfig:
    """
    Configuration schema for the credit & payment ledger.

        config = LedgerConfig(payment_terms_days=30)
    """

    # Days between invoice date and due date
    payment_terms_days: int = 14

    allowed_payment_methods: tuple[str, ...] = tuple(m.value for m in PaymentMethod)

    invoice_number_prefix: str = "INV"
    currency_symbol: str = "R"

    # Apply available credit when an invoice is generated
    apply_credit_on_invoice: bool = True

    def __post_init__(self):
        if self.payment_terms_days < 0:
            raise ValueError("payment_terms_days cannot be negative")
        if not self.allowed_payment_methods:
            raise ValueError("allowed_payment_methods cannot be empty")
        unknown = set(self.allowed_payment_methods) - {m.value for m in PaymentMethod}
        if unknown:
            raise ValueError(f"Unknown payment methods: {sorted(unknown)}")
        if not self.invoice_number_prefix.strip():
            raise ValueError("invoice_number_prefix cannot be empty")
        logger.debug(
            "ledger_config_initialized",
            extra={
                "payment_terms_days": self.payment_terms_days,
                "allowed_payment_methods": list(self.allowed_payment_methods),
            },
        )
