"""
Credit & Payment Ledger Module.

Records payments against invoices, converts short deliveries into account
credit and derives invoice status and credit balances from the rows.
"""

from delivery_modules.ledger.config import LedgerConfig
from delivery_modules.ledger.models import (
    BulkInvoiceResult,
    CreditApplicationRecord,
    CreditRecord,
    InvoiceBucket,
    InvoiceFailure,
    InvoiceStats,
    InvoiceStatus,
    InvoiceSummary,
    PaymentMethod,
    PaymentRecord,
    ShortDeliveryItem,
)
from delivery_modules.ledger.service import LedgerService

__all__ = [
    "BulkInvoiceResult",
    "CreditApplicationRecord",
    "CreditRecord",
    "InvoiceBucket",
    "InvoiceFailure",
    "InvoiceStats",
    "InvoiceStatus",
    "InvoiceSummary",
    "LedgerConfig",
    "LedgerService",
    "PaymentMethod",
    "PaymentRecord",
    "ShortDeliveryItem",
]
