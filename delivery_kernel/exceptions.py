"""
Typed Exception Hierarchy for the Delivery Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the façade, CLI scripts, an HTTP layer) must map failures to
responses without parsing message strings. Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA attributes (order_id, invoice_id, amounts, ...)

Example:
    try:
        ledger.record_payment(...)
    except CustomerMismatchError as e:
        api_response(409, code=e.code, invoice=e.invoice_id)
    except NotFoundError as e:
        api_response(404, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    DeliveryKernelError (base)
    |
    +-- NotFoundError
    |   +-- OrderNotFoundError
    |   +-- InvoiceNotFoundError
    |   +-- PaymentNotFoundError
    |
    +-- ValidationError
    |   +-- InvalidSortKeyError
    |   +-- InvalidDeliveryDateError
    |   +-- InvalidAmountError
    |   +-- InvalidPaymentMethodError
    |   +-- InvalidQuantityError
    |   +-- EmptyItemListError
    |   +-- InvalidPackingRequestError
    |
    +-- ConsistencyError
    |   +-- ProductNotOnOrderError
    |   +-- ShortfallExceedsOrderedError
    |   +-- CustomerMismatchError
    |   +-- InsufficientCreditError
    |   +-- CreditExceedsAmountDueError
    |   +-- InvoiceAlreadyExistsError
    |
    +-- AuthorizationError
    |   +-- AccessDeniedError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- DeadlineExceededError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|-------------------------------------------
NotFound     | ORDER_NOT_FOUND           | Order id does not resolve
             | INVOICE_NOT_FOUND         | Invoice id does not resolve
             | PAYMENT_NOT_FOUND         | Payment id does not resolve
-------------|---------------------------|-------------------------------------------
Validation   | INVALID_SORT_KEY          | sort_by is not "name" or "route"
             | INVALID_DELIVERY_DATE     | Date string cannot be parsed
             | INVALID_AMOUNT            | Amount <= 0
             | INVALID_PAYMENT_METHOD    | Method not cash / yoco / eft
             | INVALID_QUANTITY          | Shortfall quantity <= 0
             | EMPTY_ITEM_LIST           | Short delivery with no items
             | INVALID_PACKING_REQUEST   | PDF request names neither orders nor a date
-------------|---------------------------|-------------------------------------------
Consistency  | PRODUCT_NOT_ON_ORDER      | Short-delivered product not on the order
             | SHORTFALL_EXCEEDS_ORDERED | Shortfall larger than ordered quantity
             | CUSTOMER_MISMATCH         | Customer differs from invoice/order owner
             | INSUFFICIENT_CREDIT       | Credit balance would go negative
             | CREDIT_EXCEEDS_AMOUNT_DUE | Credit applied beyond what the invoice owes
             | INVOICE_ALREADY_EXISTS    | Order already invoiced
-------------|---------------------------|-------------------------------------------
Authorization| ACCESS_DENIED             | Actor may not perform the operation
-------------|---------------------------|-------------------------------------------
Immutability | IMMUTABILITY_VIOLATION    | UPDATE/DELETE of a payment or credit row
-------------|---------------------------|-------------------------------------------
Deadline     | DEADLINE_EXCEEDED         | Request budget spent before a repository call

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Inherit from Exception, not ValueError/LookupError.
   Domain errors must be catchable as a group without also catching
   programming errors.

2. AuthorizationError lives here although the kernel never raises it.
   The façade's policy object raises it and callers handle every
   failure through one hierarchy.
"""

from decimal import Decimal


class DeliveryKernelError(Exception):
    """
    Base exception for all delivery kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "DELIVERY_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(DeliveryKernelError):
    """Base exception for entities that do not resolve."""

    code: str = "NOT_FOUND"


class OrderNotFoundError(NotFoundError):
    """Order with given ID was not found."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class InvoiceNotFoundError(NotFoundError):
    """Invoice with given ID was not found."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found: {invoice_id}")


class PaymentNotFoundError(NotFoundError):
    """Payment with given ID was not found."""

    code: str = "PAYMENT_NOT_FOUND"

    def __init__(self, payment_id: str):
        self.payment_id = payment_id
        super().__init__(f"Payment not found: {payment_id}")


# Validation exceptions


class ValidationError(DeliveryKernelError):
    """Base exception for malformed inputs."""

    code: str = "VALIDATION_ERROR"


class InvalidSortKeyError(ValidationError):
    """Packing batch sort key is not supported."""

    code: str = "INVALID_SORT_KEY"

    def __init__(self, sort_by: str, allowed: tuple[str, ...]):
        self.sort_by = sort_by
        self.allowed = allowed
        super().__init__(
            f"Invalid sort key {sort_by!r}: must be one of {', '.join(allowed)}"
        )


class InvalidDeliveryDateError(ValidationError):
    """Delivery date could not be parsed."""

    code: str = "INVALID_DELIVERY_DATE"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid delivery date: {value!r}")


class InvalidAmountError(ValidationError):
    """Monetary amount must be strictly positive."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: Decimal):
        self.amount = amount
        super().__init__(f"Amount must be positive, got {amount}")


class InvalidPaymentMethodError(ValidationError):
    """Payment method is not one of the accepted methods."""

    code: str = "INVALID_PAYMENT_METHOD"

    def __init__(self, method: str, allowed: tuple[str, ...]):
        self.method = method
        self.allowed = allowed
        super().__init__(
            f"Invalid payment method {method!r}: must be one of {', '.join(allowed)}"
        )


class InvalidQuantityError(ValidationError):
    """Short-delivered quantity must be strictly positive."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, product_id: str, quantity: Decimal):
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(
            f"Quantity short for product {product_id} must be positive, got {quantity}"
        )


class EmptyItemListError(ValidationError):
    """Short delivery request has no items."""

    code: str = "EMPTY_ITEM_LIST"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Short delivery for order {order_id} lists no items")


class InvalidPackingRequestError(ValidationError):
    """Packing-list PDF request must name order ids or a delivery date, not both or neither."""

    code: str = "INVALID_PACKING_REQUEST"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid packing list request: {reason}")


# Consistency exceptions


class ConsistencyError(DeliveryKernelError):
    """Base exception for requests that contradict persisted state."""

    code: str = "CONSISTENCY_ERROR"


class ProductNotOnOrderError(ConsistencyError):
    """Short-delivered product does not appear on the order."""

    code: str = "PRODUCT_NOT_ON_ORDER"

    def __init__(self, order_id: str, product_id: str):
        self.order_id = order_id
        self.product_id = product_id
        super().__init__(f"Product {product_id} is not on order {order_id}")


class ShortfallExceedsOrderedError(ConsistencyError):
    """Shortfall quantity is larger than the ordered quantity."""

    code: str = "SHORTFALL_EXCEEDS_ORDERED"

    def __init__(
        self,
        order_id: str,
        product_id: str,
        quantity_short: Decimal,
        quantity_ordered: Decimal,
    ):
        self.order_id = order_id
        self.product_id = product_id
        self.quantity_short = quantity_short
        self.quantity_ordered = quantity_ordered
        super().__init__(
            f"Shortfall {quantity_short} for product {product_id} exceeds "
            f"ordered quantity {quantity_ordered} on order {order_id}"
        )


class CustomerMismatchError(ConsistencyError):
    """Supplied customer does not own the invoice or order."""

    code: str = "CUSTOMER_MISMATCH"

    def __init__(self, entity_type: str, entity_id: str, expected: str, actual: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_customer_id = expected
        self.actual_customer_id = actual
        super().__init__(
            f"Customer {actual} does not match {entity_type} {entity_id} "
            f"(owned by {expected})"
        )


class InsufficientCreditError(ConsistencyError):
    """Applying credit would drive the customer's balance negative."""

    code: str = "INSUFFICIENT_CREDIT"

    def __init__(self, customer_id: str, requested: Decimal, available: Decimal):
        self.customer_id = customer_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Customer {customer_id} has {available} credit, cannot apply {requested}"
        )


class CreditExceedsAmountDueError(ConsistencyError):
    """Applying credit would take an invoice below zero amount due."""

    code: str = "CREDIT_EXCEEDS_AMOUNT_DUE"

    def __init__(self, invoice_id: str, requested: Decimal, amount_due: Decimal):
        self.invoice_id = invoice_id
        self.requested = requested
        self.amount_due = amount_due
        super().__init__(
            f"Invoice {invoice_id} owes {amount_due}, cannot apply {requested} credit"
        )


class InvoiceAlreadyExistsError(ConsistencyError):
    """An invoice was already generated for the order."""

    code: str = "INVOICE_ALREADY_EXISTS"

    def __init__(self, order_id: str, invoice_id: str):
        self.order_id = order_id
        self.invoice_id = invoice_id
        super().__init__(f"Order {order_id} is already invoiced as {invoice_id}")


# Authorization exceptions


class AuthorizationError(DeliveryKernelError):
    """Base exception for authorization failures raised by the calling layer."""

    code: str = "AUTHORIZATION_ERROR"


class AccessDeniedError(AuthorizationError):
    """Actor may not perform the requested operation."""

    code: str = "ACCESS_DENIED"

    def __init__(self, actor_id: str, action: str, reason: str):
        self.actor_id = actor_id
        self.action = action
        self.reason = reason
        super().__init__(f"Access denied for {actor_id} on {action}: {reason}")


# Immutability exceptions


class ImmutabilityError(DeliveryKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an append-only record.

    Payments, credits and credit applications are immutable from creation;
    corrections are new rows.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Deadline exceptions


class DeadlineExceededError(DeliveryKernelError):
    """The caller's request budget ran out before a repository call."""

    code: str = "DEADLINE_EXCEEDED"

    def __init__(self, operation: str, budget_seconds: float | None):
        self.operation = operation
        self.budget_seconds = budget_seconds
        super().__init__(
            f"Deadline exceeded before {operation} (budget {budget_seconds}s)"
        )
