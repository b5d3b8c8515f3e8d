"""ORM models owned by the order repository."""

from delivery_kernel.models.customer import CustomerModel
from delivery_kernel.models.invoice import InvoiceModel
from delivery_kernel.models.order import (
    DeliveryMethod,
    OrderItemModel,
    OrderModel,
    OrderStatus,
)
from delivery_kernel.models.product import ProductModel

__all__ = [
    "CustomerModel",
    "DeliveryMethod",
    "InvoiceModel",
    "OrderItemModel",
    "OrderModel",
    "OrderStatus",
    "ProductModel",
]
