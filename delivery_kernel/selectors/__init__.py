"""Read-only selectors returning DTOs."""

from delivery_kernel.selectors.base import BaseSelector
from delivery_kernel.selectors.order_selector import OrderSelector

__all__ = ["BaseSelector", "OrderSelector"]
