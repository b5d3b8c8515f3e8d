"""
Delivery Kernel

Persistence and shared primitives for the fulfillment and reconciliation
engine of a small delivery business:
- Orders, customers and products read through a narrow repository
- Append-only payment, credit and credit-application rows
- Typed errors and structured JSON logging
"""

__version__ = "0.1.0"
