"""Write-side base classes (flush-only)."""

from delivery_kernel.services.base import BaseService

__all__ = ["BaseService"]
