"""
Packing Configuration Schema.

Defines the batch defaults and printed-page layout for packing lists.
Actual values are loaded from ``delivery_config`` at runtime.
"""

from dataclasses import dataclass

from delivery_kernel.logging_config import get_logger
from delivery_modules.packing.models import SortBy

logger = get_logger("modules.packing.config")

PAGE_SIZES = ("A4", "LETTER")


@dataclass(frozen=True)
class PackingConfig:
    """
    Configuration schema for packing-list generation and rendering.

    Dimensions are PDF points (1/72 inch).
    """

    default_sort_by: str = SortBy.NAME.value

    page_size: str = "A4"
    margin: float = 50.0
    row_height: float = 18.0
    sheet_gap: float = 24.0

    business_name: str = "Organic Vegetable Business"
    business_tagline: str = "Fresh Produce Delivery"
    footer_text: str = "Please check all items upon delivery"

    # Content streams stay readable when False (handy for diffing prints)
    compress: bool = True

    def __post_init__(self):
        SortBy.parse(self.default_sort_by)
        if self.page_size.upper() not in PAGE_SIZES:
            raise ValueError(f"page_size must be one of {PAGE_SIZES}, got '{self.page_size}'")
        if self.margin < 0:
            raise ValueError("margin cannot be negative")
        if self.row_height <= 0:
            raise ValueError("row_height must be positive")
        if self.sheet_gap < 0:
            raise ValueError("sheet_gap cannot be negative")
        logger.debug(
            "packing_config_initialized",
            extra={
                "default_sort_by": self.default_sort_by,
                "page_size": self.page_size,
            },
        )
