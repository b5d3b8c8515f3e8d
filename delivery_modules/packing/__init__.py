"""
Packing List Module.

Builds per-order pick sheets and date batches, and renders them to PDF.
"""

from delivery_modules.packing.config import PackingConfig
from delivery_modules.packing.models import PackingBatch, PackingRow, PackingSheet, SortBy
from delivery_modules.packing.renderer import PackingListRenderer, PageLayout, RenderedPdf, paginate
from delivery_modules.packing.service import PackingListBuilder

__all__ = [
    "PackingBatch",
    "PackingConfig",
    "PackingListBuilder",
    "PackingListRenderer",
    "PackingRow",
    "PackingSheet",
    "PageLayout",
    "RenderedPdf",
    "SortBy",
    "paginate",
]
