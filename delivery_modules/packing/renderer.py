"""
Packing List Renderer - PDF output for a PackingBatch.

Responsibility:
    Lay out sheets onto pages (``paginate``, pure) and draw the result with
    reportlab.  No database access: everything printed is already in the
    batch.

Invariants enforced:
    - A sheet is placed on the current page only if the whole sheet fits
      in the space left; otherwise it starts a new page.
    - A sheet taller than a full page is split at row boundaries only, and
      every following part carries a "(continued)" heading.
    - The same batch and layout give byte-identical PDFs (reportlab
      invariant mode fixes the creation date and document id).
"""

from __future__ import annotations

import io
from dataclasses import dataclass

from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from delivery_kernel.db.types import format_quantity
from delivery_kernel.logging_config import get_logger
from delivery_modules.packing.config import PackingConfig
from delivery_modules.packing.models import PackingBatch, PackingRow, PackingSheet

logger = get_logger("modules.packing.renderer")

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
TEXT_SIZE = 10
INSTRUCTION_SIZE = 9
ELLIPSIS = "..."

NO_ITEMS_TEXT = "No items"
NO_ORDERS_TEXT = "No orders to pack"
CONTINUED_SUFFIX = "(continued)"

_PAGE_SIZES = {"A4": A4, "LETTER": LETTER}


@dataclass(frozen=True)
class PageLayout:
    """Vertical space budget of a printed page, in points."""

    page_width: float
    page_height: float
    margin: float = 50.0
    page_header_height: float = 70.0
    footer_height: float = 30.0
    sheet_header_height: float = 80.0
    instruction_label_height: float = 14.0
    instruction_line_height: float = 12.0
    table_header_height: float = 22.0
    continued_header_height: float = 22.0
    row_height: float = 18.0
    sheet_gap: float = 24.0

    def __post_init__(self):
        smallest = max(
            self.sheet_header_height + self.table_header_height,
            self.continued_header_height + self.table_header_height,
        ) + self.row_height
        if smallest > self.content_height:
            raise ValueError(
                f"Page too small: {self.content_height}pt of content height, "
                f"a sheet needs at least {smallest}pt"
            )

    @classmethod
    def from_config(cls, config: PackingConfig) -> PageLayout:
        width, height = _PAGE_SIZES[config.page_size.upper()]
        return cls(
            page_width=width,
            page_height=height,
            margin=config.margin,
            row_height=config.row_height,
            sheet_gap=config.sheet_gap,
        )

    @property
    def content_height(self) -> float:
        return self.page_height - 2 * self.margin - self.page_header_height - self.footer_height

    @property
    def text_width(self) -> float:
        return self.page_width - 2 * self.margin

    def instruction_lines(self, text: str | None) -> tuple[str, ...]:
        """Wrapped special instructions, capped so at least one row still fits."""
        if not text or not text.strip():
            return ()
        lines = simpleSplit(text.strip(), FONT, INSTRUCTION_SIZE, self.text_width)
        room = (
            self.content_height
            - self.sheet_header_height
            - self.table_header_height
            - self.row_height
            - self.instruction_label_height
        )
        max_lines = max(int(room // self.instruction_line_height), 0)
        if len(lines) > max_lines:
            lines = lines[:max_lines]
            if lines:
                lines[-1] = _fit(lines[-1] + ELLIPSIS, FONT, INSTRUCTION_SIZE, self.text_width)
        return tuple(lines)

    def instructions_height(self, lines: tuple[str, ...]) -> float:
        if not lines:
            return 0.0
        return self.instruction_label_height + len(lines) * self.instruction_line_height

    def section_overhead(self, instructions: tuple[str, ...], continued: bool) -> float:
        if continued:
            return self.continued_header_height + self.table_header_height
        return (
            self.sheet_header_height
            + self.instructions_height(instructions)
            + self.table_header_height
        )

    def section_height(self, row_count: int, instructions: tuple[str, ...], continued: bool) -> float:
        # An empty sheet still prints one "No items" line
        return self.section_overhead(instructions, continued) + max(row_count, 1) * self.row_height


@dataclass(frozen=True)
class PageSection:
    """The part of one sheet printed on one page."""

    sheet: PackingSheet
    rows: tuple[PackingRow, ...]
    instructions: tuple[str, ...] = ()
    first_row: int = 0
    continued: bool = False


@dataclass(frozen=True)
class Page:
    number: int
    sections: tuple[PageSection, ...] = ()


@dataclass(frozen=True)
class RenderedPdf:
    """PDF bytes and the number of pages they hold."""

    content: bytes
    page_count: int


def paginate(batch: PackingBatch, layout: PageLayout) -> tuple[Page, ...]:
    """
    Assign every sheet (or sheet part) to a page.

    An empty batch gives a single page with no sections.
    """
    capacity = layout.content_height
    pages: list[list[PageSection]] = [[]]
    used = 0.0

    for sheet in batch.sheets:
        instructions = layout.instruction_lines(sheet.special_instructions)
        height = layout.section_height(len(sheet.rows), instructions, continued=False)
        gap = layout.sheet_gap if pages[-1] else 0.0

        if used + gap + height <= capacity:
            pages[-1].append(PageSection(sheet, sheet.rows, instructions))
            used += gap + height
            continue

        if pages[-1]:
            pages.append([])
            used = 0.0

        if height <= capacity:
            pages[-1].append(PageSection(sheet, sheet.rows, instructions))
            used = height
            continue

        # Taller than a page: split at row boundaries
        start = 0
        continued = False
        while start < len(sheet.rows):
            overhead = layout.section_overhead(instructions, continued)
            fit = int((capacity - overhead) // layout.row_height)
            chunk = sheet.rows[start:start + fit]
            pages[-1].append(PageSection(
                sheet,
                chunk,
                () if continued else instructions,
                first_row=start,
                continued=continued,
            ))
            used = overhead + len(chunk) * layout.row_height
            start += len(chunk)
            continued = True
            if start < len(sheet.rows):
                pages.append([])
                used = 0.0

    return tuple(Page(number=i + 1, sections=tuple(s)) for i, s in enumerate(pages))


def _fit(text: str, font: str, size: float, width: float) -> str:
    """Truncate text with an ellipsis so it fits in ``width`` points."""
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + ELLIPSIS, font, size) > width:
        text = text[:-1]
    return text + ELLIPSIS


class PackingListRenderer:
    """
    Renders a PackingBatch to PDF bytes.

    Holds only immutable layout settings, so one instance may be shared
    across threads.
    """

    def __init__(self, config: PackingConfig | None = None):
        self._config = config or PackingConfig()
        self.layout = PageLayout.from_config(self._config)

    def paginate(self, batch: PackingBatch) -> tuple[Page, ...]:
        return paginate(batch, self.layout)

    def render(self, batch: PackingBatch) -> bytes:
        return self.render_document(batch).content

    def render_document(self, batch: PackingBatch) -> RenderedPdf:
        pages = self.paginate(batch)
        buffer = io.BytesIO()
        pdf = canvas.Canvas(
            buffer,
            pagesize=(self.layout.page_width, self.layout.page_height),
            invariant=1,
            pageCompression=1 if self._config.compress else 0,
        )
        pdf.setTitle(self._title(batch))
        pdf.setAuthor(self._config.business_name)

        for page in pages:
            self._draw_page(pdf, batch, page, len(pages))
            pdf.showPage()
        pdf.save()

        content = buffer.getvalue()
        logger.info("packing_pdf_rendered", extra={
            "sheet_count": len(batch),
            "page_count": len(pages),
            "byte_count": len(content),
        })
        return RenderedPdf(content=content, page_count=len(pages))

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _title(self, batch: PackingBatch) -> str:
        if batch.delivery_date is not None:
            return f"Packing lists {batch.delivery_date.isoformat()}"
        return "Packing lists"

    def _draw_page(self, pdf, batch: PackingBatch, page: Page, page_count: int) -> None:
        layout = self.layout
        left = layout.margin
        right = layout.page_width - layout.margin
        top = layout.page_height - layout.margin

        pdf.setFont(FONT_BOLD, 20)
        pdf.drawCentredString(layout.page_width / 2, top - 20, "PACKING LIST")
        pdf.setFont(FONT, TEXT_SIZE)
        pdf.drawString(left, top - 42, self._config.business_name)
        pdf.drawString(left, top - 56, self._config.business_tagline)
        if batch.delivery_date is not None:
            pdf.drawRightString(right, top - 42, f"Delivery Date: {batch.delivery_date:%d/%m/%Y}")

        y = top - layout.page_header_height
        if not page.sections:
            pdf.setFont(FONT, 12)
            pdf.drawString(left, y - 20, NO_ORDERS_TEXT)

        for index, section in enumerate(page.sections):
            if index:
                y -= layout.sheet_gap
            y = self._draw_section(pdf, section, y)

        pdf.setFont(FONT, 8)
        footer_y = layout.margin
        pdf.drawCentredString(layout.page_width / 2, footer_y, self._config.footer_text)
        pdf.drawRightString(right, footer_y, f"Page {page.number} of {page_count}")

    def _draw_section(self, pdf, section: PageSection, y: float) -> float:
        layout = self.layout
        left = layout.margin
        right = layout.page_width - layout.margin
        width = layout.text_width
        sheet = section.sheet
        order_ref = sheet.order_id.hex[:8].upper()

        if section.continued:
            pdf.setFont(FONT_BOLD, 11)
            pdf.drawString(
                left,
                y - 15,
                _fit(f"{sheet.customer_name} {CONTINUED_SUFFIX}", FONT_BOLD, 11, width * 0.7),
            )
            pdf.setFont(FONT, TEXT_SIZE)
            pdf.drawRightString(right, y - 15, f"Order #: {order_ref}")
            y -= layout.continued_header_height
        else:
            pdf.setFont(FONT_BOLD, 12)
            pdf.drawString(left, y - 15, _fit(sheet.customer_name, FONT_BOLD, 12, width * 0.6))
            pdf.setFont(FONT, TEXT_SIZE)
            pdf.drawRightString(right, y - 15, f"Order #: {order_ref}")
            pdf.drawString(left, y - 30, _fit(sheet.address or "", FONT, TEXT_SIZE, width * 0.6))
            pdf.drawRightString(right, y - 30, f"Delivery Date: {sheet.delivery_date:%d/%m/%Y}")
            pdf.drawString(left, y - 45, _fit(f"Route: {sheet.route_key or '-'}", FONT, TEXT_SIZE, width * 0.6))
            pdf.drawRightString(right, y - 45, f"Method: {sheet.delivery_method.upper()}")
            y -= layout.sheet_header_height

            if section.instructions:
                pdf.setFont(FONT_BOLD, INSTRUCTION_SIZE)
                pdf.drawString(left, y - 10, "Special Instructions:")
                pdf.setFont(FONT, INSTRUCTION_SIZE)
                y -= layout.instruction_label_height
                for line in section.instructions:
                    pdf.drawString(left, y - 9, line)
                    y -= layout.instruction_line_height

        quantity_x = left + width * 0.70
        unit_x = left + width * 0.85
        pdf.line(left, y - 2, right, y - 2)
        pdf.setFont(FONT_BOLD, TEXT_SIZE)
        pdf.drawString(left, y - 16, "Product")
        pdf.drawRightString(unit_x - 10, y - 16, "Quantity")
        pdf.drawString(unit_x, y - 16, "Unit")
        y -= layout.table_header_height

        pdf.setFont(FONT, TEXT_SIZE)
        if not section.rows:
            pdf.drawString(left, y - 13, NO_ITEMS_TEXT)
            return y - layout.row_height

        for row in section.rows:
            pdf.drawString(left, y - 13, _fit(row.product_name, FONT, TEXT_SIZE, quantity_x - left))
            pdf.drawRightString(unit_x - 10, y - 13, format_quantity(row.quantity))
            pdf.drawString(unit_x, y - 13, _fit(row.unit, FONT, TEXT_SIZE, right - unit_x))
            y -= layout.row_height
        return y
