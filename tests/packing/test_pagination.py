"""Page assignment of packing sheets."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from reportlab.lib.pagesizes import A4

from delivery_modules.packing import PackingBatch, PackingRow, PackingSheet, PageLayout, paginate

LAYOUT = PageLayout(page_width=A4[0], page_height=A4[1])


def _sheet(rows: int, name: str = "Customer", instructions: str | None = None) -> PackingSheet:
    return PackingSheet(
        order_id=uuid4(),
        customer_id=uuid4(),
        customer_name=name,
        delivery_date=datetime(2024, 6, 4, 9),
        delivery_method="delivery",
        route_key="NORTH",
        rows=tuple(
            PackingRow(UUID(int=i + 1), f"Product {i:03d}", Decimal("1"), "kg")
            for i in range(rows)
        ),
        special_instructions=instructions,
    )


def _rows_fitting_one_page() -> int:
    return int((LAYOUT.content_height - LAYOUT.section_overhead((), False)) // LAYOUT.row_height)


def test_empty_batch_gives_one_blank_page():
    pages = paginate(PackingBatch(delivery_date=date(2024, 6, 4)), LAYOUT)
    assert len(pages) == 1
    assert pages[0].sections == ()


def test_small_sheets_share_a_page():
    batch = PackingBatch(sheets=(_sheet(3), _sheet(4)))
    pages = paginate(batch, LAYOUT)
    assert len(pages) == 1
    assert [len(s.rows) for s in pages[0].sections] == [3, 4]


def test_sheet_that_does_not_fit_starts_a_new_page():
    big = _rows_fitting_one_page()
    batch = PackingBatch(sheets=(_sheet(2, "First"), _sheet(big, "Second")))

    pages = paginate(batch, LAYOUT)

    assert [[s.sheet.customer_name for s in p.sections] for p in pages] == [["First"], ["Second"]]
    assert not pages[1].sections[0].continued


def test_oversized_sheet_is_split_with_continuation_parts():
    rows = _rows_fitting_one_page() * 2 + 5
    sheet = _sheet(rows, instructions="Ring the bell twice")

    pages = paginate(PackingBatch(sheets=(sheet,)), LAYOUT)

    sections = [s for p in pages for s in p.sections]
    assert len(pages) == len(sections) >= 3
    assert sections[0].continued is False
    assert sections[0].instructions
    assert all(s.continued and not s.instructions for s in sections[1:])
    assert sum(len(s.rows) for s in sections) == rows
    assert [s.first_row for s in sections] == [
        sum(len(prev.rows) for prev in sections[:i]) for i in range(len(sections))
    ]
    assert tuple(r for s in sections for r in s.rows) == sheet.rows


def test_every_page_respects_capacity():
    batch = PackingBatch(sheets=tuple(_sheet(n) for n in (1, 12, 5, 40, 0, 29, 7)))
    for page in paginate(batch, LAYOUT):
        used = sum(
            LAYOUT.section_height(len(s.rows), s.instructions, s.continued) for s in page.sections
        ) + LAYOUT.sheet_gap * max(len(page.sections) - 1, 0)
        assert used <= LAYOUT.content_height


def test_page_numbers_are_sequential():
    batch = PackingBatch(sheets=tuple(_sheet(20) for _ in range(5)))
    pages = paginate(batch, LAYOUT)
    assert [p.number for p in pages] == list(range(1, len(pages) + 1))


def test_long_instructions_are_capped_with_ellipsis():
    lines = LAYOUT.instruction_lines("Please leave by the back door. " * 400)
    assert lines[-1].endswith("...")
    assert LAYOUT.section_height(1, lines, continued=False) <= LAYOUT.content_height


def test_layout_rejects_a_page_too_small_for_one_row():
    with pytest.raises(ValueError, match="Page too small"):
        PageLayout(page_width=200, page_height=250)
