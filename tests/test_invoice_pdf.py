from __future__ import annotations

import io
import math
import re
from pathlib import Path

from pypdf import PdfReader

from invoicegen.pdf.pagination import paginate
from invoicegen.pdf.pdf_draw import build_document_pdf


def _canvas_size_points() -> tuple[float, float]:
    # 794 x 1123 px at 72/96
    return (595.5, 842.25)


def test_document_pdf_drawn(make_template, make_record, settings, tmp_path: Path) -> None:
    # Arrange: 6 items on a table with room for 4 rows
    template = make_template(170)
    record = make_record(6, total=60.0)

    out_pdf = tmp_path / "drawn.pdf"
    # Act
    count = build_document_pdf(out_pdf, template, record, settings)

    # Assert: one PDF page per page descriptor, canvas sized
    reader = PdfReader(str(out_pdf))
    assert count == len(paginate(template, record, settings)) == len(reader.pages) == 2

    page = reader.pages[0]
    box = page.mediabox
    width = float(box.right - box.left)
    height = float(box.top - box.bottom)
    w, h = _canvas_size_points()
    assert math.isclose(width, w, rel_tol=0, abs_tol=1.0)
    assert math.isclose(height, h, rel_tol=0, abs_tol=1.0)

    first = page.extract_text() or ""
    last = reader.pages[-1].extract_text() or ""
    assert re.search(r"Item\s*Description", first) and "Item 4" in first and "Item 5" not in first
    assert "Item 5" in last and "Item 6" in last
    assert re.search(r"Date:\s*05/01/2024", first) is not None
    # totals only on the last page; allow a newline between label and value
    assert re.search(r"Total:\s*RM\s*60\.00", last) is not None
    assert "Total:" not in first
    assert reader.metadata.title == "Invoice INV-0001"


def _page_text(page) -> str:
    from invoicegen.pdf.pdf_draw import page_pdf_bytes

    reader = PdfReader(io.BytesIO(page_pdf_bytes(page)))
    return reader.pages[0].extract_text() or ""


def test_oversized_row_cut_at_table_bottom(make_template, make_record, settings) -> None:
    from invoicegen.model.document import LineItem
    from invoicegen.pdf.overflow import has_overflow
    from invoicegen.pdf.page_render import render_page

    desc = "\n".join(f"Spill{i}" for i in range(40))
    record = make_record(0, items=(LineItem(desc, 1.0, 1, 1.0),))
    page = render_page(make_template(100), record, settings=settings)
    assert has_overflow(page)

    text = _page_text(page)
    # 67.2px left under the header: three 16.8px lines after the top padding
    assert "Spill0" in text and "Spill2" in text
    assert "Spill3" not in text and "Spill39" not in text


def test_rows_below_table_box_not_drawn(make_template, make_record, settings) -> None:
    from invoicegen.pdf.page_render import render_page

    page = render_page(make_template(100), make_record(3), settings=settings)
    text = _page_text(page)
    assert "Item 1" in text and "Item 2" in text
    assert "Item 3" not in text
