from __future__ import annotations

import pytest

from invoicegen.model.page import PageDescriptor
from invoicegen.pdf.page_render import KIND_EMPTY, KIND_RULE, KIND_TABLE, KIND_TEXT, probe_surface, render_page

from conftest import ROW_HEIGHT


def _text(layout) -> str:
    return " ".join(p.getPlainText() for p in layout.paragraphs)


def test_every_element_laid_out_in_template_order(make_template, make_record, settings) -> None:
    page = render_page(make_template(), make_record(3), settings=settings)
    assert [l.element.id for l in page.layouts] == ["cust", "info", "items", "totals", "remarks"]
    assert page.layout_for("items").kind == KIND_TABLE
    assert page.layout_for("cust").kind == KIND_TEXT


def test_hidden_blocks_are_left_out(make_template, make_record, settings) -> None:
    record = make_record(3)
    config = PageDescriptor(items=record.items, hide_totals=True, hide_remarks=True)
    page = render_page(make_template(), record, config, settings)
    ids = [l.element.id for l in page.layouts]
    assert "totals" not in ids and "remarks" not in ids
    assert "cust" in ids and "info" in ids


def test_items_table_rows_measured(make_template, make_record, settings) -> None:
    record = make_record(3)
    page = render_page(make_template(), record, settings=settings)
    table = page.items_table
    assert table.item_row_count == 3
    assert table.row_heights == pytest.approx([ROW_HEIGHT] * 4)
    assert table.content_height == pytest.approx(4 * ROW_HEIGHT)
    assert table.content_width == pytest.approx(714)


def test_row_numbers_continue_from_start_index(make_template, make_record, settings) -> None:
    record = make_record(6)
    config = PageDescriptor(items=record.items[4:], start_index=4)
    page = render_page(make_template(), record, config, settings)
    cells = page.items_table.table._cellvalues
    assert cells[0][0].getPlainText() == "No."
    assert cells[0][2].getPlainText() == "Unit Price (RM)"
    assert [row[0].getPlainText() for row in cells[1:]] == ["5", "6"]
    assert cells[1][2].getPlainText() == "RM 10.00"


def test_multiline_description_grows_row(make_template, make_record, settings) -> None:
    from invoicegen.model.document import LineItem

    record = make_record(0, items=(LineItem("First line\nSecond line", 1.0, 1, 1.0),))
    page = render_page(make_template(), record, settings=settings)
    assert page.items_table.row_heights[1] == pytest.approx(2 * 16.8 + 16)


def test_long_word_wraps_inside_description(make_template, make_record, settings) -> None:
    from invoicegen.model.document import LineItem
    from invoicegen.pdf.overflow import has_overflow
    from invoicegen.pdf.table_layout import CELL_PADDING

    record = make_record(0, items=(LineItem("X" * 120, 1.0, 1, 1.0),))
    page = render_page(make_template(), record, settings=settings)
    table = page.items_table
    desc = table.cells[1][1]
    assert desc.minWidth() <= table.col_widths[1] - 2 * CELL_PADDING
    # 42 Helvetica X's per 338px line: three lines
    assert table.row_heights[1] == pytest.approx(3 * 16.8 + 16)
    assert table.content_width == pytest.approx(714)
    assert not has_overflow(page)


def test_description_keeps_its_own_line_height(make_record, settings) -> None:
    from invoicegen.model.document import LineItem
    from invoicegen.model.template import Template

    from conftest import template_dict

    items = {"id": "items", "type": "itemsTable", "x": 40, "y": 200, "width": 714, "height": 300, "lineHeight": 2}
    template = Template.from_dict(template_dict(None, extra=[items]))
    record = make_record(0, items=(LineItem("One", 1.0, 1, 1.0), LineItem("One\nTwo", 1.0, 1, 1.0)))
    page = render_page(template, record, settings=settings)
    # header and number cells follow lineHeight 2 (24px); description lines stay 1.4 (16.8px)
    assert page.items_table.row_heights == pytest.approx([40, 40, 2 * 16.8 + 16])


def test_fixed_block_texts(make_template, make_record, settings) -> None:
    page = render_page(make_template(), make_record(1, total=1234.5), settings=settings)
    cust = _text(page.layout_for("cust"))
    assert "Bill To:" in cust and "Acme Sdn Bhd" in cust and "Attn: Ms Tan" in cust and "Tel: 03-1234 5678" in cust
    info = _text(page.layout_for("info"))
    assert "Invoice No.: INV-0001" in info and "Date: 05/01/2024" in info
    assert _text(page.layout_for("totals")) == "Total: RM 1,234.50"


def test_quotation_label(make_template, make_record, settings) -> None:
    page = render_page(make_template(), make_record(1, kind="quotation"), settings=settings)
    assert "Quotation No.:" in _text(page.layout_for("info"))


def test_text_placeholders_and_defaults(make_template, make_record, settings) -> None:
    extra = [
        {"id": "hello", "type": "text", "x": 40, "y": 420, "width": 300, "height": 40, "content": "<b>{company_name}</b>"},
        {"id": "blank", "type": "text", "x": 40, "y": 470, "width": 300, "height": 40, "content": ""},
    ]
    page = render_page(make_template(extra=extra), make_record(1), settings=settings)
    assert _text(page.layout_for("hello")) == "Acme Sdn Bhd"
    assert _text(page.layout_for("blank")) == "Text"


def test_image_and_line_layouts(make_template, make_record, settings) -> None:
    extra = [
        {"id": "logo", "type": "image", "x": 600, "y": 420, "width": 100, "height": 50},
        {"id": "rule", "type": "line", "x": 40, "y": 480, "width": 714, "height": 10, "thickness": 3},
        {"id": "odd", "type": "sticker", "x": 0, "y": 0, "width": 10, "height": 10},
    ]
    page = render_page(make_template(extra=extra), make_record(1), settings=settings)
    assert page.layout_for("logo").kind == KIND_EMPTY
    rule = page.layout_for("rule")
    assert rule.kind == KIND_RULE and rule.content_height == 3
    assert page.layout_for("odd").kind == KIND_EMPTY


def test_probe_surface_is_a_canvas() -> None:
    with probe_surface() as surface:
        assert surface.stringWidth("abc", "Helvetica", 12) > 0
