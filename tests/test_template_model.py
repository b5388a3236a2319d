from __future__ import annotations

import pytest

from invoicegen.model.document import DocumentRecord, LineItem
from invoicegen.model.page import PageDescriptor
from invoicegen.model.template import BOX_PADDING, Template

from conftest import template_dict


def test_template_from_builder_json() -> None:
    tpl = Template.from_dict(template_dict(table_height=170))
    assert [e.type for e in tpl.elements][:3] == ["customerBlock", "invoiceInfo", "itemsTable"]
    table = tpl.items_table
    assert table is not None and table.height == 170
    assert table.padding == 0
    assert tpl.find("totalsBlock")[0].padding == BOX_PADDING


def test_camel_case_fields_and_round_trip() -> None:
    raw = {
        "elements": [
            {"id": "t1", "type": "text", "x": "10", "y": 20, "width": 100, "height": 40,
             "fontSize": 14, "fontWeight": "bold", "textDecoration": "underline", "lineHeight": 1.2,
             "content": "Hi", "futureKey": 1},
        ]
    }
    tpl = Template.from_dict(raw)
    el = tpl.elements[0]
    assert el.x == 10.0 and el.font_size == 14.0
    assert el.bold and el.underline and not el.italic
    assert el.line_height == 1.2
    again = Template.from_dict(tpl.to_dict())
    assert again == tpl


def test_missing_elements_or_bad_geometry_rejected() -> None:
    with pytest.raises(ValueError):
        Template.from_dict({"pages": []})
    with pytest.raises(ValueError):
        Template.from_dict({"elements": [{"id": "a", "type": "text", "x": "left", "y": 0, "width": 1, "height": 1}]})


def test_template_without_table() -> None:
    tpl = Template.from_dict(template_dict(table_height=None))
    assert tpl.items_table is None


def test_record_from_invoice_and_quotation_rows() -> None:
    inv = DocumentRecord.from_dict({
        "invoice_number": "INV-1",
        "invoice_date": "2024-01-05",
        "items": '[{"description": "A", "unit_price": 2.5, "quantity": 2, "total": 5}]',
        "total": "5.00",
    })
    assert inv.document_number == "INV-1"
    assert not inv.is_quotation
    assert inv.items == (LineItem("A", 2.5, 2, 5.0),)
    assert inv.total == 5.0

    quo = DocumentRecord.from_dict({"quotation_number": "Q-1", "quotation_date": "2024-02-01", "items": []})
    assert quo.is_quotation
    assert quo.document_date == "2024-02-01"


def test_page_descriptor_numbering() -> None:
    page = PageDescriptor(items=(LineItem("A", 1.0), LineItem("B", 1.0)), start_index=4, hide_totals=True, hide_remarks=True)
    assert page.end_index == 6
    assert page.display_index(0) == 5
    shown = page.shown()
    assert not shown.hide_totals and not shown.hide_remarks
    assert shown.items == page.items
