from __future__ import annotations

import os

# Run Qt widgets headless when no display is available
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from typing import Callable, List, Optional

import pytest

from invoicegen.core.settings import Settings
from invoicegen.model.document import DocumentRecord, LineItem
from invoicegen.model.template import Template

# Helvetica 12px, line height 1.4: 16.8 text + 2 * 8 padding per single-line row
ROW_HEIGHT = 32.8


@pytest.fixture
def settings() -> Settings:
    # No TTFs: measurements use the built-in Helvetica metrics
    return Settings(font_path=None, bold_font_path=None)


def template_dict(table_height: Optional[float] = 200.0, extra: Optional[List[dict]] = None) -> dict:
    elements: List[dict] = [
        {"id": "cust", "type": "customerBlock", "x": 40, "y": 20, "width": 360, "height": 150},
        {"id": "info", "type": "invoiceInfo", "x": 494, "y": 20, "width": 260, "height": 60},
        {"id": "totals", "type": "totalsBlock", "x": 454, "y": 900, "width": 300, "height": 40},
        {"id": "remarks", "type": "remarksBlock", "x": 40, "y": 960, "width": 714, "height": 80,
         "content": "Thank you for your business."},
    ]
    if table_height is not None:
        elements.insert(2, {"id": "items", "type": "itemsTable", "x": 40, "y": 200, "width": 714, "height": table_height})
    elements.extend(extra or [])
    return {"elements": elements}


@pytest.fixture
def make_template() -> Callable[..., Template]:
    def _make(table_height: Optional[float] = 200.0, extra: Optional[List[dict]] = None) -> Template:
        return Template.from_dict(template_dict(table_height, extra))
    return _make


def items(n: int) -> tuple:
    return tuple(
        LineItem(description=f"Item {i + 1}", unit_price=10.0, quantity=1, total=10.0)
        for i in range(n)
    )


@pytest.fixture
def make_record() -> Callable[..., DocumentRecord]:
    def _make(n: int = 3, **kw) -> DocumentRecord:
        base = dict(
            items=items(n),
            company_name="Acme Sdn Bhd",
            address="1 Jalan Test\nKuala Lumpur",
            attention="Ms Tan",
            telephone="03-1234 5678",
            document_number="INV-0001",
            document_date="2024-01-05",
            subtotal=10.0 * n,
            total=10.0 * n,
        )
        base.update(kw)
        return DocumentRecord(**base)
    return _make
