from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path

from invoicegen.core.currency import sum_money
from invoicegen.core.paths import sample_template_path
from invoicegen.core.settings import load_settings
from invoicegen.model.document import DocumentRecord
from invoicegen.model.template import Template
from invoicegen.pdf.pagination import paginate
from invoicegen.pdf.pdf_draw import build_document_pdf

# Generates a multi-page sample invoice PDF from the bundled template for demo purposes.


def sample_record(count: int = 30) -> DocumentRecord:
    items = []
    for i in range(count):
        qty = (i % 4) + 1
        price = 25.0 + 12.5 * (i % 7)
        items.append({
            "description": f"Sample item {i + 1}" + ("\n(includes installation)" if i % 5 == 0 else ""),
            "unit_price": price,
            "quantity": qty,
            "total": price * qty,
        })
    total = float(sum_money(it["total"] for it in items))
    return DocumentRecord.from_dict({
        "invoice_number": "INV-00001",
        "invoice_date": date.today().isoformat(),
        "company_name": "(Customer Company)",
        "address": "(Street)\n(City)",
        "attention": "(redacted)",
        "telephone": "(redacted)",
        "items": items,
        "subtotal": total,
        "total": total,
    })


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    out_dir = Path(__file__).resolve().parents[1] / "assets" / "samples"
    out_dir.mkdir(parents=True, exist_ok=True)
    out_pdf = out_dir / "sample-invoice.pdf"

    settings = load_settings()
    with sample_template_path().open("r", encoding="utf-8") as f:
        template = Template.from_dict(json.load(f))
    record = sample_record()

    pages = paginate(template, record, settings)
    for n, page in enumerate(pages, start=1):
        shown = "totals" if not page.hide_totals else "-"
        print(f"page {n}: items {page.start_index + 1}..{page.end_index} {shown}")
    build_document_pdf(out_pdf, template, record, settings, pages=pages)

    print(f"Wrote sample to: {out_pdf}")


if __name__ == "__main__":
    main()
