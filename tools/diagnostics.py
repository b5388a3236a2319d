from __future__ import annotations

import json
import logging
import os
import sys
from datetime import date
from importlib import import_module
from pathlib import Path
import pkgutil

RESULTS: list[str] = []


def _ok(msg: str) -> None:
    RESULTS.append(f"OK: {msg}")


def _fail(msg: str, e: BaseException | None = None) -> None:
    if e:
        RESULTS.append(f"FAIL: {msg} -> {e}")
    else:
        RESULTS.append(f"FAIL: {msg}")


def env_info() -> None:
    _ok(f"Python {sys.version.split()[0]} on {sys.platform}")
    _ok(f"CWD: {os.getcwd()}")


def import_all_modules() -> None:
    try:
        import invoicegen
        mods = [m.name for m in pkgutil.walk_packages(invoicegen.__path__, invoicegen.__name__ + ".")]
        failures = 0
        for name in sorted(mods):
            try:
                import_module(name)
            except Exception as e:
                failures += 1
                _fail(f"import {name}", e)
        if failures == 0:
            _ok(f"Imported {len(mods)} modules under invoicegen/*")
        else:
            _fail(f"{failures} module(s) failed to import")
    except Exception as e:
        _fail("enumerate invoicegen modules", e)


essential_runtime_checks_ran = False


def store_and_pdf_checks(tmp_dir: Path) -> None:
    global essential_runtime_checks_ran
    try:
        from invoicegen.core.paths import sample_template_path
        from invoicegen.data import db
        from invoicegen.data.repo import create_template, load_template
        from invoicegen.model.document import DocumentRecord
        from invoicegen.pdf.pagination import paginate
        from invoicegen.pdf.pdf_draw import build_document_pdf
        from pypdf import PdfReader
    except Exception as e:
        _fail("import runtime modules (store/pagination/pdf)", e)
        return

    try:
        db.configure(tmp_dir / "diag.db")
        db.create_db_and_tables()
        with sample_template_path().open("r", encoding="utf-8") as f:
            row = create_template("Diagnostics", json.load(f))
        template = load_template(int(row.id))  # type: ignore[arg-type]
        _ok(f"Stored and reloaded template {row.id} ({len(template.elements)} elements) in {db.current_db_path().name}")
    except Exception as e:
        _fail("template store round trip", e)
        return

    inv_no = f"DIAG-{date.today().strftime('%Y%m%d')}"
    record = DocumentRecord.from_dict({
        "invoice_number": inv_no,
        "invoice_date": date.today(),
        "company_name": "Diag",
        "items": [
            {"description": f"Line {i}", "unit_price": 1.23, "quantity": 2, "total": 2.46}
            for i in range(40)
        ],
        "total": 98.40,
    })
    try:
        pages = paginate(template, record)
        _ok(f"Paginated {len(record.items)} items into {len(pages)} page(s)")
    except Exception as e:
        _fail("paginate", e)
        return

    try:
        out_pdf = tmp_dir / f"{inv_no}.pdf"
        build_document_pdf(out_pdf, template, record, pages=pages)
        if out_pdf.exists() and out_pdf.stat().st_size > 0:
            _ok(f"Built PDF {out_pdf.name} ({out_pdf.stat().st_size} bytes)")
        else:
            _fail("PDF not created or empty")
            return
        reader = PdfReader(str(out_pdf))
        txt = reader.pages[-1].extract_text() or ""
        if len(reader.pages) == len(pages) and "Total:" in txt:
            _ok("PDF page count matches and last page shows the total")
        else:
            _fail("PDF pages or totals label do not match pagination")
    except Exception as e:
        _fail("generate/read PDF", e)
        return

    essential_runtime_checks_ran = True


def main() -> None:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    tmp_dir = Path.cwd() / ".diag_out"
    tmp_dir.mkdir(exist_ok=True)

    env_info()
    import_all_modules()
    store_and_pdf_checks(tmp_dir)

    print("==== Diagnostics ====")
    for line in RESULTS:
        print(line)
    if essential_runtime_checks_ran:
        print("RESULT: PASS (core runtime checks succeeded)")
    else:
        print("RESULT: WARN/FAIL (see failures above)")


if __name__ == "__main__":
    main()
