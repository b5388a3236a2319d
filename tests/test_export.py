from __future__ import annotations

import shutil
from pathlib import Path
from typing import List

import pytest
from PIL import Image
from pypdf import PdfReader

from invoicegen.core.errors import ExportError
from invoicegen.pdf import export
from invoicegen.pdf.export import default_filename, download_pdf, export_pages, images_to_pdf, rasterize
from invoicegen.pdf.page_render import RenderedPage, render_page

needs_poppler = pytest.mark.skipif(shutil.which("pdftoppm") is None, reason="poppler (pdftoppm) not installed")


@pytest.fixture
def fake_raster(monkeypatch) -> List[RenderedPage]:
    """Replace poppler rasterization with blank bitmaps and record what was rasterized."""
    seen: List[RenderedPage] = []

    def _raster(page, scale=None):
        seen.append(page)
        scale = scale or page.settings.raster_scale
        return Image.new("RGB", export.raster_size(scale), "white")

    monkeypatch.setattr(export, "rasterize", _raster)
    return seen


def test_one_image_per_page(make_template, make_record, settings, fake_raster) -> None:
    images = export_pages(make_template(170), make_record(6), settings)
    assert len(images) == 2
    assert all(img.size == (794 * 2, 1123 * 2) for img in images)
    assert [p.config.start_index for p in fake_raster] == [0, 4]
    assert fake_raster[0].config.hide_totals and not fake_raster[1].config.hide_totals


def test_live_preview_reused_for_single_page(make_template, make_record, settings, fake_raster) -> None:
    template, record = make_template(200), make_record(3)
    live = render_page(template, record, settings=settings)
    export_pages(template, record, settings, live_preview=live)
    assert len(fake_raster) == 1 and fake_raster[0] is live


def test_stale_live_preview_ignored(make_template, make_record, settings, fake_raster) -> None:
    template = make_template(200)
    live = render_page(template, make_record(2), settings=settings)
    export_pages(template, make_record(3), settings, live_preview=live)
    assert len(fake_raster) == 1 and fake_raster[0] is not live


def test_missing_image_aborts_export(make_template, make_record, settings, tmp_path: Path) -> None:
    extra = [{"id": "logo", "type": "image", "x": 600, "y": 420, "width": 100, "height": 50,
              "src": str(tmp_path / "missing.png")}]
    with pytest.raises(ExportError):
        export_pages(make_template(extra=extra), make_record(1), settings)


@needs_poppler
def test_rasterize_exact_size(make_template, make_record, settings) -> None:
    page = render_page(make_template(), make_record(2), settings=settings)
    img = rasterize(page, scale=1)
    assert img.size == (794, 1123)
    # page background is white, text is dark
    assert img.getpixel((2, 2)) == (255, 255, 255)
    assert min(img.convert("L").getdata()) < 128


def test_images_to_pdf_a4_pages(tmp_path: Path) -> None:
    out = tmp_path / "out" / "pages.pdf"
    images = [Image.new("RGB", (794, 1123), "white") for _ in range(3)]
    images_to_pdf(images, out, title="Invoice X")
    reader = PdfReader(str(out))
    assert len(reader.pages) == 3
    box = reader.pages[0].mediabox
    assert float(box.width) == pytest.approx(595.2756, abs=0.01)
    assert float(box.height) == pytest.approx(841.8898, abs=0.01)


def test_images_to_pdf_needs_pages(tmp_path: Path) -> None:
    with pytest.raises(ExportError):
        images_to_pdf([], tmp_path / "empty.pdf")


def test_default_filenames(make_record) -> None:
    assert default_filename(make_record(1)) == "invoice-INV-0001.pdf"
    assert default_filename(make_record(1, kind="quotation", document_number="Q/12")) == "Quotation_Q-12.pdf"
    assert default_filename(make_record(1, document_number=None)) == "invoice.pdf"


def test_download_into_directory(make_template, make_record, settings, fake_raster, tmp_path: Path) -> None:
    path = download_pdf(make_template(170), make_record(6), tmp_path, settings)
    assert path == tmp_path / "invoice-INV-0001.pdf"
    assert len(PdfReader(str(path)).pages) == 2
