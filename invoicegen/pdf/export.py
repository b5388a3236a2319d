"""
Export a paginated document as page bitmaps, and assemble bitmaps into a PDF.

Each page is drawn to a one-page vector PDF with reportlab and rasterized with
pdf2image (poppler). Bitmaps are always exactly the canvas size times the
raster scale. Any failure abandons the whole export with ExportError.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, Union

from pdf2image import convert_from_bytes
from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from invoicegen.core.errors import ExportError, PaginationCancelled
from invoicegen.core.settings import Settings
from invoicegen.model.document import DocumentRecord
from invoicegen.model.template import CANVAS_HEIGHT, CANVAS_WIDTH, Template
from invoicegen.pdf.overflow import has_overflow
from invoicegen.pdf.page_render import RenderedPage, render_page
from invoicegen.pdf.pagination import CancelToken, paginate
from invoicegen.pdf.pdf_draw import document_title, page_pdf_bytes

logger = logging.getLogger(__name__)

# Pixels per inch of the layout canvas
BASE_DPI = 96

_UNSAFE_FILENAME = re.compile(r'[\\/:*?"<>|]+')


def raster_size(scale: int) -> tuple[int, int]:
    return CANVAS_WIDTH * scale, CANVAS_HEIGHT * scale


def rasterize(page: RenderedPage, scale: Optional[int] = None) -> Image.Image:
    """Rasterize one rendered page to an RGB bitmap of exactly 794*scale x 1123*scale."""
    scale = int(scale or page.settings.raster_scale or 1)
    size = raster_size(scale)
    try:
        pdf = page_pdf_bytes(page)
        images = convert_from_bytes(pdf, dpi=BASE_DPI * scale, first_page=1, last_page=1)
        if not images:
            raise ExportError("Rasterizer returned no image")
        img = images[0].convert("RGB")
    except ExportError:
        raise
    except Exception as exc:
        logger.exception("Rasterizing page starting at item %s failed", page.config.start_index)
        raise ExportError(f"Could not rasterize page: {exc}") from exc
    if img.size != size:
        # poppler rounds the point size; snap to the exact canvas multiple
        img = img.resize(size, Image.Resampling.LANCZOS)
    return img


def _live_preview_usable(live_preview: Optional[RenderedPage], template: Template, record: DocumentRecord, config) -> bool:
    if live_preview is None:
        return False
    if live_preview.template != template or live_preview.record != record or live_preview.config != config:
        return False
    return not has_overflow(live_preview)


def export_pages(
    template: Template,
    record: DocumentRecord,
    settings: Optional[Settings] = None,
    live_preview: Optional[RenderedPage] = None,
    cancel: Optional[CancelToken] = None,
) -> List[Image.Image]:
    """Paginate the document and return one bitmap per page, in order.

    When the document fits a single page and `live_preview` is that exact page
    already laid out without overflow, it is rasterized as is.
    """
    settings = settings or (live_preview.settings if live_preview is not None else Settings())
    pages = paginate(template, record, settings, cancel=cancel)

    if len(pages) == 1 and _live_preview_usable(live_preview, template, record, pages[0]):
        logger.debug("Exporting the live preview page directly")
        return [rasterize(live_preview, settings.raster_scale)]

    images: List[Image.Image] = []
    for config in pages:
        if cancel is not None and cancel.is_set():
            raise PaginationCancelled("Export cancelled")
        try:
            rendered = render_page(template, record, config, settings)
        except Exception as exc:
            logger.exception("Rendering page starting at item %s failed", config.start_index)
            raise ExportError(f"Could not render page: {exc}") from exc
        images.append(rasterize(rendered, settings.raster_scale))
    logger.info("Exported %s page image(s) for %s", len(images), document_title(record))
    return images


def images_to_pdf(images: Sequence[Image.Image], out: Union[Path, str, BinaryIO], title: Optional[str] = None, author: Optional[str] = None) -> None:
    """One A4 page per image, each image stretched over the full page."""
    if not images:
        raise ExportError("No page images to assemble")
    if isinstance(out, (str, Path)):
        out = Path(out)
        out.parent.mkdir(parents=True, exist_ok=True)
        target: Union[str, BinaryIO] = str(out)
    else:
        target = out
    width, height = A4
    try:
        c = Canvas(target, pagesize=A4)
        if title:
            c.setTitle(title)
        if author:
            c.setAuthor(author)
        for img in images:
            c.drawImage(ImageReader(img), 0, 0, width=width, height=height)
            c.showPage()
        c.save()
    except Exception as exc:
        logger.exception("Assembling PDF failed")
        raise ExportError(f"Could not assemble PDF: {exc}") from exc


def default_filename(record: DocumentRecord) -> str:
    number = _UNSAFE_FILENAME.sub("-", str(record.document_number or "")).strip()
    if record.is_quotation:
        return f"Quotation_{number}.pdf" if number else "Quotation.pdf"
    return f"invoice-{number}.pdf" if number else "invoice.pdf"


def download_pdf(
    template: Template,
    record: DocumentRecord,
    out: Union[Path, str, None] = None,
    settings: Optional[Settings] = None,
    live_preview: Optional[RenderedPage] = None,
    cancel: Optional[CancelToken] = None,
) -> Path:
    """Export the document and write the assembled PDF; returns the file written.

    `out` may be a file path or a directory; a directory (or None, meaning the
    last used PDF folder or the working directory) gets default_filename().
    """
    settings = settings or Settings()
    if out is None:
        out = Path(settings.last_pdf_dir or ".")
    path = Path(out)
    if path.is_dir():
        path = path / default_filename(record)

    images = export_pages(template, record, settings, live_preview=live_preview, cancel=cancel)
    images_to_pdf(images, path, title=document_title(record), author=settings.pdf_author)
    logger.info("Saved %s", path)
    return path
