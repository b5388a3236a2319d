from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Sequence, Union

from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from invoicegen.core.errors import ExportError
from invoicegen.core.settings import Settings
from invoicegen.model.document import DocumentRecord
from invoicegen.model.page import PageDescriptor
from invoicegen.model.template import CANVAS_HEIGHT, Template
from invoicegen.pdf import table_layout
from invoicegen.pdf.page_render import (
    KIND_IMAGE,
    KIND_RULE,
    KIND_TABLE,
    KIND_TEXT,
    PAGE_SIZE_PT,
    PX_TO_PT,
    Box,
    ElementLayout,
    RenderedPage,
    render_page,
)
from invoicegen.pdf.pagination import paginate

logger = logging.getLogger(__name__)

Output = Union[Path, str, BinaryIO]


# ===== Helpers =====
def _flip(box: Box) -> float:
    """Canvas y of a box's bottom edge (layout is top-left origin, PDF is bottom-left)."""
    return CANVAS_HEIGHT - box.y - box.height


def _clip(c: Canvas, box: Box) -> None:
    p = c.beginPath()
    p.rect(box.x, _flip(box), box.width, box.height)
    c.clipPath(p, stroke=0, fill=0)


def _draw_text(c: Canvas, layout: ElementLayout) -> None:
    inner = layout.inner
    avail = max(1.0, inner.width)
    c.saveState()
    _clip(c, layout.box)
    top = inner.y
    for para in layout.paragraphs:
        # wrap again on this canvas; measuring happened on a probe surface
        _w, h = para.wrapOn(c, avail, table_layout.MEASURE_HEIGHT)
        para.drawOn(c, inner.x, CANVAS_HEIGHT - top - h)
        top += h
    c.restoreState()


def _draw_table(c: Canvas, layout: ElementLayout) -> None:
    if layout.table is None:
        return
    # rows past the box bottom are cut off, as on screen
    room = layout.box.bottom - layout.inner.y
    cells, heights = table_layout.visible_rows(c, layout.cells, layout.col_widths, layout.row_heights, room)
    if not cells:
        return
    table = table_layout.build_items_table(cells, layout.col_widths, heights)
    c.saveState()
    _clip(c, layout.box)
    _w, h = table.wrapOn(c, layout.inner.width, table_layout.MEASURE_HEIGHT)
    table.drawOn(c, layout.inner.x, CANVAS_HEIGHT - layout.inner.y - h)
    c.restoreState()


def _draw_image(c: Canvas, layout: ElementLayout) -> None:
    src = layout.element.src
    box = layout.box
    # contain-fit, centered in the box
    c.drawImage(
        ImageReader(src),
        box.x,
        _flip(box),
        width=box.width,
        height=box.height,
        preserveAspectRatio=True,
        anchor="c",
        mask="auto",
    )


def _draw_rule(c: Canvas, layout: ElementLayout) -> None:
    box = layout.box
    thickness = layout.content_height
    c.saveState()
    c.setFillColor(layout.color)
    c.rect(box.x, CANVAS_HEIGHT - box.y - thickness, box.width, thickness, stroke=0, fill=1)
    c.restoreState()


_DRAW = {
    KIND_TEXT: _draw_text,
    KIND_TABLE: _draw_table,
    KIND_IMAGE: _draw_image,
    KIND_RULE: _draw_rule,
}


# ===== Public API =====
def draw_page(c: Canvas, page: RenderedPage) -> None:
    """Draw a laid-out page onto the current canvas page (does not call showPage)."""
    c.saveState()
    c.scale(PX_TO_PT, PX_TO_PT)
    c.setFillColor(colors.white)
    c.rect(0, 0, page.width, page.height, stroke=0, fill=1)
    for layout in page.layouts:
        draw = _DRAW.get(layout.kind)
        if draw is not None:
            draw(c, layout)
    c.restoreState()


def page_pdf_bytes(page: RenderedPage) -> bytes:
    """A one-page PDF of exactly the canvas size holding this page."""
    buf = io.BytesIO()
    c = Canvas(buf, pagesize=PAGE_SIZE_PT)
    draw_page(c, page)
    c.showPage()
    c.save()
    return buf.getvalue()


def document_title(record: DocumentRecord) -> str:
    label = "Quotation" if record.is_quotation else "Invoice"
    return f"{label} {record.document_number or ''}".strip()


def build_document_pdf(
    out: Output,
    template: Template,
    record: DocumentRecord,
    settings: Optional[Settings] = None,
    pages: Optional[Sequence[PageDescriptor]] = None,
) -> int:
    """Draw every page of the document as vector PDF; returns the page count.

    Without explicit pages the record is paginated first.
    """
    settings = settings or Settings()
    if pages is None:
        pages = paginate(template, record, settings)

    if isinstance(out, (str, Path)):
        out = Path(out)
        out.parent.mkdir(parents=True, exist_ok=True)
        target: Union[str, BinaryIO] = str(out)
    else:
        target = out

    c = Canvas(target, pagesize=PAGE_SIZE_PT)
    c.setAuthor(settings.pdf_author)
    c.setTitle(document_title(record))
    try:
        for config in pages:
            rendered = render_page(template, record, config, settings, canvas=c)
            draw_page(c, rendered)
            c.showPage()
        c.save()
    except Exception as exc:
        logger.exception("Drawing %s failed", document_title(record))
        raise ExportError(f"Could not draw PDF: {exc}") from exc
    logger.info("Wrote %s page(s) for %s", len(pages), document_title(record))
    return len(pages)

