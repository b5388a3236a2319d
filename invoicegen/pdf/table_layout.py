from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.styles import ParagraphStyle
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.platypus import Paragraph, Table, TableStyle

from invoicegen.core.currency import fmt_currency
from invoicegen.model.page import PageDescriptor

# Column widths (px); Description absorbs the remainder of the table box
COL_W_NO = 40.0
COL_W_UNIT = 120.0
COL_W_QTY = 80.0
COL_W_TOTAL = 120.0
MIN_DESC_W = 40.0

CELL_PADDING = 8.0

COLUMN_ALIGN = (TA_LEFT, TA_LEFT, TA_RIGHT, TA_CENTER, TA_RIGHT)
DESC_COL = 1
# Description cells keep a fixed line height; other cells follow the element
DESCRIPTION_LINE_HEIGHT = 1.4

# Effectively unbounded height used when measuring a cell's natural size
MEASURE_HEIGHT = 1.0e6


def col_widths(table_width: float) -> List[float]:
    fixed = COL_W_NO + COL_W_UNIT + COL_W_QTY + COL_W_TOTAL
    desc = max(MIN_DESC_W, table_width - fixed)
    return [COL_W_NO, desc, COL_W_UNIT, COL_W_QTY, COL_W_TOTAL]


def header_labels(currency: str) -> List[str]:
    return ["No.", "Item Description", f"Unit Price ({currency})", "Quantity", f"Total ({currency})"]


def body_rows(config: PageDescriptor, currency: str) -> List[List[str]]:
    """One text row per item on the page, numbered continuously from config.start_index."""
    rows = []
    for i, item in enumerate(config.items):
        rows.append([
            str(config.display_index(i)),
            item.description,
            fmt_currency(item.unit_price, currency),
            str(item.quantity),
            fmt_currency(item.total, currency),
        ])
    return rows


_WORD_RE = re.compile(r"(\s+)")


def break_long_words(text: str, font: str, font_size: float, avail: float) -> str:
    """Split tokens wider than avail onto their own lines (CSS word-wrap: break-word)."""
    if avail <= 0 or not text:
        return text or ""
    out = []
    for token in _WORD_RE.split(text):
        if not token or token.isspace() or stringWidth(token, font, font_size) <= avail:
            out.append(token)
            continue
        chunks, chunk = [], ""
        for ch in token:
            if chunk and stringWidth(chunk + ch, font, font_size) > avail:
                chunks.append(chunk)
                chunk = ""
            chunk += ch
        chunks.append(chunk)
        out.append("\n".join(chunks))
    return "".join(out)


def _cell_markup(text: str) -> str:
    # pre-wrap: embedded line breaks survive
    text = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    return escape(text).replace("\n", "<br/>")


def cell_styles(font: str, bold_font: str, font_size: float, leading: float, color) -> Tuple[List[ParagraphStyle], List[ParagraphStyle]]:
    """(header styles, body styles), one per column."""
    head, body = [], []
    for i, align in enumerate(COLUMN_ALIGN):
        head.append(ParagraphStyle(
            f"items-head-{i}", fontName=bold_font, fontSize=font_size, leading=leading,
            textColor=color, alignment=align, allowOrphans=1, allowWidows=1,
        ))
        body.append(ParagraphStyle(
            f"items-body-{i}", fontName=font, fontSize=font_size,
            leading=font_size * DESCRIPTION_LINE_HEIGHT if i == DESC_COL else leading,
            textColor=color, alignment=align, allowOrphans=1, allowWidows=1,
        ))
    return head, body


def _cell(text: str, style: ParagraphStyle, width: Optional[float]) -> Paragraph:
    if width is not None:
        text = break_long_words(text, style.fontName, style.fontSize, width - 2 * CELL_PADDING)
    return Paragraph(_cell_markup(text), style)


def build_cells(
    header: Sequence[str],
    rows: Sequence[Sequence[str]],
    head_styles: Sequence[ParagraphStyle],
    body_styles: Sequence[ParagraphStyle],
    widths: Optional[Sequence[float]] = None,
) -> List[List[Paragraph]]:
    """Paragraph cells; with column widths, over-long words are broken to fit."""
    def w(i: int) -> Optional[float]:
        return widths[i] if widths is not None else None

    data = [[_cell(t, head_styles[i], w(i)) for i, t in enumerate(header)]]
    for row in rows:
        data.append([_cell(t, body_styles[i], w(i)) for i, t in enumerate(row)])
    return data


def measure_rows(canv, cells: Sequence[Sequence[Paragraph]], widths: Sequence[float]) -> List[float]:
    """Natural height of every row: tallest wrapped cell plus vertical padding."""
    heights = []
    for row in cells:
        tallest = 0.0
        for para, width in zip(row, widths):
            _w, h = para.wrapOn(canv, max(1.0, width - 2 * CELL_PADDING), MEASURE_HEIGHT)
            tallest = max(tallest, h)
        heights.append(tallest + 2 * CELL_PADDING)
    return heights


def column_extents(cells: Sequence[Sequence[Paragraph]], widths: Sequence[float]) -> List[float]:
    """Width each column really occupies; wider than allotted when a cell cannot wrap."""
    extents = list(widths)
    for row in cells:
        for i, para in enumerate(row):
            extents[i] = max(extents[i], para.minWidth() + 2 * CELL_PADDING)
    return extents


def _cut_cell(canv, para: Paragraph, width: float, avail: float) -> Paragraph:
    aw = max(1.0, width - 2 * CELL_PADDING)
    _w, h = para.wrapOn(canv, aw, MEASURE_HEIGHT)
    if h <= avail:
        return para
    parts = para.split(aw, avail)
    return parts[0] if parts else Paragraph("", para.style)


def visible_rows(
    canv,
    cells: Sequence[Sequence[Paragraph]],
    widths: Sequence[float],
    row_heights: Sequence[float],
    max_height: float,
) -> Tuple[List[List[Paragraph]], List[float]]:
    """
    Rows that start above max_height. The row crossing it keeps only the lines
    that end above it; rows below are dropped.
    """
    kept: List[List[Paragraph]] = []
    heights: List[float] = []
    top = 0.0
    for row, h in zip(cells, row_heights):
        room = max_height - top
        if h <= room:
            kept.append(list(row))
            heights.append(h)
            top += h
            continue
        avail = room - CELL_PADDING
        if avail > 0:
            kept.append([_cut_cell(canv, para, w, avail) for para, w in zip(row, widths)])
            heights.append(room)
        break
    return kept, heights


def build_items_table(cells: List[List[Paragraph]], widths: Sequence[float], row_heights: Sequence[float]) -> Table:
    """
    Borderless items table; row heights are the measured ones so drawing matches measurement.
    """
    t = Table(cells, colWidths=list(widths), rowHeights=list(row_heights))

    ts = TableStyle()
    # Padding
    ts.add("LEFTPADDING", (0, 0), (-1, -1), CELL_PADDING)
    ts.add("RIGHTPADDING", (0, 0), (-1, -1), CELL_PADDING)
    ts.add("TOPPADDING", (0, 0), (-1, -1), CELL_PADDING)
    ts.add("BOTTOMPADDING", (0, 0), (-1, -1), CELL_PADDING)
    ts.add("VALIGN", (0, 0), (-1, -1), "TOP")

    t.setStyle(ts)
    return t
