"""
Lay out one page of a template: every element at its fixed box, with the
content it would show for a given page configuration, and the natural size
of that content. Nothing is drawn here; pdf_draw consumes the result.
"""

from __future__ import annotations

import io
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
from reportlab.lib.styles import ParagraphStyle
from reportlab.pdfgen.canvas import Canvas
from reportlab.platypus import Paragraph, Table

from invoicegen.core.currency import fmt_currency, fmt_date
from invoicegen.core.placeholders import placeholder_values, substitute
from invoicegen.core.settings import Settings
from invoicegen.model import template as tpl
from invoicegen.model.document import DocumentRecord
from invoicegen.model.page import PageDescriptor
from invoicegen.model.template import CANVAS_HEIGHT, CANVAS_WIDTH, Element, Template
from invoicegen.pdf import richtext, table_layout
from invoicegen.pdf.fonts import FontSet, register_fonts

logger = logging.getLogger(__name__)

# Layout unit is the CSS pixel; PDF output scales by 72/96
PX_TO_PT = 72.0 / 96.0
PAGE_SIZE_PT = (CANVAS_WIDTH * PX_TO_PT, CANVAS_HEIGHT * PX_TO_PT)

_ALIGN = {"left": TA_LEFT, "center": TA_CENTER, "right": TA_RIGHT, "justify": TA_JUSTIFY}

# Layout kinds
KIND_TEXT = "text"
KIND_TABLE = "table"
KIND_IMAGE = "image"
KIND_RULE = "rule"
KIND_EMPTY = "empty"


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def inset(self, pad: float) -> "Box":
        return Box(self.x + pad, self.y + pad, max(0.0, self.width - 2 * pad), max(0.0, self.height - 2 * pad))


@dataclass
class ElementLayout:
    element: Element
    kind: str
    box: Box
    # area left for content once the box padding is removed
    inner: Box
    content_width: float = 0.0
    content_height: float = 0.0
    paragraphs: List[Paragraph] = field(default_factory=list)
    table: Optional[Table] = None
    # items table only: header row first
    cells: List[List[Paragraph]] = field(default_factory=list)
    col_widths: List[float] = field(default_factory=list)
    row_heights: List[float] = field(default_factory=list)
    color: object = colors.black

    @property
    def item_row_count(self) -> int:
        return max(0, len(self.row_heights) - 1)


@dataclass
class RenderedPage:
    template: Template
    record: DocumentRecord
    config: PageDescriptor
    settings: Settings
    layouts: List[ElementLayout] = field(default_factory=list)

    @property
    def width(self) -> float:
        return float(CANVAS_WIDTH)

    @property
    def height(self) -> float:
        return float(CANVAS_HEIGHT)

    @property
    def items_table(self) -> Optional[ElementLayout]:
        for layout in self.layouts:
            if layout.element.type == tpl.ITEMS_TABLE:
                return layout
        return None

    def layout_for(self, element_id: str) -> Optional[ElementLayout]:
        for layout in self.layouts:
            if layout.element.id == element_id:
                return layout
        return None


@contextmanager
def probe_surface() -> Iterator[Canvas]:
    """An isolated, in-memory drawing surface for one measurement; released on exit."""
    buf = io.BytesIO()
    canv = Canvas(buf, pagesize=PAGE_SIZE_PT)
    try:
        yield canv
    finally:
        buf.close()


def to_color(value: Optional[str], default=colors.black):
    if not value:
        return default
    try:
        return colors.toColor(value)
    except ValueError:
        logger.warning("Unrecognized color %r; using default", value)
        return default


def _line_height(element: Element, settings: Settings) -> float:
    try:
        lh = float(element.line_height) if element.line_height is not None else settings.default_line_height
    except (TypeError, ValueError):
        lh = settings.default_line_height
    return lh if lh > 0 else settings.default_line_height


def _element_markup(element: Element, markup: str) -> str:
    """Apply the element-level weight/style/decoration to a paragraph's markup."""
    if element.underline:
        markup = f"<u>{markup}</u>"
    if element.italic:
        markup = f"<i>{markup}</i>"
    if element.bold:
        markup = f"<b>{markup}</b>"
    return markup


def _paragraph_style(element: Element, fonts: FontSet, settings: Settings, size_delta: float = 0.0, align: Optional[str] = None) -> ParagraphStyle:
    size = float(element.font_size or 12) + size_delta
    return ParagraphStyle(
        f"el-{element.id}-{align or 'left'}",
        fontName=fonts.regular,
        fontSize=size,
        leading=size * _line_height(element, settings),
        textColor=to_color(element.color),
        alignment=_ALIGN.get(align or "left", TA_LEFT),
    )


def _flow(canv: Canvas, layout: ElementLayout, paragraphs: List[Paragraph]) -> None:
    """Wrap paragraphs into the inner box width and record their natural extent."""
    avail = max(1.0, layout.inner.width)
    height = 0.0
    width = layout.inner.width if paragraphs else 0.0
    for para in paragraphs:
        _w, h = para.wrapOn(canv, avail, table_layout.MEASURE_HEIGHT)
        height += h
        # an unbreakable word wider than the box spills sideways
        width = max(width, para.minWidth())
    layout.paragraphs = paragraphs
    layout.content_width = width
    layout.content_height = height


def _rich_text(canv: Canvas, layout: ElementLayout, record: DocumentRecord, fonts: FontSet, settings: Settings) -> None:
    element = layout.element
    content = element.content or ("Remarks" if element.type == tpl.REMARKS_BLOCK else "Text")
    values = placeholder_values(record, settings.currency)
    blocks = richtext.parse_markup(content)
    blocks = richtext.map_text(blocks, lambda s: substitute(s, values))
    paragraphs = []
    for block in blocks:
        markup = richtext.block_markup(block) or "&nbsp;"
        style = _paragraph_style(element, fonts, settings, align=block.align)
        paragraphs.append(Paragraph(_element_markup(element, markup), style))
    _flow(canv, layout, paragraphs)


def _lines_markup(lines: List[str]) -> str:
    return "<br/>".join(lines)


def _customer_block(canv: Canvas, layout: ElementLayout, record: DocumentRecord, fonts: FontSet, settings: Settings) -> None:
    def esc(v: Optional[str]) -> str:
        return escape(str(v or "")).replace("\r\n", "\n").replace("\n", "<br/>")

    markup = _lines_markup([
        "<b>Bill To:</b>",
        f"<b>{esc(record.company_name)}</b>",
        esc(record.address),
        "",
        f"Attn: {esc(record.attention)}",
        f"Tel: {esc(record.telephone)}",
    ])
    style = _paragraph_style(layout.element, fonts, settings)
    _flow(canv, layout, [Paragraph(_element_markup(layout.element, markup), style)])


def _invoice_info(canv: Canvas, layout: ElementLayout, record: DocumentRecord, fonts: FontSet, settings: Settings) -> None:
    label = "Quotation No.:" if record.is_quotation else "Invoice No.:"
    markup = _lines_markup([
        f"<b>{label}</b> {escape(record.document_number or '')}",
        f"<b>Date:</b> {escape(fmt_date(record.document_date))}",
    ])
    style = _paragraph_style(layout.element, fonts, settings)
    _flow(canv, layout, [Paragraph(_element_markup(layout.element, markup), style)])


def _totals_block(canv: Canvas, layout: ElementLayout, record: DocumentRecord, fonts: FontSet, settings: Settings) -> None:
    amount = escape(fmt_currency(record.total, settings.currency))
    style = _paragraph_style(layout.element, fonts, settings, size_delta=4, align="right")
    _flow(canv, layout, [Paragraph(f"<b>Total: {amount}</b>", style)])


def _items_table(canv: Canvas, layout: ElementLayout, config: PageDescriptor, fonts: FontSet, settings: Settings) -> None:
    element = layout.element
    size = float(element.font_size or 12)
    leading = size * _line_height(element, settings)
    widths = table_layout.col_widths(layout.inner.width)
    head_styles, body_styles = table_layout.cell_styles(fonts.regular, fonts.bold, size, leading, layout.color)
    cells = table_layout.build_cells(
        table_layout.header_labels(settings.currency),
        table_layout.body_rows(config, settings.currency),
        head_styles,
        body_styles,
        widths,
    )
    heights = table_layout.measure_rows(canv, cells, widths)
    layout.cells = cells
    layout.col_widths = widths
    layout.row_heights = heights
    layout.table = table_layout.build_items_table(cells, widths, heights)
    layout.content_width = sum(table_layout.column_extents(cells, widths))
    layout.content_height = sum(heights)


def _layout_element(canv: Canvas, element: Element, record: DocumentRecord, config: PageDescriptor, fonts: FontSet, settings: Settings) -> ElementLayout:
    box = Box(element.x, element.y, element.width, element.height)
    layout = ElementLayout(
        element=element,
        kind=KIND_EMPTY,
        box=box,
        inner=box.inset(element.padding),
        color=to_color(element.color),
    )
    t = element.type
    if t in (tpl.TEXT, tpl.REMARKS_BLOCK):
        layout.kind = KIND_TEXT
        _rich_text(canv, layout, record, fonts, settings)
    elif t == tpl.CUSTOMER_BLOCK:
        layout.kind = KIND_TEXT
        _customer_block(canv, layout, record, fonts, settings)
    elif t == tpl.INVOICE_INFO:
        layout.kind = KIND_TEXT
        _invoice_info(canv, layout, record, fonts, settings)
    elif t == tpl.TOTALS_BLOCK:
        layout.kind = KIND_TEXT
        _totals_block(canv, layout, record, fonts, settings)
    elif t == tpl.ITEMS_TABLE:
        layout.kind = KIND_TABLE
        _items_table(canv, layout, config, fonts, settings)
    elif t == tpl.IMAGE:
        # contain-fit never exceeds the box
        layout.kind = KIND_IMAGE if element.src else KIND_EMPTY
        layout.content_width = box.width if element.src else 0.0
        layout.content_height = box.height if element.src else 0.0
    elif t == tpl.LINE:
        layout.kind = KIND_RULE
        layout.content_width = box.width
        layout.content_height = float(element.thickness or 2)
    else:
        logger.debug("Element %s has unknown type %r; rendered empty", element.id, t)
    return layout


def render_page(
    template: Template,
    record: DocumentRecord,
    config: Optional[PageDescriptor] = None,
    settings: Optional[Settings] = None,
    canvas: Optional[Canvas] = None,
) -> RenderedPage:
    """Lay out every element of the template for one page configuration.

    Without a config the page shows all of the record's items with totals and remarks.
    Totals/remarks blocks are left out entirely when the config hides them.
    """
    settings = settings or Settings()
    if config is None:
        config = PageDescriptor(items=tuple(record.items))
    if canvas is None:
        with probe_surface() as surface:
            return render_page(template, record, config, settings, canvas=surface)

    fonts = register_fonts(settings)
    page = RenderedPage(template=template, record=record, config=config, settings=settings)
    for element in template.elements:
        if config.hide_totals and element.type == tpl.TOTALS_BLOCK:
            continue
        if config.hide_remarks and element.type == tpl.REMARKS_BLOCK:
            continue
        page.layouts.append(_layout_element(canvas, element, record, config, fonts, settings))
    return page
