from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from invoicegen.model.template import CANVAS_HEIGHT, CANVAS_WIDTH
from invoicegen.pdf.page_render import ElementLayout, RenderedPage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageFit:
    """Outcome of measuring one page: does anything overflow, and how many item rows fit."""

    overflow: bool
    fits: int


def _tolerance(page: RenderedPage, tolerance: Optional[float]) -> float:
    return page.settings.measurement_tolerance if tolerance is None else float(tolerance)


def element_overflows(layout: ElementLayout, tolerance: float) -> bool:
    """Content larger than the padded box in either axis."""
    return (
        layout.content_height - layout.inner.height > tolerance
        or layout.content_width - layout.inner.width > tolerance
    )


def exceeds_canvas(layout: ElementLayout, tolerance: float) -> bool:
    return (
        layout.box.bottom - CANVAS_HEIGHT > tolerance
        or layout.box.right - CANVAS_WIDTH > tolerance
    )


def has_overflow(page: RenderedPage, tolerance: Optional[float] = None) -> bool:
    tol = _tolerance(page, tolerance)
    for layout in page.layouts:
        if element_overflows(layout, tol):
            logger.debug("Element %s overflows its box", layout.element.id)
            return True
        if exceeds_canvas(layout, tol):
            logger.debug("Element %s extends past the page", layout.element.id)
            return True
    return False


def fit_count(page: RenderedPage, tolerance: Optional[float] = None) -> int:
    """Leading item rows that fit inside the items table box (header counted first)."""
    table = page.items_table
    if table is None:
        return len(page.config.items)
    tol = _tolerance(page, tolerance)
    limit = table.inner.height + tol
    bottom = 0.0
    fits = 0
    for i, h in enumerate(table.row_heights):
        bottom += h
        if bottom > limit:
            break
        if i > 0:
            fits += 1
    return fits


def measure(page: RenderedPage, tolerance: Optional[float] = None) -> PageFit:
    return PageFit(overflow=has_overflow(page, tolerance), fits=fit_count(page, tolerance))
