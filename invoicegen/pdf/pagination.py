"""
Split a document's items over as many pages as the template needs.

The plan is pessimistic: pages are packed assuming the totals and remarks
blocks are hidden (more room for rows), and those blocks are only shown once
a probe proves the remaining rows fit together with them. A repair pass then
guarantees the last page always shows totals, adding an empty trailing page
when nothing else works.

Every probe renders the candidate page on its own surface and measures it;
probes run one after another.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence, Tuple

from invoicegen.core.errors import PaginationCancelled, PaginationError
from invoicegen.core.settings import Settings
from invoicegen.model.document import DocumentRecord, LineItem
from invoicegen.model.page import PageDescriptor
from invoicegen.model.template import Template
from invoicegen.pdf.overflow import PageFit, measure
from invoicegen.pdf.page_render import probe_surface, render_page

logger = logging.getLogger(__name__)


class Probe(Protocol):
    def measure(self, config: PageDescriptor) -> PageFit: ...


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


class PageProbe:
    """Render a candidate page off-screen and ask the overflow oracle about it."""

    def __init__(self, template: Template, record: DocumentRecord, settings: Optional[Settings] = None) -> None:
        self.template = template
        self.record = record
        self.settings = settings or Settings()
        self.count = 0

    def measure(self, config: PageDescriptor) -> PageFit:
        self.count += 1
        with probe_surface() as surface:
            try:
                page = render_page(self.template, self.record, config, self.settings, canvas=surface)
                return measure(page)
            except Exception:
                # Inconclusive measurement counts as overflow; forward progress handles the rest
                logger.warning(
                    "Measuring page (start=%s, items=%s) failed; assuming overflow",
                    config.start_index, len(config.items), exc_info=True,
                )
                return PageFit(overflow=True, fits=0)


def _probe(probe: Probe, config: PageDescriptor, cancel: Optional[CancelToken]) -> PageFit:
    if cancel is not None and cancel.is_set():
        raise PaginationCancelled("Pagination cancelled")
    fit = probe.measure(config)
    logger.debug(
        "Probe start=%s items=%s hide_totals=%s -> overflow=%s fits=%s",
        config.start_index, len(config.items), config.hide_totals, fit.overflow, fit.fits,
    )
    return fit


def _max_prefix(probe: Probe, remaining: Tuple[LineItem, ...], start: int, cancel: Optional[CancelToken]) -> int:
    """Largest prefix of remaining that renders without overflow, totals/remarks hidden."""
    whole = _probe(probe, PageDescriptor(remaining, start, True, True), cancel)
    if not whole.overflow:
        return len(remaining)

    # The row count measured on the full table is the direct answer when the rest of the page is clean
    count = min(max(0, whole.fits), len(remaining))
    if count == 0:
        return 0
    if count < len(remaining) and not _probe(probe, PageDescriptor(remaining[:count], start, True, True), cancel).overflow:
        return count

    # Something besides the rows overflows; overflow is monotonic in the prefix length
    lo, hi = 0, count - 1
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if _probe(probe, PageDescriptor(remaining[:mid], start, True, True), cancel).overflow:
            hi = mid - 1
        else:
            lo = mid
    return lo


def _ensure_totals_page(probe: Probe, pages: List[PageDescriptor], cancel: Optional[CancelToken]) -> None:
    last = pages[-1]
    while last.hide_totals:
        if not _probe(probe, last.shown(), cancel).overflow:
            pages[-1] = last.shown()
            break
        if len(last.items) <= 1:
            break
        kept = PageDescriptor(last.items[:-1], last.start_index, True, True)
        moved = PageDescriptor(last.items[-1:], kept.end_index, True, True)
        pages[-1] = kept
        pages.append(moved)
        last = moved

    if pages[-1].hide_totals:
        # Totals never fit next to rows; give them a page of their own
        pages.append(PageDescriptor((), pages[-1].end_index, False, False))


def check_pages(items: Sequence[LineItem], pages: Sequence[PageDescriptor]) -> None:
    """Pages must reproduce the items in order with a gap-free running start index."""
    expected = 0
    flattened: List[LineItem] = []
    for page in pages:
        if page.start_index != expected:
            raise PaginationError(f"Page starts at {page.start_index}, expected {expected}")
        expected = page.end_index
        flattened.extend(page.items)
    if tuple(flattened) != tuple(items):
        raise PaginationError("Paginated items do not reproduce the document items")


def paginate(
    template: Template,
    record: DocumentRecord,
    settings: Optional[Settings] = None,
    probe: Optional[Probe] = None,
    cancel: Optional[CancelToken] = None,
) -> List[PageDescriptor]:
    """Partition the record's items into page descriptors for this template.

    Never fails for lack of space: at least one item is placed per page, and the
    result always ends with a page that shows totals and remarks.
    Raises PaginationCancelled when `cancel` is set between probes.
    """
    items = tuple(record.items)
    if template.items_table is None or not items:
        return [PageDescriptor(items, 0, False, False)]

    probe = probe or PageProbe(template, record, settings)
    pages: List[PageDescriptor] = []
    start = 0
    remaining = items
    while remaining:
        count = _max_prefix(probe, remaining, start, cancel)
        if count == len(remaining) and not _probe(probe, PageDescriptor(remaining, start), cancel).overflow:
            page = PageDescriptor(remaining, start, False, False)
        else:
            page = PageDescriptor(remaining[: max(1, count)], start, True, True)
        pages.append(page)
        start = page.end_index
        remaining = remaining[len(page.items):]

    _ensure_totals_page(probe, pages, cancel)
    check_pages(items, pages)
    logger.info("Paginated %s item(s) into %s page(s)", len(items), len(pages))
    return pages
