from __future__ import annotations


class InvoiceGenError(Exception):
    """Base class for errors raised by the pagination/export engine."""


class PaginationCancelled(InvoiceGenError):
    """The caller asked pagination to stop; no partial page list is returned."""


class PaginationError(InvoiceGenError):
    """Produced pages do not reproduce the item list (internal bug, never 'page too small')."""


class ExportError(InvoiceGenError):
    """Rasterizing or assembling a page failed; the whole export is abandoned."""
