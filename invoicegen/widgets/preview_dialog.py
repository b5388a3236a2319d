from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import List, Optional

from PySide6.QtWidgets import QDialog, QFileDialog, QHBoxLayout, QLabel, QMessageBox, QPushButton, QVBoxLayout

from invoicegen.core.errors import InvoiceGenError
from invoicegen.core.settings import Settings
from invoicegen.model.document import DocumentRecord
from invoicegen.model.page import PageDescriptor
from invoicegen.model.template import Template
from invoicegen.pdf.export import default_filename, download_pdf
from invoicegen.pdf.page_render import RenderedPage, render_page
from invoicegen.pdf.pagination import paginate
from invoicegen.pdf.pdf_draw import build_document_pdf, document_title

logger = logging.getLogger(__name__)


class PagePreviewDialog(QDialog):
    def __init__(self, parent=None, settings: Optional[Settings] = None) -> None:
        super().__init__(parent)
        self.settings = settings or Settings()
        self.setWindowTitle("Document Preview")
        self.resize(900, 700)

        v = QVBoxLayout(self)
        top = QHBoxLayout()
        self.title = QLabel("Preview")
        top.addWidget(self.title)
        top.addStretch(1)
        self.btn_zoom_out = QPushButton("-")
        self.btn_zoom_in = QPushButton("+")
        self.btn_fit_width = QPushButton("Fit Width")
        self.btn_save = QPushButton("Save PDF")
        for b in (self.btn_zoom_out, self.btn_zoom_in, self.btn_fit_width, self.btn_save):
            top.addWidget(b)
        v.addLayout(top)

        self._pdf_view = None
        self._pdf_doc = None
        try:
            from PySide6.QtPdf import QPdfDocument
            from PySide6.QtPdfWidgets import QPdfView

            self._pdf_view = QPdfView(self)
            self._pdf_doc = QPdfDocument(self)
            self._pdf_view.setPageMode(QPdfView.PageMode.MultiPage)
            v.addWidget(self._pdf_view, 1)
            self.btn_zoom_in.clicked.connect(lambda: self._pdf_view.setZoomFactor(self._pdf_view.zoomFactor() * 1.1))
            self.btn_zoom_out.clicked.connect(lambda: self._pdf_view.setZoomFactor(self._pdf_view.zoomFactor() / 1.1))
            self.btn_fit_width.clicked.connect(lambda: self._pdf_view.setZoomMode(QPdfView.ZoomMode.FitToWidth))
        except ImportError:
            logger.info("QtPdf is not available; preview falls back to a message")
            fallback = QLabel("Preview not available on this system. Use Save PDF to open the document in your viewer.")
            fallback.setWordWrap(True)
            v.addWidget(fallback)
        self.btn_save.clicked.connect(self.save_pdf)

        self.template: Optional[Template] = None
        self.record: Optional[DocumentRecord] = None
        self.pages: List[PageDescriptor] = []
        # the single laid-out page reused by export when the document fits one page
        self.live_page: Optional[RenderedPage] = None
        self._temp_pdf: Optional[Path] = None

    def load_document(self, template: Template, record: DocumentRecord) -> bool:
        """Paginate, draw a temporary PDF and load it into the viewer.

        Returns True if loaded in-app; False if a fallback should be used.
        """
        self.template = template
        self.record = record
        self.pages = []
        self.live_page = None

        tmpdir = Path(tempfile.gettempdir()) / "invoicegen_preview"
        tmpdir.mkdir(parents=True, exist_ok=True)
        out = tmpdir / "preview.pdf"
        try:
            pages = paginate(template, record, self.settings)
            live = render_page(template, record, pages[0], self.settings) if len(pages) == 1 else None
            build_document_pdf(out, template, record, self.settings, pages=pages)
        except Exception:
            logger.exception("Preview PDF could not be built")
            return False
        self.pages = pages
        self.live_page = live
        self.title.setText(f"{document_title(record)} ({len(pages)} page(s))")
        self._temp_pdf = out
        if self._pdf_doc is None:
            return False
        self._pdf_doc.load(str(out))
        self._pdf_view.setDocument(self._pdf_doc)
        return True

    def save_pdf(self) -> Optional[Path]:
        if self.template is None or self.record is None:
            return None
        start = Path(self.settings.last_pdf_dir or ".") / default_filename(self.record)
        target, _ = QFileDialog.getSaveFileName(self, "Save PDF", str(start), "PDF files (*.pdf)")
        if not target:
            return None
        try:
            path = download_pdf(self.template, self.record, target, self.settings, live_preview=self.live_page)
        except InvoiceGenError as exc:
            QMessageBox.warning(self, "Save PDF", f"Could not export the document:\n{exc}")
            return None
        self.settings.last_pdf_dir = str(path.parent)
        return path

    def temp_path(self) -> Optional[Path]:
        return self._temp_pdf
