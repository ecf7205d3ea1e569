"""
PDF Document Engine

Owns the open document for the duration of an extraction: glyph access
through pdfplumber, page geometry through pikepdf, the content-derived
document id, and the page processors that turn pages into results.

Usage:
    >>> from pagetext.engine import PDFEngine, LayoutConfig
    >>>
    >>> with PDFEngine(pdf_bytes, layout_config=LayoutConfig()) as engine:
    ...     page_units = await engine.text_unit_processor.run_page(0)
"""

import io
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

import pdfplumber
import pikepdf

from pagetext.engine.config import EngineConfig, LayoutConfig, PageRange
from pagetext.engine.base_processor import ProcessorRegistry
from pagetext.engine.page_source import PlumberPage
from pagetext.utils.hashing import document_id
from pagetext.utils.validation import PdfValidationError, validate_pdf_source

logger = logging.getLogger(__name__)

PdfSource = Union[str, bytes]
TEXT_UNITS = 'text_units'


@dataclass(frozen=True)
class DocumentInfo:
    """Facts about the open document, fixed for the engine session."""
    document_id: str
    page_count: int
    size_mb: float


def _inherited(page_obj, key: str):
    """Look up a page attribute, following /Parent for inheritable keys."""
    node = page_obj
    while node is not None:
        if key in node:
            return node[key]
        node = node.get("/Parent")
    return None


class PDFEngine:
    """
    Context manager around one PDF document.

    The document is opened on `__enter__` and every handle is released on
    `__exit__`, including when the body raised.

    Example:
        >>> with PDFEngine('document.pdf') as engine:
        ...     engine.get_page_count(), engine.document_id
    """

    def __init__(
        self,
        source: PdfSource,
        config: Optional[EngineConfig] = None,
        layout_config: Optional[LayoutConfig] = None
    ):
        """
        Args:
            source: Path to a PDF file or its raw bytes
            config: Engine configuration (uses defaults if None)
            layout_config: Layout configuration for the text unit processor

        Raises:
            FileNotFoundError: If a path is given and does not exist
            PdfValidationError: If the engine configuration is invalid
        """
        if not isinstance(source, (bytes, bytearray)) and not os.path.exists(source):
            raise FileNotFoundError(f"PDF file not found: {source}")

        self.source = source
        self.config = config or EngineConfig.default()
        self.layout_config = layout_config or LayoutConfig.default()
        if not self.config.validate():
            raise PdfValidationError("Invalid engine configuration")

        self._plumber: Optional[pdfplumber.PDF] = None
        self._pike: Optional[pikepdf.Pdf] = None
        self._info: Optional[DocumentInfo] = None
        self._processors = ProcessorRegistry()

    @property
    def source_name(self) -> str:
        if isinstance(self.source, (bytes, bytearray)):
            return f"<{len(self.source)} bytes>"
        return os.path.basename(self.source)

    def _load(self) -> bytes:
        if isinstance(self.source, (bytes, bytearray)):
            return bytes(self.source)
        with open(self.source, 'rb') as f:
            return f.read()

    def __enter__(self) -> 'PDFEngine':
        """
        Raises:
            PdfValidationError: If the document fails validation or cannot be parsed
        """
        logger.info(f"Opening PDF: {self.source_name}")
        try:
            if self.config.validate_on_open:
                self._check_source()

            content = self._load()
            self._plumber = pdfplumber.open(io.BytesIO(content))
            self._pike = pikepdf.open(io.BytesIO(content))
            self._info = DocumentInfo(
                document_id=document_id(content, self.config.doc_id_length),
                page_count=len(self._plumber.pages),
                size_mb=len(content) / (1024 * 1024),
            )
            self._attach_processors()
        except Exception as e:
            logger.error(f"Failed to open PDF {self.source_name}: {e}")
            self._release()
            raise PdfValidationError(f"Failed to open PDF: {str(e)}") from e

        logger.info(
            f"PDF opened: {self._info.page_count} pages, "
            f"{self._info.size_mb:.2f} MB, id {self._info.document_id}"
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            logger.error(f"Engine for {self.source_name} closing after error: {exc_val}")
        self._release()
        logger.info(f"Closed PDF: {self.source_name}")
        return False

    def _check_source(self) -> None:
        report = validate_pdf_source(self.source, self.config.max_file_size_mb)
        for warning in report.warnings:
            logger.warning(warning)
        report.raise_for_errors()

    def _attach_processors(self) -> None:
        # Imported here: the processor pulls in the layout pipeline, which imports engine config
        from pagetext.engine.text_unit_processor import TextUnitProcessor

        self._processors.add(TEXT_UNITS, TextUnitProcessor(self, self.layout_config))
        self._processors.activate_all()

    def _release(self) -> None:
        """Drop processors and close both document handles. Idempotent."""
        self._processors.clear()

        for label, handle in (("pdfplumber", self._plumber), ("pikepdf", self._pike)):
            if handle is None:
                continue
            try:
                handle.close()
            except Exception as e:
                logger.warning(f"Error closing {label} document: {e}")

        self._plumber = None
        self._pike = None
        self._info = None

    @property
    def is_open(self) -> bool:
        return self._info is not None

    @property
    def info(self) -> DocumentInfo:
        """
        Raises:
            RuntimeError: If the engine is not open
        """
        if self._info is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._info

    @property
    def document_id(self) -> str:
        """SHA-256 prefix of the document bytes."""
        return self.info.document_id

    def get_page_count(self) -> int:
        return self.info.page_count

    def resolve_page_range(self, page_range: Optional[PageRange] = None) -> List[int]:
        """1-based page numbers selected by a range, clamped to the document."""
        return (page_range or PageRange()).to_page_numbers(self.info.page_count)

    def _page_object(self, page_index: int):
        count = self.info.page_count
        if not 0 <= page_index < count:
            raise IndexError(f"Page index {page_index} out of bounds (0-{count - 1})")
        return self._pike.pages[page_index].obj

    def get_page_size(self, page_index: int) -> Tuple[float, float]:
        """
        Displayed size of a page: MediaBox extent, swapped for quarter-turn /Rotate.

        Args:
            page_index: 0-based page index

        Returns:
            Tuple of (width, height) in points

        Raises:
            IndexError: If page index out of bounds
            PdfValidationError: If the page has no MediaBox
        """
        page_obj = self._page_object(page_index)

        mediabox = _inherited(page_obj, "/MediaBox")
        if mediabox is None:
            raise PdfValidationError(f"Page {page_index + 1} has no MediaBox")
        x0, y0, x1, y1 = (float(v) for v in mediabox)
        size = (abs(x1 - x0), abs(y1 - y0))

        rotate = _inherited(page_obj, "/Rotate")
        if rotate is not None and int(rotate) % 180 == 90:
            return size[1], size[0]
        return size

    def get_page(self, page_index: int) -> PlumberPage:
        """
        Page adapter for the page extractor.

        Raises:
            IndexError: If page index out of bounds
        """
        width, height = self.get_page_size(page_index)
        return PlumberPage(self._plumber.pages[page_index], width, height, page_index)

    @property
    def text_unit_processor(self):
        processor = self._processors.get(TEXT_UNITS)
        if processor is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return processor

    def get_status(self) -> Dict[str, Any]:
        info = self._info
        return {
            'is_open': self.is_open,
            'source': self.source_name,
            'page_count': info.page_count if info else None,
            'document_id': info.document_id if info else None,
            'file_size_mb': info.size_mb if info else None,
            'processors': self._processors.stats(),
            'config': self.config.to_dict(),
            'layout_config': self.layout_config.to_dict(),
        }

    def __repr__(self) -> str:
        if self._info is None:
            return f"PDFEngine({self.source_name}, closed)"
        return f"PDFEngine({self.source_name}, open, {self._info.page_count} pages)"
