"""
Input validation, resource limits and error types for text-unit extraction.

Checks return a `ValidationReport` so callers decide whether a problem is
fatal; `ResourceGuard` enforces time and memory budgets between pages.
"""

import logging
import os
import tempfile
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

import psutil

logger = logging.getLogger(__name__)

MB = 1024 * 1024

VALIDATION_CONSTANTS = {
    'PDF_SIGNATURE': b'%PDF-',
    'HEADER_BYTES': 8,
    'MAX_FILE_SIZE_MB': 50,
    'MAX_PROCESSING_TIME_SECONDS': 300,
    'MAX_MEMORY_USAGE_MB': 1000,
    'MIN_AVAILABLE_MEMORY_MB': 100,
    'KNOWN_PDF_VERSIONS': ('1.0', '1.1', '1.2', '1.3', '1.4', '1.5', '1.6', '1.7', '2.0'),
}


class PdfValidationError(Exception):
    """The input is not a PDF this service can open"""


class ProcessingTimeoutError(Exception):
    """Extraction ran past its time budget"""


class MemoryLimitError(Exception):
    """Process memory grew past its budget during extraction"""


class PageExtractionError(Exception):
    """The text layer of a single page could not be read"""

    def __init__(self, page_number: int, message: str):
        super().__init__(f"Page {page_number}: {message}")
        self.page_number = page_number


@dataclass
class ValidationReport:
    """Errors make the input unusable; warnings are logged and ignored."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> Optional[str]:
        return self.errors[0] if self.errors else None

    def raise_for_errors(self) -> None:
        """
        Raises:
            PdfValidationError: With all errors joined, if there are any
        """
        if self.errors:
            raise PdfValidationError("; ".join(self.errors))


def _check_header(head: bytes, report: ValidationReport) -> None:
    signature = VALIDATION_CONSTANTS['PDF_SIGNATURE']
    if len(head) < len(signature):
        report.errors.append("File too small to be a valid PDF")
        return
    if not head.startswith(signature):
        report.errors.append(f"Invalid PDF signature: expected {signature!r}, got {head[:5]!r}")
        return

    version = head[5:8].decode('ascii', errors='replace')
    if version not in VALIDATION_CONSTANTS['KNOWN_PDF_VERSIONS']:
        # Unknown versions still parse
        report.warnings.append(f"Unrecognised PDF version: {version}")


def _check_size(size_bytes: int, max_size_mb: Optional[int], report: ValidationReport) -> None:
    limit = max_size_mb or VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']
    size_mb = size_bytes / MB
    if size_mb > limit:
        report.errors.append(f"File too large: {size_mb:.1f}MB (max: {limit}MB)")


def check_pdf_bytes(content: bytes, max_size_mb: Optional[int] = None) -> ValidationReport:
    """
    Validate document bytes: size limit and PDF header.

    Args:
        content: Raw document bytes
        max_size_mb: Size limit, the service default if None

    Returns:
        ValidationReport
    """
    report = ValidationReport()
    _check_size(len(content), max_size_mb, report)
    if report.is_valid:
        _check_header(content[:VALIDATION_CONSTANTS['HEADER_BYTES']], report)
    return report


def check_pdf_path(file_path: str, max_size_mb: Optional[int] = None) -> ValidationReport:
    """
    Validate a document on disk without reading more than its header.

    Args:
        file_path: Path to the PDF file
        max_size_mb: Size limit, the service default if None

    Returns:
        ValidationReport
    """
    report = ValidationReport()
    try:
        _check_size(os.path.getsize(file_path), max_size_mb, report)
        if not report.is_valid:
            return report
        with open(file_path, 'rb') as f:
            head = f.read(VALIDATION_CONSTANTS['HEADER_BYTES'])
    except FileNotFoundError:
        report.errors.append(f"File not found: {file_path}")
        return report
    except OSError as e:
        report.errors.append(f"Cannot read {file_path}: {e}")
        return report

    _check_header(head, report)
    return report


def check_environment(report: Optional[ValidationReport] = None) -> ValidationReport:
    """
    Add warnings when free memory or temp disk space is low.

    Low resources slow extraction down but never make the input invalid.
    """
    report = report or ValidationReport()
    floor_mb = VALIDATION_CONSTANTS['MIN_AVAILABLE_MEMORY_MB']
    try:
        available_mb = psutil.virtual_memory().available / MB
        if available_mb < floor_mb:
            report.warnings.append(f"Low memory: {available_mb:.1f}MB available (want {floor_mb}MB)")

        temp_dir = tempfile.gettempdir()
        free_mb = psutil.disk_usage(temp_dir).free / MB
        if free_mb < floor_mb:
            report.warnings.append(f"Low disk space in {temp_dir}: {free_mb:.1f}MB (want {floor_mb}MB)")
    except (OSError, psutil.Error) as e:
        report.warnings.append(f"Could not check system resources: {e}")
    return report


def validate_pdf_source(source: Any, max_size_mb: Optional[int] = None) -> ValidationReport:
    """
    Validate a PDF given as a path or as raw bytes, plus the host environment.

    Args:
        source: File path or document bytes
        max_size_mb: Size limit, the service default if None

    Returns:
        ValidationReport combining input errors and environment warnings
    """
    if isinstance(source, (bytes, bytearray)):
        report = check_pdf_bytes(bytes(source), max_size_mb)
    else:
        report = check_pdf_path(str(source), max_size_mb)
    return check_environment(report)


class ResourceGuard:
    """
    Time and memory budget for one extraction, checked between pages.

    Example:
        >>> with ResourceGuard(max_seconds=60) as guard:
        ...     for page in pages:
        ...         guard.check()
    """

    def __init__(self, max_memory_mb: Optional[int] = None, max_seconds: Optional[int] = None):
        self.max_memory_mb = max_memory_mb or VALIDATION_CONSTANTS['MAX_MEMORY_USAGE_MB']
        self.max_seconds = max_seconds or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']
        self._process = psutil.Process()
        self._started: Optional[float] = None
        self._baseline_mb = 0.0

    def _rss_mb(self) -> float:
        return self._process.memory_info().rss / MB

    @property
    def elapsed(self) -> float:
        return 0.0 if self._started is None else time.monotonic() - self._started

    def __enter__(self) -> 'ResourceGuard':
        self._started = time.monotonic()
        self._baseline_mb = self._rss_mb()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logger.debug(
            f"Extraction used {self.elapsed:.2f}s and {self._rss_mb() - self._baseline_mb:+.1f}MB"
        )
        return False

    def check(self) -> None:
        """
        Raises:
            ProcessingTimeoutError: If the time budget is spent
            MemoryLimitError: If resident memory exceeds the budget
        """
        if self.elapsed > self.max_seconds:
            raise ProcessingTimeoutError(f"Extraction exceeded {self.max_seconds}s ({self.elapsed:.1f}s)")

        rss_mb = self._rss_mb()
        if rss_mb > self.max_memory_mb:
            raise MemoryLimitError(f"Memory at {rss_mb:.1f}MB (max: {self.max_memory_mb}MB)")


__all__ = [
    'VALIDATION_CONSTANTS',
    'ValidationReport',
    'check_pdf_bytes',
    'check_pdf_path',
    'check_environment',
    'validate_pdf_source',
    'ResourceGuard',
    'PdfValidationError',
    'ProcessingTimeoutError',
    'MemoryLimitError',
    'PageExtractionError',
]
