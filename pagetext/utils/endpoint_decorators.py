"""
Decorators for FastAPI extraction endpoints.

`handle_pdf_processing` validates the upload, keeps its bytes on
`request.state.file_content`, runs the endpoint under a timeout and turns
extraction errors into HTTP responses.
"""

import asyncio
import logging
from functools import wraps
from typing import Callable, Optional, Tuple, Type

from fastapi import HTTPException, Request, UploadFile

from pagetext.utils.validation import (
    VALIDATION_CONSTANTS,
    MemoryLimitError,
    PageExtractionError,
    PdfValidationError,
    ProcessingTimeoutError,
    check_pdf_bytes,
)

logger = logging.getLogger(__name__)

# First match wins, so subclasses must precede their bases
ERROR_STATUS: Tuple[Tuple[Type[Exception], int, str], ...] = (
    (PdfValidationError, 400, "PDF validation failed"),
    (PageExtractionError, 422, "Page extraction failed"),
    (ProcessingTimeoutError, 408, "Processing timeout"),
    (MemoryLimitError, 507, "Memory limit exceeded"),
    (ValueError, 400, "Invalid request"),
)


async def _read_upload(file: Optional[UploadFile]) -> bytes:
    """
    Read and validate an uploaded PDF.

    Raises:
        HTTPException: 400 for a missing file, a non-PDF name, unreadable or invalid content
    """
    if file is None:
        raise HTTPException(status_code=400, detail="File parameter is required")

    if not file.filename or not file.filename.lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    try:
        content = await file.read()
    except OSError as e:
        logger.error(f"Could not read upload {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=f"Error reading uploaded file: {e}") from e

    report = check_pdf_bytes(content, VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB'])
    if not report.is_valid:
        logger.warning(f"Rejected upload {file.filename}: {report.first_error}")
        raise HTTPException(status_code=400, detail=report.first_error)
    return content


def _to_http_error(error: Exception, filename: str) -> HTTPException:
    for error_type, status_code, label in ERROR_STATUS:
        if isinstance(error, error_type):
            log = logger.warning if status_code == 400 else logger.error
            log(f"{label} for {filename}: {error}")
            return HTTPException(status_code=status_code, detail=f"{label}: {error}")

    logger.exception(f"Unexpected error processing {filename}")
    return HTTPException(status_code=500, detail=f"Internal server error during PDF processing: {error}")


def handle_pdf_processing(func: Callable) -> Callable:
    """
    Wrap a PDF upload endpoint.

    The endpoint must take `request: Request` and `file: UploadFile` as
    keyword arguments; an optional `processing_timeout` keyword sets the
    timeout in seconds.
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request: Optional[Request] = kwargs.get('request')
        if request is None:
            raise HTTPException(
                status_code=500,
                detail="Endpoint decorated with handle_pdf_processing must accept 'request: Request'"
            )

        file: Optional[UploadFile] = kwargs.get('file')
        request.state.file_content = await _read_upload(file)
        timeout_seconds = kwargs.get('processing_timeout') or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']

        try:
            return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(f"Processing {file.filename} timed out after {timeout_seconds}s")
            raise HTTPException(
                status_code=408,
                detail=f"PDF processing timed out after {timeout_seconds} seconds."
            ) from e
        except HTTPException:
            raise
        except Exception as e:
            raise _to_http_error(e, file.filename) from e

    return wrapper
