"""PDF Text Unit Extractor Python Server"""

import asyncio
import importlib
import logging
import os
import socket
from typing import AsyncIterator, List, Literal, Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from rich.console import Console
from rich.logging import RichHandler

from pagetext.engine.config import EngineConfig, LayoutConfig, PageRange
from pagetext.extractors.text_extractor import collect_text_units, iter_text_units
from pagetext.models.unit_types import PageUnits, StreamErrorRecord, TextUnitExtractionOptions
from pagetext.utils.endpoint_decorators import handle_pdf_processing
from pagetext.utils.validation import (
    MemoryLimitError,
    PageExtractionError,
    PdfValidationError,
    ProcessingTimeoutError,
)

API_VERSION = "1.0.0"
API_TITLE = "PDF Text Unit Extractor API"
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]
NDJSON_MEDIA_TYPE = "application/x-ndjson"

# (default, minimum, maximum) seconds
PROCESSING_TIMEOUT = (300, 30, 600)

# Module name -> what the service uses it for
RUNTIME_DEPENDENCIES = {
    "pdfplumber": "glyph_extraction",
    "pikepdf": "page_geometry",
    "numpy": "layout_math",
}

logger = logging.getLogger("rich")

app = FastAPI(
    title=API_TITLE,
    description="Extract reading-order sentences and paragraphs with page rects from PDF files",
    version=API_VERSION
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def layout_options(
    granularity: Literal["sentence", "paragraph"] = Form("sentence", description="Emit one unit per sentence or per paragraph"),
    sentence_scope: Literal["paragraph", "column"] = Form("paragraph", description="Split sentences per paragraph or across a whole column"),
    filter_watermarks: bool = Form(True, description="Remove stamp words and diagonal text"),
    watermark_rotation_filter: bool = Form(True, description="Treat text rotated between 10 and 170 degrees as a watermark"),
) -> LayoutConfig:
    """Form fields shared by the extraction endpoints, as a layout configuration."""
    options = TextUnitExtractionOptions(
        granularity=granularity,
        sentence_scope=sentence_scope,
        filter_watermarks=filter_watermarks,
        watermark_rotation_filter=watermark_rotation_filter,
    )
    return LayoutConfig.from_dict(options.model_dump())


def page_selection(
    start_page: int = Query(1, ge=1, description="First page to extract (1-based)"),
    end_page: Optional[int] = Query(None, ge=1, description="Last page to extract (1-based), omit for the rest of the document"),
) -> PageRange:
    try:
        return PageRange(start=start_page, end=end_page)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


TimeoutQuery = Query(
    PROCESSING_TIMEOUT[0],
    ge=PROCESSING_TIMEOUT[1],
    le=PROCESSING_TIMEOUT[2],
    description="Processing timeout in seconds"
)


def _engine_config(processing_timeout: Optional[int]) -> EngineConfig:
    """Engine settings for one request; the timeout is checked before each page."""
    return EngineConfig(timeout_seconds=processing_timeout or PROCESSING_TIMEOUT[0])


@app.get("/")
async def root():
    """Service banner"""
    return {
        "message": API_TITLE,
        "version": API_VERSION,
        "features": [
            "Sentence and paragraph units in reading order",
            "Multi-column and vertical writing layouts",
            "Per-line highlight rects",
            "Stable content-derived unit ids",
            "Watermark removal",
            "NDJSON page streaming"
        ]
    }


@app.get("/health")
async def health_check():
    """Report the versions of the PDF and numeric libraries, or 503 if one is missing"""
    versions = {}
    for module_name in RUNTIME_DEPENDENCIES:
        try:
            versions[module_name] = importlib.import_module(module_name).__version__
        except ImportError as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "error": f"Missing dependency: {module_name}"}
            )

    return {
        "status": "healthy",
        "version": API_VERSION,
        "features": {role: name for name, role in RUNTIME_DEPENDENCIES.items()},
        "dependencies": versions,
    }


@app.post("/extract-text-units", response_model=List[PageUnits])
@handle_pdf_processing
async def extract_text_units_endpoint(
    *,
    request: Request,
    file: UploadFile = File(...),
    layout_config: LayoutConfig = Depends(layout_options),
    pages: PageRange = Depends(page_selection),
    processing_timeout: Optional[int] = TimeoutQuery
):
    """
    Extract text units from every selected page.

    **Form fields:**
    - `granularity`: `sentence` (default) or `paragraph`
    - `sentence_scope`: `paragraph` (default) or `column`
    - `filter_watermarks`: remove watermark stamps (default: `true`)
    - `watermark_rotation_filter`: also remove diagonal text (default: `true`)

    **Returns:**
    - One entry per page with `units` (id, source, status, rects) and `watermarks`
    """
    logger.info(f"Extracting {layout_config.granularity} units from {pages}")

    result = await collect_text_units(
        request.state.file_content,
        start_page=pages.start,
        end_page=pages.end,
        layout_config=layout_config,
        engine_config=_engine_config(processing_timeout)
    )

    logger.info(f"Extracted {sum(len(p.units) for p in result)} units from {len(result)} pages")
    return result


# Failures that end a stream, with their record kind; subclasses first
STREAM_ERRORS = (
    (PageExtractionError, "page_extraction_failed"),
    (ProcessingTimeoutError, "processing_timeout"),
    (MemoryLimitError, "memory_limit_exceeded"),
    (PdfValidationError, "pdf_validation_failed"),
)


def _stream_error(error: Exception) -> StreamErrorRecord:
    kind = next(name for error_type, name in STREAM_ERRORS if isinstance(error, error_type))
    return StreamErrorRecord(error=kind, page=getattr(error, "page_number", None), detail=str(error))


async def _ndjson_pages(
    content: bytes,
    pages: PageRange,
    layout_config: LayoutConfig,
    engine_config: EngineConfig
) -> AsyncIterator[str]:
    """One JSON line per page; a failure ends the stream with a StreamErrorRecord line."""
    try:
        async for page_units in iter_text_units(
            content,
            start_page=pages.start,
            end_page=pages.end,
            layout_config=layout_config,
            engine_config=engine_config
        ):
            yield page_units.model_dump_json() + "\n"
    except tuple(error_type for error_type, _ in STREAM_ERRORS) as e:
        record = _stream_error(e)
        logger.error(f"Streaming stopped ({record.error}): {e}")
        yield record.model_dump_json(exclude_none=True) + "\n"


@app.post("/extract-text-units/stream")
@handle_pdf_processing
async def stream_text_units_endpoint(
    *,
    request: Request,
    file: UploadFile = File(...),
    layout_config: LayoutConfig = Depends(layout_options),
    pages: PageRange = Depends(page_selection),
    processing_timeout: Optional[int] = TimeoutQuery
):
    """
    Stream text units as newline-delimited JSON, one page per line.

    Pages arrive in ascending order as soon as each is extracted. Options
    match [/extract-text-units](#/default/extract_text_units_endpoint_extract_text_units_post).
    If extraction stops early, the stream ends with a single
    `{"error": ..., "page": ..., "detail": ...}` record; `page` is present only
    when a page could not be read. `processing_timeout` bounds the page loop.
    """
    logger.info(f"Streaming {layout_config.granularity} units from {pages}")

    return StreamingResponse(
        _ndjson_pages(
            request.state.file_content, pages, layout_config, _engine_config(processing_timeout)
        ),
        media_type=NDJSON_MEDIA_TYPE
    )


class _DropShutdownNoise(logging.Filter):
    """Ctrl-C and task cancellation are expected on shutdown."""

    NOISE = (KeyboardInterrupt, asyncio.CancelledError)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.exc_info and record.exc_info[0] in self.NOISE:
            return False
        message = str(record.msg)
        return not any(noise.__name__ in message for noise in self.NOISE)


def _configure_server_logging() -> Console:
    """Route all logging through one Rich handler; LOG_LEVEL tunes the service loggers."""
    console = Console(force_terminal=True)
    handler = RichHandler(console=console, rich_tracebacks=True, show_time=False, show_path=True)
    handler.addFilter(_DropShutdownNoise())

    # Third-party loggers stay at WARNING
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[handler])

    levels = dict.fromkeys(("uvicorn", "uvicorn.error", "fastapi"), logging.INFO)
    levels.update(dict.fromkeys(("rich", "pagetext"), os.getenv("LOG_LEVEL", "INFO").upper()))
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)

    return console


def _find_free_port(start_port: int = 8000, attempts: int = 100) -> int:
    """First port from `start_port` that can be bound, else `start_port`."""
    for port in range(start_port, start_port + attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind(('localhost', port))
            except OSError:
                continue
            return port
    return start_port


server_console = _configure_server_logging()


def run():
    """Start the development server on the first free port from 8000."""
    port = _find_free_port()
    server_console.print(f"[bold green]🚀 Starting server on http://localhost:{port}[/bold green]")

    try:
        uvicorn.run("pagetext.main:app", host="0.0.0.0", port=port, reload=True, log_config=None)
    except KeyboardInterrupt:
        server_console.print("\n[bold yellow]🛑 Server stopped.[/bold yellow]")


if __name__ == "__main__":
    run()
