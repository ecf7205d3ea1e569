"""
PDF Text Unit Extractor

Document-level entry points: open a PDF with PDFEngine, walk the selected
pages in ascending order and produce one PageUnits per page, either as an
async stream or collected into a list.
"""

import asyncio
import logging
from typing import AsyncIterator, Dict, List, Optional, Union

from pagetext.engine import EngineConfig, LayoutConfig, PageRange, PDFEngine
from pagetext.models.unit_types import PageUnits
from pagetext.utils.validation import (
    MemoryLimitError,
    PageExtractionError,
    PdfValidationError,
    ProcessingTimeoutError,
    ResourceGuard,
)

DEFAULT_START_PAGE = 1

logger = logging.getLogger(__name__)

PdfSource = Union[str, bytes]


def _resolve_layout_config(
    layout_config: Optional[Union[LayoutConfig, Dict]]
) -> LayoutConfig:
    if layout_config is None:
        config = LayoutConfig.default()
    elif isinstance(layout_config, LayoutConfig):
        config = layout_config
    else:
        config = LayoutConfig.from_dict(layout_config)

    if not config.validate():
        raise ValueError(f"Invalid layout configuration: {config!r}")
    return config


async def iter_text_units(
    source: PdfSource,
    start_page: int = DEFAULT_START_PAGE,
    end_page: Optional[int] = None,
    layout_config: Optional[Union[LayoutConfig, Dict]] = None,
    engine_config: Optional[EngineConfig] = None
) -> AsyncIterator[PageUnits]:
    """
    Stream text units page by page.

    Pages are read strictly in ascending order; each page is yielded before
    the next one is read.

    Args:
        source: PDF path or bytes
        start_page: First 1-based page to extract
        end_page: Last 1-based page (inclusive), None for the last page
        layout_config: LayoutConfig or dict of its fields
        engine_config: Engine configuration

    Yields:
        PageUnits per page

    Raises:
        PdfValidationError: If the document cannot be opened
        PageExtractionError: If a page's text layer cannot be read
        ValueError: If the page range or configuration is invalid
    """
    config = _resolve_layout_config(layout_config)
    page_range = PageRange(start=max(DEFAULT_START_PAGE, start_page), end=end_page)
    engine_config = engine_config or EngineConfig.default()

    with PDFEngine(source, config=engine_config, layout_config=config) as engine:
        page_numbers = engine.resolve_page_range(page_range)
        processor = engine.text_unit_processor

        logger.info(
            f"Extracting text units: {engine.get_page_count()} total pages, "
            f"{len(page_numbers)} selected {page_range}, granularity={config.granularity}"
        )

        with ResourceGuard(max_seconds=engine_config.timeout_seconds) as guard:
            for page_num in page_numbers:
                guard.check()
                try:
                    page_units = await processor.run_page(page_num - 1)
                except (ProcessingTimeoutError, MemoryLimitError, PdfValidationError):
                    raise
                except Exception as e:
                    logger.error(f"Text unit extraction failed on page {page_num}: {e}", exc_info=True)
                    raise PageExtractionError(page_num, str(e)) from e

                logger.debug(f"Page {page_num}: {len(page_units.units)} units")
                yield page_units

        logger.info(f"Extraction complete: {processor.pages_processed} pages, {processor.units_emitted} units")


async def collect_text_units(
    source: PdfSource,
    start_page: int = DEFAULT_START_PAGE,
    end_page: Optional[int] = None,
    layout_config: Optional[Union[LayoutConfig, Dict]] = None,
    engine_config: Optional[EngineConfig] = None
) -> List[PageUnits]:
    """Extract the selected pages and return their PageUnits in page order."""
    return [
        page_units
        async for page_units in iter_text_units(source, start_page, end_page, layout_config, engine_config)
    ]


def extract_text_units(
    source: PdfSource,
    start_page: int = DEFAULT_START_PAGE,
    end_page: Optional[int] = None,
    layout_config: Optional[Union[LayoutConfig, Dict]] = None,
    engine_config: Optional[EngineConfig] = None
) -> List[PageUnits]:
    """
    Blocking variant of `collect_text_units` for scripts and worker threads.

    Must not be called from a running event loop.
    """
    return asyncio.run(collect_text_units(source, start_page, end_page, layout_config, engine_config))
