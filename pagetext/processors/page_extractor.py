"""Page-level text-unit extraction

Runs the layout pipeline over one page: normalize glyph runs, detect
columns, group lines and paragraphs, split sentences, then attach rects and
stable identifiers.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from pagetext.engine.config import LayoutConfig
from pagetext.engine.page_source import PageProxy
from pagetext.models.layout_types import ColumnLayout, NormalizedPage, TextBlock, TextSpan
from pagetext.models.unit_types import PageUnits, TextContentItem, TextUnit, Viewport
from pagetext.processors.column_detection import detect_columns
from pagetext.processors.glyph_normalizer import normalize_items
from pagetext.processors.line_grouping import VERTICAL, detect_writing_mode, group_lines
from pagetext.processors.paragraph_grouping import group_paragraphs
from pagetext.processors.rect_builder import build_rects
from pagetext.processors.sentence_splitting import paragraph_spans, split_blocks
from pagetext.utils.hashing import unit_id

logger = logging.getLogger(__name__)


def layout_blocks(page: NormalizedPage, config: LayoutConfig) -> Tuple[List[TextBlock], Dict[int, int]]:
    """Group a page's runs into paragraphs in reading order, column by column.

    A page without a qualifying gutter is one column, laid out exactly as
    `group_lines` then `group_paragraphs` would lay out the whole page.

    Returns:
        Tuple of (paragraphs, line id per glyph index)
    """
    runs = page.runs
    vertical = detect_writing_mode(runs, config) == VERTICAL

    if vertical:
        columns = ColumnLayout(boundaries=(0.0, page.width), column_of={i: 0 for i in range(len(runs))})
    else:
        columns = detect_columns(runs, page.width, config)

    blocks: List[TextBlock] = []
    line_of: Dict[int, int] = {}
    next_line_id = 0

    for column in range(columns.column_count):
        indices = columns.members(column)
        if not indices:
            continue

        layout = group_lines(runs, indices, vertical=vertical, config=config, first_line_id=next_line_id)
        next_line_id += len(layout.lines)
        line_of.update(layout.line_of)
        blocks.extend(group_paragraphs(runs, layout, config, column))

    logger.debug(
        f"Layout: {'vertical' if vertical else 'horizontal'}, {columns.column_count} columns, "
        f"{next_line_id} lines, {len(blocks)} paragraphs"
    )
    return blocks, line_of


def layout_spans(page: NormalizedPage, config: LayoutConfig) -> Tuple[List[TextSpan], Dict[int, int]]:
    """Sentences or paragraphs of a page, each with the glyph indices it covers.

    Every run lands in at least one span; only a run that contains a
    sentence boundary lands in two.

    Returns:
        Tuple of (spans in reading order, line id per glyph index)
    """
    blocks, line_of = layout_blocks(page, config)
    if config.granularity == "paragraph":
        return paragraph_spans(page.runs, blocks), line_of
    return split_blocks(page.runs, blocks, config.sentence_scope), line_of


def build_page_units(
    items: Sequence[TextContentItem],
    viewport: Viewport,
    doc_id: str,
    page_index: int,
    config: Optional[LayoutConfig] = None
) -> PageUnits:
    """
    Turn a page's text items into text units.

    Args:
        items: Text-layer items of the page
        viewport: Viewport at scale 1.0
        doc_id: Document identifier used as the id prefix
        page_index: 0-based page index
        config: Layout configuration (defaults if None)

    Returns:
        PageUnits with units in reading order and the removed watermarks
    """
    config = config or LayoutConfig.default()
    if page_index < 0:
        raise ValueError(f"page_index must be >= 0, got {page_index}")
    page_number = page_index + 1

    page = normalize_items(items, viewport, config)
    spans, line_of = layout_spans(page, config)

    units = [
        TextUnit(
            id=unit_id(doc_id, page_number, span.text),
            page=page_number,
            source=span.text,
            rects=build_rects(page_number, page.runs, span.members, line_of),
        )
        for span in spans
    ]

    logger.debug(f"Page {page_number}: {len(units)} {config.granularity} units, {len(page.watermarks)} watermarks")
    return PageUnits(page=page_number, units=units, watermarks=list(page.watermarks))


async def extract_page(
    page: PageProxy,
    doc_id: str,
    page_index: int,
    config: Optional[LayoutConfig] = None
) -> PageUnits:
    """
    Extract text units from a page.

    Only reading the text layer suspends; layout runs synchronously once the
    items are available. Errors raised by the page propagate unchanged.

    Args:
        page: Page exposing `get_viewport` and `get_text_content`
        doc_id: Document identifier used as the id prefix
        page_index: 0-based page index
        config: Layout configuration (defaults if None)

    Returns:
        PageUnits for the page

    Raises:
        ValueError: If the configuration or page index is invalid
    """
    config = config or LayoutConfig.default()
    if not config.validate():
        raise ValueError(f"Invalid layout configuration: {config!r}")

    viewport = page.get_viewport(scale=1.0)
    items = await page.get_text_content()
    return build_page_units(items, viewport, doc_id, page_index, config)
