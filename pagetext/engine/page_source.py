"""
Page sources for text-unit extraction.

`PageProxy` is the interface the page extractor consumes: a viewport and an
awaitable text layer. `PlumberPage` implements it for pages opened by
PDFEngine, reading glyphs through pdfplumber off the event loop.
"""

import asyncio
import logging
from typing import List, Protocol

from pagetext.models.unit_types import TextContentItem, Viewport
from pagetext.processors.char_runs import chars_to_items
from pagetext.utils.transforms import viewport_transform

logger = logging.getLogger(__name__)


class PageProxy(Protocol):
    """
    Structural interface of a page that can be extracted.

    Any object with these two methods works, e.g. a test double that
    returns canned items.
    """

    def get_viewport(self, scale: float = 1.0) -> Viewport:
        """Viewport of the displayed page at the given scale."""
        ...

    async def get_text_content(self) -> List[TextContentItem]:
        """Text-layer items in content order."""
        ...


class PlumberPage:
    """
    Page backed by a pdfplumber page.

    pdfminer already applies the page's /Rotate and MediaBox offset to glyph
    coordinates, so the viewport only flips the y axis of the displayed page.
    """

    def __init__(self, plumber_page, width: float, height: float, page_index: int):
        """
        Args:
            plumber_page: pdfplumber Page
            width: Displayed page width in points
            height: Displayed page height in points
            page_index: 0-based page index
        """
        self._page = plumber_page
        self.width = width
        self.height = height
        self.page_index = page_index

    def get_viewport(self, scale: float = 1.0) -> Viewport:
        return Viewport(
            transform=viewport_transform(self.width, self.height, scale),
            width=self.width * scale,
            height=self.height * scale,
            scale=scale,
        )

    def collect_items(self) -> List[TextContentItem]:
        """Read the page's chars and accumulate them into text-layer items (blocking)."""
        items = chars_to_items(self._page.chars)
        logger.debug(f"Page {self.page_index + 1}: {len(items)} text items")
        return items

    async def get_text_content(self) -> List[TextContentItem]:
        return await asyncio.to_thread(self.collect_items)

    def __repr__(self) -> str:
        return f"PlumberPage(page {self.page_index + 1}, {self.width:.0f}x{self.height:.0f})"
