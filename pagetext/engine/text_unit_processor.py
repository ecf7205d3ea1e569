"""Text Unit Processor for PDFEngine

Extracts translation-ready text units from the engine's pages with the
engine's layout configuration.
"""

import logging
from typing import Optional, TYPE_CHECKING

from pagetext.engine.base_processor import BaseProcessor
from pagetext.engine.config import LayoutConfig
from pagetext.models.unit_types import PageUnits
from pagetext.processors.page_extractor import extract_page

if TYPE_CHECKING:
    from pagetext.engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class TextUnitProcessor(BaseProcessor):
    """Turns engine pages into PageUnits."""

    def __init__(self, engine: 'PDFEngine', layout_config: Optional[LayoutConfig] = None):
        """
        Args:
            engine: Parent PDFEngine instance
            layout_config: Layout thresholds, defaults if None

        Raises:
            ValueError: If the layout configuration is invalid
        """
        super().__init__(engine)
        self.layout_config = layout_config or LayoutConfig.default()
        if not self.layout_config.validate():
            raise ValueError(f"Invalid layout configuration: {self.layout_config!r}")

        self.units_emitted = 0

    def activate(self) -> None:
        super().activate()
        self.units_emitted = 0

    async def process_page(self, page_index: int) -> PageUnits:
        page = self.engine.get_page(page_index)
        page_units = await extract_page(page, self.engine.document_id, page_index, self.layout_config)
        self.units_emitted += len(page_units.units)
        return page_units

    def stats(self):
        return {**super().stats(), 'units_emitted': self.units_emitted}
