"""
Page processors attached to a PDFEngine.

A processor turns one page of the open document into a result. The engine
activates its processors once the document is open and deactivates them in
reverse order when it closes; `run_page` refuses to work outside that window.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from pagetext.engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class BaseProcessor(ABC):
    """
    Page-level worker bound to an engine.

    Subclasses implement `process_page`; callers go through `run_page`,
    which checks the engine is open and keeps per-document counters.
    """

    def __init__(self, engine: 'PDFEngine'):
        self.engine = engine
        self._active = False
        self.pages_processed = 0
        self.processing_seconds = 0.0

    def activate(self) -> None:
        """Start a document session; counters restart from zero."""
        self.pages_processed = 0
        self.processing_seconds = 0.0
        self._active = True
        logger.debug(f"{self.__class__.__name__} activated")

    def deactivate(self) -> None:
        """End the document session. Safe to call more than once."""
        if self._active:
            logger.debug(
                f"{self.__class__.__name__} deactivated after {self.pages_processed} pages "
                f"({self.processing_seconds:.2f}s)"
            )
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    def ensure_ready(self) -> None:
        """
        Raises:
            RuntimeError: If the processor is inactive or its engine is closed
        """
        if not self._active:
            raise RuntimeError(f"{self.__class__.__name__} is not active")
        if self.engine is None or not self.engine.is_open:
            raise RuntimeError(f"{self.__class__.__name__} used outside an open engine")

    @abstractmethod
    async def process_page(self, page_index: int) -> Any:
        """Produce the result for one 0-based page index."""

    async def run_page(self, page_index: int) -> Any:
        """
        Process a page after checking state, updating the counters.

        Args:
            page_index: 0-based page index

        Returns:
            Whatever `process_page` returns
        """
        self.ensure_ready()

        started = time.perf_counter()
        result = await self.process_page(page_index)
        self.processing_seconds += time.perf_counter() - started
        self.pages_processed += 1
        return result

    def stats(self) -> Dict[str, Any]:
        return {
            'active': self._active,
            'pages_processed': self.pages_processed,
            'processing_seconds': round(self.processing_seconds, 3),
        }

    def __repr__(self) -> str:
        state = "active" if self._active else "inactive"
        return f"{self.__class__.__name__}({state}, {self.pages_processed} pages)"


class ProcessorRegistry:
    """Named processors of one engine, activated in insertion order."""

    def __init__(self):
        self._by_name: Dict[str, BaseProcessor] = {}

    def add(self, name: str, processor: BaseProcessor) -> None:
        if name in self._by_name:
            raise ValueError(f"Processor '{name}' is already registered")
        self._by_name[name] = processor
        logger.debug(f"Registered processor: {name}")

    def get(self, name: str) -> Optional[BaseProcessor]:
        return self._by_name.get(name)

    def activate_all(self) -> None:
        for processor in self._by_name.values():
            processor.activate()

    def deactivate_all(self) -> None:
        """Deactivate in reverse order, continuing past failures."""
        for name, processor in reversed(list(self._by_name.items())):
            try:
                processor.deactivate()
            except Exception as e:
                logger.warning(f"Error deactivating processor '{name}': {e}")

    def clear(self) -> None:
        self.deactivate_all()
        self._by_name.clear()

    @property
    def names(self) -> List[str]:
        return list(self._by_name)

    def stats(self) -> Dict[str, Dict[str, Any]]:
        return {name: processor.stats() for name, processor in self._by_name.items()}

    def __repr__(self) -> str:
        return f"ProcessorRegistry({self.names})"
