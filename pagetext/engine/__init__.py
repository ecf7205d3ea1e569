"""
Text Unit Extraction Engine

Core engine module for opening documents and coordinating extraction.
Contains the PDFEngine class, configuration and page sources.
"""

__version__ = "1.0.0"

from pagetext.engine.config import EngineConfig, LayoutConfig, PageRange
from pagetext.engine.base_processor import BaseProcessor, ProcessorRegistry
from pagetext.engine.page_source import PageProxy, PlumberPage
from pagetext.engine.pdf_engine import PDFEngine

__all__ = [
    'PDFEngine',
    'EngineConfig',
    'LayoutConfig',
    'PageRange',
    'BaseProcessor',
    'ProcessorRegistry',
    'PageProxy',
    'PlumberPage',
]
