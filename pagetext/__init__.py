"""Sentence- and paragraph-level text units with page rects from PDF text layers."""

__version__ = "1.0.0"
