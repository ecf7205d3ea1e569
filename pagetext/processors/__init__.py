"""
Text Layout Pipeline Stages

Each stage is a function over immutable inputs; membership is passed along
in side tables keyed by glyph index instead of being written onto runs.

- char_runs: pdfplumber chars to text-layer items
- glyph_normalizer: text-layer items to viewport-space glyph runs, watermark removal
- column_detection: gutter histogram and column assignment
- line_grouping: writing mode and line clustering
- paragraph_grouping: paragraph break policy per writing mode
- sentence_splitting: sentence scanner and run attribution
- rect_builder: per-line bounding boxes
- page_extractor: the whole pipeline for one page

Modules are imported directly (e.g. `from pagetext.processors.page_extractor
import extract_page`); stages depend on engine configuration, which in turn
loads page sources built on these stages.
"""

__version__ = "1.0.0"
