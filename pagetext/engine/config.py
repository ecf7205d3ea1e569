"""
Configuration system for text-unit extraction.

Every layout heuristic threshold lives in `LayoutConfig`; document-level
behaviour (validation, identifiers, page selection) lives in `EngineConfig`
and `PageRange`.
"""

from dataclasses import dataclass, fields, asdict
from typing import Optional, Dict, Any, List, Literal
import logging

from pagetext.utils.hashing import DEFAULT_DOC_ID_LENGTH, MAX_DOC_ID_LENGTH, MIN_DOC_ID_LENGTH

logger = logging.getLogger(__name__)

Granularity = Literal["sentence", "paragraph"]
SentenceScope = Literal["paragraph", "column"]


@dataclass(frozen=True)
class LayoutConfig:
    """
    Tunable thresholds for the layout pipeline.

    Distances are in unscaled page units unless the name ends in `_ratio`,
    in which case they are relative to the quantity named in the comment.

    The rotation watermark rule drops any run turned between
    `watermark_min_rotation` and `watermark_max_rotation` degrees. Vertical
    writing reports its runs at about 90 degrees, so vertical pages come out
    empty unless `watermark_rotation_filter` is False.

    Example:
        >>> config = LayoutConfig(granularity="paragraph")
        >>> units = await extract_page(page, doc_id, 0, config=config)
    """

    # Output shape
    granularity: Granularity = "sentence"
    sentence_scope: SentenceScope = "paragraph"

    # Watermarks
    filter_watermarks: bool = True
    watermark_rotation_filter: bool = True  # disable for vertical writing
    watermark_min_rotation: float = 10.0
    watermark_max_rotation: float = 170.0

    # Writing mode
    vertical_mode_ratio: float = 0.4  # share of vertical runs

    # Column detection
    approx_line_threshold: float = 10.0
    min_gap_ratio: float = 0.05  # of page width
    column_buckets: int = 100
    min_gap_occurrences: int = 3
    min_gap_line_ratio: float = 0.15  # of coarse line count
    min_column_ratio: float = 0.2  # of page width

    # Line grouping
    line_min_threshold: float = 2.0
    line_size_ratio: float = 0.6  # of run height (width in vertical mode)

    # Horizontal paragraph breaks, ratios of average line height
    indent_ratio: float = 1.2
    large_gap_ratio: float = 2.5
    medium_gap_ratio: float = 1.8
    short_line_ratio: float = 0.65  # of average line width
    baseline_percentile: float = 15.0

    # Vertical paragraph breaks
    vertical_gap_floor: float = 6.0
    vertical_gap_ratio: float = 1.6  # of average run height

    def problems(self) -> List[str]:
        """Every reason this configuration is unusable, empty when valid."""
        found = []
        if self.granularity not in ("sentence", "paragraph"):
            found.append(f"granularity must be 'sentence' or 'paragraph', got {self.granularity!r}")
        if self.sentence_scope not in ("paragraph", "column"):
            found.append(f"sentence_scope must be 'paragraph' or 'column', got {self.sentence_scope!r}")
        if not 0 <= self.watermark_min_rotation < self.watermark_max_rotation <= 180:
            found.append("watermark rotation window must satisfy 0 <= min < max <= 180")
        if not 0 < self.vertical_mode_ratio <= 1:
            found.append("vertical_mode_ratio must be in (0, 1]")
        if self.column_buckets < 1:
            found.append("column_buckets must be at least 1")
        if not 0 <= self.baseline_percentile <= 100:
            found.append("baseline_percentile must be between 0 and 100")
        found.extend(
            f"{name} must be non-negative"
            for name in _NON_NEGATIVE
            if getattr(self, name) < 0
        )
        return found

    def validate(self) -> bool:
        """Log each problem; True when there are none."""
        return _report(self.problems())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'LayoutConfig':
        """
        Build a LayoutConfig from a plain mapping such as a request body.

        Keys that are not fields are dropped with a warning.
        """
        known = {f.name for f in fields(cls)}
        for key in sorted(set(config) - known):
            logger.warning(f"Ignoring unknown layout option '{key}'")
        return cls(**{k: v for k, v in config.items() if k in known})

    @classmethod
    def default(cls) -> 'LayoutConfig':
        return cls()

    def __repr__(self) -> str:
        return (
            f"LayoutConfig({self.granularity}/{self.sentence_scope}, "
            f"watermarks={'on' if self.filter_watermarks else 'off'})"
        )


_NON_NEGATIVE = (
    'approx_line_threshold', 'min_gap_ratio', 'min_gap_occurrences',
    'min_gap_line_ratio', 'min_column_ratio', 'line_min_threshold',
    'line_size_ratio', 'indent_ratio', 'large_gap_ratio', 'medium_gap_ratio',
    'short_line_ratio', 'vertical_gap_floor', 'vertical_gap_ratio',
)


def _report(found: List[str]) -> bool:
    for problem in found:
        logger.error(problem)
    return not found


@dataclass
class EngineConfig:
    """
    Document-level settings for PDFEngine.

    Example:
        >>> with PDFEngine(pdf_bytes, config=EngineConfig(doc_id_length=16)) as engine:
        ...     engine.document_id
    """

    validate_on_open: bool = True
    max_file_size_mb: int = 50
    timeout_seconds: int = 300  # whole-document budget
    doc_id_length: int = DEFAULT_DOC_ID_LENGTH

    def problems(self) -> List[str]:
        found = []
        if self.timeout_seconds < 30:
            found.append(f"timeout_seconds must be at least 30, got {self.timeout_seconds}")
        if self.max_file_size_mb < 1:
            found.append(f"max_file_size_mb must be at least 1, got {self.max_file_size_mb}")
        if not MIN_DOC_ID_LENGTH <= self.doc_id_length <= MAX_DOC_ID_LENGTH:
            found.append(
                f"doc_id_length must be between {MIN_DOC_ID_LENGTH} and {MAX_DOC_ID_LENGTH}, "
                f"got {self.doc_id_length}"
            )
        return found

    def validate(self) -> bool:
        return _report(self.problems())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def default(cls) -> 'EngineConfig':
        return cls()


@dataclass
class PageRange:
    """
    Inclusive range of 1-based page numbers; `end=None` runs to the last page.

    Example:
        >>> PageRange(start=2, end=5).to_page_numbers(10)
        [2, 3, 4, 5]
        >>> PageRange(start=5).to_page_numbers(6)
        [5, 6]
    """

    start: int = 1
    end: Optional[int] = None

    def __post_init__(self):
        if self.start < 1:
            raise ValueError(f"Page range must start at 1 or later, got {self.start}")
        if self.end is not None and self.end < self.start:
            raise ValueError(f"Page range ends ({self.end}) before it starts ({self.start})")

    @classmethod
    def single_page(cls, page_num: int) -> 'PageRange':
        return cls(page_num, page_num)

    def to_page_numbers(self, total_pages: int) -> List[int]:
        """
        Resolve the range against a document of `total_pages` pages.

        The end is clamped to the document; a start past the last page
        selects nothing.
        """
        last = total_pages if self.end is None else min(self.end, total_pages)
        return list(range(self.start, last + 1))

    def __str__(self) -> str:
        if self.end == self.start:
            return f"page {self.start}"
        return f"pages {self.start}-{self.end if self.end is not None else 'end'}"
