"""Column detection for horizontal layouts

Finds vertical gutters by histogramming the midpoints of wide horizontal
gaps that recur on many lines, then assigns every glyph run to the column
containing its horizontal center.
"""

import logging
from typing import Dict, List, Optional, Sequence

from pagetext.engine.config import LayoutConfig
from pagetext.models.layout_types import ColumnLayout, GlyphRun

logger = logging.getLogger(__name__)


def _approximate_lines(runs: Sequence[GlyphRun], threshold: float) -> List[List[int]]:
    """Cluster runs into coarse lines by top edge using a running average."""
    order = sorted(range(len(runs)), key=lambda i: runs[i].y)

    lines: List[List[int]] = []
    current: List[int] = []
    current_y = 0.0

    for index in order:
        y = runs[index].y
        if not current or abs(y - current_y) <= threshold:
            current.append(index)
            current_y = sum(runs[i].y for i in current) / len(current)
        else:
            lines.append(current)
            current = [index]
            current_y = y

    if current:
        lines.append(current)
    return lines


def _gap_midpoints(
    runs: Sequence[GlyphRun],
    lines: List[List[int]],
    min_gap: float
) -> List[float]:
    """Midpoints of gaps wider than `min_gap` between horizontally adjacent runs."""
    midpoints: List[float] = []
    for line in lines:
        if len(line) < 2:
            continue

        ordered = sorted(line, key=lambda i: runs[i].x)
        for left, right in zip(ordered, ordered[1:]):
            gap_start = runs[left].right
            gap_end = runs[right].x
            if gap_end - gap_start > min_gap:
                midpoints.append((gap_start + gap_end) / 2)
    return midpoints


def _histogram_peaks(histogram: List[int], min_count: float) -> List[int]:
    """Index of the most populated bucket in each contiguous run of qualifying buckets."""
    peaks: List[int] = []
    peak_index: Optional[int] = None

    for i, count in enumerate(histogram):
        if count >= min_count:
            if peak_index is None or count > histogram[peak_index]:
                peak_index = i
        elif peak_index is not None:
            peaks.append(peak_index)
            peak_index = None

    if peak_index is not None:
        peaks.append(peak_index)
    return peaks


def _drop_narrow_columns(candidates: List[float], page_width: float, min_width: float) -> List[float]:
    """Keep internal boundaries only while every column stays at least `min_width` wide."""
    kept: List[float] = []
    left = 0.0
    for boundary in candidates:
        if boundary - left >= min_width:
            kept.append(boundary)
            left = boundary

    while kept and page_width - kept[-1] < min_width:
        kept.pop()
    return kept


def detect_column_boundaries(
    runs: Sequence[GlyphRun],
    page_width: float,
    config: Optional[LayoutConfig] = None
) -> List[float]:
    """
    Detect column boundaries of a horizontal page.

    Args:
        runs: Normalized glyph runs
        page_width: Viewport width
        config: Layout configuration (defaults if None)

    Returns:
        Ascending boundaries starting at 0 and ending at `page_width`;
        `[0, page_width]` for a single column
    """
    config = config or LayoutConfig.default()
    if not runs or page_width <= 0:
        return [0.0, page_width]

    lines = _approximate_lines(runs, config.approx_line_threshold)
    midpoints = _gap_midpoints(runs, lines, page_width * config.min_gap_ratio)
    if not midpoints:
        return [0.0, page_width]

    bucket_count = config.column_buckets
    bucket_size = page_width / bucket_count
    histogram = [0] * bucket_count
    for midpoint in midpoints:
        bucket = min(bucket_count - 1, max(0, int(midpoint // bucket_size)))
        histogram[bucket] += 1

    min_count = max(config.min_gap_occurrences, len(lines) * config.min_gap_line_ratio)
    candidates = [(peak + 0.5) * bucket_size for peak in _histogram_peaks(histogram, min_count)]

    internal = _drop_narrow_columns(candidates, page_width, page_width * config.min_column_ratio)

    logger.debug(
        f"Column detection: {len(lines)} coarse lines, {len(midpoints)} gaps, "
        f"{len(candidates)} candidates, {len(internal) + 1} columns"
    )
    return [0.0] + internal + [page_width]


def assign_columns(runs: Sequence[GlyphRun], boundaries: Sequence[float]) -> Dict[int, int]:
    """
    Map each glyph index to the column containing its horizontal center.

    Centers left of the first boundary fall into the first column and
    centers at or beyond the last boundary into the last column.
    """
    last_column = max(0, len(boundaries) - 2)
    column_of: Dict[int, int] = {}

    for index, run in enumerate(runs):
        center = run.center_x
        column = last_column
        for i in range(len(boundaries) - 1):
            if center < boundaries[i + 1]:
                column = i
                break
        column_of[index] = column
    return column_of


def detect_columns(
    runs: Sequence[GlyphRun],
    page_width: float,
    config: Optional[LayoutConfig] = None
) -> ColumnLayout:
    """Detect boundaries and assign columns in one step."""
    boundaries = detect_column_boundaries(runs, page_width, config)
    return ColumnLayout(
        boundaries=tuple(boundaries),
        column_of=assign_columns(runs, boundaries),
    )
