"""Paragraph grouping

Splits a column's lines into paragraphs. Horizontal text breaks only after
a finished sentence and only when the next line shows a visual signal
(indent, wide gap, dialogue, short previous line); vertical text breaks on
large gaps along the line.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from pagetext.constants.text_patterns import (
    CLOSING_QUOTES,
    OPENING_QUOTES,
    SENTENCE_TERMINATORS,
)
from pagetext.engine.config import LayoutConfig
from pagetext.models.layout_types import GlyphRun, Line, LineLayout, TextBlock

logger = logging.getLogger(__name__)

SENTENCE_END_PATTERN = re.compile(
    "[" + re.escape("".join(sorted(SENTENCE_TERMINATORS))) + "]"
    + "[" + re.escape("".join(sorted(CLOSING_QUOTES))) + "]?$"
)


@dataclass(frozen=True)
class LineMetrics:
    """Geometry and text of one line, precomputed for break decisions."""
    line: Line
    text: str
    left: float
    right: float
    top: float
    avg_height: float

    @property
    def width(self) -> float:
        return self.right - self.left


@dataclass(frozen=True)
class ColumnMetrics:
    """Reference sizes of a column's lines."""
    avg_height: float
    avg_width: float
    baseline_left: float


def _measure_line(runs: Sequence[GlyphRun], line: Line) -> LineMetrics:
    members = [runs[i] for i in line.members]
    return LineMetrics(
        line=line,
        text=" ".join(run.text for run in members),
        left=min(run.x for run in members),
        right=max(run.right for run in members),
        top=min(run.y for run in members),
        avg_height=sum(run.h for run in members) / len(members),
    )


def _measure_column(lines: Sequence[LineMetrics], config: LayoutConfig) -> ColumnMetrics:
    return ColumnMetrics(
        avg_height=float(np.mean([m.avg_height for m in lines])),
        avg_width=float(np.mean([m.width for m in lines])),
        baseline_left=float(np.percentile([m.left for m in lines], config.baseline_percentile)),
    )


def ends_sentence(text: str) -> bool:
    """True when text ends with a terminator, optionally followed by one closing quote."""
    return SENTENCE_END_PATTERN.search(text.rstrip()) is not None


def starts_uppercase(text: str) -> bool:
    return bool(text) and text[0].isupper()


def starts_dialogue(text: str) -> bool:
    return bool(text) and text[0] in OPENING_QUOTES


def starts_new_paragraph(
    previous: LineMetrics,
    current: LineMetrics,
    column: ColumnMetrics,
    config: LayoutConfig
) -> bool:
    """
    Decide whether `current` opens a new paragraph after `previous`.

    A line after an unfinished sentence always continues it, whatever the
    spacing, so a lowercase or function-word start needs no rule of its own.

    Args:
        previous: Preceding line in reading order
        current: Line being placed
        column: Reference sizes of the column
        config: Layout configuration

    Returns:
        True to start a new paragraph, False to continue the current one
    """
    if not ends_sentence(previous.text):
        return False

    gap = current.line.anchor - previous.line.anchor
    medium_gap = gap > config.medium_gap_ratio * column.avg_height

    if current.left - column.baseline_left > config.indent_ratio * column.avg_height:
        return True
    if gap > config.large_gap_ratio * column.avg_height:
        return True
    if medium_gap and starts_uppercase(current.text):
        return True
    if medium_gap and starts_dialogue(current.text):
        return True
    if (previous.width < config.short_line_ratio * column.avg_width
            and starts_uppercase(current.text) and medium_gap):
        return True
    return False


def _block(lines: List[Line], column: int) -> TextBlock:
    members = tuple(i for line in lines for i in line.members)
    return TextBlock(members=members, line_ids=tuple(line.id for line in lines), column=column)


def group_paragraphs_horizontal(
    runs: Sequence[GlyphRun],
    layout: LineLayout,
    config: Optional[LayoutConfig] = None,
    column: int = 0
) -> List[TextBlock]:
    """Group horizontal lines (top to bottom) into paragraphs."""
    config = config or LayoutConfig.default()
    if not layout.lines:
        return []

    metrics = [_measure_line(runs, line) for line in layout.lines]
    column_metrics = _measure_column(metrics, config)

    blocks: List[TextBlock] = []
    current: List[Line] = [metrics[0].line]
    for previous, line in zip(metrics, metrics[1:]):
        if starts_new_paragraph(previous, line, column_metrics, config):
            blocks.append(_block(current, column))
            current = []
        current.append(line.line)
    blocks.append(_block(current, column))

    return blocks


def group_paragraphs_vertical(
    runs: Sequence[GlyphRun],
    layout: LineLayout,
    config: Optional[LayoutConfig] = None,
    column: int = 0
) -> List[TextBlock]:
    """Group vertical lines (right to left) into paragraphs; breaks happen inside a line."""
    config = config or LayoutConfig.default()
    if not layout.lines:
        return []

    avg_height = float(np.mean([
        np.mean([runs[i].h for i in line.members]) for line in layout.lines
    ]))
    threshold = max(config.vertical_gap_floor, avg_height * config.vertical_gap_ratio)

    blocks: List[TextBlock] = []
    members: List[int] = []
    line_ids: List[int] = []

    for line in layout.lines:
        previous_y = runs[line.members[0]].y
        for index in line.members:
            y = runs[index].y
            if members and y - previous_y > threshold:
                blocks.append(TextBlock(members=tuple(members), line_ids=tuple(line_ids), column=column))
                members, line_ids = [], []
            members.append(index)
            if line.id not in line_ids:
                line_ids.append(line.id)
            previous_y = y

    if members:
        blocks.append(TextBlock(members=tuple(members), line_ids=tuple(line_ids), column=column))
    return blocks


def group_paragraphs(
    runs: Sequence[GlyphRun],
    layout: LineLayout,
    config: Optional[LayoutConfig] = None,
    column: int = 0
) -> List[TextBlock]:
    """Group a column's lines into paragraphs using the policy of its writing mode."""
    if layout.vertical:
        blocks = group_paragraphs_vertical(runs, layout, config, column)
    else:
        blocks = group_paragraphs_horizontal(runs, layout, config, column)

    logger.debug(f"Column {column}: {len(layout.lines)} lines -> {len(blocks)} paragraphs")
    return blocks
