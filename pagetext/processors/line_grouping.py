"""Line grouping

Clusters glyph runs into visual lines: rows for horizontal text, and
top-to-bottom strips read right to left for vertical text.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from pagetext.engine.config import LayoutConfig
from pagetext.models.layout_types import GlyphRun, Line, LineLayout

logger = logging.getLogger(__name__)

HORIZONTAL = "horizontal"
VERTICAL = "vertical"


@dataclass
class _LineBuilder:
    """Mutable accumulator used only while clustering."""
    id: int
    anchor: float
    members: List[int] = field(default_factory=list)

    def add(self, index: int, position: float):
        self.members.append(index)
        count = len(self.members)
        self.anchor = (self.anchor * (count - 1) + position) / count


def detect_writing_mode(runs: Sequence[GlyphRun], config: Optional[LayoutConfig] = None) -> str:
    """Vertical when enough runs are vertical, horizontal otherwise (including empty pages)."""
    config = config or LayoutConfig.default()
    if not runs:
        return HORIZONTAL

    vertical_count = sum(1 for run in runs if run.is_vertical)
    return VERTICAL if vertical_count / len(runs) >= config.vertical_mode_ratio else HORIZONTAL


def _cluster(
    runs: Sequence[GlyphRun],
    indices: Iterable[int],
    vertical: bool,
    config: LayoutConfig,
    first_line_id: int
) -> List[_LineBuilder]:
    if vertical:
        order = sorted(indices, key=lambda i: (runs[i].x, runs[i].y))
    else:
        order = sorted(indices, key=lambda i: (runs[i].y, runs[i].x))

    builders: List[_LineBuilder] = []
    for index in order:
        run = runs[index]
        position = run.x if vertical else run.y
        size = run.w if vertical else run.h
        threshold = max(config.line_min_threshold, size * config.line_size_ratio)

        # First line in creation order wins, not the nearest
        line = next((b for b in builders if abs(b.anchor - position) <= threshold), None)
        if line is None:
            line = _LineBuilder(id=first_line_id + len(builders), anchor=position)
            builders.append(line)
        line.add(index, position)

    return builders


def group_lines(
    runs: Sequence[GlyphRun],
    indices: Optional[Iterable[int]] = None,
    vertical: bool = False,
    config: Optional[LayoutConfig] = None,
    first_line_id: int = 0
) -> LineLayout:
    """
    Group glyph runs into lines.

    Args:
        runs: Page glyph runs
        indices: Subset of glyph indices to group (all runs if None)
        vertical: Cluster on x and read lines right to left
        config: Layout configuration (defaults if None)
        first_line_id: Id of the first line created, so ids stay unique
            across the columns of a page

    Returns:
        LineLayout with lines in reading order
    """
    config = config or LayoutConfig.default()
    if indices is None:
        indices = range(len(runs))

    builders = _cluster(runs, indices, vertical, config, first_line_id)

    lines: List[Line] = []
    line_of: Dict[int, int] = {}
    for builder in builders:
        if vertical:
            members = sorted(builder.members, key=lambda i: runs[i].y)
        else:
            members = sorted(builder.members, key=lambda i: runs[i].x)
        for index in members:
            line_of[index] = builder.id
        lines.append(Line(id=builder.id, anchor=builder.anchor, members=tuple(members)))

    lines.sort(key=lambda line: line.anchor, reverse=vertical)

    logger.debug(f"Grouped {len(line_of)} runs into {len(lines)} {'vertical' if vertical else 'horizontal'} lines")
    return LineLayout(lines=tuple(lines), line_of=line_of, vertical=vertical)
