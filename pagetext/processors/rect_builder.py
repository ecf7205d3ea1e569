"""Rect building: one tight bounding box per line a text unit touches."""

from typing import Dict, List, Mapping, Sequence

from pagetext.models.layout_types import GlyphRun
from pagetext.models.unit_types import Rect


def build_rects(
    page_number: int,
    runs: Sequence[GlyphRun],
    members: Sequence[int],
    line_of: Mapping[int, int]
) -> List[Rect]:
    """
    Build the rects of a text unit.

    Args:
        page_number: 1-based page number stored on every rect
        runs: Page glyph runs
        members: Glyph indices contributing to the unit
        line_of: Line id of every grouped glyph index

    Returns:
        Rects in the order their lines are first encountered
    """
    by_line: Dict[int, List[GlyphRun]] = {}
    for index in members:
        by_line.setdefault(line_of[index], []).append(runs[index])

    rects: List[Rect] = []
    for line_runs in by_line.values():
        min_x = min(run.x for run in line_runs)
        min_y = min(run.y for run in line_runs)
        max_x = max(run.right for run in line_runs)
        max_y = max(run.bottom for run in line_runs)
        rects.append(Rect(page=page_number, x=min_x, y=min_y, w=max_x - min_x, h=max_y - min_y))
    return rects
