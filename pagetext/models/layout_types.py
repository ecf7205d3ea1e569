"""
Immutable layout structures shared by the text-unit pipeline stages.

Glyph runs are identified by their index in the page's normalized glyph
tuple. Stages never mutate runs; line and column membership travel in
side tables keyed by that index.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class GlyphRun:
    """Positioned text fragment in viewport space (y-down, y is the top edge)."""
    text: str
    x: float
    y: float
    w: float
    h: float
    is_vertical: bool = False
    rotation: float = 0.0

    @property
    def center_x(self) -> float:
        return self.x + self.w / 2

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h


@dataclass(frozen=True)
class NormalizedPage:
    """Glyph runs kept for layout plus the watermark texts removed from the page."""
    runs: Tuple[GlyphRun, ...]
    watermarks: Tuple[str, ...]
    width: float
    height: float


@dataclass(frozen=True)
class ColumnLayout:
    """Column boundaries `[0, b1, ..., pageWidth]` and column membership per glyph."""
    boundaries: Tuple[float, ...]
    column_of: Dict[int, int] = field(default_factory=dict)

    @property
    def column_count(self) -> int:
        return max(1, len(self.boundaries) - 1)

    def members(self, column: int) -> List[int]:
        """Glyph indices assigned to a column, in glyph order."""
        return sorted(i for i, c in self.column_of.items() if c == column)


@dataclass(frozen=True)
class Line:
    """Visual line: glyph indices ordered along the reading axis."""
    id: int
    anchor: float
    members: Tuple[int, ...]


@dataclass(frozen=True)
class LineLayout:
    """Lines in reading order and the line id of every grouped glyph."""
    lines: Tuple[Line, ...]
    line_of: Dict[int, int]
    vertical: bool = False


@dataclass(frozen=True)
class TextBlock:
    """Paragraph: glyph indices in reading order and the lines they came from."""
    members: Tuple[int, ...]
    line_ids: Tuple[int, ...]
    column: int = 0


@dataclass(frozen=True)
class TextSpan:
    """Sentence or paragraph text with the glyph runs that contributed to it."""
    text: str
    members: Tuple[int, ...]
