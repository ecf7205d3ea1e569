"""
Character Run Accumulation

Turns pdfplumber character dicts into text-layer items: contiguous glyphs
that share a baseline and direction become one item whose transform is the
text rendering matrix scaled to the glyph height, as a viewer's text layer
reports it.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from pagetext.models.unit_types import TextContentItem
from pagetext.utils.transforms import extent_along

logger = logging.getLogger(__name__)

DIRECTION_TOLERANCE_DEGREES = 1.0
WORD_GAP_RATIO = 0.3  # of glyph height
BASELINE_SHIFT_RATIO = 0.5  # of glyph height
BACKTRACK_RATIO = 1.0  # of glyph height


def _char_matrix(char: Dict) -> Tuple[float, float, float, float, float, float]:
    """Text rendering matrix of a char, or an axis-aligned one when missing."""
    matrix = char.get("matrix")
    if matrix and len(matrix) >= 6:
        return tuple(float(v) for v in matrix[:6])
    if char.get("upright", True):
        return (1.0, 0.0, 0.0, 1.0, float(char["x0"]), float(char["y0"]))
    return (0.0, 1.0, -1.0, 0.0, float(char["x1"]), float(char["y0"]))


def _char_box(char: Dict) -> Tuple[float, float, float, float]:
    return float(char["x0"]), float(char["y0"]), float(char["x1"]), float(char["y1"])


def _unit(vector: Tuple[float, float]) -> Tuple[float, float]:
    length = math.hypot(*vector)
    if length == 0:
        return 1.0, 0.0
    return vector[0] / length, vector[1] / length


@dataclass
class CharRun:
    """Chars accumulated into one text-layer item."""
    chars: List[Dict] = field(default_factory=list)
    direction: Tuple[float, float] = (1.0, 0.0)
    up: Tuple[float, float] = (0.0, 1.0)

    @property
    def text(self) -> str:
        return "".join(char.get("text", "") for char in self.chars)

    @property
    def origin(self) -> Tuple[float, float]:
        matrix = _char_matrix(self.chars[0])
        return matrix[4], matrix[5]

    @property
    def height(self) -> float:
        return extent_along((_char_box(c) for c in self.chars), self.up)

    @property
    def width(self) -> float:
        return extent_along((_char_box(c) for c in self.chars), self.direction)

    def end_point(self) -> Tuple[float, float]:
        """Origin of the last char advanced by its extent along the run direction."""
        last = self.chars[-1]
        matrix = _char_matrix(last)
        advance = extent_along([_char_box(last)], self.direction)
        return matrix[4] + self.direction[0] * advance, matrix[5] + self.direction[1] * advance

    def to_item(self) -> TextContentItem:
        height = self.height
        x, y = self.origin
        return TextContentItem(
            text=self.text,
            transform=[
                self.direction[0] * height,
                self.direction[1] * height,
                self.up[0] * height,
                self.up[1] * height,
                x,
                y,
            ],
            width=self.width,
        )


class CharRunAccumulator:
    """Accumulates chars in content order, closing a run at gaps, spaces and direction changes."""

    def __init__(self):
        self.runs: List[CharRun] = []
        self._current: Optional[CharRun] = None

    def _close(self):
        if self._current is not None and self._current.text.strip():
            self.runs.append(self._current)
        self._current = None

    def _continues(self, char: Dict, direction: Tuple[float, float]) -> bool:
        run = self._current
        angle = math.degrees(math.atan2(
            run.direction[0] * direction[1] - run.direction[1] * direction[0],
            run.direction[0] * direction[0] + run.direction[1] * direction[1],
        ))
        if abs(angle) > DIRECTION_TOLERANCE_DEGREES:
            return False

        end_x, end_y = run.end_point()
        matrix = _char_matrix(char)
        dx, dy = matrix[4] - end_x, matrix[5] - end_y
        along = dx * run.direction[0] + dy * run.direction[1]
        across = dx * run.up[0] + dy * run.up[1]
        height = max(run.height, 1e-6)

        if abs(across) > BASELINE_SHIFT_RATIO * height:
            return False
        return -BACKTRACK_RATIO * height <= along <= WORD_GAP_RATIO * height

    def add(self, char: Dict):
        text = char.get("text", "")
        if not text or text.isspace():
            self._close()
            return

        a, b, c, d, _, _ = _char_matrix(char)
        direction = _unit((a, b))
        up = _unit((c, d))

        if self._current is not None and not self._continues(char, direction):
            self._close()

        if self._current is None:
            self._current = CharRun(direction=direction, up=up)
        self._current.chars.append(char)

    def finish(self) -> List[CharRun]:
        self._close()
        return self.runs


def chars_to_items(chars: Sequence[Dict]) -> List[TextContentItem]:
    """
    Convert pdfplumber chars into text-layer items.

    Args:
        chars: Character dicts in content-stream order

    Returns:
        Items whose transform uses y-up page space
    """
    accumulator = CharRunAccumulator()
    for char in chars:
        accumulator.add(char)

    runs = accumulator.finish()
    logger.debug(f"Accumulated {len(chars)} chars into {len(runs)} runs")
    return [run.to_item() for run in runs]
