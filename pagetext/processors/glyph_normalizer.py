"""Glyph run normalization

Converts raw text-layer items into viewport-space glyph runs (y-down, top
edge as y) and separates watermark stamps from the text used for layout.
"""

import logging
import math
from typing import List, Optional, Sequence

from pagetext.constants.text_patterns import WATERMARK_WORDS
from pagetext.engine.config import LayoutConfig
from pagetext.models.layout_types import GlyphRun, NormalizedPage
from pagetext.models.unit_types import TextContentItem, Viewport
from pagetext.utils.transforms import compose_transform, rotation_degrees

logger = logging.getLogger(__name__)


def to_glyph_run(item: TextContentItem, viewport: Viewport) -> Optional[GlyphRun]:
    """
    Map one text item into viewport space.

    Args:
        item: Text item with its rendering matrix and advance width
        viewport: Page viewport the coordinates are expressed in

    Returns:
        GlyphRun, or None when the item holds only whitespace
    """
    text = item.text.strip()
    if not text:
        return None

    composed = compose_transform(viewport.transform, item.transform)
    a, b, c, d, e, f = composed

    height = math.hypot(c, d)
    rotation = rotation_degrees(composed)

    return GlyphRun(
        text=text,
        x=e,
        y=f - height,
        w=item.width * viewport.scale,
        h=height,
        is_vertical=abs(b) + abs(c) > abs(a) + abs(d),
        rotation=rotation,
    )


def is_watermark(run: GlyphRun, config: LayoutConfig) -> bool:
    """Stamp words, and diagonal text when the rotation rule is enabled."""
    if run.text.lower() in WATERMARK_WORDS:
        return True

    if config.watermark_rotation_filter:
        angle = abs(run.rotation)
        return config.watermark_min_rotation < angle < config.watermark_max_rotation

    return False


def normalize_items(
    items: Sequence[TextContentItem],
    viewport: Viewport,
    config: Optional[LayoutConfig] = None
) -> NormalizedPage:
    """
    Normalize a page's text items and strip watermarks.

    Args:
        items: Text-layer items in content order
        viewport: Viewport at scale 1.0
        config: Layout configuration (defaults if None)

    Returns:
        NormalizedPage with layout runs in input order and de-duplicated
        watermark texts in first-seen order
    """
    config = config or LayoutConfig.default()

    runs: List[GlyphRun] = []
    watermarks: List[str] = []
    skipped = 0

    for item in items:
        run = to_glyph_run(item, viewport)
        if run is None:
            skipped += 1
            continue

        if config.filter_watermarks and is_watermark(run, config):
            if run.text not in watermarks:
                watermarks.append(run.text)
            continue

        runs.append(run)

    logger.debug(
        f"Normalized {len(items)} items: {len(runs)} runs, "
        f"{len(watermarks)} watermarks, {skipped} blank"
    )

    return NormalizedPage(
        runs=tuple(runs),
        watermarks=tuple(watermarks),
        width=viewport.width,
        height=viewport.height,
    )
