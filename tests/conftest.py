from __future__ import annotations

import io
import math
from typing import List, Optional, Sequence

import pikepdf
import pytest

from pagetext.models.layout_types import GlyphRun
from pagetext.models.unit_types import TextContentItem, Viewport
from pagetext.utils.transforms import viewport_transform

PAGE_WIDTH = 600.0
PAGE_HEIGHT = 800.0
DOC_ID = "0123456789ab"


def make_run(text: str, x: float, y: float, w: float = 50.0, h: float = 10.0,
             is_vertical: bool = False) -> GlyphRun:
    return GlyphRun(text=text, x=x, y=y, w=w, h=h, is_vertical=is_vertical)


def make_item(text: str, x: float, top: float, w: float, h: float = 10.0,
              page_height: float = PAGE_HEIGHT) -> TextContentItem:
    """Horizontal item whose normalized run lands at (x, top) with size w x h."""
    return TextContentItem(text=text, transform=[h, 0.0, 0.0, h, x, page_height - top - h], width=w)


def make_rotated_item(text: str, x: float, y_up: float, size: float, angle: float,
                      width: float) -> TextContentItem:
    """Item rotated counter-clockwise by `angle` degrees in page space."""
    rad = math.radians(angle)
    cos_a, sin_a = math.cos(rad), math.sin(rad)
    return TextContentItem(
        text=text,
        transform=[size * cos_a, size * sin_a, -size * sin_a, size * cos_a, x, y_up],
        width=width,
    )


def make_vertical_item(text: str, x: float, top: float, size: float = 10.0,
                       page_height: float = PAGE_HEIGHT) -> TextContentItem:
    """Vertical-writing item whose normalized run lands at (x, top), size x size."""
    return TextContentItem(
        text=text,
        transform=[0.0, -size, size, 0.0, x, page_height - top - size],
        width=size,
    )


class FakePage:
    """Page double returning canned items, or raising `error` when read."""

    def __init__(self, items: Sequence[TextContentItem], width: float = PAGE_WIDTH,
                 height: float = PAGE_HEIGHT, error: Optional[Exception] = None):
        self.items = list(items)
        self.width = width
        self.height = height
        self.error = error
        self.reads = 0

    def get_viewport(self, scale: float = 1.0) -> Viewport:
        return Viewport(
            transform=viewport_transform(self.width, self.height, scale),
            width=self.width * scale,
            height=self.height * scale,
            scale=scale,
        )

    async def get_text_content(self) -> List[TextContentItem]:
        self.reads += 1
        if self.error is not None:
            raise self.error
        return list(self.items)


def build_pdf(pages: Sequence[Sequence[str]], page_size=(612, 792), rotate: int = 0) -> bytes:
    """PDF with one Helvetica 12pt line per string, 16pt apart from the top margin."""
    pdf = pikepdf.Pdf.new()
    font = pdf.make_indirect(pikepdf.Dictionary(
        Type=pikepdf.Name.Font,
        Subtype=pikepdf.Name.Type1,
        BaseFont=pikepdf.Name.Helvetica,
    ))

    for lines in pages:
        page = pdf.add_blank_page(page_size=page_size)
        page.Resources = pikepdf.Dictionary(Font=pikepdf.Dictionary(F1=font))
        if rotate:
            page.Rotate = rotate

        ops = [b"BT /F1 12 Tf"]
        y = page_size[1] - 72
        for line in lines:
            escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
            ops.append(f"1 0 0 1 72 {y} Tm ({escaped}) Tj".encode("latin-1"))
            y -= 16
        ops.append(b"ET")
        page.Contents = pdf.make_stream(b"\n".join(ops))

    buffer = io.BytesIO()
    pdf.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def single_column_page() -> FakePage:
    return FakePage([
        make_item("The cat sat.", 0, 0, 60),
        make_item("It was happy.", 0, 12, 65),
        make_item("Then it slept.", 0, 24, 70),
    ])


@pytest.fixture
def two_column_page() -> FakePage:
    items = []
    for n in range(10):
        items.append(make_item(f"Left line {n}.", 0, n * 12, 250))
        items.append(make_item(f"Right line {n}.", 300, n * 12, 250))
    return FakePage(items)


@pytest.fixture
def sample_pdf() -> bytes:
    return build_pdf([["The cat sat. It was happy."]])


@pytest.fixture
def two_page_pdf() -> bytes:
    return build_pdf([["First page sentence."], ["Second page sentence."]])
