from __future__ import annotations

from conftest import PAGE_HEIGHT, PAGE_WIDTH, make_run
from pagetext.engine.config import LayoutConfig
from pagetext.models.layout_types import NormalizedPage
from pagetext.processors.column_detection import (
    assign_columns,
    detect_column_boundaries,
    detect_columns,
)
from pagetext.processors.line_grouping import group_lines
from pagetext.processors.page_extractor import layout_blocks
from pagetext.processors.paragraph_grouping import group_paragraphs


def _two_column_runs(lines: int = 10):
    runs = []
    for n in range(lines):
        runs.append(make_run(f"Left {n}.", 0, n * 12, w=250))
        runs.append(make_run(f"Right {n}.", 300, n * 12, w=250))
    return runs


def test_single_column_page() -> None:
    runs = [make_run(f"Line {n}.", 0, n * 12, w=400) for n in range(10)]
    assert detect_column_boundaries(runs, 600) == [0.0, 600]


def test_empty_page_is_single_column() -> None:
    assert detect_column_boundaries([], 600) == [0.0, 600]


def test_two_columns_split_at_gutter() -> None:
    boundaries = detect_column_boundaries(_two_column_runs(), 600)

    assert len(boundaries) == 3
    assert boundaries[0] == 0.0 and boundaries[-1] == 600
    assert 250 < boundaries[1] < 300


def test_gaps_on_too_few_lines_are_ignored() -> None:
    runs = _two_column_runs(lines=2)
    runs.extend(make_run(f"Wide {n}.", 0, 100 + n * 12, w=550) for n in range(8))

    assert detect_column_boundaries(runs, 600) == [0.0, 600]


def test_narrow_leading_column_is_dropped() -> None:
    # Numbered list: markers at x=0..30, text from x=90, gap midpoint at 60
    runs = []
    for n in range(6):
        runs.append(make_run(f"{n}.", 0, n * 12, w=30))
        runs.append(make_run(f"Item {n}", 90, n * 12, w=400))

    assert detect_column_boundaries(runs, 600) == [0.0, 600]


def test_narrow_trailing_column_is_dropped() -> None:
    runs = []
    for n in range(6):
        runs.append(make_run(f"Body {n}", 0, n * 12, w=480))
        runs.append(make_run(f"{n}", 540, n * 12, w=20))

    assert detect_column_boundaries(runs, 600) == [0.0, 600]


def test_boundaries_respect_config() -> None:
    runs = _two_column_runs(lines=10)
    strict = LayoutConfig(min_gap_occurrences=20)
    assert detect_column_boundaries(runs, 600, strict) == [0.0, 600]


def test_assign_columns_by_center() -> None:
    runs = [
        make_run("a", 0, 0, w=100),
        make_run("b", 260, 0, w=20),
        make_run("c", 300, 0, w=100),
    ]
    assert assign_columns(runs, [0.0, 273.0, 600.0]) == {0: 0, 1: 0, 2: 1}


def test_assign_columns_clamps_out_of_page_centers() -> None:
    runs = [make_run("left", -80, 0, w=20), make_run("right", 650, 0, w=40)]
    assert assign_columns(runs, [0.0, 300.0, 600.0]) == {0: 0, 1: 1}


def test_detect_columns_members_follow_glyph_order() -> None:
    layout = detect_columns(_two_column_runs(lines=5), 600)

    assert layout.column_count == 2
    assert layout.members(0) == [0, 2, 4, 6, 8]
    assert layout.members(1) == [1, 3, 5, 7, 9]


def test_page_without_gutter_lays_out_like_a_single_column() -> None:
    # Side-by-side text on only two lines is too rare to count as a gutter
    runs = [
        make_run("Left one.", 0, 0, w=200),
        make_run("Right one.", 400, 0, w=150),
        make_run("Left two.", 0, 12, w=200),
        make_run("Right two.", 400, 12, w=150),
        make_run("New paragraph.", 30, 40, w=200),
    ]
    page = NormalizedPage(runs=tuple(runs), watermarks=(), width=PAGE_WIDTH, height=PAGE_HEIGHT)
    config = LayoutConfig()

    blocks, line_of = layout_blocks(page, config)

    direct_layout = group_lines(runs, config=config)
    assert blocks == group_paragraphs(runs, direct_layout, config)
    assert line_of == direct_layout.line_of
    assert [block.members for block in blocks] == [(0, 1, 2, 3), (4,)]
