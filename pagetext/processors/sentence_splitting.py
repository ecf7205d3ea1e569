"""Sentence splitting

Joins a paragraph's glyph runs into one string while remembering which
character range each run occupies, scans that string for sentences with a
small state machine, and maps every sentence back to the runs it touches.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from pagetext.constants.text_patterns import CLOSING_QUOTES, SENTENCE_TERMINATORS
from pagetext.models.layout_types import GlyphRun, TextBlock, TextSpan

logger = logging.getLogger(__name__)

# Scanner states
OUTSIDE = "outside"
IN_BODY = "in_body"
IN_TERMINATORS = "in_terminators"
IN_CLOSING_QUOTES = "in_closing_quotes"


def join_runs(runs: Sequence[GlyphRun], members: Sequence[int]) -> Tuple[str, List[Tuple[int, int, int]]]:
    """
    Join run texts with single spaces.

    Args:
        runs: Page glyph runs
        members: Glyph indices in reading order

    Returns:
        Tuple of (text, ranges) where each range is (glyph index, start, end)
        with `end` exclusive
    """
    parts: List[str] = []
    ranges: List[Tuple[int, int, int]] = []
    position = 0

    for index in members:
        if parts:
            parts.append(" ")
            position += 1
        text = runs[index].text
        parts.append(text)
        ranges.append((index, position, position + len(text)))
        position += len(text)

    return "".join(parts), ranges


def scan_sentence_spans(text: str) -> List[Tuple[int, int]]:
    """
    Find sentence spans as `[start, end)` character offsets.

    A sentence is a maximal run of non-terminators followed by one or more
    terminators and any closing quotes right after them. Text after the last
    terminator forms a final fragment. Terminators that do not follow any
    body text are skipped.
    """
    spans: List[Tuple[int, int]] = []
    state = OUTSIDE
    start = 0

    for i, char in enumerate(text):
        is_terminator = char in SENTENCE_TERMINATORS

        if state == OUTSIDE:
            if not is_terminator:
                start = i
                state = IN_BODY
        elif state == IN_BODY:
            if is_terminator:
                state = IN_TERMINATORS
        elif is_terminator:
            state = IN_TERMINATORS
        elif char in CLOSING_QUOTES:
            state = IN_CLOSING_QUOTES
        else:
            spans.append((start, i))
            start = i
            state = IN_BODY

    if state != OUTSIDE:
        spans.append((start, len(text)))
    return spans


def split_sentences(text: str, ranges: Sequence[Tuple[int, int, int]]) -> List[TextSpan]:
    """
    Split joined text into sentences with their contributing glyph runs.

    Whitespace-only spans are dropped. A run whose range overlaps a span
    contributes to it, so a run containing a sentence boundary belongs to
    both sentences.
    """
    sentences: List[TextSpan] = []
    for start, end in scan_sentence_spans(text):
        trimmed = text[start:end].strip()
        if not trimmed:
            continue

        members = tuple(index for index, r_start, r_end in ranges if r_end > start and r_start < end)
        if members:
            sentences.append(TextSpan(text=trimmed, members=members))
    return sentences


def _merge_by_column(blocks: Sequence[TextBlock]) -> List[Tuple[int, ...]]:
    """Concatenate the members of all blocks of each column, columns in first-seen order."""
    merged: Dict[int, List[int]] = {}
    for block in blocks:
        merged.setdefault(block.column, []).extend(block.members)
    return [tuple(members) for members in merged.values()]


def split_blocks(
    runs: Sequence[GlyphRun],
    blocks: Sequence[TextBlock],
    scope: str = "paragraph"
) -> List[TextSpan]:
    """
    Split paragraphs into sentences.

    Args:
        runs: Page glyph runs
        blocks: Paragraphs in reading order
        scope: "paragraph" to split each paragraph on its own, "column" to
            let sentences run across paragraph breaks within a column

    Returns:
        Sentences in reading order
    """
    if scope == "column":
        groups = _merge_by_column(blocks)
    else:
        groups = [block.members for block in blocks]

    sentences: List[TextSpan] = []
    for members in groups:
        text, ranges = join_runs(runs, members)
        sentences.extend(split_sentences(text, ranges))

    logger.debug(f"Split {len(groups)} {scope} groups into {len(sentences)} sentences")
    return sentences


def paragraph_spans(runs: Sequence[GlyphRun], blocks: Sequence[TextBlock]) -> List[TextSpan]:
    """One span per paragraph, for paragraph-level output."""
    spans: List[TextSpan] = []
    for block in blocks:
        text, _ = join_runs(runs, block.members)
        text = text.strip()
        if text:
            spans.append(TextSpan(text=text, members=block.members))
    return spans
