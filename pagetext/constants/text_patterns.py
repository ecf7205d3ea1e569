"""
Character Classes and Word Lists for Text Layout Heuristics
"""

# Sentence terminators (ASCII and full-width CJK)
SENTENCE_TERMINATORS = frozenset(".!?。！？")

# Closing quotes/brackets that may trail a terminator: He said "Stop."
CLOSING_QUOTES = frozenset("\"'”’»)]」』")

# Line starters that mark dialogue or a quotation
OPENING_QUOTES = frozenset("\"'“‘«「『—–")

# Stamp texts removed as watermarks (compared lowercased and trimmed)
WATERMARK_WORDS = frozenset({
    "confidential",
    "draft",
    "sample",
    "preview",
    "demo",
    "watermark",
    "draft copy",
    "sample copy",
    "preview copy",
    "demo copy",
    "confidential draft",
    "top secret",
})
