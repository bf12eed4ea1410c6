"""
Length metrics for mixed Chinese / Latin prose.

Chinese text has no whitespace between words, so "word count" here means
semantic units: one per CJK ideograph, one per run of Latin letters and one
per run of digits.
"""

import math
import re

READING_UNITS_PER_MINUTE: int = 300

_CJK_RE = re.compile(r"[\u4e00-\u9fff]")
_LATIN_WORD_RE = re.compile(r"[a-zA-Z]+")
_NUMBER_RE = re.compile(r"[0-9]+")

SENTENCE_TERMINATORS: str = "。！？.!?"
SENTENCE_SPLIT_RE = re.compile(r"[。！？.!?]")
PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


def count_semantic_units(text) -> int:
    """
    Count semantic units in ``text``.

    Args:
        text: Any value; non-string input counts as empty.

    Returns:
        CJK ideographs + Latin word runs + digit runs. ``"abc 123 你好"``
        yields 4.
    """
    if not text or not isinstance(text, str):
        return 0

    cjk = len(_CJK_RE.findall(text))
    words = len(_LATIN_WORD_RE.findall(text))
    numbers = len(_NUMBER_RE.findall(text))
    return cjk + words + numbers


def estimate_reading_minutes(unit_count: int) -> int:
    return math.ceil(max(unit_count, 0) / READING_UNITS_PER_MINUTE)


def count_sentences(text: str) -> int:
    """Number of sentence terminators in the text."""
    if not text:
        return 0
    return len(SENTENCE_SPLIT_RE.split(text)) - 1


def count_paragraphs(text: str) -> int:
    """Number of blocks separated by one or more blank lines."""
    if not text or not text.strip():
        return 0
    return len(PARAGRAPH_SPLIT_RE.split(text))


def truncate_chars(text: str, limit: int, suffix: str = "...") -> str:
    # Always suffixed: the recap marks every excerpt as partial.
    return f"{(text or '')[:limit]}{suffix}"
