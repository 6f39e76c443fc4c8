"""Size and quality estimates for pre-extracted document text."""

import math
import re


# Patterns that show up when text comes out of a poor OCR pass
_OCR_ARTIFACTS = [
    re.compile(r"[^\x00-\x7F]{3,}"),    # runs of non-ASCII characters
    re.compile(r"\d[A-Za-z]\d[A-Za-z]"),  # alternating digits and letters
    re.compile(r"[|l1][|l1][|l1]"),      # l / 1 / | confusion
    re.compile(r"\b[A-Z]{10,}\b"),       # long runs of capitals
]


def estimate_page_count(text: str) -> int:
    """
    Estimate page count from text length.

    Assumes ~5 characters per word and ~500 words per page.
    """
    word_estimate = len(text) / 5
    return math.ceil(word_estimate / 500)


def estimate_word_count(text: str) -> int:
    """Count whitespace-separated tokens."""
    return len(text.split())


def detect_ocr_issues(text: str) -> bool:
    """
    Check whether text looks like it came from a poor OCR pass.

    A pattern only counts once it matches more than 5 times; the text is
    flagged when the counted matches exceed 20.
    """
    issue_count = 0
    for pattern in _OCR_ARTIFACTS:
        matches = pattern.findall(text)
        if len(matches) > 5:
            issue_count += len(matches)
    return issue_count > 20
