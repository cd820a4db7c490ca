"""Snippet extraction - query-centered excerpts of chunk text."""

import re
from typing import Optional

from ..models.document import Snippet

ELLIPSIS = "..."

_TERM_RE = re.compile(r"\w+")
_SPACE_RE = re.compile(r"\s")


def query_terms(query: str) -> list[str]:
    """Lowercase word tokens of a query, deduplicated in order."""
    return list(dict.fromkeys(_TERM_RE.findall(query.lower())))


def _first_match(text: str, terms: list[str]) -> Optional[tuple[int, int]]:
    """Earliest (position, length) of any term; ties go to the longer term."""
    lowered = text.lower()
    best: Optional[tuple[int, int]] = None
    for term in terms:
        pos = lowered.find(term)
        if pos < 0:
            continue
        if best is None or pos < best[0] or (pos == best[0] and len(term) > best[1]):
            best = (pos, len(term))
    return best


def _next_space(text: str, start: int, stop: int) -> int:
    found = _SPACE_RE.search(text, start, stop)
    return found.start() if found else -1


def _last_space(text: str, start: int, stop: int) -> int:
    for i in range(stop - 1, start - 1, -1):
        if text[i].isspace():
            return i
    return -1


def _trim_to_words(
    text: str, start: int, end: int, keep_from: int, keep_to: int
) -> tuple[int, int]:
    """Pull truncated window edges inward to word boundaries.

    An edge only moves if the span ``[keep_from, keep_to)`` stays inside.
    """
    if start > 0 and not text[start - 1].isspace():
        gap = _next_space(text, start, keep_from)
        if gap >= 0:
            start = gap + 1

    if end < len(text) and not text[end].isspace():
        gap = _last_space(text, keep_to, end)
        if gap > start:
            end = gap

    return start, end


def extract_snippet(
    text: str, query: str, max_length: int, hint_pos: Optional[int] = None
) -> Snippet:
    """Extract a bounded excerpt centered on the first query term.

    Args:
        text: Chunk text.
        query: Search query.
        max_length: Maximum excerpt length, ellipsis markers excluded.
        hint_pos: Character offset to start from when no term matches.
            Only callers holding a real character offset pass it; a chunk
            ordinal is not one, so the search service leaves it unset.

    Returns:
        Snippet with the excerpt and its offset in ``text``.
    """
    if not text:
        return Snippet(snippet="", start=0)

    if len(text) <= max_length:
        return Snippet(snippet=text, start=0)

    match = _first_match(text, query_terms(query))

    if match is None:
        start = 0
        if hint_pos is not None and 0 < hint_pos < len(text):
            start = hint_pos
            if not text[start - 1].isspace():
                gap = _next_space(text, start, start + max_length)
                if gap >= 0:
                    start = gap + 1
        end = min(len(text), start + max_length)
        excerpt = text[start:end].rstrip()
        prefix = ELLIPSIS if start > 0 else ""
        suffix = ELLIPSIS if end < len(text) else ""
        return Snippet(snippet=f"{prefix}{excerpt}{suffix}", start=start)

    pos, length = match
    center = pos + length // 2
    start = max(0, center - max_length // 2)
    end = start + max_length
    if end > len(text):
        end = len(text)
        start = max(0, end - max_length)

    start, end = _trim_to_words(text, start, end, pos, pos + length)

    excerpt = text[start:end].strip()
    prefix = ELLIPSIS if start > 0 else ""
    suffix = ELLIPSIS if end < len(text) else ""
    return Snippet(snippet=f"{prefix}{excerpt}{suffix}", start=start)
