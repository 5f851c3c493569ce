"""Character offsets of LLM tokens within their concatenated text."""

from __future__ import annotations

from bisect import bisect_right
from typing import List, Optional, Sequence, Tuple

from extraction.core.models import TokenSpan, TokenStreamEntry


class TokenSpanIndex:
    """Map character positions in the concatenated token text back to token indices.

    Spans are half-open and partition the text exactly: every character belongs
    to one token, and empty tokens own a zero-width span at their offset.
    """

    def __init__(self, tokens: Sequence[TokenStreamEntry]) -> None:
        starts: List[int] = []
        spans: List[TokenSpan] = []
        position = 0
        for token in tokens:
            length = len(token.text or "")
            starts.append(position)
            spans.append(TokenSpan(position, position + length))
            position += length
        self._starts = starts
        self._spans: Tuple[TokenSpan, ...] = tuple(spans)
        self.total_length = position

    def __len__(self) -> int:
        return len(self._spans)

    @property
    def spans(self) -> Tuple[TokenSpan, ...]:
        return self._spans

    def lookup(self, position: int) -> Optional[int]:
        """Return the index of the token covering ``position`` or ``None``."""

        if position < 0 or position >= self.total_length:
            return None
        # Zero-width spans share their start with the next token; the last
        # start at or before ``position`` is the non-empty owner.
        index = bisect_right(self._starts, position) - 1
        if index < 0 or position not in self._spans[index]:
            return None
        return index
