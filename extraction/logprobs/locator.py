"""Locate the token that starts a top-level JSON value inside a logprob stream.

The scanner walks the concatenated token text one character at a time and
keeps just enough JSON structure to recognise ``"key"`` followed by ``:`` at
brace depth one. It never parses the document, so it works on truncated or
malformed model output and on keys, colons and values split across tokens in
any way.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Sequence

from extraction.core.models import TokenStreamEntry
from extraction.logprobs.spans import TokenSpanIndex


class ScanState(Enum):
    SCANNING_STRUCTURE = "scanning_structure"
    IN_STRING = "in_string"
    ESCAPING = "escaping"
    AWAITING_COLON = "awaiting_colon"
    SEEKING_VALUE_START = "seeking_value_start"


class KeyScanner:
    """Character-level state machine searching for the value of one top-level key.

    Feed characters in order with :meth:`feed`; it returns ``True`` for the
    first non-whitespace character of the target key's value.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        self.state = ScanState.SCANNING_STRUCTURE
        self.depth = 0
        self.collecting_key = False
        self._key_chars: List[str] = []

    @property
    def key_buffer(self) -> str:
        return "".join(self._key_chars)

    def feed(self, char: str) -> bool:
        state = self.state

        if state is ScanState.ESCAPING:
            if self.collecting_key:
                self._key_chars.append(char)
            self.state = ScanState.IN_STRING
            return False

        if state is ScanState.IN_STRING:
            if char == "\\":
                self.state = ScanState.ESCAPING
            elif char == '"':
                self._close_string()
            elif self.collecting_key:
                self._key_chars.append(char)
            return False

        if state is ScanState.AWAITING_COLON:
            if char.isspace():
                return False
            # Anything but a colon abandons the key; the character is consumed.
            self.state = (
                ScanState.SEEKING_VALUE_START if char == ":" else ScanState.SCANNING_STRUCTURE
            )
            return False

        if state is ScanState.SEEKING_VALUE_START:
            return not char.isspace()

        if char == '"':
            self.state = ScanState.IN_STRING
            self.collecting_key = self.depth == 1
            self._key_chars = []
        elif char == "{":
            self.depth += 1
        elif char == "}":
            self.depth = max(self.depth - 1, 0)
        return False

    def _close_string(self) -> None:
        matched = self.collecting_key and self.depth == 1 and self.key_buffer == self.key
        self.collecting_key = False
        self._key_chars = []
        self.state = ScanState.AWAITING_COLON if matched else ScanState.SCANNING_STRUCTURE


def find_value_start(
    texts: Iterable[str], key: str, *, ignore_opening_quote: bool = True
) -> Optional[int]:
    """Character offset of the first value character of ``key`` in the joined ``texts``.

    With ``ignore_opening_quote`` a string value resolves to the character
    after its opening quote.
    """

    scanner = KeyScanner(key)
    position = 0
    for text in texts:
        for char in text or "":
            if scanner.feed(char):
                if ignore_opening_quote and char == '"':
                    return position + 1
                return position
            position += 1
    return None


class KeyValueTokenLocator:
    """Resolve top-level keys of one LLM response to the logprob of their value's first token."""

    def __init__(
        self, tokens: Sequence[TokenStreamEntry], *, ignore_opening_quote: bool = True
    ) -> None:
        self.tokens = list(tokens)
        self.ignore_opening_quote = ignore_opening_quote
        self.span_index = TokenSpanIndex(self.tokens)

    def locate_value_position(self, key: str) -> Optional[int]:
        return find_value_start(
            (token.text for token in self.tokens),
            key,
            ignore_opening_quote=self.ignore_opening_quote,
        )

    def locate_token(self, key: str) -> Optional[int]:
        position = self.locate_value_position(key)
        if position is None:
            return None
        return self.span_index.lookup(position)

    def locate(self, key: str) -> Optional[float]:
        index = self.locate_token(key)
        if index is None:
            return None
        return self.tokens[index].logprob


def first_value_token_logprob(
    tokens: Sequence[TokenStreamEntry], key: str, ignore_opening_quote: bool = True
) -> Optional[float]:
    """Convenience wrapper for a single lookup without keeping the locator."""

    return KeyValueTokenLocator(tokens, ignore_opening_quote=ignore_opening_quote).locate(key)
