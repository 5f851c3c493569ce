"""Character-level string similarity used by the record matcher."""

from __future__ import annotations


def longest_common_subsequence(first: str, second: str) -> int:
    """Length of the longest common subsequence of two strings."""

    if not first or not second:
        return 0

    previous = [0] * (len(second) + 1)
    for char_a in first:
        current = [0]
        for j, char_b in enumerate(second, start=1):
            if char_a == char_b:
                current.append(previous[j - 1] + 1)
            else:
                current.append(max(previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def sequence_ratio(first: str | None, second: str | None) -> float:
    """Return ``2 * LCS / (len(a) + len(b))`` over the lowercased inputs.

    Identical strings (including two empty strings) score ``1.0`` and an empty
    string never matches a non-empty one.
    """

    a = (first or "").lower()
    b = (second or "").lower()

    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    return 2.0 * longest_common_subsequence(a, b) / (len(a) + len(b))
