"""Turn token log-probabilities into per-field confidences and response perplexity."""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

import numpy as np

from extraction.core.models import FieldProbabilityMap, LogprobAnalysis, TokenStreamEntry
from extraction.logprobs.locator import KeyValueTokenLocator


def linear_probability(logprob: float) -> float:
    return math.exp(logprob)


def perplexity(logprobs: Sequence[float]) -> Optional[float]:
    """Return ``exp(-mean(logprobs))``, or ``None`` when there is nothing to average."""

    if len(logprobs) == 0:
        return None
    values = np.asarray(logprobs, dtype=float)
    return float(np.exp(-values.mean()))


def field_probabilities(
    tokens: Sequence[TokenStreamEntry],
    keys: Iterable[str],
    *,
    ignore_opening_quote: bool = True,
) -> FieldProbabilityMap:
    """Map each resolvable key to the linear probability of its value's first token.

    Keys whose value cannot be located are left out rather than set to zero.
    """

    locator = KeyValueTokenLocator(tokens, ignore_opening_quote=ignore_opening_quote)
    probabilities: FieldProbabilityMap = {}
    for key in keys:
        logprob = locator.locate(key)
        if logprob is not None:
            probabilities[key] = linear_probability(logprob)
    return probabilities


def analyze_logprobs(
    tokens: Sequence[TokenStreamEntry],
    keys: Iterable[str] = (),
    *,
    ignore_opening_quote: bool = True,
) -> LogprobAnalysis:
    logprobs = [token.logprob for token in tokens]
    return LogprobAnalysis(
        logprobs=logprobs,
        perplexity=perplexity(logprobs),
        field_probabilities=field_probabilities(
            tokens, keys, ignore_opening_quote=ignore_opening_quote
        ),
    )
