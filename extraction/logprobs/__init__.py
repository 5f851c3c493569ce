"""Confidence scores derived from token-level log-probabilities."""

from .batch import BatchResult, analyze_batch_result, iter_batch_results, parse_batch_line
from .locator import KeyScanner, KeyValueTokenLocator, ScanState, find_value_start, first_value_token_logprob
from .probability import analyze_logprobs, field_probabilities, linear_probability, perplexity
from .spans import TokenSpanIndex

__all__ = [
    "BatchResult",
    "KeyScanner",
    "KeyValueTokenLocator",
    "ScanState",
    "TokenSpanIndex",
    "analyze_batch_result",
    "analyze_logprobs",
    "field_probabilities",
    "find_value_start",
    "first_value_token_logprob",
    "iter_batch_results",
    "linear_probability",
    "parse_batch_line",
    "perplexity",
]
