"""Reconcile uploaded PDFs with paper records and score LLM-extracted fields."""

from __future__ import annotations

from .config import ExtractionConfig, load_config
from .core.models import (
    LogprobAnalysis,
    MatchCandidate,
    MatchType,
    PaperRecord,
    PdfMetadata,
    TokenStreamEntry,
)
from .logprobs import (
    KeyValueTokenLocator,
    TokenSpanIndex,
    field_probabilities,
    first_value_token_logprob,
    linear_probability,
    perplexity,
)
from .matching import (
    RecordMatcher,
    match_records,
    match_records_async,
    match_records_in_worker,
    resolve_match,
)
from .session import ExtractionSession

__all__ = [
    "ExtractionConfig",
    "ExtractionSession",
    "KeyValueTokenLocator",
    "LogprobAnalysis",
    "MatchCandidate",
    "MatchType",
    "PaperRecord",
    "PdfMetadata",
    "RecordMatcher",
    "TokenSpanIndex",
    "TokenStreamEntry",
    "field_probabilities",
    "first_value_token_logprob",
    "linear_probability",
    "load_config",
    "match_records",
    "match_records_async",
    "match_records_in_worker",
    "perplexity",
    "resolve_match",
]
