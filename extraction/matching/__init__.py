"""Fuzzy pairing of uploaded PDFs with imported paper records."""

from .cooperative import CancellationToken, match_records_async, match_records_in_worker
from .record_matcher import (
    ProgressCallback,
    RecordMatcher,
    assign_matches,
    assignment_from_indices,
    match_records,
    resolve_match,
)

__all__ = [
    "CancellationToken",
    "ProgressCallback",
    "RecordMatcher",
    "assign_matches",
    "assignment_from_indices",
    "match_records",
    "match_records_async",
    "match_records_in_worker",
    "resolve_match",
]
