"""Core data models, identifiers, and string similarity."""

from .identifiers import (
    complete_pdf_metadata,
    find_doi_in_text,
    metadata_from_filename,
    name_to_key,
    normalize_doi,
    normalize_for_matching,
)
from .models import (
    FieldProbabilityMap,
    LogprobAnalysis,
    MatchAssignment,
    MatchCandidate,
    MatchType,
    PaperRecord,
    PdfMetadata,
    TokenSpan,
    TokenStreamEntry,
)
from .similarity import longest_common_subsequence, sequence_ratio

__all__ = [
    "FieldProbabilityMap",
    "LogprobAnalysis",
    "MatchAssignment",
    "MatchCandidate",
    "MatchType",
    "PaperRecord",
    "PdfMetadata",
    "TokenSpan",
    "TokenStreamEntry",
    "complete_pdf_metadata",
    "find_doi_in_text",
    "longest_common_subsequence",
    "metadata_from_filename",
    "name_to_key",
    "normalize_doi",
    "normalize_for_matching",
    "sequence_ratio",
]
