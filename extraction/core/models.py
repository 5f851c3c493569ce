from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


@dataclass
class PaperRecord:
    """A tabular paper row imported by the caller.

    Every field may be empty; ``fulltext`` is only populated once a matched PDF
    has been merged into the record.
    """

    paper_id: str = ""
    title: str = ""
    abstract: str = ""
    authors: str = ""
    keywords: str = ""
    doi: str = ""
    fulltext: Optional[str] = None


@dataclass
class PdfMetadata:
    """Metadata and text extracted from an uploaded PDF."""

    filename: str = ""
    title: str = ""
    authors: str = ""
    year: str = ""
    doi: str = ""
    fulltext: str = ""


class MatchType(str, Enum):
    DOI = "doi"
    TITLE = "title"
    FILENAME = "filename"


@dataclass(frozen=True)
class MatchCandidate:
    """A scored pairing between one PDF and one paper record."""

    pdf_index: int
    paper_index: int
    score: float
    match_type: MatchType


@dataclass(frozen=True)
class TokenStreamEntry:
    """One emitted token of an LLM response together with its log-probability."""

    text: str
    logprob: float


@dataclass(frozen=True)
class TokenSpan:
    start: int
    end: int

    def __contains__(self, position: int) -> bool:
        return self.start <= position < self.end

    @property
    def width(self) -> int:
        return self.end - self.start


@dataclass
class LogprobAnalysis:
    """Aggregate confidence measures for one structured LLM response."""

    logprobs: List[float] = field(default_factory=list)
    perplexity: Optional[float] = None
    field_probabilities: Dict[str, float] = field(default_factory=dict)


MatchAssignment = List[MatchCandidate]
FieldProbabilityMap = Dict[str, float]


__all__ = [
    "PaperRecord",
    "PdfMetadata",
    "MatchType",
    "MatchCandidate",
    "MatchAssignment",
    "TokenStreamEntry",
    "TokenSpan",
    "LogprobAnalysis",
    "FieldProbabilityMap",
]
