from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .config import ExtractionConfig
from .core.models import (
    FieldProbabilityMap,
    LogprobAnalysis,
    MatchAssignment,
    PaperRecord,
    PdfMetadata,
    TokenStreamEntry,
)
from .matching.cooperative import CancellationToken, match_records_async, match_records_in_worker
from .matching.record_matcher import ProgressCallback, RecordMatcher
from .logprobs.probability import analyze_logprobs, field_probabilities


@dataclass
class ExtractionSession:
    """Explicit context for one caller: configuration, progress reporting and cancellation.

    Nothing is cached between calls; every method is a pure function of its
    arguments and the session's settings.
    """

    config: ExtractionConfig = field(default_factory=ExtractionConfig)
    progress: Optional[ProgressCallback] = None
    cancel_event: Optional[CancellationToken] = None

    def build_matcher(self) -> RecordMatcher:
        return RecordMatcher.from_config(self.config)

    def match(self, pdfs: Sequence[PdfMetadata], papers: Sequence[PaperRecord]) -> MatchAssignment:
        return self.build_matcher().match(
            pdfs, papers, min_confidence=self.config.min_confidence, progress=self.progress
        )

    async def match_async(
        self, pdfs: Sequence[PdfMetadata], papers: Sequence[PaperRecord]
    ) -> MatchAssignment:
        return await match_records_async(
            pdfs,
            papers,
            self.config.min_confidence,
            self.progress,
            matcher=self.build_matcher(),
            yield_every=self.config.yield_every,
            cancel_event=self.cancel_event,
        )

    def match_in_worker(
        self, pdfs: Sequence[PdfMetadata], papers: Sequence[PaperRecord]
    ) -> MatchAssignment:
        return match_records_in_worker(
            pdfs,
            papers,
            self.config.min_confidence,
            self.progress,
            matcher=self.build_matcher(),
            yield_every=self.config.yield_every,
            cancel_event=self.cancel_event,
        )

    def field_probabilities(
        self, tokens: Sequence[TokenStreamEntry], keys: Iterable[str]
    ) -> FieldProbabilityMap:
        return field_probabilities(
            tokens, keys, ignore_opening_quote=self.config.ignore_opening_quote
        )

    def analyze(self, tokens: Sequence[TokenStreamEntry], keys: Iterable[str]) -> LogprobAnalysis:
        return analyze_logprobs(tokens, keys, ignore_opening_quote=self.config.ignore_opening_quote)
