"""Pair uploaded PDFs with imported paper records when no shared key is reliable."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from extraction.core.identifiers import normalize_doi, normalize_for_matching
from extraction.core.models import MatchAssignment, MatchCandidate, MatchType, PaperRecord, PdfMetadata
from extraction.core.similarity import sequence_ratio
from extraction.exceptions import MatchContractError, MatchIndexError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

DEFAULT_MIN_CONFIDENCE = 0.5


class RecordMatcher:
    """Score PDF/paper pairs and resolve them into a monogamous assignment.

    Each pair is scored by the first strategy that clears its own bar, in the
    order DOI, title, filename. Scores from different strategies are never
    blended. The final assignment is a greedy sweep over candidates sorted by
    descending score, which approximates a maximum-weight bipartite matching
    while staying deterministic for identical inputs.
    """

    def __init__(
        self,
        *,
        doi_threshold: float = 0.9,
        title_threshold: float = 0.6,
        filename_threshold: float = 0.5,
    ) -> None:
        self.doi_threshold = doi_threshold
        self.title_threshold = title_threshold
        self.filename_threshold = filename_threshold

    @classmethod
    def from_config(cls, config) -> "RecordMatcher":
        return cls(
            doi_threshold=config.doi_threshold,
            title_threshold=config.title_threshold,
            filename_threshold=config.filename_threshold,
        )

    def score(self, pdf: PdfMetadata, paper: PaperRecord) -> Optional[Tuple[float, MatchType]]:
        """Return ``(score, match_type)`` for the first accepted strategy, else ``None``."""

        pdf_doi = normalize_doi(pdf.doi)
        paper_doi = normalize_doi(paper.doi)
        if pdf_doi and paper_doi:
            similarity = sequence_ratio(pdf_doi, paper_doi)
            if similarity > self.doi_threshold:
                return similarity, MatchType.DOI

        paper_title = normalize_for_matching(paper.title)
        if not paper_title:
            return None

        pdf_title = normalize_for_matching(pdf.title)
        if pdf_title:
            similarity = sequence_ratio(pdf_title, paper_title)
            if similarity > self.title_threshold:
                return similarity, MatchType.TITLE

        pdf_filename = normalize_for_matching(pdf.filename)
        if pdf_filename:
            similarity = sequence_ratio(pdf_filename, paper_title)
            if similarity > self.filename_threshold:
                return similarity, MatchType.FILENAME

        return None

    def candidate(
        self,
        pdf_index: int,
        pdf: PdfMetadata,
        paper_index: int,
        paper: PaperRecord,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    ) -> Optional[MatchCandidate]:
        """Score one pair and keep it only when it reaches ``min_confidence``."""

        scored = self.score(pdf, paper)
        if scored is None or scored[0] < min_confidence:
            return None
        score, match_type = scored
        logger.debug(
            "Candidate pdf=%s paper=%s score=%.3f type=%s",
            pdf_index,
            paper_index,
            score,
            match_type.value,
        )
        return MatchCandidate(pdf_index, paper_index, score, match_type)

    def iter_candidates(
        self,
        pdfs: Sequence[PdfMetadata],
        papers: Sequence[PaperRecord],
        *,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        progress: Optional[ProgressCallback] = None,
    ) -> Iterator[MatchCandidate]:
        """Evaluate every pair in ``pdf_index``-major order."""

        total = len(pdfs)
        for pdf_index, pdf in enumerate(pdfs):
            for paper_index, paper in enumerate(papers):
                found = self.candidate(pdf_index, pdf, paper_index, paper, min_confidence)
                if found is not None:
                    yield found
            if progress is not None:
                progress(pdf_index + 1, total, progress_label(pdf, pdf_index))

    def match(
        self,
        pdfs: Sequence[PdfMetadata],
        papers: Sequence[PaperRecord],
        *,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        progress: Optional[ProgressCallback] = None,
    ) -> MatchAssignment:
        candidates = list(
            self.iter_candidates(pdfs, papers, min_confidence=min_confidence, progress=progress)
        )
        assignment = assign_matches(candidates)
        logger.info(
            "Matched %s of %s PDFs against %s papers (%s candidates)",
            len(assignment),
            len(pdfs),
            len(papers),
            len(candidates),
        )
        return assignment


def progress_label(pdf: PdfMetadata, pdf_index: int) -> str:
    return pdf.filename or f"PDF {pdf_index + 1}"


def assign_matches(candidates: Iterable[MatchCandidate]) -> MatchAssignment:
    """Greedily accept the best-scoring candidates whose indices are still free.

    Python's sort is stable, so equal scores keep their enumeration order.
    """

    ordered = list(candidates)
    for candidate in ordered:
        _check_candidate(candidate)
    ordered.sort(key=lambda candidate: candidate.score, reverse=True)

    used_pdfs: Set[int] = set()
    used_papers: Set[int] = set()
    accepted: List[MatchCandidate] = []
    for candidate in ordered:
        if candidate.pdf_index in used_pdfs or candidate.paper_index in used_papers:
            continue
        accepted.append(candidate)
        used_pdfs.add(candidate.pdf_index)
        used_papers.add(candidate.paper_index)
    return accepted


def assignment_from_indices(
    pdf_indices: Sequence[int],
    paper_indices: Sequence[int],
    scores: Sequence[float],
    match_types: Sequence[MatchType | str],
) -> MatchAssignment:
    """Build an assignment from parallel index lists, e.g. decoded from storage.

    The lists must have identical lengths; they are never silently truncated.
    """

    lengths = {len(pdf_indices), len(paper_indices), len(scores), len(match_types)}
    if len(lengths) != 1:
        raise MatchContractError(
            "Index lists must have equal lengths: "
            f"pdf={len(pdf_indices)} paper={len(paper_indices)} "
            f"scores={len(scores)} types={len(match_types)}"
        )

    candidates = []
    for pdf_index, paper_index, score, match_type in zip(
        pdf_indices, paper_indices, scores, match_types
    ):
        try:
            resolved_type = MatchType(match_type)
        except ValueError as exc:
            raise MatchContractError(f"Unknown match type: {match_type!r}") from exc
        candidates.append(MatchCandidate(pdf_index, paper_index, float(score), resolved_type))
    return assign_matches(candidates)


def resolve_match(
    match: MatchCandidate,
    pdfs: Sequence[PdfMetadata],
    papers: Sequence[PaperRecord],
) -> Tuple[PdfMetadata, PaperRecord]:
    """Return the ``(pdf, paper)`` records referenced by ``match``."""

    if not 0 <= match.pdf_index < len(pdfs):
        raise MatchIndexError(
            f"pdf_index {match.pdf_index} is outside the {len(pdfs)} supplied PDFs"
        )
    if not 0 <= match.paper_index < len(papers):
        raise MatchIndexError(
            f"paper_index {match.paper_index} is outside the {len(papers)} supplied papers"
        )
    return pdfs[match.pdf_index], papers[match.paper_index]


def match_records(
    pdfs: Sequence[PdfMetadata],
    papers: Sequence[PaperRecord],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    progress: Optional[ProgressCallback] = None,
) -> MatchAssignment:
    """Convenience wrapper for matching without instantiating the matcher."""

    return RecordMatcher().match(pdfs, papers, min_confidence=min_confidence, progress=progress)


def _check_candidate(candidate: MatchCandidate) -> None:
    if candidate.pdf_index < 0 or candidate.paper_index < 0:
        raise MatchContractError(f"Negative index in candidate: {candidate}")
    if not 0.0 <= candidate.score <= 1.0:
        raise MatchContractError(f"Candidate score outside [0, 1]: {candidate}")
    if not isinstance(candidate.match_type, MatchType):
        raise MatchContractError(f"Unknown match type in candidate: {candidate}")
