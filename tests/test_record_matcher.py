import pytest

from extraction.core.models import MatchCandidate, MatchType, PaperRecord, PdfMetadata
from extraction.exceptions import MatchContractError, MatchIndexError
from extraction.matching.record_matcher import (
    RecordMatcher,
    assign_matches,
    assignment_from_indices,
    match_records,
    resolve_match,
)


def test_doi_case_difference_matches_by_doi():
    pdfs = [PdfMetadata(filename="a", doi="10.1/ABC")]
    papers = [PaperRecord(title="Something else entirely", doi="10.1/abc")]

    assignment = match_records(pdfs, papers)

    assert assignment == [MatchCandidate(0, 0, 1.0, MatchType.DOI)]


def test_title_match_ignores_punctuation_and_stop_words():
    pdfs = [PdfMetadata(filename="upload", title="Attention Is All You Need")]
    papers = [PaperRecord(title="Attention is all you need.")]

    score, match_type = RecordMatcher().score(pdfs[0], papers[0])

    assert match_type is MatchType.TITLE
    assert score == 1.0


def test_weak_doi_falls_through_to_title_without_blending():
    pdf = PdfMetadata(title="Protein Folding at Scale", doi="10.1000/aaaa")
    paper = PaperRecord(title="Protein folding at scale", doi="10.9999/zzzz")

    assert RecordMatcher().score(pdf, paper) == (1.0, MatchType.TITLE)


def test_filename_is_used_when_title_is_missing():
    pdf = PdfMetadata(filename="Deep-Residual-Learning")
    paper = PaperRecord(title="Deep Residual Learning for Image Recognition")

    score, match_type = RecordMatcher().score(pdf, paper)

    assert match_type is MatchType.FILENAME
    assert score == pytest.approx(44 / 62)


def test_pair_without_evidence_yields_no_candidate():
    pdf = PdfMetadata(filename="scan_001")
    paper = PaperRecord(title="")

    assert RecordMatcher().score(pdf, paper) is None


def test_min_confidence_filters_candidates():
    pdfs = [PdfMetadata(filename="Deep-Residual-Learning")]
    papers = [PaperRecord(title="Deep Residual Learning for Image Recognition")]

    assert match_records(pdfs, papers, min_confidence=0.99) == []
    assert len(match_records(pdfs, papers, min_confidence=0.5)) == 1


def test_assign_matches_is_greedy_by_score():
    candidates = [
        MatchCandidate(0, 0, 0.8, MatchType.TITLE),
        MatchCandidate(0, 1, 0.95, MatchType.DOI),
        MatchCandidate(1, 1, 0.9, MatchType.TITLE),
        MatchCandidate(1, 0, 0.7, MatchType.FILENAME),
    ]

    assignment = assign_matches(candidates)

    assert [(m.pdf_index, m.paper_index) for m in assignment] == [(0, 1), (1, 0)]


def test_assign_matches_breaks_ties_by_enumeration_order():
    candidates = [
        MatchCandidate(0, 0, 0.8, MatchType.TITLE),
        MatchCandidate(1, 0, 0.8, MatchType.TITLE),
        MatchCandidate(1, 1, 0.8, MatchType.TITLE),
    ]

    assignment = assign_matches(candidates)

    assert [(m.pdf_index, m.paper_index) for m in assignment] == [(0, 0), (1, 1)]


def test_assign_matches_rejects_invalid_candidates():
    with pytest.raises(MatchContractError):
        assign_matches([MatchCandidate(-1, 0, 0.8, MatchType.TITLE)])
    with pytest.raises(MatchContractError):
        assign_matches([MatchCandidate(0, 0, 1.5, MatchType.TITLE)])


def test_assignment_from_indices_rejects_inconsistent_lengths():
    with pytest.raises(MatchContractError):
        assignment_from_indices([0, 1], [0], [0.9, 0.8], ["doi", "title"])


def test_assignment_from_indices_rejects_unknown_match_type():
    with pytest.raises(MatchContractError):
        assignment_from_indices([0], [0], [0.9], ["isbn"])


def test_assignment_from_indices_builds_candidates():
    assignment = assignment_from_indices([0, 1], [1, 0], [0.9, 0.8], ["doi", MatchType.TITLE])

    assert assignment == [
        MatchCandidate(0, 1, 0.9, MatchType.DOI),
        MatchCandidate(1, 0, 0.8, MatchType.TITLE),
    ]


def test_resolve_match_returns_records_and_checks_bounds():
    pdfs = [PdfMetadata(filename="a")]
    papers = [PaperRecord(title="b")]

    assert resolve_match(MatchCandidate(0, 0, 0.9, MatchType.TITLE), pdfs, papers) == (
        pdfs[0],
        papers[0],
    )
    with pytest.raises(MatchIndexError):
        resolve_match(MatchCandidate(0, 3, 0.9, MatchType.TITLE), pdfs, papers)
    with pytest.raises(MatchIndexError):
        resolve_match(MatchCandidate(2, 0, 0.9, MatchType.TITLE), pdfs, papers)


def test_progress_is_reported_once_per_pdf(mocker):
    progress = mocker.Mock()
    pdfs = [PdfMetadata(filename="first"), PdfMetadata()]
    papers = [PaperRecord(title="x")]

    match_records(pdfs, papers, progress=progress)

    assert progress.call_args_list == [
        mocker.call(1, 2, "first"),
        mocker.call(2, 2, "PDF 2"),
    ]


def test_assignment_is_monogamous_and_above_threshold(corpus):
    pdfs, papers = corpus

    assignment = match_records(pdfs, papers, min_confidence=0.5)

    pdf_indices = [m.pdf_index for m in assignment]
    paper_indices = [m.paper_index for m in assignment]
    assert assignment
    assert len(set(pdf_indices)) == len(pdf_indices)
    assert len(set(paper_indices)) == len(paper_indices)
    assert all(m.score >= 0.5 for m in assignment)


def test_matching_is_deterministic(corpus):
    pdfs, papers = corpus

    assert match_records(pdfs, papers) == match_records(pdfs, papers)


def test_matcher_thresholds_come_from_config():
    from extraction.config import ExtractionConfig

    matcher = RecordMatcher.from_config(ExtractionConfig(title_threshold=0.95))

    assert matcher.title_threshold == 0.95
    assert matcher.doi_threshold == 0.9
