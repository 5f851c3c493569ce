"""Matching variants that do not monopolise the caller's thread.

``match_records_async`` interleaves the comparison sweep with other tasks on a
single event loop. ``match_records_in_worker`` moves the sweep to a worker
thread and relays progress back to the calling thread through a queue. Both
produce exactly the assignment :meth:`RecordMatcher.match` would.
"""

from __future__ import annotations

import asyncio
import logging
import queue
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Protocol, Sequence

from extraction.core.models import MatchAssignment, MatchCandidate, PaperRecord, PdfMetadata
from extraction.exceptions import MatchCancelled
from extraction.matching.record_matcher import (
    DEFAULT_MIN_CONFIDENCE,
    ProgressCallback,
    RecordMatcher,
    assign_matches,
    progress_label,
)

logger = logging.getLogger(__name__)

DEFAULT_YIELD_EVERY = 100

_END_OF_STREAM = object()


class CancellationToken(Protocol):
    """Anything exposing ``is_set()``, such as :class:`threading.Event`."""

    def is_set(self) -> bool: ...


def _raise_if_cancelled(cancel_event: Optional[CancellationToken], comparisons: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info("Matching cancelled after %s comparisons", comparisons)
        raise MatchCancelled(f"Matching cancelled after {comparisons} comparisons")


def _validate_window(yield_every: int) -> None:
    if yield_every < 1:
        raise ValueError("yield_every must be at least 1")


async def match_records_async(
    pdfs: Sequence[PdfMetadata],
    papers: Sequence[PaperRecord],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    progress: Optional[ProgressCallback] = None,
    *,
    matcher: Optional[RecordMatcher] = None,
    yield_every: int = DEFAULT_YIELD_EVERY,
    cancel_event: Optional[CancellationToken] = None,
) -> MatchAssignment:
    """Run the record matcher while yielding to the event loop.

    Control is handed back every ``yield_every`` comparisons and after each
    PDF. When ``cancel_event`` is supplied it is checked at every yield point
    and :class:`MatchCancelled` is raised once it is set.
    """

    _validate_window(yield_every)
    matcher = matcher or RecordMatcher()
    total = len(pdfs)
    candidates: List[MatchCandidate] = []
    comparisons = 0

    for pdf_index, pdf in enumerate(pdfs):
        for paper_index, paper in enumerate(papers):
            found = matcher.candidate(pdf_index, pdf, paper_index, paper, min_confidence)
            if found is not None:
                candidates.append(found)
            comparisons += 1
            if comparisons % yield_every == 0:
                await asyncio.sleep(0)
                _raise_if_cancelled(cancel_event, comparisons)

        if progress is not None:
            progress(pdf_index + 1, total, progress_label(pdf, pdf_index))
        await asyncio.sleep(0)
        _raise_if_cancelled(cancel_event, comparisons)

    logger.info(
        "Cooperative match finished after %s comparisons (%s candidates)",
        comparisons,
        len(candidates),
    )
    return assign_matches(candidates)


def _sweep(
    matcher: RecordMatcher,
    pdfs: Sequence[PdfMetadata],
    papers: Sequence[PaperRecord],
    min_confidence: float,
    report: Callable[[int, int, str], None],
    cancel_event: Optional[CancellationToken],
    check_every: int,
) -> MatchAssignment:
    total = len(pdfs)
    candidates: List[MatchCandidate] = []
    comparisons = 0

    for pdf_index, pdf in enumerate(pdfs):
        for paper_index, paper in enumerate(papers):
            found = matcher.candidate(pdf_index, pdf, paper_index, paper, min_confidence)
            if found is not None:
                candidates.append(found)
            comparisons += 1
            if comparisons % check_every == 0:
                _raise_if_cancelled(cancel_event, comparisons)
        report(pdf_index + 1, total, progress_label(pdf, pdf_index))
        _raise_if_cancelled(cancel_event, comparisons)

    return assign_matches(candidates)


def match_records_in_worker(
    pdfs: Sequence[PdfMetadata],
    papers: Sequence[PaperRecord],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    progress: Optional[ProgressCallback] = None,
    *,
    matcher: Optional[RecordMatcher] = None,
    yield_every: int = DEFAULT_YIELD_EVERY,
    cancel_event: Optional[CancellationToken] = None,
) -> MatchAssignment:
    """Run the comparison sweep on a worker thread.

    Progress messages travel over a :class:`queue.Queue` and the callback is
    invoked on the calling thread. The worker always finishes the stream with
    a sentinel, so every message it queued is delivered before the result (or
    its exception) is returned. ``cancel_event`` is checked by the worker
    every ``yield_every`` comparisons and after each PDF.
    """

    _validate_window(yield_every)
    matcher = matcher or RecordMatcher()
    events: "queue.Queue[object]" = queue.Queue()

    def _report(current: int, total: int, label: str) -> None:
        events.put((current, total, label))

    def _run() -> MatchAssignment:
        try:
            return _sweep(
                matcher, pdfs, papers, min_confidence, _report, cancel_event, yield_every
            )
        finally:
            events.put(_END_OF_STREAM)

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="record-matcher") as executor:
        future = executor.submit(_run)
        while True:
            event = events.get()
            if event is _END_OF_STREAM:
                break
            if progress is not None:
                current, total, label = event
                progress(current, total, label)

        return future.result()
