"""Read completed batch-result files and score the fields each response extracted."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from pydantic import BaseModel, Field, ValidationError

from extraction.core.models import LogprobAnalysis, TokenStreamEntry
from extraction.exceptions import BatchFormatError
from extraction.logprobs.probability import analyze_logprobs

logger = logging.getLogger(__name__)

_JSON_FENCE = "```json"
_FENCE = "```"


class LogprobContent(BaseModel):
    token: str
    logprob: float


class ChoiceLogprobs(BaseModel):
    content: Optional[List[LogprobContent]] = None


class ChoiceMessage(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class Choice(BaseModel):
    message: Optional[ChoiceMessage] = None
    logprobs: Optional[ChoiceLogprobs] = None

    def tokens(self) -> Optional[List[TokenStreamEntry]]:
        if self.logprobs is None or self.logprobs.content is None:
            return None
        return [TokenStreamEntry(item.token, item.logprob) for item in self.logprobs.content]


class ResponseBody(BaseModel):
    choices: List[Choice] = Field(default_factory=list)


class BatchResponse(BaseModel):
    status_code: Optional[int] = None
    body: Optional[ResponseBody] = None


class BatchLine(BaseModel):
    """One line of a chat-completions batch output file."""

    custom_id: str
    response: Optional[BatchResponse] = None
    error: Optional[Any] = None

    @property
    def choices(self) -> List[Choice]:
        if self.response is None or self.response.body is None:
            return []
        return self.response.body.choices


@dataclass
class BatchResult:
    custom_id: str
    fields: Optional[Dict[str, Any]] = None
    analysis: Optional[LogprobAnalysis] = None
    error: Optional[str] = None


def parse_batch_line(raw: str) -> BatchLine:
    try:
        return BatchLine.model_validate_json(raw)
    except ValidationError as exc:
        raise BatchFormatError(f"Invalid batch result line: {exc}") from exc


def strip_code_fence(content: str) -> str:
    """Drop a leading ```` ```json ```` fence and anything after the closing fence."""

    cleaned = content.strip()
    if cleaned.startswith(_JSON_FENCE):
        cleaned = cleaned[len(_JSON_FENCE) :].strip()
    return cleaned.split(_FENCE)[0]


def analyze_batch_result(
    line: BatchLine, keys: Iterable[str] = (), *, ignore_opening_quote: bool = True
) -> BatchResult:
    """Parse the first assistant choice that yields a JSON object and score its fields."""

    keys = list(keys)
    if line.error is not None:
        logger.warning("Batch request %s failed: %s", line.custom_id, line.error)
        return BatchResult(custom_id=line.custom_id, error=str(line.error))

    assistant_choices = [
        choice
        for choice in line.choices
        if choice.message is not None and choice.message.role == "assistant"
    ]
    if not assistant_choices:
        return BatchResult(custom_id=line.custom_id, error="no assistant choice in response")

    first_analysis: Optional[LogprobAnalysis] = None
    error: Optional[str] = None
    for choice in assistant_choices:
        tokens = choice.tokens()
        analysis = (
            analyze_logprobs(tokens, keys, ignore_opening_quote=ignore_opening_quote)
            if tokens is not None
            else None
        )
        if first_analysis is None:
            first_analysis = analysis

        content = strip_code_fence(choice.message.content or "")
        try:
            fields = json.loads(content)
        except json.JSONDecodeError as exc:
            error = f"content is not valid JSON: {exc}"
            logger.warning("Could not parse content for %s: %s", line.custom_id, exc)
            continue
        if not isinstance(fields, dict):
            error = "content is not a JSON object"
            logger.warning("Content for %s is not a JSON object", line.custom_id)
            continue
        return BatchResult(custom_id=line.custom_id, fields=fields, analysis=analysis)

    return BatchResult(custom_id=line.custom_id, analysis=first_analysis, error=error)


def iter_batch_results(
    path: str | Path, keys: Iterable[str] = (), *, ignore_opening_quote: bool = True
) -> Iterator[BatchResult]:
    """Stream :class:`BatchResult` objects from a JSONL file, skipping blank lines."""

    keys = list(keys)
    with Path(path).open("r", encoding="utf-8") as handle:
        for line_number, raw in enumerate(handle, start=1):
            if not raw.strip():
                continue
            try:
                line = parse_batch_line(raw)
            except BatchFormatError as exc:
                raise BatchFormatError(f"{path}:{line_number}: {exc}") from exc
            yield analyze_batch_result(line, keys, ignore_opening_quote=ignore_opening_quote)
