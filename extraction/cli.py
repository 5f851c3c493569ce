"""Command-line utilities for the extraction core."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Type, TypeVar

from extraction.config import ExtractionConfig, load_config
from extraction.core.identifiers import complete_pdf_metadata, name_to_key
from extraction.core.models import PaperRecord, PdfMetadata
from extraction.exceptions import ExtractionError
from extraction.logprobs.batch import iter_batch_results
from extraction.session import ExtractionSession

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", PaperRecord, PdfMetadata)

NOT_APPLICABLE = "N/A"


def _load_records(path: Path, record_type: Type[RecordT]) -> List[RecordT]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ExtractionError(f"{path} must contain a JSON array of objects")

    known = {item.name for item in fields(record_type)}
    records: List[RecordT] = []
    for position, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ExtractionError(f"{path}: entry {position} is not an object")
        values = {key: "" if value is None else str(value) for key, value in item.items() if key in known}
        records.append(record_type(**values))
    return records


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Utilities for paper field extraction")
    parser.add_argument("--log-level", default=None, help="Override EXTRACTION_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    match = subparsers.add_parser("match", help="Pair PDF metadata with paper records")
    match.add_argument("pdfs", type=Path, help="JSON array of PDF metadata objects")
    match.add_argument("papers", type=Path, help="JSON array of paper record objects")
    match.add_argument(
        "--min-confidence",
        type=float,
        default=None,
        help="Minimum score for an accepted match (default from configuration)",
    )
    match.add_argument(
        "--async",
        dest="use_async",
        action="store_true",
        help="Run the cooperative matcher on an event loop",
    )

    field_probs = subparsers.add_parser(
        "field-probs", help="Score extracted fields in a batch result JSONL file"
    )
    field_probs.add_argument("results", type=Path, help="Batch output JSONL file")
    field_probs.add_argument(
        "--key",
        dest="keys",
        action="append",
        default=[],
        help="Repeatable top-level field key to score",
    )
    field_probs.add_argument(
        "--field",
        dest="fields",
        action="append",
        default=[],
        help='Repeatable human field name, e.g. "Study Design" for study_design',
    )
    field_probs.add_argument(
        "--keep-opening-quote",
        action="store_true",
        help="Score string values by the token holding their opening quote",
    )

    return parser


def _run_match(args: argparse.Namespace, config: ExtractionConfig) -> None:
    pdfs = [complete_pdf_metadata(pdf) for pdf in _load_records(args.pdfs, PdfMetadata)]
    papers = _load_records(args.papers, PaperRecord)

    def _report(current: int, total: int, label: str) -> None:
        logger.info("Compared PDF %s/%s (%s)", current, total, label)

    session = ExtractionSession(config=config, progress=_report)
    if args.use_async:
        assignment = asyncio.run(session.match_async(pdfs, papers))
    else:
        assignment = session.match(pdfs, papers)

    output = [
        {
            "pdf_index": match.pdf_index,
            "paper_index": match.paper_index,
            "score": match.score,
            "match_type": match.match_type.value,
        }
        for match in assignment
    ]
    print(json.dumps(output, indent=2))


def _run_field_probs(args: argparse.Namespace, config: ExtractionConfig) -> None:
    ignore_opening_quote = config.ignore_opening_quote and not args.keep_opening_quote
    keys = list(args.keys) + [name_to_key(name) for name in args.fields]
    for result in iter_batch_results(args.results, keys, ignore_opening_quote=ignore_opening_quote):
        analysis = result.analysis
        row: Dict[str, Any] = {
            "custom_id": result.custom_id,
            "perplexity_score": (
                analysis.perplexity
                if analysis is not None and analysis.perplexity is not None
                else NOT_APPLICABLE
            ),
            "field_probabilities": analysis.field_probabilities if analysis else {},
        }
        if result.error:
            row["error"] = result.error
        print(json.dumps(row))


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    commands: dict[str, Any] = {
        "match": _run_match,
        "field-probs": _run_field_probs,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.error("Unknown command")
        return 1
    if args.command == "field-probs" and not (args.keys or args.fields):
        parser.error("field-probs needs at least one --key or --field")

    try:
        overrides: Dict[str, Any] = {}
        if getattr(args, "min_confidence", None) is not None:
            overrides["min_confidence"] = args.min_confidence
        if args.log_level:
            overrides["log_level"] = args.log_level
        config = load_config(**overrides)
        logging.basicConfig(level=config.log_level, stream=sys.stderr)
        handler(args, config)
    except (ExtractionError, OSError, json.JSONDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
