from __future__ import annotations

import re
import unicodedata
from dataclasses import replace

from .models import PdfMetadata

_DOI_PREFIX_PATTERN = re.compile(r"^(?:doi:|(?:https?://)?(?:dx\.)?doi\.org/)", re.IGNORECASE)
_DOI_PATTERN = re.compile(r"10\.\d{4,9}/[-._;()/:A-Z0-9]+", re.IGNORECASE)
_PDF_SUFFIX_PATTERN = re.compile(r"\.pdf$", re.IGNORECASE)
_STOP_WORD_PATTERN = re.compile(r"\b(?:the|a|an|and|or|of|in|on|at|to|for|with|by)\b")
_PUNCTUATION_PATTERN = re.compile(r"[^\w\s]")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_FILENAME_SEPARATOR_PATTERN = re.compile(r"[_\-\s]+")
_YEAR_PATTERN = re.compile(r"(\d{4})")


def normalize_doi(doi: str | None) -> str | None:
    """Normalize a DOI string into a canonical lowercase form.

    The normalization removes leading DOI prefixes (e.g., ``https://doi.org/`` or
    ``doi:``), removes all whitespace, and lowercases the remaining identifier.
    Empty or missing values return ``None``.
    """

    if not doi:
        return None

    cleaned = unicodedata.normalize("NFKC", doi).strip().lower()
    cleaned = _DOI_PREFIX_PATTERN.sub("", cleaned)
    cleaned = _WHITESPACE_PATTERN.sub("", cleaned)

    return cleaned or None


def normalize_for_matching(text: str | None) -> str:
    """Normalize titles and filenames so that cosmetic differences do not affect matching.

    Punctuation becomes whitespace, whitespace runs collapse to one space and a
    fixed set of English stop words is dropped.
    """

    if not text:
        return ""

    normalized = unicodedata.normalize("NFKC", text).lower().strip()
    normalized = _PUNCTUATION_PATTERN.sub(" ", normalized)
    normalized = _WHITESPACE_PATTERN.sub(" ", normalized)
    normalized = _STOP_WORD_PATTERN.sub(" ", normalized)
    return _WHITESPACE_PATTERN.sub(" ", normalized).strip()


def find_doi_in_text(text: str | None) -> str | None:
    """Return the first DOI-looking substring in ``text``."""

    if not text:
        return None
    match = _DOI_PATTERN.search(text)
    return match.group(0) if match else None


def strip_pdf_suffix(filename: str) -> str:
    return _PDF_SUFFIX_PATTERN.sub("", filename)


def metadata_from_filename(filename: str) -> PdfMetadata:
    """Guess metadata from common filename layouts such as ``title_author_2020.pdf``.

    A filename that is a DOI in its entirety only yields the DOI. Otherwise the
    first four-digit run is taken as the year and the first two separated parts
    as title and authors.
    """

    clean_name = strip_pdf_suffix(filename)

    doi_match = _DOI_PATTERN.fullmatch(clean_name)
    if doi_match:
        return PdfMetadata(filename=clean_name, doi=doi_match.group(0))

    year_match = _YEAR_PATTERN.search(clean_name)
    parts = _FILENAME_SEPARATOR_PATTERN.split(clean_name)

    return PdfMetadata(
        filename=clean_name,
        title=parts[0].lower() if parts and parts[0] else "",
        authors=parts[1].lower() if len(parts) > 1 and parts[1] else "",
        year=year_match.group(1) if year_match else "",
    )


def name_to_key(name: str) -> str:
    """Map a human field name (``"Study Design"``) to its JSON key (``"study_design"``)."""

    return _WHITESPACE_PATTERN.sub("_", name.lower())


def complete_pdf_metadata(pdf: PdfMetadata) -> PdfMetadata:
    """Fill gaps in extracted PDF metadata from the text and the filename.

    A missing DOI is taken from the first DOI in the full text, then from a
    filename that is itself a DOI. A missing title falls back to the filename
    without its ``.pdf`` suffix, and a missing year to a year in the filename.
    """

    filename = strip_pdf_suffix(pdf.filename)
    guessed = metadata_from_filename(filename) if filename else PdfMetadata()

    return replace(
        pdf,
        filename=filename,
        doi=pdf.doi or find_doi_in_text(pdf.fulltext) or guessed.doi,
        title=pdf.title or filename,
        year=pdf.year or guessed.year,
    )
