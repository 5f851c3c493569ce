import sys
from pathlib import Path

# Ensure repository root is on the import path for local package imports during tests.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from extraction.core.models import PaperRecord, PdfMetadata

_WORDS = [
    "graph", "neural", "sparse", "bayesian", "protein", "folding", "climate", "ocean",
    "transformer", "memory", "quantum", "lattice", "genome", "variant", "robust", "causal",
    "inference", "sampling", "vision", "speech",
]


def _title(index: int) -> str:
    size = len(_WORDS)
    return f"{_WORDS[index % size]} {_WORDS[(index * 7 + 3) % size]} {_WORDS[(index * 3 + 1) % size]}"


@pytest.fixture
def corpus():
    """Forty PDFs against thirty papers with a mix of DOI, title and filename evidence."""

    papers = [
        PaperRecord(
            paper_id=str(index),
            title=_title(index).title(),
            doi=f"10.{1000 + index}/paper.{index}" if index % 3 == 0 else "",
        )
        for index in range(30)
    ]
    pdfs = []
    for index in range(40):
        target = (index * 11) % 30
        if index % 4 == 0:
            pdfs.append(PdfMetadata(filename=f"scan_{index}", doi=f"https://doi.org/10.{1000 + target}/PAPER.{target}"))
        elif index % 4 == 1:
            pdfs.append(PdfMetadata(filename=f"upload_{index}", title=_title(target) + " revisited"))
        elif index % 4 == 2:
            pdfs.append(PdfMetadata(filename=_title(target).replace(" ", "-")))
        else:
            pdfs.append(PdfMetadata(filename=f"unrelated_{index}", title="Minutes of the committee"))
    return pdfs, papers
