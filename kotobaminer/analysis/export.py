from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..config import ExportOptions
from ..segmentation.unidic import is_kana
from .base import AnalysisResult, Term


@dataclass
class ExportRow:
    rank: int
    lemma: str
    reading: Optional[str]
    part_of_speech: str
    frequency: int
    weighted_score: float
    file_count: int
    example_sentence: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


EXPORT_FIELDS = [
    "rank",
    "lemma",
    "reading",
    "part_of_speech",
    "frequency",
    "weighted_score",
    "file_count",
    "example_sentence",
]


def competition_ranks(counts: Sequence[int]) -> List[int]:
    """Ranks for counts sorted descending; equal counts share a rank (1, 1, 3)."""
    ranks: List[int] = []
    for idx, count in enumerate(counts):
        if idx > 0 and count == counts[idx - 1]:
            ranks.append(ranks[-1])
        else:
            ranks.append(idx + 1)
    return ranks


def build_export_rows(
    result: AnalysisResult, options: Optional[ExportOptions] = None
) -> List[ExportRow]:
    """
    In-memory rows for an exporter, built from the surfaced terms.

    Rows are ordered by frequency, highest first. The reading is left out for
    lemmas written entirely in kana.
    """
    options = options or ExportOptions()
    terms: List[Term] = sorted(result.terms, key=lambda t: -t.frequency)
    if options.exclude_hapax:
        terms = [t for t in terms if t.frequency > 1]
    if options.max_terms is not None:
        terms = terms[: options.max_terms]

    ranks = competition_ranks([t.frequency for t in terms])
    return [
        ExportRow(
            rank=rank,
            lemma=term.lemma,
            reading=None if is_kana(term.lemma) else term.lemma_reading,
            part_of_speech=term.part_of_speech.value,
            frequency=term.frequency,
            weighted_score=term.weighted_score,
            file_count=term.file_count,
            example_sentence=term.example_sentence,
        )
        for rank, term in zip(ranks, terms)
    ]
