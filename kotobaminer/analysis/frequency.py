import logging
import math
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from ..config import AnalysisOptions
from .aggregator import terms_by_file
from .base import FileReport, Term, TermKey

logger = logging.getLogger(__name__)


class FrequencyAnalyzer:
    """
    Frequency, weighting, comprehension and the surfacing filter.

    All accumulation is order independent: counts are integer sums and
    weighted scores are computed with math.fsum over occurrence weights.
    """

    def __init__(self, options: Optional[AnalysisOptions] = None, root: Optional[Path] = None):
        self.options = options or AnalysisOptions()
        self.root = Path(root) if root else None
        self._ignored: Set[str] = self.options.all_ignored_terms()

    def source_weight(self, path: Path) -> float:
        """Weight for one source file: relative path first, then parent directory name."""
        weights = self.options.frequency_weights
        if not weights:
            return 1.0
        candidates = []
        if self.root is not None:
            try:
                candidates.append(Path(path).relative_to(self.root).as_posix())
            except ValueError:
                pass
        candidates.append(Path(path).as_posix())
        candidates.append(Path(path).parent.name)
        for key in candidates:
            if key in weights:
                return weights[key]
        return 1.0

    def compute(self, terms: Dict[TermKey, Term]) -> None:
        """Fill frequency, file_count and weighted_score on every term."""
        weight_cache: Dict[Path, float] = {}
        for term in terms.values():
            paths = [o.path for o in term.occurrences]
            for path in paths:
                if path not in weight_cache:
                    weight_cache[path] = self.source_weight(path)
            term.frequency = len(paths)
            term.file_count = len(set(paths))
            term.weighted_score = math.fsum(weight_cache[p] for p in paths)

    def is_known(self, term: Term) -> bool:
        return term.frequency >= self.options.known_frequency_threshold

    def comprehension(
        self, terms: Dict[TermKey, Term], files: Iterable[Path]
    ) -> Dict[Path, FileReport]:
        """
        Per-file comprehension: known terms in the file over all distinct terms
        in the file, filtered ones included. A file without terms scores 0.
        """
        by_file = terms_by_file(terms)
        reports: Dict[Path, FileReport] = {}
        for path in files:
            keys = by_file.get(path, set())
            known = sum(1 for key in keys if self.is_known(terms[key]))
            reports[path] = FileReport(
                path=path,
                term_count=len(keys),
                known_term_count=known,
                comprehension=known / len(keys) if keys else 0.0,
            )
        return reports

    def is_surfaced(self, term: Term) -> bool:
        options = self.options
        if term.frequency < options.minimum_frequency:
            return False
        if options.maximum_frequency is not None and term.frequency > options.maximum_frequency:
            return False
        if term.part_of_speech in options.part_of_speech_filter:
            return False
        if term.is_unknown and not options.include_unknown_words:
            return False
        if term.lemma in self._ignored:
            return False
        return True

    def surface(self, terms: Dict[TermKey, Term]) -> List[Term]:
        """Terms that pass the inclusion filter, most frequent first."""
        surfaced = [t for t in terms.values() if self.is_surfaced(t)]
        surfaced.sort(
            key=lambda t: (
                -t.frequency,
                -t.weighted_score,
                t.lemma,
                t.lemma_reading,
                t.part_of_speech.value,
            )
        )
        logger.debug(f"Surfaced {len(surfaced)} of {len(terms)} terms")
        return surfaced
