from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from ..errors import Diagnostic
from ..extractors.base import Sentence
from ..segmentation.base import PartOfSpeech

if TYPE_CHECKING:
    from .file_tree import FileTree

TermKey = Tuple[str, str, PartOfSpeech]


@dataclass(frozen=True)
class Occurrence:
    sentence: Sentence
    word_position: int

    @property
    def path(self) -> Path:
        return self.sentence.path

    @property
    def sentence_index(self) -> int:
        return self.sentence.index


@dataclass
class Term:
    lemma: str
    lemma_reading: str
    part_of_speech: PartOfSpeech
    surface: str
    surface_reading: str
    full_segment: str
    occurrences: List[Occurrence] = field(default_factory=list)
    frequency: int = 0
    file_count: int = 0
    weighted_score: float = 0.0

    @property
    def key(self) -> TermKey:
        return (self.lemma, self.lemma_reading, self.part_of_speech)

    @property
    def is_unknown(self) -> bool:
        return self.part_of_speech is PartOfSpeech.UNKNOWN

    @property
    def example_sentence(self) -> str:
        return self.occurrences[0].sentence.text if self.occurrences else ""

    @property
    def paths(self) -> List[Path]:
        """Distinct files this term occurs in, in first-seen order."""
        return list(dict.fromkeys(o.path for o in self.occurrences))


@dataclass
class FileReport:
    path: Path
    size: int = 0
    sentence_count: int = 0
    term_count: int = 0
    known_term_count: int = 0
    comprehension: float = 0.0


@dataclass
class BalanceResult:
    selected: List[Path] = field(default_factory=list)
    coverage: float = 0.0
    covered_terms: int = 0
    total_terms: int = 0
    total_bytes: int = 0


@dataclass
class AnalysisResult:
    """Everything one analysis run produces.

    ``terms`` holds the surfaced terms after filtering; ``all_terms`` keeps
    every aggregated term for coverage and comprehension.
    """

    terms: List[Term] = field(default_factory=list)
    all_terms: Dict[TermKey, Term] = field(default_factory=dict)
    files: Dict[Path, FileReport] = field(default_factory=dict)
    tree: Optional["FileTree"] = None
    balance: Optional[BalanceResult] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    cancelled: bool = False

    @property
    def skipped_files(self) -> List[Path]:
        return [d.path for d in self.diagnostics if d.kind == "file_read"]
