import logging
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple

from ..extractors.base import Sentence
from ..segmentation.base import Word
from ..segmentation.unidic import katakana_to_hiragana
from .base import Occurrence, Term, TermKey

logger = logging.getLogger(__name__)


def term_key(word: Word) -> TermKey:
    """Aggregation key of a word: (lemma, hiragana lemma reading, part of speech)."""
    return (
        word.head_lemma,
        katakana_to_hiragana(word.head_lemma_reading),
        word.part_of_speech,
    )


def terms_by_file(terms: Dict[TermKey, Term]) -> Dict[Path, Set[TermKey]]:
    """Distinct term keys occurring in each file."""
    by_file: Dict[Path, Set[TermKey]] = {}
    for key, term in terms.items():
        for occurrence in term.occurrences:
            by_file.setdefault(occurrence.path, set()).add(key)
    return by_file


class TermAggregator:
    """
    Folds words from every sentence into unique terms.

    The first occurrence seen for a key supplies the term's surface forms and
    representative segment; later sightings only append occurrences. Feed it
    one file at a time so that a failed file leaves earlier files intact.
    """

    def __init__(self):
        self.terms: Dict[TermKey, Term] = {}
        self._seen: Set[Tuple[Path, int, int]] = set()

    def add_sentence(self, sentence: Sentence, words: Iterable[Word]) -> int:
        """Record the words of one sentence. Returns the number of occurrences added."""
        added = 0
        for position, word in enumerate(words):
            if word.is_whitespace:
                continue
            marker = (sentence.path, sentence.index, position)
            if marker in self._seen:
                continue
            self._seen.add(marker)

            key = term_key(word)
            term = self.terms.get(key)
            if term is None:
                term = Term(
                    lemma=key[0],
                    lemma_reading=key[1],
                    part_of_speech=key[2],
                    surface=word.head_surface,
                    surface_reading=katakana_to_hiragana(word.head_reading),
                    full_segment=word.segment,
                )
                self.terms[key] = term
            term.occurrences.append(Occurrence(sentence=sentence, word_position=position))
            added += 1
        return added

    def add_file(self, segmented: Iterable[Tuple[Sentence, List[Word]]]) -> int:
        """Record every sentence of one file."""
        return sum(self.add_sentence(sentence, words) for sentence, words in segmented)

    def terms_by_file(self) -> Dict[Path, Set[TermKey]]:
        return terms_by_file(self.terms)

    def __len__(self) -> int:
        return len(self.terms)
