import csv
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..extractors.base import Sentence


class PartOfSpeech(str, Enum):
    """Normalized part of speech used everywhere downstream of the matcher."""

    NOUN = "noun"
    PROPER_NOUN = "proper_noun"
    COMPOUND_NOUN = "compound_noun"
    PRONOUN = "pronoun"
    ADJECTIVE = "adjective"
    ADJECTIVAL_NOUN = "adjectival_noun"
    ADVERB = "adverb"
    DETERMINER = "determiner"
    PARTICLE = "particle"
    VERB = "verb"
    SURU_VERB = "suru_verb"
    COPULA = "copula"
    SUFFIX = "suffix"
    PREFIX = "prefix"
    CONJUNCTION = "conjunction"
    INTERJECTION = "interjection"
    NUMBER = "number"
    SYMBOL = "symbol"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "PartOfSpeech":
        """Look up a member by value or name, case-insensitively."""
        key = value.strip().lower()
        for member in cls:
            if member.value == key or member.name.lower() == key:
                return member
        raise ValueError(f"Unknown part of speech: {value!r}")


# Column layout of UniDic feature strings.
_POS1, _POS2, _POS3, _POS4 = 0, 1, 2, 3
_CONJ_TYPE, _CONJ_FORM = 4, 5
_PRON = 9
_ORTH_BASE = 10
_PRON_BASE = 11


def _column(fields: List[str], index: int) -> Optional[str]:
    if index < len(fields) and fields[index] not in ("", "*"):
        return fields[index]
    return None


@dataclass(frozen=True)
class Token:
    """One morpheme as produced by the tokenizer adapter.

    ``start`` and ``end`` are character offsets within the sentence text.
    """

    surface: str
    feature: str
    start: int
    end: int
    pos1: str = "*"
    pos2: str = "*"
    pos3: str = "*"
    pos4: str = "*"
    conjugation_type: str = "*"
    conjugation_form: str = "*"
    reading: str = ""
    lemma: str = ""
    lemma_reading: str = ""
    is_unknown: bool = False

    @classmethod
    def from_feature(
        cls, surface: str, feature: str, start: int = 0, is_unknown: bool = False
    ) -> "Token":
        """Build a token from a raw comma-separated UniDic feature string.

        Unknown words carry fewer columns; missing lemma and readings fall
        back to the surface form.
        """
        fields = next(csv.reader([feature])) if feature else []
        pos = [fields[i] if i < len(fields) and fields[i] else "*" for i in range(6)]
        return cls(
            surface=surface,
            feature=feature,
            start=start,
            end=start + len(surface),
            pos1=pos[_POS1],
            pos2=pos[_POS2],
            pos3=pos[_POS3],
            pos4=pos[_POS4],
            conjugation_type=pos[_CONJ_TYPE],
            conjugation_form=pos[_CONJ_FORM],
            reading=_column(fields, _PRON) or surface,
            lemma=_column(fields, _ORTH_BASE) or surface,
            lemma_reading=_column(fields, _PRON_BASE) or surface,
            is_unknown=is_unknown,
        )

    @property
    def is_whitespace(self) -> bool:
        return not self.surface.strip()


@dataclass
class Word:
    """One or more adjacent tokens merged into a unit with a normalized part of speech.

    ``surface`` is the full matched text segment. When ``main_token`` is set,
    the term built from this word uses the main token's lemma and reading.
    """

    surface: str
    reading: str
    lemma: str
    lemma_reading: str
    part_of_speech: PartOfSpeech
    tokens: List[Token] = field(default_factory=list)
    main_token: Optional[Token] = None
    sentence: Optional["Sentence"] = None

    @classmethod
    def from_token(cls, token: Token, part_of_speech: PartOfSpeech) -> "Word":
        return cls(
            surface=token.surface,
            reading=token.reading,
            lemma=token.lemma,
            lemma_reading=token.lemma_reading,
            part_of_speech=part_of_speech,
            tokens=[token],
        )

    @property
    def start(self) -> int:
        return self.tokens[0].start if self.tokens else 0

    @property
    def end(self) -> int:
        return self.tokens[-1].end if self.tokens else 0

    @property
    def segment(self) -> str:
        return self.surface

    @property
    def head_lemma(self) -> str:
        return self.main_token.lemma if self.main_token else self.lemma

    @property
    def head_lemma_reading(self) -> str:
        return self.main_token.lemma_reading if self.main_token else self.lemma_reading

    @property
    def head_surface(self) -> str:
        return self.main_token.surface if self.main_token else self.surface

    @property
    def head_reading(self) -> str:
        return self.main_token.reading if self.main_token else self.reading

    @property
    def is_whitespace(self) -> bool:
        return not self.surface.strip()
