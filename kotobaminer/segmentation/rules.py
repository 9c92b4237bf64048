"""Word reconstruction rules.

Each rule is a plain value: a matcher for the current token, optional
matchers for the neighbouring tokens and the last emitted word, and an
action. Rules are tried in list order and the first match wins.
"""

import hashlib
import json
from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence, Union

from . import unidic as tags
from .base import PartOfSpeech, Token, Word


@dataclass(frozen=True)
class Match:
    """Accepts a value if it is (or, when negated, is not) one of ``values``."""

    values: FrozenSet
    negate: bool = False

    def test(self, value) -> bool:
        return (value in self.values) != self.negate


def any_of(*values) -> Match:
    return Match(frozenset(values))


def none_of(*values) -> Match:
    return Match(frozenset(values), negate=True)


@dataclass(frozen=True)
class TokenMatcher:
    """Constraints on one token; unset fields accept anything."""

    pos1: Optional[Match] = None
    pos2: Optional[Match] = None
    pos3: Optional[Match] = None
    pos4: Optional[Match] = None
    surface: Optional[Match] = None
    conjugation_type: Optional[Match] = None
    conjugation_form: Optional[Match] = None

    def matches(self, token: Token) -> bool:
        checks = (
            (self.pos1, token.pos1),
            (self.pos2, token.pos2),
            (self.pos3, token.pos3),
            (self.pos4, token.pos4),
            (self.surface, token.surface),
            (self.conjugation_type, token.conjugation_type),
            (self.conjugation_form, token.conjugation_form),
        )
        return all(m is None or m.test(value) for m, value in checks)


class MainWord(Enum):
    """Which token of a multi-token word supplies the term's lemma."""

    FIRST = "first"
    SECOND = "second"


@dataclass(frozen=True)
class CreateWord:
    """Start a new word from the current token, optionally absorbing the next one."""

    part_of_speech: PartOfSpeech
    eat_next: bool = False
    eat_next_lemma: bool = True
    main_word: Optional[MainWord] = None


@dataclass(frozen=True)
class MergeWithPrevious:
    """Append the current token to the last emitted word."""

    attach_lemma: bool = True
    update_pos: Optional[PartOfSpeech] = None
    main_word: Optional[MainWord] = None


RuleAction = Union[CreateWord, MergeWithPrevious]


@dataclass(frozen=True)
class RuleMatch:
    """Where a rule matched: tokens ``[start, end)`` and the resulting part of speech.

    For merges ``part_of_speech`` is None when the previous word keeps its own.
    """

    rule: "Rule"
    start: int
    end: int
    part_of_speech: Optional[PartOfSpeech]

    @property
    def consumed(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Rule:
    name: str
    current: TokenMatcher
    action: RuleAction
    next: Optional[TokenMatcher] = None
    prev: Optional[TokenMatcher] = None
    prev_word_pos: Optional[Match] = None

    def match(
        self, tokens: Sequence[Token], index: int, words: Sequence[Word]
    ) -> Optional[RuleMatch]:
        """Test this rule at ``tokens[index]`` given the words emitted so far."""
        if not self.current.matches(tokens[index]):
            return None

        has_next = index + 1 < len(tokens)
        if self.next is not None and not (has_next and self.next.matches(tokens[index + 1])):
            return None
        if self.prev is not None and not (index > 0 and self.prev.matches(tokens[index - 1])):
            return None
        if self.prev_word_pos is not None and not (
            words and self.prev_word_pos.test(words[-1].part_of_speech)
        ):
            return None

        if isinstance(self.action, MergeWithPrevious):
            if not words:
                return None
            return RuleMatch(self, index, index + 1, self.action.update_pos)

        end = index + 2 if self.action.eat_next and has_next else index + 1
        return RuleMatch(self, index, end, self.action.part_of_speech)


def _describe(value):
    """JSON-ready form of a rule component with set members in sorted order."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, frozenset):
        return sorted((_describe(v) for v in value), key=str)
    if is_dataclass(value):
        return {f.name: _describe(getattr(value, f.name)) for f in fields(value)}
    return value


def rules_fingerprint(rules: Sequence[Rule]) -> str:
    """Stable digest of a rule list; equal across processes for equal rules."""
    data = json.dumps([_describe(rule) for rule in rules], ensure_ascii=False, sort_keys=True)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:16]


def _aux(*conjugation_types: str, **extra) -> TokenMatcher:
    return TokenMatcher(
        pos1=any_of(tags.AUXILIARY),
        conjugation_type=any_of(*conjugation_types),
        **extra,
    )


_NA = TokenMatcher(pos1=any_of(tags.AUXILIARY), surface=any_of("な"))


def create_default_rules() -> List[Rule]:
    """The default rule set, in priority order.

    Inflectional merges keep the head token's lemma so that conjugated
    forms aggregate with their dictionary form.
    """
    inflect = MergeWithPrevious(attach_lemma=False)
    return [
        Rule(
            name="auxiliary after auxiliary",
            current=_aux(tags.AUX_TA, tags.AUX_NAI, tags.AUX_TAI, tags.AUX_MASU, tags.AUX_NU),
            prev=TokenMatcher(pos1=any_of(tags.AUXILIARY)),
            action=inflect,
        ),
        Rule(
            name="verb + tai",
            current=_aux(tags.AUX_TAI),
            prev=TokenMatcher(pos1=any_of(tags.VERB)),
            action=MergeWithPrevious(
                attach_lemma=False, update_pos=PartOfSpeech.ADJECTIVE
            ),
        ),
        Rule(
            name="auxiliary after verb",
            current=TokenMatcher(
                pos1=any_of(tags.AUXILIARY),
                conjugation_type=none_of(tags.AUX_TAI),
                surface=none_of("な"),
            ),
            prev_word_pos=any_of(PartOfSpeech.VERB, PartOfSpeech.SURU_VERB),
            action=inflect,
        ),
        Rule(
            name="auxiliary after adjective",
            current=_aux(tags.AUX_TA, tags.AUX_NAI, tags.AUX_TAI),
            prev=TokenMatcher(pos1=any_of(tags.ADJECTIVE)),
            action=inflect,
        ),
        Rule(
            name="bound adjective after adjective",
            current=TokenMatcher(
                pos1=any_of(tags.ADJECTIVE), pos2=any_of(tags.NON_INDEPENDENT)
            ),
            prev=TokenMatcher(pos1=any_of(tags.ADJECTIVE)),
            action=inflect,
        ),
        Rule(
            name="compound noun",
            current=TokenMatcher(pos1=any_of(tags.NOUN), pos2=any_of(tags.COMMON_NOUN)),
            prev=TokenMatcher(pos1=any_of(tags.NOUN), pos2=any_of(tags.PROPER_NOUN)),
            prev_word_pos=none_of(PartOfSpeech.COMPOUND_NOUN),
            action=MergeWithPrevious(update_pos=PartOfSpeech.COMPOUND_NOUN),
        ),
        Rule(
            name="prefix + noun",
            current=TokenMatcher(pos1=any_of(tags.PREFIX)),
            next=TokenMatcher(pos1=any_of(tags.NOUN)),
            action=CreateWord(
                PartOfSpeech.NOUN, eat_next=True, main_word=MainWord.SECOND
            ),
        ),
        Rule(
            name="te-form",
            current=TokenMatcher(
                pos1=any_of(tags.PARTICLE),
                pos2=any_of(tags.CONJUNCTIVE_PARTICLE),
                surface=any_of("て", "で"),
            ),
            prev=TokenMatcher(pos1=any_of(tags.VERB)),
            action=inflect,
        ),
        Rule(
            name="suffix after noun",
            current=TokenMatcher(pos1=any_of(tags.SUFFIX)),
            prev=TokenMatcher(pos1=any_of(tags.NOUN)),
            action=MergeWithPrevious(),
        ),
        Rule(
            name="join numbers",
            current=TokenMatcher(pos1=any_of(tags.NOUN), pos2=any_of(tags.NUMERAL)),
            prev_word_pos=any_of(PartOfSpeech.NUMBER),
            action=MergeWithPrevious(),
        ),
        Rule(
            name="suru-possible noun + suru",
            current=TokenMatcher(pos1=any_of(tags.NOUN), pos3=any_of(tags.SURU_POSSIBLE)),
            next=TokenMatcher(conjugation_type=any_of(tags.SA_IRREGULAR)),
            action=CreateWord(PartOfSpeech.SURU_VERB, eat_next=True),
        ),
        Rule(
            name="adjectival noun + na",
            current=TokenMatcher(pos1=any_of(tags.ADJECTIVAL_NOUN)),
            next=_NA,
            action=CreateWord(
                PartOfSpeech.ADJECTIVAL_NOUN, eat_next=True, main_word=MainWord.FIRST
            ),
        ),
        Rule(
            name="adjectival-possible noun + na",
            current=TokenMatcher(
                pos1=any_of(tags.NOUN), pos3=any_of(tags.ADJECTIVAL_POSSIBLE)
            ),
            next=_NA,
            action=CreateWord(
                PartOfSpeech.ADJECTIVAL_NOUN, eat_next=True, main_word=MainWord.FIRST
            ),
        ),
    ]
