import logging
from typing import List, Optional, Sequence, TYPE_CHECKING

from .base import Token, Word
from .rules import (
    CreateWord,
    MainWord,
    MergeWithPrevious,
    Rule,
    RuleMatch,
    create_default_rules,
    rules_fingerprint,
)
from .unidic import default_part_of_speech

if TYPE_CHECKING:
    from ..extractors.base import Sentence

logger = logging.getLogger(__name__)


class WordRuleMatcher:
    """
    Folds a sentence's tokens into words with an ordered rule list.

    Single greedy pass, left to right: at each position the first rule that
    matches is applied, otherwise the token becomes a one-token word with its
    default part of speech. Every match consumes at least one token, and the
    emitted words cover the token sequence exactly once.
    """

    def __init__(self, rules: Optional[List[Rule]] = None):
        self.rules = create_default_rules() if rules is None else list(rules)
        self.fingerprint = rules_fingerprint(self.rules)

    def find_match(
        self, tokens: Sequence[Token], index: int, words: Sequence[Word]
    ) -> Optional[RuleMatch]:
        """Return the first rule match at ``index`` or None."""
        for rule in self.rules:
            match = rule.match(tokens, index, words)
            if match is not None:
                return match
        return None

    def match(
        self, tokens: Sequence[Token], sentence: Optional["Sentence"] = None
    ) -> List[Word]:
        words: List[Word] = []
        index = 0
        while index < len(tokens):
            match = self.find_match(tokens, index, words)
            if match is None:
                token = tokens[index]
                words.append(Word.from_token(token, default_part_of_speech(token)))
                index += 1
                continue

            logger.debug(f"Rule '{match.rule.name}' matched at token {index}")
            action = match.rule.action
            if isinstance(action, MergeWithPrevious):
                self._merge(words[-1], tokens[index], action)
            else:
                words.append(self._create(tokens[match.start:match.end], action))
            index = match.end

        for word in words:
            word.sentence = sentence
        return words

    @staticmethod
    def _create(tokens: Sequence[Token], action: CreateWord) -> Word:
        first = tokens[0]
        word = Word.from_token(first, action.part_of_speech)
        if action.main_word is MainWord.FIRST:
            word.main_token = first
        for extra in tokens[1:]:
            if action.main_word is MainWord.SECOND:
                word.main_token = extra
            word.surface += extra.surface
            word.reading += extra.reading
            if action.eat_next_lemma:
                word.lemma += extra.lemma
                word.lemma_reading += extra.lemma_reading
            word.tokens.append(extra)
        return word

    @staticmethod
    def _merge(word: Word, token: Token, action: MergeWithPrevious) -> None:
        if action.main_word is MainWord.FIRST and word.main_token is None:
            word.main_token = word.tokens[0]
        elif action.main_word is MainWord.SECOND:
            word.main_token = token

        word.surface += token.surface
        word.reading += token.reading
        if action.attach_lemma:
            word.lemma += token.lemma
            word.lemma_reading += token.lemma_reading
        if action.update_pos is not None:
            word.part_of_speech = action.update_pos
        word.tokens.append(token)
