from .base import PartOfSpeech, Token, Word
from .dictionary import DictionaryHandle, load_dictionary, resolve_dicdir
from .tokenizer import TokenizerAdapter
from .rules import Rule, TokenMatcher, CreateWord, MergeWithPrevious, create_default_rules
from .matcher import WordRuleMatcher

__all__ = [
    "PartOfSpeech",
    "Token",
    "Word",
    "DictionaryHandle",
    "load_dictionary",
    "resolve_dicdir",
    "TokenizerAdapter",
    "Rule",
    "TokenMatcher",
    "CreateWord",
    "MergeWithPrevious",
    "create_default_rules",
    "WordRuleMatcher",
]
