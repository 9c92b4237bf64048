"""UniDic tag values and helpers for mapping tokens to a normalized part of speech."""

from .base import PartOfSpeech, Token

# pos1
NOUN = "名詞"
PRONOUN = "代名詞"
VERB = "動詞"
ADJECTIVE = "形容詞"
ADJECTIVAL_NOUN = "形状詞"
ADVERB = "副詞"
DETERMINER = "連体詞"
CONJUNCTION = "接続詞"
INTERJECTION = "感動詞"
FILLER = "フィラー"
PARTICLE = "助詞"
AUXILIARY = "助動詞"
PREFIX = "接頭辞"
SUFFIX = "接尾辞"
SYMBOL = "記号"
SUPPLEMENTARY_SYMBOL = "補助記号"
WHITESPACE = "空白"

# pos2
PROPER_NOUN = "固有名詞"
COMMON_NOUN = "普通名詞"
NUMERAL = "数詞"
NON_INDEPENDENT = "非自立可能"
CONJUNCTIVE_PARTICLE = "接続助詞"

# pos3
SURU_POSSIBLE = "サ変可能"
ADJECTIVAL_POSSIBLE = "形状詞可能"

# conjugation type
AUX_TA = "助動詞-タ"
AUX_NAI = "助動詞-ナイ"
AUX_TAI = "助動詞-タイ"
AUX_MASU = "助動詞-マス"
AUX_NU = "助動詞-ヌ"
AUX_DESU = "助動詞-デス"
SA_IRREGULAR = "サ行変格"

_SIMPLE_POS = {
    VERB: PartOfSpeech.VERB,
    ADJECTIVE: PartOfSpeech.ADJECTIVE,
    ADJECTIVAL_NOUN: PartOfSpeech.ADJECTIVE,
    ADVERB: PartOfSpeech.ADVERB,
    PARTICLE: PartOfSpeech.PARTICLE,
    DETERMINER: PartOfSpeech.DETERMINER,
    CONJUNCTION: PartOfSpeech.CONJUNCTION,
    PREFIX: PartOfSpeech.PREFIX,
    SUFFIX: PartOfSpeech.SUFFIX,
    SYMBOL: PartOfSpeech.SYMBOL,
    SUPPLEMENTARY_SYMBOL: PartOfSpeech.SYMBOL,
    WHITESPACE: PartOfSpeech.SYMBOL,
    PRONOUN: PartOfSpeech.PRONOUN,
    INTERJECTION: PartOfSpeech.INTERJECTION,
    FILLER: PartOfSpeech.INTERJECTION,
}

# Other pos1 values UniDic emits that have no dedicated category.
_OTHER_POS1 = {"言いよどみ", "web誤脱", "URL", "漢文", "未知語"}

_KATAKANA_START = 0x30A1
_KATAKANA_END = 0x30F6
_KANA_OFFSET = 0x60


def default_part_of_speech(token: Token) -> PartOfSpeech:
    """Normalized part of speech for a token that no word rule claimed."""
    if token.is_unknown:
        return PartOfSpeech.UNKNOWN
    if token.pos1 == NOUN:
        if token.pos2 == PROPER_NOUN:
            return PartOfSpeech.PROPER_NOUN
        if token.pos2 == NUMERAL:
            return PartOfSpeech.NUMBER
        return PartOfSpeech.NOUN
    if token.pos1 == AUXILIARY:
        if token.conjugation_type == AUX_DESU:
            return PartOfSpeech.COPULA
        return PartOfSpeech.PARTICLE
    if token.pos1 in _SIMPLE_POS:
        return _SIMPLE_POS[token.pos1]
    if token.pos1 in _OTHER_POS1:
        return PartOfSpeech.OTHER
    return PartOfSpeech.UNKNOWN


def katakana_to_hiragana(text: str) -> str:
    """Shift katakana code points to hiragana, leaving everything else alone."""
    return "".join(
        chr(ord(ch) - _KANA_OFFSET)
        if _KATAKANA_START <= ord(ch) <= _KATAKANA_END
        else ch
        for ch in text
    )


def is_kana(text: str) -> bool:
    """True when every character is hiragana, katakana or the long-vowel mark."""
    if not text:
        return False
    return all(
        0x3041 <= ord(ch) <= 0x309F or 0x30A0 <= ord(ch) <= 0x30FF for ch in text
    )
