import logging
from typing import List

from ..errors import SegmentationError
from .base import Token
from .dictionary import DictionaryHandle
from .unidic import WHITESPACE

logger = logging.getLogger(__name__)

_WHITESPACE_FEATURE = f"{WHITESPACE},*,*,*,*,*"


def _whitespace_token(text: str, start: int) -> Token:
    return Token.from_feature(text, _WHITESPACE_FEATURE, start)


class TokenizerAdapter:
    """
    Turns one sentence into Tokens using a loaded dictionary.

    MeCab drops whitespace and reports it on the following node; it is
    reinserted here as standalone tokens so that token spans concatenate
    back to the input exactly.
    """

    def __init__(self, dictionary: DictionaryHandle):
        self.dictionary = dictionary

    def tokenize(self, text: str) -> List[Token]:
        if not text:
            return []

        try:
            nodes = list(self.dictionary.tagger(text))
        except Exception as e:
            raise SegmentationError(f"Tagger failed on {text[:30]!r}: {e}") from e

        tokens: List[Token] = []
        pos = 0
        for node in nodes:
            space = getattr(node, "white_space", "") or ""
            if space:
                if not text.startswith(space, pos):
                    raise SegmentationError(f"Whitespace mismatch at offset {pos}")
                tokens.append(_whitespace_token(space, pos))
                pos += len(space)

            surface = node.surface
            if not surface:
                continue
            if not text.startswith(surface, pos):
                # MeCab may swallow whitespace it did not report.
                skipped = pos
                while skipped < len(text) and text[skipped].isspace():
                    skipped += 1
                if skipped == pos or not text.startswith(surface, skipped):
                    raise SegmentationError(
                        f"Token {surface!r} does not line up with input at offset {pos}"
                    )
                tokens.append(_whitespace_token(text[pos:skipped], pos))
                pos = skipped

            tokens.append(
                Token.from_feature(
                    surface,
                    node.feature_raw,
                    pos,
                    is_unknown=bool(getattr(node, "is_unk", False)),
                )
            )
            pos += len(surface)

        tail = text[pos:]
        if tail:
            if tail.strip():
                raise SegmentationError(f"Untokenized tail {tail[:30]!r}")
            tokens.append(_whitespace_token(tail, pos))

        return tokens
