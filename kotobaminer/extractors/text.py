import logging
import re
from pathlib import Path
from typing import Iterator, List, Tuple, Union

import chardet

from ..errors import FileReadError
from .base import Sentence, SourceFile, SourceFormat

logger = logging.getLogger(__name__)

# A sentence runs up to and including its terminators and any closing brackets.
_SENTENCE_RE = re.compile(r"[^。！？!?]+[。！？!?]*[」』）)]*|[。！？!?]+[」』）)]*")
_MARKUP_RE = re.compile(r"<[^>]*>|\{[^}]*\}")
_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")


def _decode(path: Path, raw: bytes) -> Tuple[str, str]:
    try:
        return raw.decode("utf-8-sig"), "utf-8"
    except UnicodeDecodeError:
        guess = chardet.detect(raw[:65536])
        encoding = guess.get("encoding")
        confidence = guess.get("confidence") or 0.0
        raise FileReadError(
            path,
            f"not valid UTF-8 (looks like {encoding}, confidence {confidence:.2f})",
            encoding=encoding,
        )


def load_source(path: Union[str, Path], source_id: int = 0) -> SourceFile:
    """
    Read a source file as UTF-8.

    Raises FileReadError for unreadable files, unsupported extensions and
    content that does not decode as UTF-8. The detected encoding, if any,
    is carried on the error.
    """
    path = Path(path)
    fmt = SourceFormat.from_path(path)
    if fmt is None:
        raise FileReadError(path, f"unsupported file type '{path.suffix}'")

    try:
        raw = path.read_bytes()
    except OSError as e:
        raise FileReadError(path, f"cannot read file: {e}") from e

    text, encoding = _decode(path, raw)
    return SourceFile(
        id=source_id,
        path=path,
        text=text,
        encoding=encoding,
        format=fmt,
        size=len(raw),
    )


def _plain_sentences(text: str) -> Iterator[Tuple[str, None]]:
    for line in text.splitlines():
        for match in _SENTENCE_RE.finditer(line):
            sentence = match.group().strip()
            if sentence:
                yield sentence, None


def _clean_cue(text: str) -> str:
    return _MARKUP_RE.sub("", text).strip()


def _cue_sentences(text: str) -> Iterator[Tuple[str, str]]:
    """SRT and WebVTT: one sentence per cue, located by its timing line."""
    for block in _BLOCK_SPLIT_RE.split(text.replace("\r", "")):
        lines = block.strip().split("\n")
        for i, line in enumerate(lines):
            if "-->" in line:
                cue = "".join(_clean_cue(l) for l in lines[i + 1:])
                if cue:
                    yield cue, line.split("-->")[0].strip()
                break


def _ass_sentences(text: str) -> Iterator[Tuple[str, str]]:
    """ASS/SSA: text is the tenth field of each Dialogue line."""
    for line in text.splitlines():
        if not line.startswith("Dialogue:"):
            continue
        fields = line[len("Dialogue:"):].split(",", 9)
        if len(fields) < 10:
            logger.debug(f"Skipping malformed dialogue line: {line[:40]}")
            continue
        cue = fields[9].replace("\\N", "").replace("\\n", "").replace("\\h", " ")
        cue = _clean_cue(cue)
        if cue:
            yield cue, fields[1].strip()


def split_sentences(source: SourceFile) -> List[Sentence]:
    """Split a loaded source into ordered sentences. Zero sentences is not an error."""
    if source.format in (SourceFormat.SRT, SourceFormat.VTT):
        pieces = _cue_sentences(source.text)
    elif source.format in (SourceFormat.ASS, SourceFormat.SSA):
        pieces = _ass_sentences(source.text)
    else:
        pieces = _plain_sentences(source.text)

    return [
        Sentence(
            source_id=source.id,
            path=source.path,
            index=index,
            text=text,
            timestamp=timestamp,
        )
        for index, (text, timestamp) in enumerate(pieces)
    ]
