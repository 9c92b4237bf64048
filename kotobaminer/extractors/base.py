from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class SourceFormat(str, Enum):
    TEXT = "txt"
    SRT = "srt"
    VTT = "vtt"
    ASS = "ass"
    SSA = "ssa"

    @classmethod
    def from_path(cls, path: Path) -> Optional["SourceFormat"]:
        suffix = Path(path).suffix.lower().lstrip(".")
        for member in cls:
            if member.value == suffix:
                return member
        return None


SUPPORTED_EXTENSIONS = frozenset(f".{fmt.value}" for fmt in SourceFormat)


def is_supported(path: Path) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


@dataclass(frozen=True)
class SourceFile:
    """A loaded source file. Immutable for the duration of a run."""

    id: int
    path: Path
    text: str = field(repr=False)
    encoding: str
    format: SourceFormat
    size: int

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class Sentence:
    """One sentence of a source file, identified by its ordinal position."""

    source_id: int
    path: Path
    index: int
    text: str
    timestamp: Optional[str] = None
