from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class KotobaMinerError(Exception):
    """Base class for all kotobaminer errors."""


class DictionaryUnavailable(KotobaMinerError):
    """The morphological dictionary is missing or cannot be loaded. Fatal."""


DictionaryError = DictionaryUnavailable


class FileReadError(KotobaMinerError):
    """A source file could not be read or decoded. The file is skipped."""

    def __init__(self, path: Path, reason: str, encoding: Optional[str] = None):
        self.path = Path(path)
        self.reason = reason
        self.encoding = encoding
        super().__init__(f"{self.path}: {reason}")


class SegmentationError(KotobaMinerError):
    """A sentence could not be tokenized. The sentence is skipped."""


class TaskAlreadyRunning(KotobaMinerError):
    """A cancellable task of the same kind is already in flight."""


@dataclass(frozen=True)
class Diagnostic:
    """A recoverable problem recorded during a run."""

    kind: str
    path: Optional[Path]
    message: str
    sentence_index: Optional[int] = None

    @classmethod
    def from_file_error(cls, error: FileReadError) -> "Diagnostic":
        return cls(kind="file_read", path=error.path, message=error.reason)

    @classmethod
    def from_segmentation_error(
        cls, error: SegmentationError, path: Path, sentence_index: int
    ) -> "Diagnostic":
        return cls(
            kind="segmentation",
            path=path,
            message=str(error),
            sentence_index=sentence_index,
        )
