import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Union

from ..errors import DictionaryUnavailable

logger = logging.getLogger(__name__)

DICDIR_ENV = "KOTOBAMINER_DICDIR"


@dataclass
class DictionaryHandle:
    """A loaded morphological dictionary plus the tagger bound to it.

    Owned by whoever loaded it; pass it to a TokenizerAdapter explicitly.
    ``tagger`` is any callable mapping text to MeCab-style nodes.
    """

    path: Path
    tagger: Any
    name: str = ""

    @property
    def identity(self) -> str:
        """Stable identifier used to key cached segmentation results."""
        return f"{self.name}:{self.path}"


def _installed_dicdirs() -> List[Path]:
    """Dictionary directories from installed dictionary packages, preferred first."""
    candidates: List[Path] = []
    try:
        import unidic

        candidates.append(Path(unidic.DICDIR))
    except ImportError:
        logger.debug("Full unidic package not installed")
    try:
        import unidic_lite

        candidates.append(Path(unidic_lite.DICDIR))
    except ImportError:
        logger.debug("unidic-lite not installed")
    return candidates


def _is_dicdir(path: Path) -> bool:
    return (path / "sys.dic").is_file()


def resolve_dicdir(dicdir: Optional[Union[str, Path]] = None) -> Path:
    """
    Pick the dictionary directory to load.

    Order: explicit argument, the KOTOBAMINER_DICDIR environment variable,
    the full ``unidic`` package (only if its data was downloaded), then
    ``unidic-lite``.
    """
    explicit = dicdir or os.environ.get(DICDIR_ENV)
    if explicit:
        path = Path(explicit).expanduser()
        if not _is_dicdir(path):
            raise DictionaryUnavailable(f"No MeCab dictionary found in {path}")
        return path

    for path in _installed_dicdirs():
        if _is_dicdir(path):
            return path

    raise DictionaryUnavailable(
        "No morphological dictionary available. Install with: pip install unidic-lite"
    )


def load_dictionary(dicdir: Optional[Union[str, Path]] = None) -> DictionaryHandle:
    """Resolve and load a dictionary, returning a fresh handle."""
    path = resolve_dicdir(dicdir)
    args = f'-d "{path}"'
    mecabrc = path / "mecabrc"
    if mecabrc.is_file():
        args += f' -r "{mecabrc}"'

    try:
        from fugashi import GenericTagger

        tagger = GenericTagger(args)
    except Exception as e:
        raise DictionaryUnavailable(f"Could not load dictionary at {path}: {e}") from e

    logger.info(f"Loaded dictionary from {path}")
    return DictionaryHandle(path=path, tagger=tagger, name=path.parent.name)
