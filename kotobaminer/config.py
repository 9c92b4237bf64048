import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

import yaml

from .segmentation.base import PartOfSpeech

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


def _load_default_ignored_terms() -> Set[str]:
    """Load the default ignore list from fdata/ignored_terms.json."""
    data_path = Path(__file__).parent / "fdata" / "ignored_terms.json"
    try:
        with open(data_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return set(data.get("ignored_terms", []))
    except Exception as e:
        logger.error(f"Could not load ignored_terms.json: {e}")
        return set()


DEFAULT_IGNORED_TERMS: Set[str] = _load_default_ignored_terms()


def read_ignore_file(path: Union[str, Path]) -> Set[str]:
    """Read one lemma per line; blank lines and ``#`` comments are ignored."""
    path = Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        logger.warning(f"Skipping ignore file {path}: {e}")
        return set()
    return {
        line.strip()
        for line in lines
        if line.strip() and not line.strip().startswith("#")
    }


@dataclass
class BalanceTarget:
    """Budget for the corpus balancer. A None limit is not enforced."""

    max_files: Optional[int] = None
    max_bytes: Optional[int] = None

    def __post_init__(self):
        for name in ("max_files", "max_bytes"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    def admits(self, file_count: int, total_bytes: int) -> bool:
        if self.max_files is not None and file_count > self.max_files:
            return False
        if self.max_bytes is not None and total_bytes > self.max_bytes:
            return False
        return True


@dataclass
class ExportOptions:
    exclude_hapax: bool = False
    max_terms: Optional[int] = None


@dataclass
class AnalysisOptions:
    minimum_frequency: int = 1
    maximum_frequency: Optional[int] = None
    include_unknown_words: bool = True
    part_of_speech_filter: Set[PartOfSpeech] = field(
        default_factory=lambda: {PartOfSpeech.SYMBOL}
    )
    frequency_weights: Dict[str, float] = field(default_factory=dict)
    corpus_balance_target: Optional[BalanceTarget] = None
    known_frequency_threshold: int = 3
    ignored_terms: Set[str] = field(default_factory=lambda: set(DEFAULT_IGNORED_TERMS))
    ignore_files: List[Path] = field(default_factory=list)

    def __post_init__(self):
        if self.minimum_frequency < 0:
            raise ValueError("minimum_frequency must be non-negative")
        if self.known_frequency_threshold < 1:
            raise ValueError("known_frequency_threshold must be at least 1")

    def all_ignored_terms(self) -> Set[str]:
        terms = set(self.ignored_terms)
        for path in self.ignore_files:
            terms |= read_ignore_file(path)
        return terms


_OPTION_NAMES = {f.name for f in fields(AnalysisOptions)}


def _parse_balance_target(value: Any) -> Optional[BalanceTarget]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError("corpus_balance_target must be a mapping")
    unknown = set(value) - {"max_files", "max_bytes", "max_mb"}
    if unknown:
        raise ValueError(f"Unknown corpus_balance_target keys: {sorted(unknown)}")
    max_bytes = value.get("max_bytes")
    if value.get("max_mb") is not None:
        max_bytes = int(float(value["max_mb"]) * BYTES_PER_MB)
    return BalanceTarget(max_files=value.get("max_files"), max_bytes=max_bytes)


def options_from_dict(
    data: Dict[str, Any], base_dir: Optional[Path] = None
) -> AnalysisOptions:
    """Build options from a plain mapping; unknown keys raise ValueError."""
    unknown = set(data) - _OPTION_NAMES
    if unknown:
        raise ValueError(f"Unknown option(s): {', '.join(sorted(unknown))}")

    kwargs: Dict[str, Any] = dict(data)
    if "part_of_speech_filter" in kwargs:
        kwargs["part_of_speech_filter"] = {
            PartOfSpeech.parse(name) for name in kwargs["part_of_speech_filter"] or []
        }
    if "corpus_balance_target" in kwargs:
        kwargs["corpus_balance_target"] = _parse_balance_target(
            kwargs["corpus_balance_target"]
        )
    if "frequency_weights" in kwargs:
        kwargs["frequency_weights"] = {
            str(k): float(v) for k, v in (kwargs["frequency_weights"] or {}).items()
        }
    if "ignored_terms" in kwargs:
        kwargs["ignored_terms"] = set(kwargs["ignored_terms"] or [])
    if "ignore_files" in kwargs:
        base = base_dir or Path.cwd()
        kwargs["ignore_files"] = [
            p if p.is_absolute() else base / p
            for p in (Path(x).expanduser() for x in kwargs["ignore_files"] or [])
        ]
    return AnalysisOptions(**kwargs)


def load_options(path: Union[str, Path]) -> AnalysisOptions:
    """Load AnalysisOptions from a YAML file. Relative ignore files resolve against it."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of options")
    logger.info(f"Loaded options from {path}")
    return options_from_dict(data, base_dir=path.parent)


def options_to_dict(options: AnalysisOptions) -> Dict[str, Any]:
    """Plain, YAML-safe representation of options."""
    target = options.corpus_balance_target
    return {
        "minimum_frequency": options.minimum_frequency,
        "maximum_frequency": options.maximum_frequency,
        "include_unknown_words": options.include_unknown_words,
        "part_of_speech_filter": sorted(p.value for p in options.part_of_speech_filter),
        "frequency_weights": dict(sorted(options.frequency_weights.items())),
        "corpus_balance_target": (
            {"max_files": target.max_files, "max_bytes": target.max_bytes}
            if target
            else None
        ),
        "known_frequency_threshold": options.known_frequency_threshold,
        "ignored_terms": sorted(options.ignored_terms),
        "ignore_files": [str(p) for p in options.ignore_files],
    }


def dump_options(options: AnalysisOptions) -> str:
    return yaml.safe_dump(options_to_dict(options), allow_unicode=True, sort_keys=False)
