import logging
import random
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..config import BYTES_PER_MB, BalanceTarget
from .base import BalanceResult, TermKey

logger = logging.getLogger(__name__)

TRIM_PERCENTAGE = 0.1


class CorpusBalancer:
    """
    Greedy maximum-coverage file selection under a file-count or byte budget.

    The pick order does not depend on the budget; a budget only decides how
    long a prefix of that order is kept. Hence a larger budget always keeps
    every file a smaller one kept.
    """

    def __init__(self, target: Optional[BalanceTarget] = None):
        self.target = target or BalanceTarget()

    @staticmethod
    def greedy_order(
        file_terms: Mapping[Path, Set[TermKey]], sizes: Mapping[Path, int]
    ) -> List[Path]:
        """
        Files in greedy pick order: most newly covered terms first, ties broken
        by smaller size, then path. Files adding nothing new are never picked.
        """
        remaining = set(file_terms)
        covered: Set[TermKey] = set()
        order: List[Path] = []
        while remaining:
            best = min(
                remaining,
                key=lambda p: (
                    -len(file_terms[p] - covered),
                    sizes.get(p, 0),
                    str(p),
                ),
            )
            if not file_terms[best] - covered:
                break
            order.append(best)
            covered |= file_terms[best]
            remaining.discard(best)
        return order

    def select(
        self, file_terms: Mapping[Path, Set[TermKey]], sizes: Mapping[Path, int]
    ) -> BalanceResult:
        all_terms: Set[TermKey] = set()
        for keys in file_terms.values():
            all_terms |= keys

        selected: List[Path] = []
        covered: Set[TermKey] = set()
        total_bytes = 0
        for path in self.greedy_order(file_terms, sizes):
            size = sizes.get(path, 0)
            if not self.target.admits(len(selected) + 1, total_bytes + size):
                break
            selected.append(path)
            covered |= file_terms[path]
            total_bytes += size

        coverage = len(covered) / len(all_terms) if all_terms else 0.0
        logger.info(
            f"Balanced corpus: {len(selected)} files, {total_bytes} bytes, "
            f"coverage {coverage:.1%}"
        )
        return BalanceResult(
            selected=selected,
            coverage=coverage,
            covered_terms=len(covered),
            total_terms=len(all_terms),
            total_bytes=total_bytes,
        )


def trimmed_mean(values: Iterable[int], trim: float = TRIM_PERCENTAGE) -> float:
    """Mean after dropping ``trim`` of the values, split evenly between both ends."""
    ordered = sorted(values)
    if not ordered:
        return 0.0
    trim_each_side = int(len(ordered) * trim) // 2
    if trim_each_side > 0:
        ordered = ordered[trim_each_side:len(ordered) - trim_each_side]
    return sum(ordered) / len(ordered)


def _group_by_source(sizes: Mapping[Path, int]) -> Dict[str, List[Tuple[Path, int]]]:
    groups: Dict[str, List[Tuple[Path, int]]] = {}
    for path in sorted(sizes, key=str):
        groups.setdefault(Path(path).parent.name or "unknown", []).append((path, sizes[path]))
    return groups


def balance_by_source(sizes: Mapping[Path, int], seed: Optional[int] = None) -> List[Path]:
    """
    Down-sample over-represented sources.

    Files are grouped by parent directory. Sources larger than the trimmed
    mean of source sizes are randomly sampled until they reach roughly that
    mean; smaller sources are kept whole. Deterministic for a given seed.
    """
    groups = _group_by_source(sizes)
    if len(groups) <= 1:
        logger.info("Only one source detected, no balancing applied")
        return sorted(sizes, key=str)

    totals = {name: sum(size for _, size in files) for name, files in groups.items()}
    target = trimmed_mean(totals.values())
    logger.info(
        f"Balancing {len(groups)} sources to about {target / BYTES_PER_MB:.2f} MB each"
    )

    rng = random.Random(seed)
    selected: List[Path] = []
    for name in sorted(groups):
        files = groups[name]
        if totals[name] <= target:
            selected.extend(path for path, _ in files)
            continue
        shuffled = list(files)
        rng.shuffle(shuffled)
        accumulated = 0
        kept = 0
        for path, size in shuffled:
            if accumulated >= target:
                break
            selected.append(path)
            accumulated += size
            kept += 1
        logger.info(f"  {name}: {len(files)} files -> {kept} files (sampled)")
    return selected
