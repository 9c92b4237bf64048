import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..extractors.base import Sentence, SourceFile
from ..segmentation.base import PartOfSpeech, Token, Word

logger = logging.getLogger(__name__)

CACHE_DIR_ENV = "KOTOBAMINER_CACHE_DIR"
DEFAULT_CACHE_DIR = Path.home() / ".kotobaminer" / "cache"
CACHE_FORMAT = 2

Segmented = List[Tuple[Sentence, List[Word]]]


@dataclass
class CacheEntry:
    """Segmentation of one file plus the sentences that could not be tokenized."""

    segmented: Segmented
    skipped: List[Tuple[int, str]] = field(default_factory=list)


def _token_to_list(token: Token) -> list:
    return [token.surface, token.feature, token.start, token.is_unknown]


def _word_to_dict(word: Word) -> Dict[str, Any]:
    main = None
    if word.main_token is not None:
        main = next(i for i, t in enumerate(word.tokens) if t is word.main_token)
    return {
        "surface": word.surface,
        "reading": word.reading,
        "lemma": word.lemma,
        "lemma_reading": word.lemma_reading,
        "pos": word.part_of_speech.value,
        "tokens": [_token_to_list(t) for t in word.tokens],
        "main": main,
    }


def _word_from_dict(data: Dict[str, Any], sentence: Sentence) -> Word:
    tokens = [
        Token.from_feature(surface, feature, start, is_unknown=unk)
        for surface, feature, start, unk in data["tokens"]
    ]
    main = data.get("main")
    return Word(
        surface=data["surface"],
        reading=data["reading"],
        lemma=data["lemma"],
        lemma_reading=data["lemma_reading"],
        part_of_speech=PartOfSpeech(data["pos"]),
        tokens=tokens,
        main_token=tokens[main] if main is not None else None,
        sentence=sentence,
    )


class WordCache:
    """Cache of per-file segmentation results, stored as JSON with a TTL."""

    def __init__(self, cache_dir: Path = None, ttl_hours: int = 24 * 7):
        env_dir = os.environ.get(CACHE_DIR_ENV)
        if cache_dir:
            self.cache_dir = Path(cache_dir)
        elif env_dir:
            self.cache_dir = Path(env_dir)
        else:
            self.cache_dir = DEFAULT_CACHE_DIR
        self.words_dir = self.cache_dir / "words"
        self.words_dir.mkdir(parents=True, exist_ok=True)
        self.ttl_seconds = ttl_hours * 3600

    def _get_key(self, file_path: Path, segmenter_id: str) -> str:
        stat = file_path.stat()
        key_data = f"{CACHE_FORMAT}:{file_path}:{stat.st_size}:{stat.st_mtime}:{segmenter_id}"
        return hashlib.sha256(key_data.encode()).hexdigest()[:16]

    def get(self, source: SourceFile, segmenter_id: str) -> Optional[CacheEntry]:
        """
        Cached sentences, words and skipped sentences for a source, or None
        on miss or expiry. ``segmenter_id`` identifies the dictionary and the
        word rules the entry was produced with.
        """
        try:
            key = self._get_key(source.path, segmenter_id)
        except OSError as e:
            logger.warning(f"Cache key error for {source.path}: {e}")
            return None
        cache_file = self.words_dir / f"{key}.json"

        if not cache_file.exists():
            return None

        try:
            data = json.loads(cache_file.read_text(encoding="utf-8"))

            if time.time() - data.get("timestamp", 0) > self.ttl_seconds:
                cache_file.unlink()
                logger.debug(f"Cache expired for {source.path}")
                return None

            segmented: Segmented = []
            for entry in data["sentences"]:
                sentence = Sentence(
                    source_id=source.id,
                    path=source.path,
                    index=entry["index"],
                    text=entry["text"],
                    timestamp=entry.get("timestamp"),
                )
                words = [_word_from_dict(w, sentence) for w in entry["words"]]
                segmented.append((sentence, words))
            skipped = [(index, message) for index, message in data.get("skipped", [])]
            logger.debug(f"Cache hit for {source.path}")
            return CacheEntry(segmented=segmented, skipped=skipped)

        except Exception as e:
            logger.warning(f"Cache read error: {e}")
            return None

    def set(self, source: SourceFile, segmenter_id: str, entry: CacheEntry) -> None:
        """Store segmentation results for a source."""
        try:
            key = self._get_key(source.path, segmenter_id)
            cache_file = self.words_dir / f"{key}.json"
            data = {
                "file_path": str(source.path),
                "segmenter": segmenter_id,
                "timestamp": time.time(),
                "sentences": [
                    {
                        "index": sentence.index,
                        "text": sentence.text,
                        "timestamp": sentence.timestamp,
                        "words": [_word_to_dict(w) for w in words],
                    }
                    for sentence, words in entry.segmented
                ],
                "skipped": [[index, message] for index, message in entry.skipped],
            }
            cache_file.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            logger.debug(f"Cached words for {source.path}")
        except Exception as e:
            logger.warning(f"Cache write error: {e}")

    def clear(self) -> int:
        """Clear all cached results."""
        count = 0
        for f in self.words_dir.glob("*.json"):
            f.unlink()
            count += 1
        logger.info(f"Cleared {count} cached files")
        return count

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        files = list(self.words_dir.glob("*.json"))
        total_size = sum(f.stat().st_size for f in files)
        return {
            "cache_dir": str(self.cache_dir),
            "file_count": len(files),
            "total_size_mb": total_size / (1024 * 1024),
            "ttl_hours": self.ttl_seconds / 3600,
        }
