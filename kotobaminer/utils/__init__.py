from .logger import setup_logger
from .cache import CacheEntry, WordCache

__all__ = ["setup_logger", "CacheEntry", "WordCache"]
