from .base import SourceFile, Sentence, SourceFormat, SUPPORTED_EXTENSIONS, is_supported
from .text import load_source, split_sentences

__all__ = [
    'SourceFile',
    'Sentence',
    'SourceFormat',
    'SUPPORTED_EXTENSIONS',
    'is_supported',
    'load_source',
    'split_sentences',
]
