__version__ = "0.1.0"

from .config import AnalysisOptions, BalanceTarget, ExportOptions, load_options
from .errors import (
    KotobaMinerError,
    DictionaryUnavailable,
    FileReadError,
    SegmentationError,
    TaskAlreadyRunning,
)
from .pipeline import Pipeline
from .tasks import TaskManager, TaskHandle, TaskState, AnalysisProgress

__all__ = [
    "AnalysisOptions",
    "BalanceTarget",
    "ExportOptions",
    "load_options",
    "KotobaMinerError",
    "DictionaryUnavailable",
    "FileReadError",
    "SegmentationError",
    "TaskAlreadyRunning",
    "Pipeline",
    "TaskManager",
    "TaskHandle",
    "TaskState",
    "AnalysisProgress",
]
