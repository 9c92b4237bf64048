"""
Cancellable background tasks.

A task runs on its own worker thread and receives a cancellation event and a
progress tracker. Cancellation is cooperative: the worker checks the event at
its own suspension points and returns whatever partial result it has. The
caller polls ``TaskHandle.progress.snapshot()`` instead of subscribing.
"""

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .errors import TaskAlreadyRunning

logger = logging.getLogger(__name__)

ETA_SMOOTHING = 0.3

FREQUENCY_ANALYSIS = "frequency_analysis"


class TaskState(str, Enum):
    RUNNING = "running"
    CANCELLED = "cancelled"
    FINISHED = "finished"


class AnalysisStage(str, Enum):
    DISCOVERING = "discovering"
    SEGMENTING = "segmenting"
    ANALYZING = "analyzing"
    BALANCING = "balancing"
    DONE = "done"


@dataclass
class AnalysisProgress:
    files_processed: int = 0
    total_files: int = 0
    stage: AnalysisStage = AnalysisStage.DISCOVERING
    message: str = ""
    current_file: Optional[str] = None
    bytes_processed: int = 0
    total_bytes: int = 0
    elapsed: float = 0.0
    eta_seconds: Optional[float] = None
    cancel_requested: bool = False

    def fraction(self) -> float:
        if self.total_files <= 0:
            return 0.0
        return min(1.0, self.files_processed / self.total_files)


class ProgressTracker:
    """Lock-protected progress written by the worker and read by the caller.

    Counters never decrease within a run.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._progress = AnalysisProgress()
        self._started = time.monotonic()

    def snapshot(self) -> AnalysisProgress:
        with self._lock:
            self._progress.elapsed = time.monotonic() - self._started
            return dataclasses.replace(self._progress)

    def begin(self, total_files: int, total_bytes: int = 0) -> None:
        with self._lock:
            self._progress.total_files = max(self._progress.total_files, total_files)
            self._progress.total_bytes = max(self._progress.total_bytes, total_bytes)

    def set_stage(self, stage: AnalysisStage, message: str = "") -> None:
        with self._lock:
            self._progress.stage = stage
            self._progress.message = message
        logger.info(f"Stage: {stage.value}{' - ' + message if message else ''}")

    def start_file(self, name: str) -> None:
        with self._lock:
            self._progress.current_file = name
            self._progress.message = f"Processing {name}"

    def file_done(self, size: int = 0) -> None:
        with self._lock:
            p = self._progress
            p.files_processed += 1
            p.bytes_processed += max(0, size)
            p.elapsed = time.monotonic() - self._started
            remaining = self._estimate_remaining(p)
            if remaining is not None:
                if p.eta_seconds is None:
                    p.eta_seconds = remaining
                else:
                    p.eta_seconds = (
                        ETA_SMOOTHING * remaining + (1 - ETA_SMOOTHING) * p.eta_seconds
                    )

    @staticmethod
    def _estimate_remaining(p: AnalysisProgress) -> Optional[float]:
        if p.elapsed <= 0:
            return None
        if p.total_bytes > 0 and p.bytes_processed > 0:
            rate = p.bytes_processed / p.elapsed
            return max(0, p.total_bytes - p.bytes_processed) / rate
        if p.files_processed > 0:
            rate = p.files_processed / p.elapsed
            return max(0, p.total_files - p.files_processed) / rate
        return None

    def mark_cancel_requested(self) -> None:
        with self._lock:
            self._progress.cancel_requested = True


TaskFunction = Callable[[threading.Event, ProgressTracker], Any]


class TaskHandle:
    """
    A unit of background work.

    States: RUNNING, then CANCELLED once cancellation is requested while the
    worker is still going, then FINISHED when the worker returns. FINISHED is
    terminal and reached whether or not cancellation was requested;
    ``cancelled`` stays readable afterwards.
    """

    def __init__(self, kind: str, target: TaskFunction):
        self.kind = kind
        self.progress = ProgressTracker()
        self._target = target
        self._cancel = threading.Event()
        self._result: Any = None
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(
            target=self._run, name=f"kotobaminer-{kind}", daemon=True
        )

    def start(self) -> "TaskHandle":
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            self._result = self._target(self._cancel, self.progress)
        except Exception as e:
            logger.error(f"Task {self.kind} failed: {e}")
            self._error = e

    def cancel(self) -> None:
        if not self._cancel.is_set():
            logger.info(f"Cancellation requested for {self.kind}")
            self._cancel.set()
            self.progress.mark_cancel_requested()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def is_finished(self) -> bool:
        return self._thread.ident is not None and not self._thread.is_alive()

    @property
    def state(self) -> TaskState:
        if self.is_finished():
            return TaskState.FINISHED
        if self._cancel.is_set():
            return TaskState.CANCELLED
        return TaskState.RUNNING

    @property
    def failed(self) -> bool:
        return self.is_finished() and self._error is not None

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker. Returns True when it has finished."""
        self._thread.join(timeout)
        return self.is_finished()

    def result(self, timeout: Optional[float] = None) -> Any:
        """Wait for and return the worker's result, re-raising its error."""
        if not self.join(timeout):
            raise TimeoutError(f"Task {self.kind} still running")
        if self._error is not None:
            raise self._error
        return self._result


class TaskManager:
    """Keeps at most one in-flight task per kind."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tasks: Dict[str, TaskHandle] = {}

    def _prune(self) -> None:
        self._tasks = {k: h for k, h in self._tasks.items() if not h.is_finished()}

    def start(self, kind: str, target: TaskFunction) -> TaskHandle:
        """Start a task. Raises TaskAlreadyRunning if one of this kind is active."""
        with self._lock:
            self._prune()
            if kind in self._tasks:
                raise TaskAlreadyRunning(f"A {kind} task is already running")
            handle = TaskHandle(kind, target)
            self._tasks[kind] = handle
            handle.start()
        logger.debug(f"Started task {kind}")
        return handle

    def get(self, kind: str) -> Optional[TaskHandle]:
        with self._lock:
            return self._tasks.get(kind)

    def cancel(self, kind: str) -> bool:
        with self._lock:
            handle = self._tasks.get(kind)
        if handle is None or handle.is_finished():
            return False
        handle.cancel()
        return True

    def active(self) -> List[str]:
        """Kinds with a task still running. Finished tasks are forgotten."""
        with self._lock:
            self._prune()
            return sorted(self._tasks)
