import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Optional, Tuple

from PyQt6.QtCore import QObject, QTimer, pyqtSignal, pyqtSlot

from .worker_thread import WorkerThread, describe_task

logger = logging.getLogger(__name__)


@dataclass
class _QueuedTask:
    task_id: str
    callable_task: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)


class TaskManager(QObject):
    """
    Runs blocking calls on worker threads, one at a time.

    The audit only ever has one language model call in flight, but a second
    submission (for example a stale call from an audit that was just reset)
    waits in a FIFO queue rather than racing the first. Results and failures
    are re-emitted on the GUI thread under the id returned by submit_task.
    """

    task_started = pyqtSignal(str, str)  # task_id, description
    task_completed = pyqtSignal(str, object)  # task_id, result
    task_failed = pyqtSignal(str, object)  # task_id, exception

    # Gives the finished QThread time to unwind before the next one starts
    POST_TASK_CLEANUP_DELAY_MS = 50
    WORKER_STOP_TIMEOUT_MS = 3000

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._workers: Dict[str, WorkerThread] = {}
        self._queue: Deque[_QueuedTask] = deque()
        self._running_id: Optional[str] = None

    def submit_task(
        self,
        callable_task: Callable[..., Any],
        args: Optional[Tuple[Any, ...]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        task_id: Optional[str] = None,
    ) -> str:
        """Queue ``callable_task(*args, **kwargs)`` and return its task id."""
        task = _QueuedTask(task_id or uuid.uuid4().hex, callable_task, args or (), dict(kwargs or {}))

        if self._running_id is None:
            self._start(task)
        else:
            self._queue.append(task)
            logger.debug(
                f"Queued {describe_task(callable_task)} as {task.task_id} behind {self._running_id} "
                f"({len(self._queue)} waiting)"
            )

        return task.task_id

    def _start(self, task: _QueuedTask) -> None:
        worker = WorkerThread(task.task_id, task.callable_task, task.args, task.kwargs, parent=self)
        worker.result_ready.connect(self._on_result)
        worker.error_occurred.connect(self._on_error)
        self._running_id = task.task_id
        self._workers[task.task_id] = worker
        worker.start()
        logger.info(f"Started {worker.task_name} ({task.task_id})")
        self.task_started.emit(task.task_id, worker.task_name)

    @pyqtSlot(str, object)
    def _on_result(self, task_id: str, result: Any) -> None:
        logger.debug(f"Task {task_id} completed")
        self.task_completed.emit(task_id, result)
        self._finish(task_id)

    @pyqtSlot(str, object)
    def _on_error(self, task_id: str, error: Exception) -> None:
        logger.warning(f"Task {task_id} failed: {error}")
        self.task_failed.emit(task_id, error)
        self._finish(task_id)

    def _finish(self, task_id: str) -> None:
        self._release_worker(task_id)
        if self._running_id == task_id:
            self._running_id = None
        QTimer.singleShot(self.POST_TASK_CLEANUP_DELAY_MS, self._start_next)

    @pyqtSlot()
    def _start_next(self) -> None:
        if self._queue and self._running_id is None:
            self._start(self._queue.popleft())

    def _release_worker(self, task_id: str) -> None:
        worker = self._workers.pop(task_id, None)
        if worker is None:
            return
        if worker.isRunning():
            worker.quit()
            if not worker.wait(self.WORKER_STOP_TIMEOUT_MS):
                logger.warning(f"Worker for task {task_id} is still running after shutdown request")
        worker.deleteLater()

    def get_active_task_count(self) -> int:
        return 0 if self._running_id is None else 1

    def get_queued_task_count(self) -> int:
        return len(self._queue)

    def cleanup_all_tasks(self) -> None:
        """Fail every queued task and stop the running worker; used when the window closes."""
        logger.info(f"Shutting down tasks (running: {self._running_id}, queued: {len(self._queue)})")
        while self._queue:
            task = self._queue.popleft()
            self.task_failed.emit(task.task_id, RuntimeError("Task cancelled due to application shutdown"))

        for task_id, worker in list(self._workers.items()):
            worker.cancel()
            self._release_worker(task_id)
        self._running_id = None
