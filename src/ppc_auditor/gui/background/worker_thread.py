import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from PyQt6.QtCore import QObject, QThread, pyqtSignal

logger = logging.getLogger(__name__)


def describe_task(callable_task: Callable) -> str:
    """Name a task for logs: the audit operation of a bound PendingCall.run, else the function name."""
    owner = getattr(callable_task, "__self__", None)
    operation = getattr(owner, "operation", None)
    if isinstance(operation, str):
        return operation
    return getattr(callable_task, "__name__", type(callable_task).__name__)


class WorkerThread(QThread):
    """
    Runs one blocking call (usually a language model request) off the GUI thread.

    The thread never touches audit state itself: it only reports the call's
    return value or exception back through its signals, which Qt delivers on
    the thread that owns the receiving TaskManager.
    """

    result_ready = pyqtSignal(str, object)  # task_id, return value
    error_occurred = pyqtSignal(str, object)  # task_id, exception

    def __init__(
        self,
        task_id: str,
        callable_task: Callable,
        args: Optional[Tuple[Any, ...]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.task_id = task_id
        self.callable_task = callable_task
        self.args = args or ()
        self.kwargs = kwargs or {}
        self._cancelled = threading.Event()

    @property
    def task_name(self) -> str:
        return describe_task(self.callable_task)

    def run(self) -> None:
        logger.debug(f"Task {self.task_id}: running {self.task_name}")
        try:
            result = self.callable_task(*self.args, **self.kwargs)
        except Exception as e:
            logger.error(f"Task {self.task_id} ({self.task_name}) raised: {e}", exc_info=True)
            self.error_occurred.emit(self.task_id, e)
            return

        # A cancelled call may still finish; its answer belongs to an audit nobody is waiting on
        if self._cancelled.is_set():
            logger.info(f"Task {self.task_id}: discarding result of cancelled {self.task_name}")
            self.error_occurred.emit(self.task_id, RuntimeError("Task cancelled"))
            return

        logger.debug(f"Task {self.task_id}: {self.task_name} finished")
        self.result_ready.emit(self.task_id, result)

    def cancel(self) -> None:
        """Abandon the call on shutdown. The running request is not interrupted."""
        logger.info(f"Task {self.task_id}: cancellation requested")
        self._cancelled.set()
