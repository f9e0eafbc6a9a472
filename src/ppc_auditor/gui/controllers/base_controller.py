import logging
from typing import Any, Callable, Optional, Tuple

from PyQt6.QtCore import QObject

from ...utils.settings import Settings
from ..background.task_manager import TaskManager


class BaseController(QObject):
    """
    Shared plumbing for the GUI controllers.

    Each controller holds the resolved application settings, a logger named
    after its class and, when it issues analysis calls, the task manager
    that runs them off the GUI thread.
    """

    def __init__(
        self,
        settings: Settings,
        parent: Optional[QObject] = None,
        task_manager: Optional[TaskManager] = None,
    ):
        super().__init__(parent)
        self.settings = settings
        self.task_manager = task_manager
        self.logger = logging.getLogger(f"{__package__}.{type(self).__name__}")
        self.logger.debug(f"{type(self).__name__} ready (provider: {settings.llm_provider})")

    def handle_error(self, message: str, error: Optional[BaseException] = None) -> None:
        """Log a failure the user is about to be told about."""
        if error is None:
            self.logger.error(message)
        else:
            self.logger.error(f"{message} ({type(error).__name__}: {error})")

    def submit_background_task(
        self, callable_task: Callable[..., Any], args: Optional[Tuple[Any, ...]] = None
    ) -> Optional[str]:
        """Queue a call on the task manager; None when no manager was given."""
        if self.task_manager is None:
            self.logger.error(f"No task manager; cannot run {callable_task!r} in the background")
            return None
        return self.task_manager.submit_task(callable_task, args=args)
