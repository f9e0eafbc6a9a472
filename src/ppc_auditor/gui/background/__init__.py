"""Background task management for the audit GUI."""

from .task_manager import TaskManager
from .worker_thread import WorkerThread

__all__ = ["TaskManager", "WorkerThread"]
