"""
Audit controller bridging the workflow controller and the Qt event loop.

Analysis calls run on a worker thread; their results come back through
TaskManager signals on the GUI thread, where the workflow state is updated.
"""

import logging
from typing import Dict, Optional, Union

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from ...core.errors import ConfigurationError, WorkflowError
from ...core.llm import AnalysisServiceProtocol, create_analysis_service
from ...core.workflow import (
    AuditState,
    AuditStep,
    AuditTrigger,
    AuditWorkflowController,
    PendingCall,
)
from ...utils.settings import Settings
from ..background.task_manager import TaskManager
from .base_controller import BaseController

logger = logging.getLogger(__name__)

FAILURE_MESSAGES = {
    AuditTrigger.SUBMIT_KEYWORDS: "Error processing data",
    AuditTrigger.APPROVE: "Error analyzing keywords",
    AuditTrigger.SUBMIT_LANDING_PAGE: "Error running the deep dive",
}


class AuditController(BaseController):
    """Drives the audit workflow from the GUI."""

    state_changed = pyqtSignal(object)  # AuditState
    step_changed = pyqtSignal(object, object)  # old AuditStep, new AuditStep
    busy_changed = pyqtSignal(bool)
    request_failed = pyqtSignal(str, str)  # title, message
    audit_reset = pyqtSignal()

    def __init__(
        self,
        settings: Settings,
        task_manager: TaskManager,
        analysis_service: Optional[AnalysisServiceProtocol] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(settings, parent, task_manager)
        self._analysis_service = analysis_service
        self._pending_tasks: Dict[str, PendingCall] = {}

        self.workflow = AuditWorkflowController(analysis_service)
        self.workflow.add_event_listener("step_changed", self._on_step_changed)
        self.workflow.add_event_listener("busy_changed", self.busy_changed.emit)
        self.workflow.add_event_listener("request_failed", self._on_request_failed)
        self.workflow.add_event_listener("reset", self.audit_reset.emit)

        task_manager.task_completed.connect(self._on_task_completed)
        task_manager.task_failed.connect(self._on_task_failed)

    @property
    def analysis_service(self) -> AnalysisServiceProtocol:
        """The analysis service, created from settings on first use."""
        if self._analysis_service is None:
            self._analysis_service = create_analysis_service(self.settings)
            self.workflow.analysis_service = self._analysis_service
            logger.debug("Created analysis service")
        return self._analysis_service

    @property
    def state(self) -> AuditState:
        return self.workflow.state

    @property
    def step(self) -> AuditStep:
        return self.workflow.step

    @property
    def busy(self) -> bool:
        return self.workflow.busy

    def trigger(self, trigger: Union[AuditTrigger, str], payload: Optional[str] = None) -> bool:
        """
        Fire a workflow trigger.

        Service-backed triggers are handed to the task manager and complete
        asynchronously; state_changed is emitted once they resolve.

        Returns:
            True if the trigger completed or its call was started
        """
        outcome = self.workflow.request(trigger, payload)
        if isinstance(outcome, PendingCall):
            return self._start_call(outcome)

        if not outcome.succeeded:
            logger.debug(f"Trigger '{outcome.trigger}' not applied: {outcome.error}")
            return False
        self.state_changed.emit(self.workflow.state)
        return True

    @pyqtSlot(str)
    def submit_keywords(self, raw_text: str) -> bool:
        return self.trigger(AuditTrigger.SUBMIT_KEYWORDS, raw_text)

    @pyqtSlot()
    def approve(self) -> bool:
        return self.trigger(AuditTrigger.APPROVE)

    @pyqtSlot()
    def reject(self) -> bool:
        return self.trigger(AuditTrigger.REJECT)

    @pyqtSlot()
    def continue_to_ad_copy(self) -> bool:
        return self.trigger(AuditTrigger.CONTINUE)

    @pyqtSlot(str)
    def submit_ad_copy(self, text: str) -> bool:
        return self.trigger(AuditTrigger.SUBMIT_AD_COPY, text)

    @pyqtSlot(str)
    def submit_landing_page(self, text: str) -> bool:
        return self.trigger(AuditTrigger.SUBMIT_LANDING_PAGE, text)

    @pyqtSlot()
    def start_new_audit(self) -> bool:
        return self.trigger(AuditTrigger.RESET)

    def _start_call(self, pending: PendingCall) -> bool:
        try:
            service = self.analysis_service
        except ConfigurationError as e:
            self.workflow.fail(pending, e)
            return False

        task_id = self.submit_background_task(pending.run, args=(service,))
        if task_id is None:
            self.workflow.fail(pending, WorkflowError("Background tasks are unavailable"))
            return False

        self._pending_tasks[task_id] = pending
        logger.info(f"Started '{pending.operation}' as task '{task_id}'")
        return True

    @pyqtSlot(str, object)
    def _on_task_completed(self, task_id: str, result: object) -> None:
        pending = self._pending_tasks.pop(task_id, None)
        if pending is None:
            return
        text = result if isinstance(result, str) else None
        self.workflow.resolve(pending, text)
        self.state_changed.emit(self.workflow.state)

    @pyqtSlot(str, object)
    def _on_task_failed(self, task_id: str, error: object) -> None:
        pending = self._pending_tasks.pop(task_id, None)
        if pending is None:
            return
        exc = error if isinstance(error, BaseException) else RuntimeError(str(error))
        self.workflow.fail(pending, exc)
        self.state_changed.emit(self.workflow.state)

    def _on_step_changed(self, old_step: AuditStep, new_step: AuditStep) -> None:
        self.step_changed.emit(old_step, new_step)

    def _on_request_failed(self, trigger: AuditTrigger, error: object) -> None:
        title = FAILURE_MESSAGES.get(trigger, "Request failed")
        self.handle_error(f"{title}: {error}")
        self.request_failed.emit(title, f"{title}. Please try again.\n\n{error}")
