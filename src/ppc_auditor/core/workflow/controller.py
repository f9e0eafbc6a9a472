"""
Workflow controller for the guided paid-search audit.

The controller owns the single AuditState of a session and drives it through
a BaseStateMachine. Steps that need the language model are split in two
phases so that asynchronous front ends can run the call elsewhere:

    pending = controller.request(AuditTrigger.SUBMIT_KEYWORDS, raw_text)
    ...  # run pending.run(service) on a worker
    controller.resolve(pending, response_text)   # or controller.fail(pending, error)

Synchronous callers use dispatch(), which runs the whole cycle in place.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..errors import AnalysisServiceError, WorkflowError
from ..llm.analysis_service_protocol import AnalysisServiceProtocol
from ..state_machine import (
    ANY_STATE,
    BaseStateMachine,
    TransitionOutcome,
    TransitionResult,
    create_transition,
)
from .audit_state import AuditState
from .steps import AuditStep, AuditTrigger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepEvent:
    """Data handed to guards and reducers: user input and the service response."""

    payload: Optional[str] = None
    result: Optional[str] = None


@dataclass(frozen=True)
class PendingCall:
    """An external analysis call that has been admitted but not yet resolved."""

    token: int
    trigger: AuditTrigger
    operation: str
    arguments: Tuple[str, ...]
    payload: Optional[str] = None

    def run(self, service: AnalysisServiceProtocol) -> str:
        """Execute the call against an analysis service."""
        return getattr(service, self.operation)(*self.arguments)


RequestOutcome = Union[PendingCall, TransitionOutcome]


def _has_text(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def _payload_present(state: AuditState, event: Optional[StepEvent]) -> bool:
    return event is not None and _has_text(event.payload)


def _sanitized_table_present(state: AuditState, event: Optional[StepEvent]) -> bool:
    return _has_text(state.sanitized_table)


def _store_sanitized(state: AuditState, event: StepEvent) -> AuditState:
    return state.update(raw_keyword_input=event.payload, sanitized_table=event.result)


def _store_analysis(state: AuditState, event: StepEvent) -> AuditState:
    return state.update(keyword_analysis_report=event.result)


def _discard_sanitized(state: AuditState, event: Optional[StepEvent]) -> AuditState:
    return state.update(sanitized_table=None)


def _store_ad_copy(state: AuditState, event: StepEvent) -> AuditState:
    return state.update(ad_copy_input=event.payload)


def _store_final_report(state: AuditState, event: StepEvent) -> AuditState:
    return state.update(landing_page_input=event.payload, final_report=event.result)


def _initial(state: AuditState, event: Optional[StepEvent]) -> AuditState:
    return AuditState.initial()


class AuditWorkflowController:
    """
    Sequences the audit steps and gates the single in-flight analysis call.

    Listeners may subscribe to:
        step_changed(old_step, new_step)
        busy_changed(busy)
        request_failed(trigger, error)
        transition_refused(step, trigger, reason)
        reset()
    """

    # Triggers that need the analysis service before they can complete
    _SERVICE_CALLS = {
        AuditTrigger.SUBMIT_KEYWORDS: "sanitize",
        AuditTrigger.APPROVE: "analyze",
        AuditTrigger.SUBMIT_LANDING_PAGE: "deep_dive",
    }

    def __init__(self, analysis_service: Optional[AnalysisServiceProtocol] = None):
        """
        Initialize the controller.

        Args:
            analysis_service: Service used by dispatch() to run external calls.
                Two-phase callers may run calls against any service instead.
        """
        self.analysis_service = analysis_service
        self._listeners: Dict[str, List[Callable[..., None]]] = {}
        self._pending: Optional[PendingCall] = None
        self._token = 0

        self._machine: BaseStateMachine[AuditState, StepEvent] = BaseStateMachine(
            initial_factory=AuditState.initial,
            name_of=lambda state: state.step.value,
            with_name=lambda state, name: state.with_step(AuditStep(name)),
            is_locked=lambda state: state.busy,
        )
        self._define_states()
        self._define_transitions()
        self._machine.add_event_listener("transition_refused", self._on_refused)
        self._machine.start()

    def _define_states(self) -> None:
        for step in AuditStep:
            self._machine.add_state(step.value, is_initial=step is AuditStep.UPLOAD)

    def _define_transitions(self) -> None:
        transitions = [
            create_transition(
                AuditStep.UPLOAD.value,
                AuditStep.CLEANUP_REVIEW.value,
                AuditTrigger.SUBMIT_KEYWORDS.value,
                guard=_payload_present,
                reducer=_store_sanitized,
            ),
            create_transition(
                AuditStep.CLEANUP_REVIEW.value,
                AuditStep.KEYWORD_ANALYSIS.value,
                AuditTrigger.APPROVE.value,
                guard=_sanitized_table_present,
                reducer=_store_analysis,
            ),
            create_transition(
                AuditStep.CLEANUP_REVIEW.value,
                AuditStep.UPLOAD.value,
                AuditTrigger.REJECT.value,
                reducer=_discard_sanitized,
            ),
            create_transition(
                AuditStep.KEYWORD_ANALYSIS.value,
                AuditStep.AD_COPY_REQUEST.value,
                AuditTrigger.CONTINUE.value,
            ),
            create_transition(
                AuditStep.AD_COPY_REQUEST.value,
                AuditStep.LANDING_PAGE_REQUEST.value,
                AuditTrigger.SUBMIT_AD_COPY.value,
                guard=_payload_present,
                reducer=_store_ad_copy,
            ),
            create_transition(
                AuditStep.LANDING_PAGE_REQUEST.value,
                AuditStep.FINAL_REPORT.value,
                AuditTrigger.SUBMIT_LANDING_PAGE.value,
                guard=_payload_present,
                reducer=_store_final_report,
            ),
            create_transition(
                ANY_STATE,
                AuditStep.UPLOAD.value,
                AuditTrigger.RESET.value,
                reducer=_initial,
            ),
        ]
        for transition in transitions:
            self._machine.add_transition(transition)

    @property
    def state(self) -> AuditState:
        """The current audit state."""
        return self._machine.current

    @property
    def step(self) -> AuditStep:
        return self._machine.current.step

    @property
    def busy(self) -> bool:
        return self._machine.current.busy

    @property
    def pending(self) -> Optional[PendingCall]:
        return self._pending

    @property
    def history(self) -> List[str]:
        """Names of the steps visited during this session, in order."""
        return self._machine.history

    def can_trigger(self, trigger: Union[AuditTrigger, str]) -> bool:
        """Return True if the trigger is defined for the current step and not busy."""
        return self._machine.can_trigger(AuditTrigger(trigger).value)

    def permitted_triggers(self) -> List[AuditTrigger]:
        return sorted(
            (AuditTrigger(name) for name in self._machine.get_permitted_triggers()),
            key=lambda trigger: list(AuditTrigger).index(trigger),
        )

    # Two-phase API

    def request(
        self, trigger: Union[AuditTrigger, str], payload: Optional[str] = None
    ) -> RequestOutcome:
        """
        Start a trigger.

        Triggers that need the analysis service are admitted and returned as a
        PendingCall; the state is marked busy until resolve() or fail() is
        called with it. Other triggers complete immediately.

        Args:
            trigger: The trigger to fire
            payload: User input for submit triggers

        Returns:
            A PendingCall for admitted service calls, otherwise the
            TransitionOutcome (completed or refused)
        """
        trigger = AuditTrigger(trigger)
        event = StepEvent(payload=payload)

        refusal = self._machine.evaluate(trigger.value, event)
        if refusal is not None:
            return refusal

        operation = self._SERVICE_CALLS.get(trigger)
        if operation is None:
            return self._apply(trigger, event)

        self._token += 1
        pending = PendingCall(
            token=self._token,
            trigger=trigger,
            operation=operation,
            arguments=self._call_arguments(trigger, payload),
            payload=payload,
        )
        self._pending = pending
        self._set_busy(True)
        logger.info(f"Requesting '{operation}' for trigger '{trigger.value}'")
        return pending

    def resolve(self, pending: PendingCall, text: Optional[str]) -> TransitionOutcome:
        """
        Complete a pending call with the service response.

        An empty response is treated as a failure.

        Args:
            pending: The call returned by request()
            text: The service response

        Returns:
            The outcome of the transition
        """
        if not self._is_current(pending):
            return self._stale(pending)

        if not _has_text(text):
            return self.fail(
                pending,
                AnalysisServiceError(
                    f"The analysis service returned an empty response for '{pending.operation}'"
                ),
            )

        self._pending = None
        self._set_busy(False)
        logger.info(f"'{pending.operation}' completed for trigger '{pending.trigger.value}'")
        return self._apply(pending.trigger, StepEvent(payload=pending.payload, result=text))

    def fail(self, pending: PendingCall, error: BaseException) -> TransitionOutcome:
        """
        Abandon a pending call after the service failed.

        The step and all data fields are left unchanged; busy is cleared.

        Args:
            pending: The call returned by request()
            error: The failure raised by the service

        Returns:
            A FAILED_ACTION outcome carrying the unchanged state
        """
        if not self._is_current(pending):
            return self._stale(pending)

        self._pending = None
        self._set_busy(False)
        logger.warning(f"'{pending.operation}' failed for trigger '{pending.trigger.value}': {error}")
        self._notify("request_failed", pending.trigger, error)
        return TransitionOutcome(
            TransitionResult.FAILED_ACTION, self.state, pending.trigger.value, str(error)
        )

    # Synchronous API

    def dispatch(
        self, trigger: Union[AuditTrigger, str], payload: Optional[str] = None
    ) -> TransitionOutcome:
        """
        Fire a trigger and, if it needs the analysis service, run the call in place.

        Raises:
            WorkflowError: If a service call is needed but no service was configured
        """
        outcome = self.request(trigger, payload)
        if not isinstance(outcome, PendingCall):
            return outcome

        if self.analysis_service is None:
            self.fail(outcome, WorkflowError("No analysis service configured"))
            raise WorkflowError(
                "No analysis service configured",
                context={"trigger": outcome.trigger.value},
            )

        try:
            text = outcome.run(self.analysis_service)
        except Exception as e:
            return self.fail(outcome, e)
        return self.resolve(outcome, text)

    def submit_keywords(self, raw_text: str) -> TransitionOutcome:
        return self.dispatch(AuditTrigger.SUBMIT_KEYWORDS, raw_text)

    def approve(self) -> TransitionOutcome:
        return self.dispatch(AuditTrigger.APPROVE)

    def reject(self) -> TransitionOutcome:
        return self.dispatch(AuditTrigger.REJECT)

    def continue_(self) -> TransitionOutcome:
        return self.dispatch(AuditTrigger.CONTINUE)

    def submit_ad_copy(self, text: str) -> TransitionOutcome:
        return self.dispatch(AuditTrigger.SUBMIT_AD_COPY, text)

    def submit_landing_page(self, text: str) -> TransitionOutcome:
        return self.dispatch(AuditTrigger.SUBMIT_LANDING_PAGE, text)

    def reset(self) -> TransitionOutcome:
        """Start a new audit. Refused while a call is in flight."""
        return self.dispatch(AuditTrigger.RESET)

    # Listeners

    def add_event_listener(self, event_name: str, callback: Callable[..., None]) -> None:
        self._listeners.setdefault(event_name, []).append(callback)

    def remove_event_listener(self, event_name: str, callback: Callable[..., None]) -> None:
        if event_name in self._listeners:
            self._listeners[event_name] = [
                listener for listener in self._listeners[event_name] if listener != callback
            ]

    def _notify(self, event_name: str, *args: Any) -> None:
        for listener in self._listeners.get(event_name, []):
            try:
                listener(*args)
            except Exception as e:
                logger.error(f"Error in workflow listener for '{event_name}': {e}")

    # Internals

    def _call_arguments(
        self, trigger: AuditTrigger, payload: Optional[str]
    ) -> Tuple[str, ...]:
        state = self.state
        if trigger is AuditTrigger.SUBMIT_KEYWORDS:
            return (payload or "",)
        if trigger is AuditTrigger.APPROVE:
            return (state.sanitized_table or "",)
        keywords = state.sanitized_table or state.raw_keyword_input or ""
        return (keywords, state.ad_copy_input or "", payload or "")

    def _apply(self, trigger: AuditTrigger, event: StepEvent) -> TransitionOutcome:
        old_step = self.step
        outcome = self._machine.fire(trigger.value, event)
        if not outcome.succeeded:
            if outcome.result is TransitionResult.FAILED_ACTION:
                self._notify("request_failed", trigger, outcome.error)
            return outcome

        new_step = outcome.state.step
        logger.debug(f"Trigger '{trigger.value}': {old_step.value} -> {new_step.value}")
        if trigger is AuditTrigger.RESET:
            self._notify("reset")
        if new_step is not old_step:
            self._notify("step_changed", old_step, new_step)
        return outcome

    def _set_busy(self, busy: bool) -> None:
        self._machine.update(lambda state: state.with_busy(busy))
        self._notify("busy_changed", busy)

    def _is_current(self, pending: PendingCall) -> bool:
        return self._pending is not None and self._pending.token == pending.token

    def _stale(self, pending: PendingCall) -> TransitionOutcome:
        logger.warning(
            f"Ignoring stale result for '{pending.operation}' (token {pending.token})"
        )
        return TransitionOutcome(
            TransitionResult.INVALID_TRANSITION,
            self.state,
            pending.trigger.value,
            "Stale request",
        )

    def _on_refused(self, state_name: str, trigger_name: str, reason: str) -> None:
        logger.debug(f"Trigger '{trigger_name}' refused in step '{state_name}' ({reason})")
        self._notify("transition_refused", AuditStep(state_name), trigger_name, reason)
