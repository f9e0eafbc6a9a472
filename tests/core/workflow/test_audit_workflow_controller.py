"""
Tests for the audit workflow controller.
"""

from unittest.mock import MagicMock

import pytest

from ppc_auditor.core.errors import AnalysisServiceError, WorkflowError
from ppc_auditor.core.llm import MockAnalysisService
from ppc_auditor.core.state_machine import TransitionResult
from ppc_auditor.core.workflow import (
    AuditState,
    AuditStep,
    AuditTrigger,
    AuditWorkflowController,
    PendingCall,
)

KEYWORDS = "kw,impr,clicks\nshoe,1000,40"


def advance_to(controller: AuditWorkflowController, step: AuditStep) -> None:
    """Drive a controller with a working service up to the given step."""
    path = [
        (AuditStep.CLEANUP_REVIEW, lambda: controller.submit_keywords(KEYWORDS)),
        (AuditStep.KEYWORD_ANALYSIS, controller.approve),
        (AuditStep.AD_COPY_REQUEST, controller.continue_),
        (AuditStep.LANDING_PAGE_REQUEST, lambda: controller.submit_ad_copy("Buy Shoes Now")),
        (AuditStep.FINAL_REPORT, lambda: controller.submit_landing_page("Shoes for everyone")),
    ]
    for target, action in path:
        if controller.step is step:
            return
        assert action().succeeded
        assert controller.step is target


class TestAuditStep:
    def test_labels_and_order(self):
        assert [step.label for step in AuditStep] == [
            "Upload",
            "Sanitize",
            "Analysis",
            "Ad Copy",
            "LP Data",
            "Report",
        ]
        assert AuditStep.UPLOAD.ordinal == 1
        assert AuditStep.FINAL_REPORT.ordinal == 6


class TestAuditState:
    def test_initial_state_is_empty(self):
        state = AuditState.initial()

        assert state.step is AuditStep.UPLOAD
        assert state.raw_keyword_input is None
        assert state.final_report is None
        assert state.busy is False

    def test_update_returns_new_instance(self):
        state = AuditState.initial()

        updated = state.update(ad_copy_input="ad")

        assert updated is not state
        assert state.ad_copy_input is None
        assert updated.ad_copy_input == "ad"


class TestHappyPath:
    def test_submit_keywords_stores_raw_and_sanitized(self, controller, mock_service):
        outcome = controller.submit_keywords(KEYWORDS)

        assert outcome.succeeded
        assert controller.step is AuditStep.CLEANUP_REVIEW
        assert controller.state.raw_keyword_input == KEYWORDS
        assert controller.state.sanitized_table.startswith("Keyword,Impressions,Clicks,CTR")
        assert mock_service.calls == [("sanitize", (KEYWORDS,))]

    def test_approve_analyzes_the_sanitized_table(self, controller, mock_service):
        controller.submit_keywords(KEYWORDS)
        table = controller.state.sanitized_table

        outcome = controller.approve()

        assert outcome.succeeded
        assert controller.step is AuditStep.KEYWORD_ANALYSIS
        assert mock_service.calls[-1] == ("analyze", (table,))
        assert "# Keyword Performance Analysis" in controller.state.keyword_analysis_report

    def test_continue_and_ad_copy_need_no_service_call(self, controller, mock_service):
        advance_to(controller, AuditStep.KEYWORD_ANALYSIS)
        calls_before = len(mock_service.calls)

        controller.continue_()
        controller.submit_ad_copy("Buy Shoes Now")

        assert controller.step is AuditStep.LANDING_PAGE_REQUEST
        assert controller.state.ad_copy_input == "Buy Shoes Now"
        assert len(mock_service.calls) == calls_before

    def test_deep_dive_uses_table_ad_copy_and_landing_page(self, controller, mock_service):
        advance_to(controller, AuditStep.LANDING_PAGE_REQUEST)
        table = controller.state.sanitized_table

        outcome = controller.submit_landing_page("Shoes for everyone")

        assert outcome.succeeded
        assert mock_service.calls[-1] == (
            "deep_dive",
            (table, "Buy Shoes Now", "Shoes for everyone"),
        )
        assert controller.state.landing_page_input == "Shoes for everyone"
        assert "Overall Performance Score:" in controller.state.final_report

    def test_history_records_every_step(self, controller):
        advance_to(controller, AuditStep.FINAL_REPORT)

        assert controller.history == [step.value for step in AuditStep]


class TestRefusals:
    def test_empty_keywords_are_refused_without_call(self, controller, mock_service):
        outcome = controller.submit_keywords("   ")

        assert outcome.result is TransitionResult.FAILED_GUARD_CONDITION
        assert controller.step is AuditStep.UPLOAD
        assert mock_service.calls == []

    def test_triggers_cannot_skip_steps(self, controller):
        outcome = controller.submit_landing_page("Shoes for everyone")

        assert outcome.result is TransitionResult.INVALID_TRANSITION
        assert controller.step is AuditStep.UPLOAD

    def test_empty_ad_copy_is_refused(self, controller):
        advance_to(controller, AuditStep.AD_COPY_REQUEST)

        assert not controller.submit_ad_copy("").succeeded
        assert controller.step is AuditStep.AD_COPY_REQUEST

    def test_approve_without_table_issues_no_call(self, controller, mock_service):
        controller.submit_keywords(KEYWORDS)
        controller._machine.update(lambda s: s.update(sanitized_table=""))

        outcome = controller.approve()

        assert outcome.result is TransitionResult.FAILED_GUARD_CONDITION
        assert [name for name, _ in mock_service.calls] == ["sanitize"]

    def test_refusal_is_reported_to_listeners(self, controller):
        listener = MagicMock()
        controller.add_event_listener("transition_refused", listener)

        controller.approve()

        listener.assert_called_once_with(AuditStep.UPLOAD, "approve", "invalid")

    def test_permitted_triggers(self, controller):
        assert set(controller.permitted_triggers()) == {
            AuditTrigger.SUBMIT_KEYWORDS,
            AuditTrigger.RESET,
        }


class TestRejectAndReset:
    def test_reject_clears_table_and_keeps_raw_input(self, controller, mock_service):
        controller.submit_keywords(KEYWORDS)
        calls_before = len(mock_service.calls)

        outcome = controller.reject()

        assert outcome.succeeded
        assert controller.step is AuditStep.UPLOAD
        assert controller.state.sanitized_table is None
        assert controller.state.raw_keyword_input == KEYWORDS
        assert len(mock_service.calls) == calls_before

    @pytest.mark.parametrize("step", list(AuditStep))
    def test_reset_from_any_step_clears_everything(self, controller, step):
        advance_to(controller, step)
        listener = MagicMock()
        controller.add_event_listener("reset", listener)

        outcome = controller.reset()

        assert outcome.succeeded
        assert controller.state == AuditState.initial()
        listener.assert_called_once_with()

    def test_reset_is_refused_while_busy(self, controller):
        pending = controller.request(AuditTrigger.SUBMIT_KEYWORDS, KEYWORDS)

        outcome = controller.reset()

        assert isinstance(pending, PendingCall)
        assert outcome.result is TransitionResult.BUSY
        assert controller.busy


class TestFailures:
    @pytest.mark.parametrize(
        "step, operation",
        [
            (AuditStep.UPLOAD, "sanitize"),
            (AuditStep.CLEANUP_REVIEW, "analyze"),
            (AuditStep.LANDING_PAGE_REQUEST, "deep_dive"),
        ],
    )
    def test_service_failure_keeps_step_and_clears_busy(self, step, operation):
        # Arrange
        service = MockAnalysisService()
        controller = AuditWorkflowController(service)
        advance_to(controller, step)
        before = controller.state
        service.fail_on = {operation}
        failures = MagicMock()
        controller.add_event_listener("request_failed", failures)
        trigger = {
            "sanitize": lambda: controller.submit_keywords(KEYWORDS),
            "analyze": controller.approve,
            "deep_dive": lambda: controller.submit_landing_page("Shoes for everyone"),
        }[operation]

        # Act
        outcome = trigger()

        # Assert
        assert outcome.result is TransitionResult.FAILED_ACTION
        assert controller.step is step
        assert controller.state == before
        assert not controller.busy
        failures.assert_called_once()
        assert isinstance(failures.call_args[0][1], AnalysisServiceError)

    def test_empty_response_is_a_failure(self):
        controller = AuditWorkflowController(MockAnalysisService(responses={"sanitize": "  "}))

        outcome = controller.submit_keywords(KEYWORDS)

        assert outcome.result is TransitionResult.FAILED_ACTION
        assert controller.step is AuditStep.UPLOAD
        assert not controller.busy

    def test_dispatch_without_service_raises(self):
        controller = AuditWorkflowController()

        with pytest.raises(WorkflowError):
            controller.submit_keywords(KEYWORDS)
        assert not controller.busy


class TestTwoPhase:
    def test_request_marks_busy_and_blocks_other_triggers(self, controller):
        busy = MagicMock()
        controller.add_event_listener("busy_changed", busy)

        pending = controller.request(AuditTrigger.SUBMIT_KEYWORDS, KEYWORDS)
        second = controller.request(AuditTrigger.SUBMIT_KEYWORDS, KEYWORDS)

        assert isinstance(pending, PendingCall)
        assert pending.operation == "sanitize"
        assert pending.arguments == (KEYWORDS,)
        assert controller.busy
        assert second.result is TransitionResult.BUSY
        busy.assert_called_once_with(True)

    def test_resolve_applies_result(self, controller):
        pending = controller.request(AuditTrigger.SUBMIT_KEYWORDS, KEYWORDS)
        steps = MagicMock()
        controller.add_event_listener("step_changed", steps)

        outcome = controller.resolve(pending, "Keyword,Impressions\nshoe,1000")

        assert outcome.succeeded
        assert not controller.busy
        assert controller.state.sanitized_table == "Keyword,Impressions\nshoe,1000"
        steps.assert_called_once_with(AuditStep.UPLOAD, AuditStep.CLEANUP_REVIEW)

    def test_fail_leaves_state_unchanged(self, controller):
        pending = controller.request(AuditTrigger.SUBMIT_KEYWORDS, KEYWORDS)

        outcome = controller.fail(pending, RuntimeError("network down"))

        assert outcome.result is TransitionResult.FAILED_ACTION
        assert outcome.error == "network down"
        assert controller.state == AuditState.initial()

    def test_stale_result_is_ignored(self, controller):
        stale = controller.request(AuditTrigger.SUBMIT_KEYWORDS, KEYWORDS)
        controller.fail(stale, RuntimeError("timeout"))
        controller.submit_keywords(KEYWORDS)
        table = controller.state.sanitized_table

        outcome = controller.resolve(stale, "late answer")

        assert outcome.result is TransitionResult.INVALID_TRANSITION
        assert controller.state.sanitized_table == table

    def test_pending_call_runs_against_service(self, controller, mock_service):
        pending = controller.request(AuditTrigger.SUBMIT_KEYWORDS, KEYWORDS)

        text = pending.run(mock_service)

        assert text.startswith("Keyword,")

    def test_deep_dive_falls_back_to_raw_keywords(self):
        controller = AuditWorkflowController(MockAnalysisService())
        advance_to(controller, AuditStep.LANDING_PAGE_REQUEST)
        controller._machine.update(lambda s: s.update(sanitized_table=None))

        pending = controller.request(AuditTrigger.SUBMIT_LANDING_PAGE, "LP")

        assert pending.arguments == (KEYWORDS, "Buy Shoes Now", "LP")
