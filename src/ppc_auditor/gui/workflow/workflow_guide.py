from typing import Dict, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from ...core.workflow import AuditStep

ANALYST_CONSTRAINTS = (
    "Analyst Constraints: Exact Match keywords only. "
    "Budget is set at the campaign level and shared across ad groups."
)


class WorkflowGuide(QObject):
    """Provides contextual guidance messages based on the current audit step."""

    guidance_updated = pyqtSignal(str, str)  # message, tooltip

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._messages: Dict[AuditStep, str] = {
            AuditStep.UPLOAD: "Paste your keyword performance data or upload a CSV/TXT export to begin.",
            AuditStep.CLEANUP_REVIEW: "Review the sanitized table. Approve it to run the keyword analysis, or reject it to re-upload.",
            AuditStep.KEYWORD_ANALYSIS: "Keyword analysis is ready. Continue when you want to review ad copy.",
            AuditStep.AD_COPY_REQUEST: "Paste the ad copy currently running for these keywords.",
            AuditStep.LANDING_PAGE_REQUEST: "Paste the landing page content to run the full-funnel deep dive.",
            AuditStep.FINAL_REPORT: "The optimization report is ready. Download it as PDF or start a new audit.",
        }
        self._busy_messages: Dict[AuditStep, str] = {
            AuditStep.UPLOAD: "Sanitizing keyword data...",
            AuditStep.CLEANUP_REVIEW: "Analyzing keyword performance...",
            AuditStep.LANDING_PAGE_REQUEST: "Running the full-funnel deep dive...",
        }
        self._tooltips: Dict[AuditStep, str] = {
            AuditStep.UPLOAD: "Any column layout works; missing metrics are filled in where they can be derived.",
            AuditStep.CLEANUP_REVIEW: "Rejecting keeps your original input so you can fix and resubmit it.",
            AuditStep.KEYWORD_ANALYSIS: "Keywords are grouped by CTR and conversion rate against 4% / 5% benchmarks.",
            AuditStep.AD_COPY_REQUEST: "Include headlines and descriptions.",
            AuditStep.LANDING_PAGE_REQUEST: "Product description, offer and calls to action are most useful.",
            AuditStep.FINAL_REPORT: "Use Start New Audit to clear all data.",
        }

    def message_for(self, step: AuditStep, busy: bool = False) -> str:
        if busy:
            return self._busy_messages.get(step, "Working...")
        return self._messages.get(step, "No guidance available for the current step.")

    def update_guidance(self, step: AuditStep, busy: bool = False) -> None:
        """
        Updates the guidance message and tooltip for the current step.

        Args:
            step: The current AuditStep.
            busy: Whether an analysis call is in flight.
        """
        message = self.message_for(step, busy)
        tooltip = "Please wait." if busy else self._tooltips.get(step, "")
        self.guidance_updated.emit(f"Step {step.ordinal}: {message}", tooltip)
