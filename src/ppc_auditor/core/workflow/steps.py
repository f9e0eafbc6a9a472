"""
Steps of the guided paid-search audit.
"""

from enum import Enum


class AuditStep(str, Enum):
    """Ordered steps of the audit workflow."""

    UPLOAD = "upload"
    """Waiting for raw keyword data."""

    CLEANUP_REVIEW = "cleanup_review"
    """Sanitized table is shown for approval or rejection."""

    KEYWORD_ANALYSIS = "keyword_analysis"
    """Keyword performance analysis is available."""

    AD_COPY_REQUEST = "ad_copy_request"
    """Waiting for the current ad copy."""

    LANDING_PAGE_REQUEST = "landing_page_request"
    """Waiting for landing page content before the deep dive."""

    FINAL_REPORT = "final_report"
    """Consolidated optimization report is ready to export."""

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def ordinal(self) -> int:
        """1-based position of the step, for display only."""
        return list(AuditStep).index(self) + 1


_LABELS = {
    AuditStep.UPLOAD: "Upload",
    AuditStep.CLEANUP_REVIEW: "Sanitize",
    AuditStep.KEYWORD_ANALYSIS: "Analysis",
    AuditStep.AD_COPY_REQUEST: "Ad Copy",
    AuditStep.LANDING_PAGE_REQUEST: "LP Data",
    AuditStep.FINAL_REPORT: "Report",
}


class AuditTrigger(str, Enum):
    """Named triggers accepted by the audit workflow."""

    SUBMIT_KEYWORDS = "submit_keywords"
    APPROVE = "approve"
    REJECT = "reject"
    CONTINUE = "continue"
    SUBMIT_AD_COPY = "submit_ad_copy"
    SUBMIT_LANDING_PAGE = "submit_landing_page"
    RESET = "reset"
