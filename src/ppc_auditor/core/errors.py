"""
Exception hierarchy for the paid search auditor.

Every error carries a stable code, a context dict describing what was being
worked on (a config file, a workflow step, an export path) and, when it wraps
a lower-level failure, the original exception.
"""

from typing import Any, Dict, Optional


class PpcAuditError(Exception):
    """Base class for all ppc_auditor errors.

    Subclasses only set ``code`` and ``default_message``; the constructor is
    shared so that every error can be raised the same way.
    """

    code: Optional[str] = None
    default_message = "An error occurred during the paid search audit"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.error_code = error_code or self.code
        self.context = context or {}
        self.original_exception = original_exception

    def __str__(self) -> str:
        text = f"[{self.error_code}] {self.message}" if self.error_code else self.message
        if self.context:
            details = ", ".join(f"{key}={value}" for key, value in self.context.items())
            text += f" ({details})"
        if self.original_exception is not None:
            cause = self.original_exception
            text += f" caused by {type(cause).__name__}: {cause}"
        return text


class ConfigurationError(PpcAuditError):
    """Settings could not be loaded, merged or validated."""

    code = "CONFIG_001"
    default_message = "Invalid configuration specified"


class AnalysisServiceError(PpcAuditError):
    """The language model request failed or returned nothing usable."""

    code = "LLM_001"
    default_message = "Failed to communicate with the analysis service"


class WorkflowError(PpcAuditError):
    """The audit workflow was driven out of contract."""

    code = "WORKFLOW_001"
    default_message = "Invalid audit workflow operation"


class ReportExportError(PpcAuditError):
    code = "EXPORT_001"
    default_message = "Failed to export the audit report"
