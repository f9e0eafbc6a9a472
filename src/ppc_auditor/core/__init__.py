"""Core paid search audit functionality."""

from .errors import (
    AnalysisServiceError,
    ConfigurationError,
    PpcAuditError,
    ReportExportError,
    WorkflowError,
)

__all__ = [
    "AnalysisServiceError",
    "ConfigurationError",
    "PpcAuditError",
    "ReportExportError",
    "WorkflowError",
]
