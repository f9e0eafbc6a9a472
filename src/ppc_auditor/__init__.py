"""ppc-auditor - Guided paid search audit with LLM-backed analysis.

This package walks an analyst through a fixed sequence of steps: keyword data
is sanitized, approved and analyzed, ad copy and landing page content are
added, and a full-funnel deep dive produces a report that can be exported as
a paginated PDF.

Example:
    >>> from ppc_auditor import AuditWorkflowController, MockAnalysisService
    >>> controller = AuditWorkflowController(MockAnalysisService())
    >>> controller.submit_keywords("kw,impr,clicks\\nshoe,1000,40").succeeded
    True

Attributes:
    __version__ (str): The version of the ppc-auditor package.
    AuditWorkflowController (type): Sequences the audit steps.
    LLMAnalysisService (type): Analysis service backed by Anthropic or OpenAI.
    MockAnalysisService (type): Deterministic offline analysis service.
    Settings (type): Configuration settings.
    load_settings (Callable): Function to load settings.
    export_report (Callable): Lay out and write a report as PDF.
"""

from .__version__ import __version__
from .core.export import export_report
from .core.llm import LLMAnalysisService, MockAnalysisService, create_analysis_service
from .core.workflow import AuditState, AuditStep, AuditWorkflowController
from .utils.settings import Settings, load_settings

__all__ = [
    "AuditState",
    "AuditStep",
    "AuditWorkflowController",
    "LLMAnalysisService",
    "MockAnalysisService",
    "Settings",
    "create_analysis_service",
    "export_report",
    "load_settings",
    "__version__",
]
