"""
Controllers package for the audit GUI.
"""

from .audit_controller import AuditController
from .base_controller import BaseController
from .report_controller import ReportController

__all__ = [
    "AuditController",
    "BaseController",
    "ReportController",
]
