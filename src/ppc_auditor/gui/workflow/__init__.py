"""
User guidance for the audit workflow.
"""

from .workflow_guide import ANALYST_CONSTRAINTS, WorkflowGuide

__all__ = ["ANALYST_CONSTRAINTS", "WorkflowGuide"]
