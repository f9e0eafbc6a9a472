"""
Audit workflow: steps, immutable state and the controller that sequences them.
"""

from .audit_state import AuditState
from .controller import AuditWorkflowController, PendingCall, StepEvent
from .steps import AuditStep, AuditTrigger

__all__ = [
    "AuditState",
    "AuditStep",
    "AuditTrigger",
    "AuditWorkflowController",
    "PendingCall",
    "StepEvent",
]
