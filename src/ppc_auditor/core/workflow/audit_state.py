"""
Immutable state value carried through the audit workflow.
"""

from dataclasses import dataclass, replace
from typing import Optional

from .steps import AuditStep


@dataclass(frozen=True)
class AuditState:
    """
    Snapshot of one audit session.

    Every transition produces a new instance; nothing mutates an existing one.
    """

    step: AuditStep = AuditStep.UPLOAD
    raw_keyword_input: Optional[str] = None
    sanitized_table: Optional[str] = None
    keyword_analysis_report: Optional[str] = None
    ad_copy_input: Optional[str] = None
    landing_page_input: Optional[str] = None
    final_report: Optional[str] = None
    busy: bool = False

    @classmethod
    def initial(cls) -> "AuditState":
        return cls()

    def with_step(self, step: AuditStep) -> "AuditState":
        return replace(self, step=step)

    def with_busy(self, busy: bool) -> "AuditState":
        return replace(self, busy=busy)

    def update(self, **changes) -> "AuditState":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
