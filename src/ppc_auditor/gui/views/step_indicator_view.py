"""
Step indicator showing progress through the six audit steps.
"""

import logging
from typing import Dict, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QWidget

from ...core.workflow import AuditStep

logger = logging.getLogger(__name__)

_STATE_STYLES = {
    "done": "color:#4338ca; font-weight:600; padding:6px;",
    "current": "color:#ffffff; background-color:#4f46e5; font-weight:700; padding:6px; border-radius:4px;",
    "upcoming": "color:#94a3b8; padding:6px;",
}


class StepIndicatorView(QWidget):
    """A row of numbered step labels; completed, current and upcoming steps are styled differently."""

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.labels: Dict[AuditStep, QLabel] = {}
        self.current_step = AuditStep.UPLOAD
        self._init_ui()
        self.set_current_step(AuditStep.UPLOAD)

    def _init_ui(self) -> None:
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)

        for step in AuditStep:
            label = QLabel(f"{step.ordinal}. {step.label}")
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            self.labels[step] = label
            layout.addWidget(label, 1)

    def set_current_step(self, step: AuditStep) -> None:
        self.current_step = step
        for other, label in self.labels.items():
            label.setStyleSheet(_STATE_STYLES[self.state_of(other)])
        logger.debug(f"Step indicator moved to {step.label}")

    def state_of(self, step: AuditStep) -> str:
        """Return 'done', 'current' or 'upcoming' for a step."""
        if step.ordinal < self.current_step.ordinal:
            return "done"
        if step is self.current_step:
            return "current"
        return "upcoming"
