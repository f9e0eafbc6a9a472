"""
Read-only display for step outputs: the sanitized table, the keyword
analysis and the final report.
"""

import logging
from typing import Optional

from PyQt6.QtWidgets import QLabel, QTextBrowser, QVBoxLayout, QWidget

from ...core.formatting import AnalysisFormatter, find_score_line

logger = logging.getLogger(__name__)


class AnalysisDisplayView(QWidget):
    """Widget rendering analysis text as styled HTML."""

    def __init__(self, title: str, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.formatter = AnalysisFormatter()
        self._source_text = ""

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.title_label = QLabel(f"<h2>{title}</h2>")
        layout.addWidget(self.title_label)

        self.text_browser = QTextBrowser()
        self.text_browser.setOpenExternalLinks(False)
        layout.addWidget(self.text_browser, 1)

    @property
    def source_text(self) -> str:
        """The text last shown, before HTML rendering."""
        return self._source_text

    @property
    def score_line(self) -> Optional[str]:
        return find_score_line(self._source_text)

    def show_analysis(self, text: Optional[str]) -> None:
        self._source_text = text or ""
        self.text_browser.setHtml(self.formatter.to_html(self._source_text))

    def show_table(self, table_text: Optional[str]) -> None:
        self._source_text = table_text or ""
        self.text_browser.setHtml(self.formatter.table_to_html(self._source_text))

    def clear(self) -> None:
        self._source_text = ""
        self.text_browser.clear()
