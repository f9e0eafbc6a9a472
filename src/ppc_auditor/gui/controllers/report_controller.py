"""Report controller for exporting the final audit report as PDF."""

from pathlib import Path
from typing import List, Optional, Union

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QFileDialog, QWidget

from ...core.errors import ReportExportError
from ...core.export import export_report
from ...utils.settings import Settings
from .base_controller import BaseController


class ReportController(BaseController):
    """Controller for the "Download PDF Report" action."""

    report_exported = pyqtSignal(str)  # file_path
    export_failed = pyqtSignal(str)  # error message

    def __init__(self, settings: Settings, parent: Optional[QWidget] = None):
        super().__init__(settings, parent)
        self.parent_widget = parent
        self._recent_reports: List[str] = []

    def default_export_path(self) -> Path:
        return Path(self.settings.export_dir) / self.settings.report_file_name

    def export(self, report_text: str, output_path: Union[str, Path]) -> Optional[Path]:
        """
        Write the report to output_path.

        Returns:
            The written path, or None if the export failed
        """
        try:
            path = export_report(
                report_text, output_path=output_path, title=self.settings.report_title
            )
        except ReportExportError as e:
            self.handle_error("Failed to export report", e)
            self.export_failed.emit(str(e))
            return None

        path_str = str(path)
        if path_str in self._recent_reports:
            self._recent_reports.remove(path_str)
        self._recent_reports.insert(0, path_str)
        self._recent_reports = self._recent_reports[:10]

        self.report_exported.emit(path_str)
        return path

    def export_with_dialog(self, report_text: str) -> Optional[Path]:
        """Ask for a destination and export. Returns None if the dialog is cancelled."""
        if not report_text:
            self.export_failed.emit("No report available for export.")
            return None

        file_path, _ = QFileDialog.getSaveFileName(
            self.parent_widget,
            "Download PDF Report",
            str(self.default_export_path()),
            "PDF Files (*.pdf)",
        )
        if not file_path:
            return None
        return self.export(report_text, file_path)

    def get_recent_reports(self) -> List[str]:
        """Get list of recently exported reports."""
        return self._recent_reports.copy()
