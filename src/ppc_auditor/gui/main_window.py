"""
Main window for the audit GUI.

This module contains the MainWindow class: a step indicator, the analyst
constraints banner and one page per audit step in a stacked widget.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from PyQt6.QtCore import QSettings, QSize, pyqtSlot
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QStackedWidget,
    QStatusBar,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from ..core.llm import AnalysisServiceProtocol
from ..core.workflow import AuditState, AuditStep
from .background.task_manager import TaskManager
from .controllers.audit_controller import AuditController
from .controllers.report_controller import ReportController
from .views.analysis_display_view import AnalysisDisplayView
from .views.step_indicator_view import StepIndicatorView
from .views.text_input_view import TextInputView
from .workflow.workflow_guide import ANALYST_CONSTRAINTS, WorkflowGuide

if TYPE_CHECKING:
    from .app import AuditApp

logger = logging.getLogger(__name__)

_BANNER_STYLE = (
    "background-color:#fffbeb; border:1px solid #fde68a; color:#92400e;"
    " padding:8px; border-radius:4px;"
)


class MainWindow(QMainWindow):
    """
    Main window for the audit GUI.

    The window only renders the workflow state; every user action goes
    through the AuditController.
    """

    def __init__(
        self, app: "AuditApp", analysis_service: Optional[AnalysisServiceProtocol] = None
    ):
        """
        Initialize the main window.

        Args:
            app: The application, providing core_settings and the version
            analysis_service: Service to use instead of the one configured in settings
        """
        super().__init__()
        self.app = app
        settings = app.core_settings

        self.task_manager = TaskManager(self)
        self.audit_controller = AuditController(
            settings, self.task_manager, analysis_service, parent=self
        )
        self.report_controller = ReportController(settings, parent=self)
        self.workflow_guide = WorkflowGuide(self)

        self.setWindowTitle("PPC Audit Analyst")
        self.resize(1100, 800)
        self.setMinimumSize(800, 600)
        self.setObjectName("MainWindow")

        self._init_ui()
        self._create_actions()
        self._create_menus()
        self._create_toolbars()
        self._create_statusbar()
        self._connect_signals()
        self._restore_state()

        self._render(self.audit_controller.state)
        logger.info("MainWindow initialized")

    def _init_ui(self) -> None:
        """Initialize the UI components."""
        self.central_widget = QWidget()
        self.setCentralWidget(self.central_widget)

        main_layout = QVBoxLayout(self.central_widget)
        main_layout.setContentsMargins(10, 10, 10, 10)
        main_layout.setSpacing(8)

        self.step_indicator = StepIndicatorView()
        main_layout.addWidget(self.step_indicator)

        self.constraints_banner = QLabel(ANALYST_CONSTRAINTS)
        self.constraints_banner.setWordWrap(True)
        self.constraints_banner.setStyleSheet(_BANNER_STYLE)
        main_layout.addWidget(self.constraints_banner)

        self.pages = QStackedWidget()
        self._page_index: Dict[AuditStep, int] = {}
        main_layout.addWidget(self.pages, 1)

        # Step 1
        self.keyword_input_view = TextInputView(
            "Upload Keyword Data",
            "Paste keyword performance data (CSV, TSV or copied table)...",
            "Analyze Data",
        )
        self._add_page(AuditStep.UPLOAD, self.keyword_input_view)

        # Step 2
        self.review_view = AnalysisDisplayView("Review Sanitized Data")
        self.approve_button = QPushButton("Approve && Analyze")
        self.reject_button = QPushButton("Reject && Re-upload")
        self._add_page(
            AuditStep.CLEANUP_REVIEW,
            self._with_buttons(self.review_view, self.reject_button, self.approve_button),
        )

        # Step 3
        self.analysis_view = AnalysisDisplayView("Keyword Performance Analysis")
        self.continue_button = QPushButton("Continue to Ad Copy")
        self._add_page(
            AuditStep.KEYWORD_ANALYSIS, self._with_buttons(self.analysis_view, self.continue_button)
        )

        # Step 4
        self.ad_copy_input_view = TextInputView(
            "Ad Copy", "Paste the current ad headlines and descriptions...", "Submit Ad Copy"
        )
        self._add_page(AuditStep.AD_COPY_REQUEST, self.ad_copy_input_view)

        # Step 5
        self.landing_page_input_view = TextInputView(
            "Landing Page Content",
            "Paste the landing page copy, offer and calls to action...",
            "Run Deep Dive",
        )
        self._add_page(AuditStep.LANDING_PAGE_REQUEST, self.landing_page_input_view)

        # Step 6
        self.report_view = AnalysisDisplayView("Optimization Report")
        self.download_button = QPushButton("Download PDF Report")
        self.new_audit_button = QPushButton("Start New Audit")
        self._add_page(
            AuditStep.FINAL_REPORT,
            self._with_buttons(self.report_view, self.new_audit_button, self.download_button),
        )

        self.busy_bar = QProgressBar()
        self.busy_bar.setRange(0, 0)
        self.busy_bar.setTextVisible(False)
        self.busy_bar.hide()
        main_layout.addWidget(self.busy_bar)

    def _add_page(self, step: AuditStep, widget: QWidget) -> None:
        self._page_index[step] = self.pages.addWidget(widget)

    @staticmethod
    def _with_buttons(view: QWidget, *buttons: QPushButton) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(view, 1)
        button_layout = QHBoxLayout()
        button_layout.addStretch(1)
        for button in buttons:
            button_layout.addWidget(button)
        layout.addLayout(button_layout)
        return page

    def _create_actions(self) -> None:
        """Create actions for menus and toolbars."""
        self.new_audit_action = QAction("Start &New Audit", self)
        self.new_audit_action.setShortcut(QKeySequence.StandardKey.New)
        self.new_audit_action.setStatusTip("Clear all data and return to the upload step")

        self.export_pdf_action = QAction("Download &PDF Report...", self)
        self.export_pdf_action.setShortcut(QKeySequence("Ctrl+E"))
        self.export_pdf_action.setStatusTip("Export the final report as PDF")

        self.exit_action = QAction("E&xit", self)
        self.exit_action.setShortcut(QKeySequence.StandardKey.Quit)
        self.exit_action.setStatusTip("Exit the application")
        self.exit_action.triggered.connect(self.close)

        self.about_action = QAction("&About", self)
        self.about_action.setShortcut(QKeySequence("F1"))
        self.about_action.triggered.connect(self.on_about)

    def _create_menus(self) -> None:
        self.file_menu = self.menuBar().addMenu("&File")
        self.file_menu.addAction(self.new_audit_action)
        self.file_menu.addAction(self.export_pdf_action)
        self.file_menu.addSeparator()
        self.file_menu.addAction(self.exit_action)

        self.help_menu = self.menuBar().addMenu("&Help")
        self.help_menu.addAction(self.about_action)

    def _create_toolbars(self) -> None:
        self.main_toolbar = QToolBar("Main")
        self.main_toolbar.setObjectName("MainToolbar")
        self.main_toolbar.setMovable(False)
        self.main_toolbar.setIconSize(QSize(24, 24))
        self.main_toolbar.addAction(self.new_audit_action)
        self.main_toolbar.addAction(self.export_pdf_action)
        self.addToolBar(self.main_toolbar)

    def _create_statusbar(self) -> None:
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

        self.status_label = QLabel("Ready")
        self.status_bar.addWidget(self.status_label, 1)

        provider = self.app.core_settings.llm_provider
        self.llm_status_label = QLabel(f"LLM: {provider}")
        self.status_bar.addPermanentWidget(self.llm_status_label)

    def _connect_signals(self) -> None:
        controller = self.audit_controller

        self.keyword_input_view.submitted.connect(controller.submit_keywords)
        self.approve_button.clicked.connect(controller.approve)
        self.reject_button.clicked.connect(controller.reject)
        self.continue_button.clicked.connect(controller.continue_to_ad_copy)
        self.ad_copy_input_view.submitted.connect(controller.submit_ad_copy)
        self.landing_page_input_view.submitted.connect(controller.submit_landing_page)
        self.new_audit_button.clicked.connect(controller.start_new_audit)
        self.new_audit_action.triggered.connect(controller.start_new_audit)
        self.download_button.clicked.connect(self.on_download_report)
        self.export_pdf_action.triggered.connect(self.on_download_report)

        controller.state_changed.connect(self._render)
        controller.busy_changed.connect(self._on_busy_changed)
        controller.request_failed.connect(self._on_request_failed)
        controller.audit_reset.connect(self._on_audit_reset)

        self.report_controller.report_exported.connect(self._on_report_exported)
        self.report_controller.export_failed.connect(self._on_export_failed)
        self.workflow_guide.guidance_updated.connect(self._on_guidance_updated)

    @pyqtSlot(object)
    def _render(self, state: AuditState) -> None:
        """Show the page and data for the given state."""
        self.step_indicator.set_current_step(state.step)
        self.pages.setCurrentIndex(self._page_index[state.step])

        self.review_view.show_table(state.sanitized_table)
        self.analysis_view.show_analysis(state.keyword_analysis_report)
        self.report_view.show_analysis(state.final_report)

        self._update_enabled(state.busy)
        self.workflow_guide.update_guidance(state.step, state.busy)

    def _update_enabled(self, busy: bool) -> None:
        has_report = bool(self.audit_controller.state.final_report)
        for button in (self.approve_button, self.reject_button, self.continue_button):
            button.setEnabled(not busy)
        for view in (
            self.keyword_input_view,
            self.ad_copy_input_view,
            self.landing_page_input_view,
        ):
            view.set_busy(busy)
        self.new_audit_action.setEnabled(not busy)
        self.new_audit_button.setEnabled(not busy)
        self.export_pdf_action.setEnabled(has_report and not busy)
        self.download_button.setEnabled(has_report and not busy)

    @pyqtSlot(bool)
    def _on_busy_changed(self, busy: bool) -> None:
        self.busy_bar.setVisible(busy)
        self._update_enabled(busy)
        self.workflow_guide.update_guidance(self.audit_controller.step, busy)

    @pyqtSlot(str, str)
    def _on_request_failed(self, title: str, message: str) -> None:
        QMessageBox.warning(self, title, message)

    @pyqtSlot()
    def _on_audit_reset(self) -> None:
        for view in (
            self.keyword_input_view,
            self.ad_copy_input_view,
            self.landing_page_input_view,
        ):
            view.clear()
        self.status_bar.showMessage("Started a new audit", 3000)

    @pyqtSlot(str, str)
    def _on_guidance_updated(self, message: str, tooltip: str) -> None:
        self.status_label.setText(message)
        self.status_label.setToolTip(tooltip)

    @pyqtSlot()
    def on_download_report(self) -> None:
        self.report_controller.export_with_dialog(self.audit_controller.state.final_report or "")

    @pyqtSlot(str)
    def _on_report_exported(self, file_path: str) -> None:
        self.status_bar.showMessage(f"Report saved to {file_path}", 5000)

    @pyqtSlot(str)
    def _on_export_failed(self, message: str) -> None:
        QMessageBox.warning(self, "Export Failed", message)

    def _restore_state(self) -> None:
        """Restore window state from settings."""
        settings = QSettings()
        if settings.contains("mainwindow/geometry"):
            self.restoreGeometry(settings.value("mainwindow/geometry"))
        if settings.contains("mainwindow/windowState"):
            self.restoreState(settings.value("mainwindow/windowState"))

    def closeEvent(self, event: Any) -> None:
        """
        Handle the window close event.

        Args:
            event: Close event
        """
        settings = QSettings()
        settings.setValue("mainwindow/geometry", self.saveGeometry())
        settings.setValue("mainwindow/windowState", self.saveState())
        self.task_manager.cleanup_all_tasks()
        event.accept()

    @pyqtSlot()
    def on_about(self) -> None:
        """Handle the About action."""
        QMessageBox.about(
            self,
            "About PPC Audit Analyst",
            f"""<b>PPC Audit Analyst</b> v{self.app.applicationVersion()}
            <p>A guided paid search audit: keyword data, ad copy and landing page
            reviewed together, exported as a PDF report.</p>
            """,
        )
