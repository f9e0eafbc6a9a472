"""
The QApplication for the audit wizard.

``core_settings`` holds the validated Settings shared with the CLI, read
from ppc-audit.yaml and the environment. The application identity set here
also names the QSettings store the main window keeps its geometry in.
"""

import logging
import sys
from typing import List, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QApplication

from ..__version__ import __version__
from ..utils.settings import Settings, load_settings

logger = logging.getLogger(__name__)

APP_NAME = "PPC Audit Analyst"
ORGANIZATION = "ppc-auditor"


class AuditApp(QApplication):
    def __init__(self, argv: List[str], settings: Optional[Settings] = None):
        super().__init__(argv)
        # QSettings() resolves its storage from these, so they are set first
        self.setApplicationName(APP_NAME)
        self.setApplicationVersion(__version__)
        self.setOrganizationName(ORGANIZATION)
        self.setStyle("Fusion")

        self.core_settings = settings if settings is not None else load_settings()
        logger.info(f"{APP_NAME} {__version__} using provider '{self.core_settings.llm_provider}'")


def create_app(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> AuditApp:
    """Build the application; HiDPI rounding must be chosen before it exists."""
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )
    return AuditApp(sys.argv if argv is None else argv, settings)
