"""
Test configuration for GUI tests.

This module contains fixtures and configuration for testing GUI components.
"""

import os
from collections.abc import Generator
from types import SimpleNamespace
from typing import Any

import pytest

# Run without a display server
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

pytest.importorskip("PyQt6.QtWidgets")
pytest.importorskip("pytestqt")

from pytestqt.plugin import QtBot  # noqa: E402

from ppc_auditor.__version__ import __version__  # noqa: E402
from ppc_auditor.gui.app import AuditApp  # noqa: E402
from ppc_auditor.gui.background import TaskManager  # noqa: E402
from ppc_auditor.gui.main_window import MainWindow  # noqa: E402
from ppc_auditor.utils.settings import Settings  # noqa: E402


@pytest.fixture(scope="session")
def qapp_cls():
    """Make pytest-qt create the application as an AuditApp."""
    return AuditApp


@pytest.fixture(scope="session")
def qapp_args():
    return ["ppc-audit-gui"]


@pytest.fixture
def gui_settings(tmp_path) -> Settings:
    return Settings(llm_provider="mock", export_dir=tmp_path / "exports")


@pytest.fixture
def stub_app(gui_settings) -> Any:
    """The parts of AuditApp that MainWindow reads."""
    return SimpleNamespace(core_settings=gui_settings, applicationVersion=lambda: __version__)


@pytest.fixture
def task_manager(qapp) -> Generator[TaskManager, None, None]:
    manager = TaskManager()
    yield manager
    manager.cleanup_all_tasks()


@pytest.fixture
def main_window(qapp, qtbot: QtBot, stub_app, mock_service) -> Generator[MainWindow, None, None]:
    """
    Create and yield a MainWindow wired to the mock analysis service.
    """
    window = MainWindow(stub_app, analysis_service=mock_service)
    qtbot.add_widget(window)
    with qtbot.waitExposed(window):
        window.show()
    yield window
    window.task_manager.cleanup_all_tasks()
