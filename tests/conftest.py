"""Pytest configuration for the ppc_auditor tests."""

import logging

import pytest

from ppc_auditor.core.llm import MockAnalysisService
from ppc_auditor.core.workflow import AuditWorkflowController
from ppc_auditor.utils import settings as settings_module

SAMPLE_KEYWORDS = "kw,impr,clicks\nshoe,1000,40"
SAMPLE_AD_COPY = "Buy Shoes Now"
SAMPLE_LANDING_PAGE = "Shoes for everyone"


# Register custom markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "gui: mark test as requiring a Qt GUI")


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from real config files, API keys and the settings singleton."""
    for name in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "PPC_AUDIT_PROFILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings_module, "_config_manager_instance", None)


@pytest.fixture
def mock_service():
    return MockAnalysisService()


@pytest.fixture
def controller(mock_service):
    return AuditWorkflowController(mock_service)


@pytest.fixture
def sample_inputs():
    return {
        "keywords": SAMPLE_KEYWORDS,
        "ad_copy": SAMPLE_AD_COPY,
        "landing_page": SAMPLE_LANDING_PAGE,
    }


@pytest.fixture
def restore_root_logger():
    """Undo handler and level changes made by configure_logging."""
    root_logger = logging.getLogger()
    handlers, level = root_logger.handlers[:], root_logger.level
    yield root_logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)
