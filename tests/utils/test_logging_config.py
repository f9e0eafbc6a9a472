import json
import logging

import pytest

from ppc_auditor.utils.logging_config import (
    JsonFormatter,
    configure_logging,
    correlation_id_var,
    log_performance,
    mask_sensitive_data,
    set_correlation_id,
)
from ppc_auditor.utils.settings import Settings


class TestConfigureLogging:
    def test_default_level_from_settings(self, restore_root_logger):
        configure_logging(Settings())

        assert restore_root_logger.level == logging.INFO
        handler = restore_root_logger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert "%(levelname)s" in handler.formatter._fmt

    def test_debug_settings(self, restore_root_logger):
        configure_logging(Settings(debug=True))

        assert restore_root_logger.level == logging.DEBUG

    def test_override_and_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "audit.log"

        configure_logging(Settings(), log_file=str(log_file), log_level_override="warning")

        assert restore_root_logger.level == logging.WARNING
        assert len(restore_root_logger.handlers) == 2
        assert log_file.parent.is_dir()

    def test_structured_output(self, restore_root_logger):
        configure_logging(Settings(), structured=True)

        assert all(isinstance(h.formatter, JsonFormatter) for h in restore_root_logger.handlers)

    def test_module_levels(self, restore_root_logger):
        configure_logging(Settings(), module_levels={"ppc_auditor.gui": "error"})

        gui_logger = logging.getLogger("ppc_auditor.gui")
        try:
            assert gui_logger.level == logging.ERROR
        finally:
            gui_logger.setLevel(logging.NOTSET)


class TestMaskSensitiveData:
    def test_masks_nested_keys(self):
        data = {
            "anthropic_api_key": "sk-123",
            "nested": {"Authorization": "Bearer x", "keep": 1},
            "items": [{"token": "t"}, "plain"],
        }

        masked = mask_sensitive_data(data)

        assert masked["anthropic_api_key"] == "***MASKED***"
        assert masked["nested"] == {"Authorization": "***MASKED***", "keep": 1}
        assert masked["items"] == [{"token": "***MASKED***"}, "plain"]

    def test_additional_patterns(self):
        assert mask_sensitive_data({"landing_page": "x"}, {"landing"}) == {
            "landing_page": "***MASKED***"
        }


class TestJsonFormatter:
    def test_format_includes_context_and_masks_extra(self):
        set_correlation_id("audit_test")
        record = logging.LogRecord("ppc_auditor", logging.INFO, __file__, 1, "hello", None, None)
        record.extra_data = {"openai_api_key": "sk-1", "step": "upload"}

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "hello"
        assert payload["correlation_id"] == "audit_test"
        assert payload["openai_api_key"] == "***MASKED***"
        assert payload["step"] == "upload"


class TestCorrelationId:
    def test_generated_when_missing(self):
        cid = set_correlation_id()

        assert cid.startswith("audit_")
        assert correlation_id_var.get() == cid


class TestLogPerformance:
    def test_logs_completion(self, caplog):
        @log_performance("demo.op")
        def work(value):
            return value * 2

        with caplog.at_level(logging.INFO):
            assert work(2) == 4

        assert "Completed demo.op" in caplog.text

    def test_logs_failure_and_reraises(self, caplog):
        @log_performance("demo.fail")
        def broken():
            raise ValueError("boom")

        with caplog.at_level(logging.INFO), pytest.raises(ValueError):
            broken()

        assert "Failed demo.fail" in caplog.text
