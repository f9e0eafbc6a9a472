"""
Tests for the LLM-backed analysis service.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from ppc_auditor.core.errors import AnalysisServiceError
from ppc_auditor.core.llm import (
    AnalysisServiceProtocol,
    LLMAnalysisService,
    error_context,
    strip_code_fences,
)
from ppc_auditor.core.prompts import PromptBuilder


def anthropic_client(text: str) -> MagicMock:
    client = MagicMock(spec=["messages"])
    client.messages = MagicMock()
    client.messages.create.return_value = SimpleNamespace(
        content=[SimpleNamespace(text=text)]
    )
    return client


def openai_client(text: str) -> MagicMock:
    client = MagicMock(spec=["chat"])
    client.chat = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))]
    )
    return client


class TestStripCodeFences:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("a,b\n1,2", "a,b\n1,2"),
            ("  a,b\n1,2  \n", "a,b\n1,2"),
            ("```csv\na,b\n1,2\n```", "a,b\n1,2"),
            ("```\na,b\n```", "a,b"),
        ],
    )
    def test_strip(self, raw, expected):
        assert strip_code_fences(raw) == expected


class TestErrorContext:
    def test_wraps_foreign_exceptions(self):
        with pytest.raises(AnalysisServiceError) as excinfo:
            with error_context(AnalysisServiceError, "Call failed"):
                raise ValueError("bad")

        assert "Call failed: bad" in str(excinfo.value)
        assert isinstance(excinfo.value.original_exception, ValueError)

    def test_passes_own_type_through(self):
        original = AnalysisServiceError("already wrapped")

        with pytest.raises(AnalysisServiceError) as excinfo:
            with error_context(AnalysisServiceError, "Call failed"):
                raise original

        assert excinfo.value is original


class TestLLMAnalysisService:
    def test_satisfies_protocol(self):
        service = LLMAnalysisService(llm_client=anthropic_client("x"))

        assert isinstance(service, AnalysisServiceProtocol)

    def test_sanitize_uses_formatter_prompt_and_strips_fences(self):
        # Arrange
        client = anthropic_client("```csv\nKeyword,Clicks\nshoe,40\n```")
        service = LLMAnalysisService(llm_client=client, sanitize_model="small-model")

        # Act
        result = service.sanitize("kw,clicks\nshoe,40")

        # Assert
        assert result == "Keyword,Clicks\nshoe,40"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "small-model"
        assert kwargs["system"] == PromptBuilder().formatter_system_prompt
        assert "kw,clicks\nshoe,40" in kwargs["messages"][0]["content"]

    def test_analyze_uses_analyst_prompt_and_default_model(self):
        client = anthropic_client("  # Keyword Performance Analysis\n")
        service = LLMAnalysisService(llm_client=client)

        result = service.analyze("Keyword,Clicks\nshoe,40")

        assert result == "# Keyword Performance Analysis"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-3-5-sonnet-latest"
        assert kwargs["system"] == PromptBuilder().analyst_system_prompt

    def test_deep_dive_with_openai_client(self):
        client = openai_client("# Deep Dive\nOverall Performance Score: 7/10")
        service = LLMAnalysisService(llm_client=client, analysis_model="gpt-4o-mini")

        result = service.deep_dive("table", "Buy Shoes Now", "Shoes for everyone")

        assert result.endswith("7/10")
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        system, user = kwargs["messages"]
        assert system["role"] == "system"
        assert "Buy Shoes Now" in user["content"]
        assert "Shoes for everyone" in user["content"]

    def test_client_errors_become_analysis_errors(self):
        client = anthropic_client("")
        client.messages.create.side_effect = TimeoutError("too slow")
        service = LLMAnalysisService(llm_client=client)

        with pytest.raises(AnalysisServiceError) as excinfo:
            service.analyze("table")

        assert excinfo.value.error_code == "LLM_001"
        assert isinstance(excinfo.value.original_exception, TimeoutError)

    def test_without_client_raises(self, monkeypatch):
        monkeypatch.setattr(
            "ppc_auditor.core.llm.llm_service_factory.detect_llm_client",
            lambda settings: (None, None),
        )
        service = LLMAnalysisService()

        with pytest.raises(AnalysisServiceError):
            service.sanitize("data")

    def test_model_name_override_per_provider(self):
        client = anthropic_client("ok")
        service = LLMAnalysisService(llm_client=client, model_name={"anthropic": "claude-x"})

        service.analyze("table")

        assert client.messages.create.call_args.kwargs["model"] == "claude-x"
