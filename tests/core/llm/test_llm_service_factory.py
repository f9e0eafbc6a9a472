"""
Tests for analysis service creation and LLM client detection.
"""

from unittest.mock import MagicMock, patch

import pytest

from ppc_auditor.core.errors import ConfigurationError
from ppc_auditor.core.llm import (
    LLMAnalysisService,
    LLMProvider,
    MockAnalysisService,
    create_analysis_service,
    detect_llm_client,
    determine_provider,
    get_provider_name,
)
from ppc_auditor.utils.settings import Settings

FACTORY = "ppc_auditor.core.llm.llm_service_factory"


class TestDetectLLMClient:
    def test_no_keys_returns_none(self):
        client, provider = detect_llm_client(Settings())

        assert client is None
        assert provider is None

    def test_prefers_anthropic_in_auto_mode(self):
        settings = Settings(anthropic_api_key="a-key", openai_api_key="o-key")

        with patch(f"{FACTORY}.anthropic.Anthropic") as anthropic_cls, patch(
            f"{FACTORY}.openai.OpenAI"
        ) as openai_cls:
            client, provider = detect_llm_client(settings)

        assert provider is LLMProvider.ANTHROPIC
        assert client is anthropic_cls.return_value
        anthropic_cls.assert_called_once_with(api_key="a-key", timeout=settings.llm_timeout)
        openai_cls.assert_not_called()

    def test_preferred_provider_goes_first(self):
        settings = Settings(anthropic_api_key="a-key", openai_api_key="o-key")

        with patch(f"{FACTORY}.anthropic.Anthropic"), patch(
            f"{FACTORY}.openai.OpenAI"
        ) as openai_cls:
            client, provider = detect_llm_client(settings, preferred_provider="openai")

        assert provider is LLMProvider.OPENAI
        assert client is openai_cls.return_value

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")

        with patch(f"{FACTORY}.openai.OpenAI") as openai_cls:
            _, provider = detect_llm_client(Settings())

        assert provider is LLMProvider.OPENAI
        openai_cls.assert_called_once_with(api_key="env-key", timeout=120)

    def test_no_fallback_when_disabled(self):
        settings = Settings(openai_api_key="o-key")

        with patch(f"{FACTORY}.openai.OpenAI") as openai_cls:
            client, provider = detect_llm_client(
                settings, preferred_provider="anthropic", fallback=False
            )

        assert client is None
        openai_cls.assert_not_called()


class TestCreateAnalysisService:
    def test_mock_provider(self):
        service = create_analysis_service(Settings(llm_provider="mock"))

        assert isinstance(service, MockAnalysisService)

    def test_provider_argument_overrides_settings(self):
        service = create_analysis_service(Settings(llm_provider="anthropic"), provider="mock")

        assert isinstance(service, MockAnalysisService)

    def test_missing_client_raises_configuration_error(self):
        with pytest.raises(ConfigurationError) as excinfo:
            create_analysis_service(Settings())

        assert excinfo.value.error_code == "CONFIG_001"

    def test_settings_flow_into_service(self):
        settings = Settings(
            llm_model="claude-custom",
            llm_timeout=30,
            max_tokens=1000,
            sanitize_model="small",
        )
        client = MagicMock(spec=["messages"])
        client.messages = MagicMock()

        service = create_analysis_service(settings, llm_client=client)

        assert isinstance(service, LLMAnalysisService)
        assert service.model_name["anthropic"] == "claude-custom"
        assert service.timeout_seconds == 30
        assert service.max_tokens == 1000
        assert service.sanitize_model == "small"


class TestProviderHelpers:
    def test_determine_provider(self):
        assert determine_provider(None) is LLMProvider.UNKNOWN
        assert determine_provider(object()) is LLMProvider.CUSTOM

    def test_provider_names(self):
        assert get_provider_name(LLMProvider.ANTHROPIC) == "Anthropic Claude"
        assert get_provider_name(LLMProvider.MOCK) == "Offline demo"
