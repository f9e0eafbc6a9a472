"""
Builds the analysis service an audit runs against.

``llm_provider`` in the settings picks the backend:

* ``mock``: the offline demo service, no network, no key;
* ``anthropic`` / ``openai``: that provider only, failing if it has no key;
* ``auto``: Anthropic if a key is available, otherwise OpenAI.

A key is taken from the settings first, then from the provider's usual
environment variable (``ANTHROPIC_API_KEY``, ``OPENAI_API_KEY``).
"""

import logging
import os
from enum import Enum, auto
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

import anthropic
import openai

from ...utils.settings import Settings
from ..errors import ConfigurationError
from ..prompts.prompt_builder import PromptBuilder
from .analysis_service_protocol import AnalysisServiceProtocol
from .llm_analysis_service import LLMAnalysisService
from .mock_service import MockAnalysisService

logger = logging.getLogger(__name__)


class LLMProvider(Enum):
    ANTHROPIC = auto()
    OPENAI = auto()
    MOCK = auto()
    CUSTOM = auto()
    UNKNOWN = auto()


PROVIDER_NAMES = {
    LLMProvider.ANTHROPIC: "Anthropic Claude",
    LLMProvider.OPENAI: "OpenAI",
    LLMProvider.MOCK: "Offline demo",
    LLMProvider.CUSTOM: "Custom",
}


class _Backend(NamedTuple):
    settings_field: str
    env_var: str
    client_factory: Callable[[str, int], Any]


# Order is the auto-detection priority
_BACKENDS: Dict[LLMProvider, _Backend] = {
    LLMProvider.ANTHROPIC: _Backend(
        "anthropic_api_key",
        "ANTHROPIC_API_KEY",
        lambda key, timeout: anthropic.Anthropic(api_key=key, timeout=timeout),
    ),
    LLMProvider.OPENAI: _Backend(
        "openai_api_key",
        "OPENAI_API_KEY",
        lambda key, timeout: openai.OpenAI(api_key=key, timeout=timeout),
    ),
}


def get_provider_name(provider: LLMProvider) -> str:
    return PROVIDER_NAMES.get(provider, "Unknown")


def determine_provider(client: Any) -> LLMProvider:
    """Classify a client by the package its class comes from."""
    if client is None:
        return LLMProvider.UNKNOWN
    module = type(client).__module__.lower()
    if module.startswith("anthropic"):
        return LLMProvider.ANTHROPIC
    if module.startswith("openai"):
        return LLMProvider.OPENAI
    return LLMProvider.CUSTOM


def _api_key(provider: LLMProvider, settings: Settings) -> Optional[str]:
    backend = _BACKENDS[provider]
    return getattr(settings, backend.settings_field) or os.environ.get(backend.env_var)


def _candidates(preferred: str, fallback: bool) -> List[LLMProvider]:
    chosen = [p for p in _BACKENDS if p.name.lower() == preferred]
    if fallback or not chosen:
        chosen += [p for p in _BACKENDS if p not in chosen]
    return chosen


def detect_llm_client(
    settings: Optional[Settings] = None,
    preferred_provider: Optional[str] = None,
    fallback: bool = True,
) -> Tuple[Optional[Any], Optional[LLMProvider]]:
    """
    Create a client for the first provider that has an API key.

    Args:
        settings: Source of keys and the request timeout
        preferred_provider: Provider to try first; defaults to settings.llm_provider
        fallback: Also try the remaining providers after the preferred one

    Returns:
        (client, provider), or (None, None) when no provider could be set up
    """
    settings = settings or Settings()
    preferred = (preferred_provider or settings.llm_provider or "auto").lower()

    for provider in _candidates(preferred, fallback):
        key = _api_key(provider, settings)
        if not key:
            logger.debug(f"No API key for {get_provider_name(provider)}")
            continue
        try:
            client = _BACKENDS[provider].client_factory(key, settings.llm_timeout)
        except Exception as e:
            logger.warning(f"Could not create {get_provider_name(provider)} client: {e}")
            continue
        logger.info(f"Created {get_provider_name(provider)} client")
        return client, provider

    logger.warning(f"No language model client available (provider: {preferred})")
    return None, None


def create_analysis_service(
    settings: Optional[Settings] = None,
    provider: Optional[str] = None,
    llm_client: Optional[Any] = None,
) -> AnalysisServiceProtocol:
    """
    Create the analysis service the workflow controller will call.

    Args:
        settings: Application settings (defaults are used when omitted)
        provider: Provider name overriding settings.llm_provider
        llm_client: Ready-made client; skips detection when given

    Raises:
        ConfigurationError: If a hosted provider is wanted but no client can be made
    """
    settings = settings or Settings()
    provider_name = (provider or settings.llm_provider).lower()

    if provider_name == "mock":
        logger.info("Using the offline demo analysis service")
        return MockAnalysisService()

    if llm_client is None:
        llm_client, detected = detect_llm_client(
            settings, preferred_provider=provider_name, fallback=provider_name == "auto"
        )
        if llm_client is None:
            raise ConfigurationError(
                "No language model client available. Set ANTHROPIC_API_KEY or "
                "OPENAI_API_KEY, or use the 'mock' provider.",
                context={"llm_provider": provider_name},
            )
    else:
        detected = determine_provider(llm_client)

    # A single llm_model applies to whichever provider ends up serving the audit
    model_name = {}
    if settings.llm_model and settings.llm_model != "auto":
        model_key = "openai" if detected is LLMProvider.OPENAI else "anthropic"
        model_name[model_key] = settings.llm_model

    return LLMAnalysisService(
        prompt_builder=PromptBuilder(
            templates_dir=settings.prompt_templates_dir,
            max_prompt_size=settings.max_prompt_size,
        ),
        llm_client=llm_client,
        settings=settings,
        timeout_seconds=settings.llm_timeout,
        max_tokens=settings.max_tokens,
        model_name=model_name,
        sanitize_model=settings.sanitize_model,
        analysis_model=settings.analysis_model,
    )
