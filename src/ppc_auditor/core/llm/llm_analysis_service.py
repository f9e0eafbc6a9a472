"""
Synchronous analysis service backed by a hosted language model.

Prompts come from PromptBuilder; requests go to an Anthropic or OpenAI client,
picked from the client passed in or detected from the settings.
"""

import contextlib
import logging
import re
from typing import Any, Callable, Dict, Optional, Type

from ...utils.logging_config import log_performance
from ...utils.settings import Settings
from ..errors import AnalysisServiceError
from ..prompts.prompt_builder import PromptBuilder
from .analysis_service_protocol import AnalysisServiceProtocol

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "anthropic": "claude-3-5-sonnet-latest",
    "openai": "gpt-4o",
}

_CODE_FENCE = re.compile(r"^```[\w-]*\s*\n?(.*?)\n?```$", re.DOTALL)


@contextlib.contextmanager
def error_context(error_type: Type[Exception], error_message: str):
    """
    Re-raise anything but ``error_type`` as ``error_type``.

    Provider SDKs raise their own exception types; callers above this layer
    only ever see AnalysisServiceError.
    """
    try:
        yield
    except error_type:
        raise
    except Exception as e:
        logger.error(f"{error_message}: {str(e)}")
        raise error_type(f"{error_message}: {str(e)}", original_exception=e) from e


def strip_code_fences(text: str) -> str:
    """Remove surrounding whitespace and a wrapping markdown code fence."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


class LLMAnalysisService(AnalysisServiceProtocol):
    """
    Runs the audit operations against a hosted language model.
    """

    def __init__(
        self,
        prompt_builder: Optional[PromptBuilder] = None,
        llm_client: Optional[Any] = None,
        settings: Optional[Settings] = None,
        timeout_seconds: int = 120,
        max_tokens: int = 4096,
        model_name: Optional[Dict[str, str]] = None,
        sanitize_model: Optional[str] = None,
        analysis_model: Optional[str] = None,
    ):
        """
        Initialize the LLMAnalysisService.

        Args:
            prompt_builder: Component for building prompts
            llm_client: Pre-configured Anthropic or OpenAI client
            settings: Optional application settings
            timeout_seconds: Timeout for LLM API requests
            max_tokens: Maximum tokens in each response
            model_name: Model names per provider (e.g., {"openai": "gpt-4o"})
            sanitize_model: Model used for the sanitize step, overriding model_name
            analysis_model: Model used for analysis and deep dive, overriding model_name
        """
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.llm_client = llm_client
        self.settings = settings
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens
        self.model_name = {**DEFAULT_MODELS, **(model_name or {})}
        self.sanitize_model = sanitize_model
        self.analysis_model = analysis_model

        self._llm_request_func = self._get_llm_request_function()

        if not self._llm_request_func:
            logger.warning(
                "No usable LLM client configured for LLMAnalysisService. "
                "Provide an Anthropic or OpenAI client."
            )

    def send_prompt(self, prompt: str, system_prompt: str, model: Optional[str] = None) -> str:
        """
        Send a prompt to the LLM and get the response.

        Args:
            prompt: The user prompt
            system_prompt: System instruction for the model
            model: Optional model name overriding the provider default

        Returns:
            The LLM's response as a string

        Raises:
            AnalysisServiceError: If there's an error communicating with the LLM
        """
        if not self._llm_request_func:
            raise AnalysisServiceError("No LLM request function configured")

        with error_context(AnalysisServiceError, "Failed to send prompt to language model"):
            return self._llm_request_func(prompt, system_prompt, model)

    @log_performance("llm.sanitize")
    def sanitize(self, raw_text: str) -> str:
        prompt = self.prompt_builder.build_sanitize_prompt(raw_text)
        response = self.send_prompt(
            prompt, self.prompt_builder.formatter_system_prompt, self.sanitize_model
        )
        return strip_code_fences(response)

    @log_performance("llm.analyze")
    def analyze(self, structured_text: str) -> str:
        prompt = self.prompt_builder.build_analysis_prompt(structured_text)
        response = self.send_prompt(
            prompt, self.prompt_builder.analyst_system_prompt, self.analysis_model
        )
        return response.strip()

    @log_performance("llm.deep_dive")
    def deep_dive(
        self, keywords_text: str, ad_copy_text: str, landing_page_text: str
    ) -> str:
        prompt = self.prompt_builder.build_deep_dive_prompt(
            keywords_text, ad_copy_text, landing_page_text
        )
        response = self.send_prompt(
            prompt, self.prompt_builder.analyst_system_prompt, self.analysis_model
        )
        return response.strip()

    def _get_llm_request_function(self) -> Optional[Callable[[str, str, Optional[str]], str]]:
        """Pick the request function matching the client: Messages API or Chat Completions."""
        if self.llm_client is None:
            from .llm_service_factory import detect_llm_client

            self.llm_client, _ = detect_llm_client(self.settings or Settings())
            if self.llm_client is None:
                return None

        client_module_name = self.llm_client.__class__.__module__.lower()

        if "anthropic" in client_module_name and hasattr(self.llm_client, "messages"):
            return self._request_with_anthropic
        elif "openai" in client_module_name and hasattr(self.llm_client, "chat"):
            return self._request_with_openai
        elif hasattr(self.llm_client, "messages"):
            return self._request_with_anthropic
        elif hasattr(self.llm_client, "chat"):
            return self._request_with_openai

        logger.warning(
            f"Provided LLM client type ({client_module_name}) is not supported."
        )
        return None

    def _request_with_anthropic(
        self, prompt: str, system_prompt: str, model: Optional[str] = None
    ) -> str:
        """
        Make a request with the Anthropic Messages API.

        Raises:
            Exception: If there's an error with the request
        """
        try:
            message = self.llm_client.messages.create(
                model=model or self.model_name["anthropic"],
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": prompt}],
                timeout=self.timeout_seconds,
            )
            parts = [
                block.text
                for block in (message.content or [])
                if getattr(block, "text", None)
            ]
            return "".join(parts)
        except Exception as e:
            logger.error(f"Error making request with Anthropic API: {e}")
            raise

    def _request_with_openai(
        self, prompt: str, system_prompt: str, model: Optional[str] = None
    ) -> str:
        """
        Make a request with the OpenAI chat completions API.

        Raises:
            Exception: If there's an error with the request
        """
        try:
            completion = self.llm_client.chat.completions.create(
                model=model or self.model_name["openai"],
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                timeout=self.timeout_seconds,
            )
            if completion.choices and completion.choices[0].message:
                return completion.choices[0].message.content or ""
            return ""
        except Exception as e:
            logger.error(f"Error making request with OpenAI API: {e}")
            raise
