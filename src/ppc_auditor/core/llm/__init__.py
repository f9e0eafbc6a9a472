"""Analysis service boundary: protocol, LLM-backed implementation and offline stub."""

from .analysis_service_protocol import AnalysisServiceProtocol
from .llm_analysis_service import LLMAnalysisService, error_context, strip_code_fences
from .llm_service_factory import (
    LLMProvider,
    create_analysis_service,
    detect_llm_client,
    determine_provider,
    get_provider_name,
)
from .mock_service import MockAnalysisService

__all__ = [
    "AnalysisServiceProtocol",
    "LLMAnalysisService",
    "LLMProvider",
    "MockAnalysisService",
    "create_analysis_service",
    "detect_llm_client",
    "determine_provider",
    "error_context",
    "get_provider_name",
    "strip_code_fences",
]
