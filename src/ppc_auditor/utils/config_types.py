# Pydantic models for the auditor settings. Kept apart from configuration.py so
# that modules needing only the types do not import the loading machinery.

from pathlib import Path
from typing import Any, Optional

from pydantic import (
    BaseModel,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

VALID_PROVIDERS = {"auto", "anthropic", "openai", "mock"}
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


# --- LLM Settings Model ---
class LLMSettings(BaseModel):
    """Configuration settings for the analysis service."""

    llm_provider: str = "auto"  # Provider to use (auto, anthropic, openai, mock)
    llm_model: str = "auto"  # Model to use (auto selects the provider default)
    sanitize_model: Optional[str] = None  # Model override for data sanitizing
    analysis_model: Optional[str] = None  # Model override for analysis and deep dive
    llm_timeout: int = 120  # Timeout for LLM requests in seconds
    max_tokens: int = 4096  # Maximum tokens in each response
    anthropic_api_key: Optional[str] = None  # Anthropic API key
    openai_api_key: Optional[str] = None  # OpenAI API key


# --- Main Settings Model ---
class Settings(BaseModel):
    """Configuration settings for the paid search auditor."""

    # LLM settings (flat, so they map one-to-one onto environment variables)
    llm_provider: str = "auto"
    llm_model: str = "auto"
    sanitize_model: Optional[str] = None
    analysis_model: Optional[str] = None
    llm_timeout: int = Field(default=120, gt=0)
    max_tokens: int = Field(default=4096, gt=0)
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    # Prompt settings
    prompt_templates_dir: Optional[Path] = None  # Directory of <name>_template.txt overrides
    max_prompt_size: int = Field(default=120000, gt=0)  # Maximum prompt size in characters

    # Report settings
    report_title: str = "Paid Search Audit Report"
    report_file_name: str = "paid_search_audit_report.pdf"
    export_dir: Path = Field(default_factory=Path.cwd)  # Default directory for exported reports

    # Logging settings
    log_level: str = "INFO"  # Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    debug: bool = False  # Shortcut for log_level=DEBUG

    @computed_field
    def llm(self) -> LLMSettings:
        """Return an LLMSettings instance from top-level settings for section-based access."""
        return LLMSettings(
            llm_provider=self.llm_provider,
            llm_model=self.llm_model,
            sanitize_model=self.sanitize_model,
            analysis_model=self.analysis_model,
            llm_timeout=self.llm_timeout,
            max_tokens=self.max_tokens,
            anthropic_api_key=self.anthropic_api_key,
            openai_api_key=self.openai_api_key,
        )

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        """Validate and normalize the provider name."""
        normalized = v.lower()
        if normalized not in VALID_PROVIDERS:
            raise ValueError(
                f"Invalid llm_provider: '{v}'. Must be one of {sorted(VALID_PROVIDERS)}"
            )
        return normalized

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        normalized = v.upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log_level: '{v}'")
        return normalized

    @field_validator("report_file_name")
    @classmethod
    def validate_report_file_name(cls, v: str) -> str:
        """The exported report is always a PDF."""
        if not v.lower().endswith(".pdf") or Path(v).name != v:
            raise ValueError(
                f"Invalid report_file_name: '{v}'. Must be a bare file name ending in '.pdf'"
            )
        return v

    @field_validator("export_dir", mode="before")
    @classmethod
    def ensure_export_dir_is_path(cls, v: Any) -> Path:
        """Ensure export_dir is a Path object, defaulting to CWD if None."""
        if v is None:
            return Path.cwd()
        return Path(v)

    @model_validator(mode="after")
    def sync_debug_and_log_level(self) -> "Settings":
        """Keep the debug flag and log_level consistent."""
        if self.debug and self.log_level != "DEBUG":
            self.log_level = "DEBUG"
        elif self.log_level == "DEBUG" and not self.debug:
            self.debug = True
        return self
