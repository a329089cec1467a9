# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# Settings load in this priority order (highest first):
#   1. Environment variables (e.g., `LLM_MODEL=...`)
#   2. Values from the .env file
#   3. Default values defined below
#
# Settings are read once at startup and handed to components explicitly
# (see create_orchestrator()). Agents never import this module directly,
# so they can be constructed in tests without a running process.
#
# USAGE:
#   from site_analyst.config import settings
#   print(settings.llm_model)
# =============================================================================

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults target a local run against a LiteLLM proxy with a
    service-account `credentials.json` in the working directory.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "Site Analyst"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # LLM Configuration — Multi-Provider
    # -------------------------------------------------------------------------
    # Two provider types:
    #   - "openai_compatible": any OpenAI-protocol endpoint. The default
    #     deployment points this at a LiteLLM proxy fronting Gemini.
    #   - "anthropic": Claude via the native Anthropic SDK
    #
    # Example configs:
    #   LiteLLM:  provider=openai_compatible, base_url=http://litellm:4000, model=gemini-2.5-flash
    #   Claude:   provider=anthropic, model=claude-sonnet-4-6
    # -------------------------------------------------------------------------
    llm_provider: str = "openai_compatible"  # "openai_compatible" or "anthropic"
    llm_base_url: str | None = None
    llm_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("llm_api_key", "litellm_api_key"),
    )
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    llm_model: str = "gemini-2.5-flash"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 2000

    # Gateway retry policy: N attempts, backoff = initial * 2**attempt
    llm_max_attempts: int = 3
    llm_initial_backoff_seconds: float = 1.0

    # -------------------------------------------------------------------------
    # Google Data Sources
    # -------------------------------------------------------------------------
    # One service account serves both the GA4 Data API and Google Sheets.
    # The account must be granted Viewer on the GA4 property and read
    # access on the spreadsheet.
    # -------------------------------------------------------------------------
    google_credentials_file: str = "credentials.json"

    # Default Screaming Frog export used when a request has no spreadsheetId
    seo_spreadsheet_id: str | None = None

    # Keywords that route a query to the SEO agent when the classifier
    # reply is unusable and no GA4 property id was supplied.
    seo_fallback_keywords: list[str] = ["seo", "title", "meta"]

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache
def get_settings() -> Settings:
    """
    Create and cache a Settings instance.

    In tests, build a Settings(...) directly and pass it to
    create_orchestrator() instead of patching the environment.
    """
    return Settings()


settings = get_settings()
