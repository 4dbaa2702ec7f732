"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Liora"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Databricks AI Gateway (optional question polish and memo prose)
    databricks_host: str = ""
    databricks_token: str = ""

    # Model endpoints
    gemini_pro_endpoint: str = "/serving-endpoints/databricks-gemini-3-pro/invocations"
    gemini_flash_endpoint: str = "/serving-endpoints/databricks-gemini-flash/invocations"
    llm_timeout_seconds: float = 60.0
    polish_questions: bool = True

    # Langfuse tracing
    langfuse_enabled: bool = False
    langfuse_secret_key: str = ""
    langfuse_public_key: str = ""
    langfuse_base_url: str = "https://cloud.langfuse.com"

    # Interview settings
    default_time_limit_minutes: int = 10
    max_session_minutes: int = 60
    total_estimated_questions: int = 10
    max_questions: int = 15

    # Memory manager
    memory_compression_threshold: int = 8000  # tokens
    memory_context_window: int = 20  # entries kept verbatim after compression
    memory_max_entries: int = 50
    memory_optimize_after_minutes: int = 30

    # RAG backend (empty endpoint = built-in mock data)
    rag_api_endpoint: str = ""
    rag_api_key: str = ""
    rag_timeout_seconds: float = 5.0
    rag_knowledge_base_max_entries: int = 200  # per session

    # Agents
    agent_max_retries: int = 3

    # CORS - stored as comma-separated string in env
    # Uses validation_alias to read from CORS_ORIGINS env var
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @computed_field
    @property
    def llm_enabled(self) -> bool:
        """Whether the LLM gateway is configured."""
        return bool(self.databricks_host and self.databricks_token)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
