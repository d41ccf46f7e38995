"""
Configuration management using Pydantic Settings.

Values come from the environment (prefix ``AUTOFLOW_``) or a ``.env`` file in
the working directory.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when the runtime configuration cannot support a requested component."""
    pass


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AUTOFLOW_",
        env_file=".env",
        extra="ignore",
    )

    # Application
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        description="stdlib logging format string",
    )

    # LLM provider
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_base_url: Optional[str] = Field(default=None, description="Override for OpenAI-compatible endpoints")
    llm_model: str = Field(default="gpt-4")
    llm_max_tokens: int = Field(default=500, ge=1)
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_presence_penalty: float = Field(default=0.1, ge=-2.0, le=2.0)
    llm_frequency_penalty: float = Field(default=0.1, ge=-2.0, le=2.0)
    llm_timeout_seconds: float = Field(default=30.0, gt=0, description="Bound on a single LLM call")
    llm_history_window: int = Field(default=5, ge=0, description="History turns sent with each request")

    # Sessions
    session_ttl_seconds: int = Field(default=86400, ge=1, description="Idle time before a session is evicted")
    session_max_sessions: int = Field(default=10000, ge=1, description="Capacity before LRU eviction")

    # Session defaults
    default_industry: str = "geral"
    default_organization_size: Literal["micro", "small", "medium"] = "small"
    default_integrations: List[str] = Field(
        default_factory=lambda: ["whatsapp_business", "email", "pix_mercado_pago", "google_sheets"]
    )
    default_timezone: str = "America/Sao_Paulo"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
