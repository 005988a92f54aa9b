"""CyberMoriarty configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    app_name: str = "CyberMoriarty"
    app_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # === LLM Providers ===
    llm_provider: Literal["openai", "anthropic"] = "openai"
    openai_api_key: SecretStr | None = Field(None, description="OpenAI API key")
    openai_model: str = "gpt-4o"
    anthropic_api_key: SecretStr | None = Field(None, description="Anthropic API key")
    anthropic_model: str = "claude-sonnet-4-20250514"
    assessment_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    report_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    llm_timeout_seconds: float = Field(
        default=60.0,
        ge=5.0,
        le=600.0,
        description="Upper bound on a single risk-analysis call",
    )

    # === NVD ===
    nvd_base_url: str = "https://services.nvd.nist.gov/rest/json/cves/2.0"
    nvd_api_key: SecretStr | None = None
    nvd_timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)

    # === Dashboard ===
    systems_protected: int = Field(default=42, ge=0)
    report_attribution: str = "CyberMoriarty AI"

    # === API server ===
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1, le=65535)

    @property
    def log_format(self) -> str:
        """Console output while developing, JSON everywhere else."""
        return "console" if self.app_env == "development" else "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
