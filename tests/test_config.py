"""Tests for configuration management."""

import pytest
from pydantic import ValidationError

from moriarty.core.config import Settings


def test_settings_defaults():
    """Test default settings values."""
    settings = Settings(_env_file=None)

    assert settings.app_name == "CyberMoriarty"
    assert settings.llm_provider == "openai"
    assert settings.openai_model == "gpt-4o"
    assert settings.assessment_temperature == 0.1
    assert settings.report_temperature == 0.2
    assert settings.llm_timeout_seconds == 60.0
    assert settings.systems_protected == 42
    assert settings.report_attribution == "CyberMoriarty AI"
    assert settings.nvd_base_url == "https://services.nvd.nist.gov/rest/json/cves/2.0"


def test_log_format_follows_environment():
    assert Settings(_env_file=None, app_env="development").log_format == "console"
    assert Settings(_env_file=None, app_env="production").log_format == "json"


def test_unknown_provider_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, llm_provider="cohere")


def test_timeout_bounds():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, llm_timeout_seconds=1)

    with pytest.raises(ValidationError):
        Settings(_env_file=None, llm_timeout_seconds=1000)


def test_api_keys_are_secret():
    settings = Settings(_env_file=None, openai_api_key="sk-secret")
    assert "sk-secret" not in repr(settings)
    assert settings.openai_api_key.get_secret_value() == "sk-secret"


def test_settings_from_env(monkeypatch):
    """Settings should load from environment variables."""
    monkeypatch.setenv("LLM_PROVIDER", "anthropic")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-from-env")
    monkeypatch.setenv("SYSTEMS_PROTECTED", "7")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    settings = Settings(_env_file=None)
    assert settings.llm_provider == "anthropic"
    assert settings.anthropic_api_key.get_secret_value() == "sk-ant-from-env"
    assert settings.systems_protected == 7
    assert settings.log_level == "DEBUG"
