"""
Tests for configuration module.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from gigachat_agent.config import Settings, validate_temperature


def test_settings_default_values():
    """Test that settings have sensible defaults."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

        assert settings.app_name == "GigaChat-Agent"
        assert settings.gigachat_scope == "GIGACHAT_API_PERS"
        assert settings.gigachat_model == "GigaChat"
        assert settings.temperature == 0.87
        assert settings.max_tokens == 1024
        assert settings.max_context_messages == 10
        assert settings.connect_timeout == 30.0
        assert settings.tool_server_port == 8080
        assert settings.tool_server_threads == 10
        assert settings.has_credentials is False


def test_settings_from_env():
    """Test loading settings from environment variables."""
    env = {
        "GIGACHAT_CLIENT_ID": "test_id",
        "GIGACHAT_CLIENT_SECRET": "test_secret",
        "GIGACHAT_MODEL": "GigaChat-Pro",
        "MAX_CONTEXT_MESSAGES": "6",
        "DISCOVER_REMOTE_TOOLS": "true",
    }

    with patch.dict(os.environ, env, clear=True):
        settings = Settings(_env_file=None)

        assert settings.gigachat_client_id == "test_id"
        assert settings.gigachat_client_secret == "test_secret"
        assert settings.gigachat_model == "GigaChat-Pro"
        assert settings.max_context_messages == 6
        assert settings.discover_remote_tools is True
        assert settings.has_credentials is True


def test_temperature_out_of_range_rejected():
    """Test that an out-of-range temperature fails validation."""
    with patch.dict(os.environ, {"TEMPERATURE": "2.5"}, clear=True):
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


def test_max_context_messages_lower_bound():
    """Test that tiny message limits are rejected."""
    with patch.dict(os.environ, {"MAX_CONTEXT_MESSAGES": "2"}, clear=True):
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


def test_validate_temperature_bounds():
    """Test the accepted temperature range is inclusive."""
    assert validate_temperature(0.0) == 0.0
    assert validate_temperature(2.0) == 2.0
    with pytest.raises(ValueError):
        validate_temperature(-0.1)
    with pytest.raises(ValueError):
        validate_temperature(2.01)


def test_get_gigachat_config():
    """Test building the transport configuration."""
    env = {
        "GIGACHAT_CLIENT_ID": "test_id",
        "GIGACHAT_CLIENT_SECRET": "test_secret",
        "CA_BUNDLE_PATH": "/etc/ssl/root.pem",
        "MAX_TOKENS": "512",
    }

    with patch.dict(os.environ, env, clear=True):
        config = Settings(_env_file=None).get_gigachat_config()

        assert config.client_id == "test_id"
        assert config.client_secret == "test_secret"
        assert config.ca_bundle_path == "/etc/ssl/root.pem"
        assert config.max_tokens == 512
        assert "chat/completions" in config.api_url
        assert "oauth" in config.token_url
