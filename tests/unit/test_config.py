"""
Unit tests for configuration module

These tests validate the defaults the relay falls back to and how
environment variables override them.
"""

import os
from unittest.mock import patch

import pytest

from domo_relay.core.config import Settings

# Mark all tests in this module as unit tests
pytestmark = pytest.mark.unit


class TestSettings:
    """Test application settings configuration"""

    def test_default_settings(self):
        """Test default configuration values"""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.DOMO_API_BASE == "https://api.domo.com"
        assert settings.DOMO_INSTANCE == "https://lionbridge.domo.com"
        assert settings.PORT == 4000
        assert settings.DOMO_TOKEN_SCOPE == "data dashboard user"
        assert settings.DATASET_WRITE_TIMEOUT == 120.0
        assert settings.SESSION_TTL_SECONDS == 3600
        assert settings.SESSION_SWEEP_INTERVAL_SECONDS == 3600
        assert settings.DEFAULT_USER_ID == "123"
        assert settings.DEFAULT_USER_NAME == "Deepak Yadav"
        assert settings.MAX_BODY_BYTES == 20 * 1024 * 1024

    def test_client_credentials_unset_by_default(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.DOMO_CLIENT_ID == ""
        assert not settings.has_client_credentials()

    def test_environment_overrides(self):
        env = {
            "DOMO_CLIENT_ID": "abc",
            "DOMO_CLIENT_SECRET": "xyz",
            "DOMO_API_BASE": "https://api.example.com/",
            "PORT": "8080",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        assert settings.has_client_credentials()
        assert settings.PORT == 8080
        assert settings.DOMO_API_BASE == "https://api.example.com/"

    def test_cors_origins_default(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.CORS_ORIGINS == ["*"]

    def test_cors_origins_comma_separated_parsing(self):
        parsed = Settings.parse_cors_origins("https://example.com, https://app.example.com")
        assert parsed == ["https://example.com", "https://app.example.com"]

    def test_cors_origins_json_parsing(self):
        parsed = Settings.parse_cors_origins('["https://example.com"]')
        assert parsed == ["https://example.com"]
