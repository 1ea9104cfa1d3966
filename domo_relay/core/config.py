"""
Application configuration using Pydantic Settings.

Configuration values can be set via environment variables or .env file.
"""

import json
from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "Domo Relay"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    DEV_MODE: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 4000

    # Domo platform credentials and endpoints
    DOMO_CLIENT_ID: str = ""
    DOMO_CLIENT_SECRET: str = ""
    DOMO_API_BASE: str = "https://api.domo.com"
    DOMO_INSTANCE: str = "https://lionbridge.domo.com"

    # OAuth scopes requested for each kind of token
    DOMO_TOKEN_SCOPE: str = "data dashboard user"
    DOMO_PASSTHROUGH_SCOPE: str = "data user"
    DOMO_EMBED_SCOPE: str = "data user dashboard"
    ACQUIRE_TOKEN_ON_STARTUP: bool = True

    # Card embedding
    EMBED_BASE_URL: str = "https://embed.domo.com"
    EMBED_DOMAIN: str = "localhost"

    # Outbound timeouts (seconds)
    UPSTREAM_TIMEOUT: float = 30.0
    DATASET_WRITE_TIMEOUT: float = 120.0

    # Inbound requests
    CORS_ORIGINS: Union[List[str], str] = ["*"]
    MAX_BODY_BYTES: int = 20 * 1024 * 1024

    # Session store
    SESSION_TTL_SECONDS: int = 3600
    SESSION_SWEEP_INTERVAL_SECONDS: int = 3600
    DEFAULT_USER_ID: str = "123"
    DEFAULT_USER_NAME: str = "Deepak Yadav"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Accept a JSON list or a comma-separated string of origins."""
        if isinstance(v, list):
            return v
        try:
            parsed = json.loads(v)
        except (TypeError, ValueError):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(parsed, list):
            return [str(origin) for origin in parsed]
        return [str(parsed)]

    def has_client_credentials(self) -> bool:
        """Whether both halves of the client-credentials pair are configured."""
        return bool(self.DOMO_CLIENT_ID and self.DOMO_CLIENT_SECRET)


# Global settings instance
settings = Settings()
