"""Configuration management for the BildGenerator backend.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the BILDGEN_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (BILDGEN_* prefix)
2. .env file in the project root
3. Default values defined in BildgenConfig

The default provider credential is the one exception to the prefix rule: it is
read from ``BILDGEN_API_KEY`` or, for compatibility with existing deployments,
from ``OPENROUTER_API_KEY``.

Example .env file:
    OPENROUTER_API_KEY=sk-or-...
    BILDGEN_SERVER_PORT=3001
    BILDGEN_CONTENT_DIR=uploads

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from bildgen.core.config import config

    print(config.content_dir)
    print(config.server_port)
"""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BildgenConfig(BaseSettings):
    """Main configuration for the generation gateway.

    Attributes
    ----------
    Provider Settings:
        api_key : str | None
            Fallback credential used when a caller does not supply one
        provider_url : str
            Chat-completion endpoint of the multimodal provider
        provider_referer : str
            Value of the ``HTTP-Referer`` header sent to the provider
        provider_title : str
            Value of the ``X-Title`` header sent to the provider
        default_model : str
            Model key used when a request names an unknown model
        provider_timeout : float
            Timeout in seconds for the generation call
        image_fetch_timeout : float
            Timeout in seconds for each remote image download

    Rate Limiting:
        rate_limit_window_ms : int
            Width of one fixed counting window
        rate_limit_max_requests : int
            Requests allowed per identity per window
        rate_limit_prune_interval_ms : int
            Minimum interval between sweeps of expired identities

    Storage:
        content_dir : Path
            Directory generated images are written to and served from
        content_url_prefix : str
            URL prefix the content directory is mounted under
        list_limit : int
            Maximum number of entries returned by the image listing

    Server:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn
        log_level : str
            Root log level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BILDGEN_",
        case_sensitive=False,
        extra="ignore",
    )

    # Provider settings
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("api_key", "BILDGEN_API_KEY", "OPENROUTER_API_KEY"),
        description="Default provider credential (fallback when the caller omits one)",
    )
    provider_url: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions",
        description="Chat-completion endpoint of the generation provider",
    )
    provider_referer: str = Field(default="http://localhost:3001")
    provider_title: str = Field(default="BildGenerator")
    default_model: str = Field(
        default="flux2-pro",
        description="Model key substituted for unknown or missing model keys",
    )
    provider_timeout: float = Field(default=120.0, gt=0)
    image_fetch_timeout: float = Field(default=60.0, gt=0)

    # Rate limiting
    rate_limit_window_ms: int = Field(default=60_000, ge=1)
    rate_limit_max_requests: int = Field(default=10, ge=1)
    rate_limit_prune_interval_ms: int = Field(default=60_000, ge=0)

    # Storage
    content_dir: Path = Field(
        default=Path("uploads"),
        description="Directory to save generated images",
    )
    content_url_prefix: str = Field(default="/uploads")
    list_limit: int = Field(default=50, ge=1)

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=3001,
        description="Server port",
        ge=1,
        le=65535,
    )
    log_level: str = Field(default="INFO")

    def __init__(self, **kwargs):
        """Initialize configuration and create the content directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.content_dir.mkdir(parents=True, exist_ok=True)


# Global configuration instance, loaded from BILDGEN_* variables and .env.
config = BildgenConfig()
