"""Tests for bildgen.core.config — configuration management.

Tests cover:
- Default values for all configuration fields.
- Environment variable overrides via the BILDGEN_ prefix.
- The OPENROUTER_API_KEY fallback for the provider credential.
- Automatic content directory creation on initialisation.
- Pydantic validation constraints.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from bildgen.core.config import BildgenConfig


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable that could leak into a config under test."""
    for name in (
        "API_KEY",
        "OPENROUTER_API_KEY",
        "BILDGEN_API_KEY",
        "BILDGEN_SERVER_PORT",
        "BILDGEN_SERVER_HOST",
        "BILDGEN_DEFAULT_MODEL",
        "BILDGEN_RATE_LIMIT_MAX_REQUESTS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfigDefaults:
    """Verify that BildgenConfig provides sensible defaults."""

    def test_defaults(self, clean_env, temp_dir):
        cfg = BildgenConfig(_env_file=None, content_dir=temp_dir / "uploads")
        assert cfg.api_key is None
        assert cfg.server_host == "0.0.0.0"
        assert cfg.server_port == 3001
        assert cfg.default_model == "flux2-pro"
        assert cfg.content_url_prefix == "/uploads"
        assert cfg.list_limit == 50

    def test_rate_limit_defaults(self, test_config: BildgenConfig):
        assert test_config.rate_limit_window_ms == 60_000
        assert test_config.rate_limit_max_requests == 10

    def test_provider_defaults(self, clean_env, temp_dir):
        cfg = BildgenConfig(_env_file=None, content_dir=temp_dir / "uploads")
        assert cfg.provider_url == "https://openrouter.ai/api/v1/chat/completions"
        assert cfg.provider_title == "BildGenerator"
        assert cfg.provider_timeout > 0
        assert cfg.image_fetch_timeout > 0


class TestConfigEnvironment:
    """Environment variable overrides."""

    def test_prefixed_override(self, clean_env, temp_dir):
        clean_env.setenv("BILDGEN_SERVER_PORT", "8080")
        clean_env.setenv("BILDGEN_RATE_LIMIT_MAX_REQUESTS", "3")
        cfg = BildgenConfig(_env_file=None, content_dir=temp_dir / "uploads")
        assert cfg.server_port == 8080
        assert cfg.rate_limit_max_requests == 3

    def test_openrouter_key_fallback(self, clean_env, temp_dir):
        clean_env.setenv("OPENROUTER_API_KEY", "sk-or-test")
        cfg = BildgenConfig(_env_file=None, content_dir=temp_dir / "uploads")
        assert cfg.api_key == "sk-or-test"

    def test_prefixed_key(self, clean_env, temp_dir):
        clean_env.setenv("BILDGEN_API_KEY", "sk-bild")
        cfg = BildgenConfig(_env_file=None, content_dir=temp_dir / "uploads")
        assert cfg.api_key == "sk-bild"

    def test_content_dir_from_env(self, clean_env, temp_dir):
        clean_env.setenv("BILDGEN_CONTENT_DIR", str(temp_dir / "from-env"))
        cfg = BildgenConfig(_env_file=None)
        assert cfg.content_dir == temp_dir / "from-env"


class TestConfigDirectoryCreation:
    """Verify that BildgenConfig creates the content directory."""

    def test_content_dir_created(self, test_config: BildgenConfig):
        assert test_config.content_dir.is_dir()

    def test_nested_content_dir_created(self, temp_dir):
        cfg = BildgenConfig(_env_file=None, content_dir=temp_dir / "a" / "b" / "c")
        assert cfg.content_dir.is_dir()


class TestConfigValidation:
    """Pydantic validation constraints."""

    def test_port_out_of_range(self, temp_dir):
        with pytest.raises(ValidationError):
            BildgenConfig(_env_file=None, content_dir=temp_dir, server_port=70000)

    def test_zero_requests_rejected(self, temp_dir):
        with pytest.raises(ValidationError):
            BildgenConfig(_env_file=None, content_dir=temp_dir, rate_limit_max_requests=0)
