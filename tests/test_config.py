"""Unit tests for configuration management."""

import pytest
from pydantic import ValidationError

from xinsight.config import XinsightConfig, LogFormat


class TestXinsightConfigDefaults:
    """Test default configuration values."""

    def test_default_poll_interval(self):
        config = XinsightConfig()
        assert config.poll_interval_seconds == 5.0

    def test_no_default_deadline(self):
        config = XinsightConfig()
        assert config.poll_deadline_seconds is None

    def test_default_actor(self):
        config = XinsightConfig()
        assert config.actor_id == "web.harvester~twitter-scraper"
        assert config.apify_base_url == "https://api.apify.com/v2"

    def test_default_provider_input(self):
        config = XinsightConfig()
        assert config.proxy_groups == ["RESIDENTIAL"]
        assert config.replies_depth == 2

    def test_default_model(self):
        config = XinsightConfig()
        assert config.openai_model == "gpt-4o-mini"
        assert config.openai_temperature == 0.7

    def test_default_log_format(self):
        config = XinsightConfig()
        assert config.log_format == LogFormat.CONSOLE

    def test_no_credential_fields(self):
        fields = XinsightConfig.model_fields
        assert not any("token" in name or "key" in name for name in fields)


class TestXinsightConfigEnvVars:
    """Test configuration from environment variables."""

    def test_poll_interval_from_env(self, monkeypatch):
        monkeypatch.setenv("XINSIGHT_POLL_INTERVAL_SECONDS", "1.5")
        config = XinsightConfig()
        assert config.poll_interval_seconds == 1.5

    def test_deadline_from_env(self, monkeypatch):
        monkeypatch.setenv("XINSIGHT_POLL_DEADLINE_SECONDS", "600")
        config = XinsightConfig()
        assert config.poll_deadline_seconds == 600

    def test_model_from_env(self, monkeypatch):
        monkeypatch.setenv("XINSIGHT_OPENAI_MODEL", "gpt-4o")
        config = XinsightConfig()
        assert config.openai_model == "gpt-4o"

    def test_log_format_from_env(self, monkeypatch):
        monkeypatch.setenv("XINSIGHT_LOG_FORMAT", "json")
        config = XinsightConfig()
        assert config.log_format == LogFormat.JSON


class TestXinsightConfigValidation:
    """Test field validators."""

    def test_negative_interval_rejected(self):
        with pytest.raises(ValidationError):
            XinsightConfig(poll_interval_seconds=-1)

    def test_trailing_slash_stripped(self):
        config = XinsightConfig(apify_base_url="https://example.test/v2/")
        assert config.apify_base_url == "https://example.test/v2"


class TestLogFormatEnum:
    """Test LogFormat enum values."""

    def test_log_formats(self):
        assert LogFormat.JSON.value == "json"
        assert LogFormat.CONSOLE.value == "console"
