"""Unit tests for environment-driven settings."""

import logging

from spm.config import SpmConfig


class TestSpmConfig:
    """Test settings read from the environment."""

    def test_timeout_unset(self, monkeypatch):
        monkeypatch.delenv("SPM_HTTP_TIMEOUT", raising=False)
        assert SpmConfig().http_timeout is None

    def test_timeout_seconds(self, monkeypatch):
        monkeypatch.setenv("SPM_HTTP_TIMEOUT", " 2.5 ")
        assert SpmConfig().http_timeout == 2.5

    def test_malformed_timeout_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("SPM_HTTP_TIMEOUT", "abc")

        with caplog.at_level(logging.WARNING, logger="spm.config"):
            settings = SpmConfig()

        assert settings.http_timeout is None
        assert "Ignoring SPM_HTTP_TIMEOUT='abc'" in caplog.text

    def test_api_url_trailing_slash(self, monkeypatch):
        monkeypatch.setenv("SPM_GITHUB_API_URL", "https://ghe.example.com/api/v3/")
        assert SpmConfig().github_api_url == "https://ghe.example.com/api/v3"
