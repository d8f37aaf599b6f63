"""Tests for boxkit.core.config.BoxkitSettings."""

from __future__ import annotations

import logging

import pytest

from boxkit.core.config import BoxkitSettings
from boxkit.core.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_REF


@pytest.mark.usefixtures("clean_env")
class TestBoxkitSettingsFromEnv:
    def test_defaults(self) -> None:
        settings = BoxkitSettings.from_env()

        assert settings == BoxkitSettings(github_token=None, default_ref=DEFAULT_REF, timeout=DEFAULT_HTTP_TIMEOUT)
        assert settings.auth_headers() == {}

    def test_cli_token_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GH_TOKEN", "from-env")

        assert BoxkitSettings.from_env(cli_token=" from-cli ").github_token == "from-cli"

    def test_token_precedence_between_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "github")
        monkeypatch.setenv("BOXKIT_GITHUB_TOKEN", "boxkit")

        settings = BoxkitSettings.from_env()

        assert settings.github_token == "boxkit"
        assert settings.auth_headers() == {"Authorization": "Bearer boxkit"}

    def test_blank_token_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GH_TOKEN", "   ")

        assert BoxkitSettings.from_env().github_token is None

    def test_default_ref_and_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BOXKIT_DEFAULT_REF", "main")
        monkeypatch.setenv("BOXKIT_HTTP_TIMEOUT", "12.5")

        settings = BoxkitSettings.from_env()

        assert settings.default_ref == "main"
        assert settings.timeout == 12.5

    @pytest.mark.parametrize("value", ["soon", "-1", "0"])
    def test_invalid_timeout_falls_back(
        self, value: str, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("BOXKIT_HTTP_TIMEOUT", value)

        with caplog.at_level(logging.WARNING, logger="boxkit.core.config"):
            settings = BoxkitSettings.from_env()

        assert settings.timeout == DEFAULT_HTTP_TIMEOUT
        assert "BOXKIT_HTTP_TIMEOUT" in caplog.text
