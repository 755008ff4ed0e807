"""Tests for HelpScoutExporterSettings environment loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from helpscout_exporter.config.settings import HelpScoutExporterSettings


class TestDefaults:
    def test_retry_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        settings = HelpScoutExporterSettings()

        assert settings.max_connect_retries == 3
        assert settings.connect_retry_delay_seconds == 5.0
        assert settings.rate_limit_fallback_seconds == 10.0
        assert settings.base_url == "https://api.helpscout.net/v1/"


class TestEnvironment:
    def test_reads_prefixed_variables(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HELPSCOUT_API_KEY", "secret")
        monkeypatch.setenv("HELPSCOUT_OUTPUT_DIR", str(tmp_path / "backup"))
        monkeypatch.setenv("HELPSCOUT_MAX_CONNECT_RETRIES", "5")

        settings = HelpScoutExporterSettings()

        assert settings.api_key == "secret"
        assert settings.output_dir == tmp_path / "backup"
        assert settings.max_connect_retries == 5

    def test_reads_dotenv_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("HELPSCOUT_API_KEY", raising=False)
        (tmp_path / ".env").write_text("HELPSCOUT_API_KEY=from-dotenv\n", encoding="utf-8")

        assert HelpScoutExporterSettings().api_key == "from-dotenv"


class TestEnsureDirectories:
    def test_creates_output_dir(self, tmp_path: Path) -> None:
        settings = HelpScoutExporterSettings(api_key="k", output_dir=tmp_path / "a" / "b")

        settings.ensure_directories()

        assert (tmp_path / "a" / "b").is_dir()
