"""Tests for configuration loading."""

import logging

import pytest

from masthead.config import ENV_KEYS, Config, ConfigError, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key.upper(), raising=False)


@pytest.fixture
def conf_file(tmp_path):
    path = tmp_path / "masthead.conf"
    path.write_text(
        "\n".join(
            [
                "# masthead settings",
                "SUPABASE_URL=https://example.supabase.co/",
                'SUPABASE_SERVICE_KEY="secret-key"',
                "TIMEZONE=Europe/London  # office time",
                "REMINDER_CHECK_TIME=07:30",
                "TELEGRAM_EDITOR_CHATS=111, 222",
                "OCCURRENCE_LIMIT=25",
                "not a setting",
                "",
            ]
        )
    )
    return path


class TestLoadConfig:
    def test_defaults_when_file_missing(self, tmp_path):
        config = load_config(tmp_path / "missing.conf")
        assert config == Config()
        assert config.timezone == "Asia/Jerusalem"
        assert config.reminder_check_time == "08:00"
        assert config.occurrence_limit == 100

    def test_reads_file(self, conf_file):
        config = load_config(conf_file)
        assert config.supabase_url == "https://example.supabase.co"
        assert config.supabase_service_key == "secret-key"
        assert config.timezone == "Europe/London"
        assert config.reminder_check_time == "07:30"
        assert config.telegram_editor_chats == [111, 222]
        assert config.occurrence_limit == 25

    def test_environment_overrides_file(self, conf_file, monkeypatch):
        monkeypatch.setenv("TIMEZONE", "UTC")
        monkeypatch.setenv("OCCURRENCE_LIMIT", "5")
        config = load_config(conf_file)
        assert config.timezone == "UTC"
        assert config.occurrence_limit == 5
        assert config.supabase_service_key == "secret-key"

    def test_malformed_number_is_ignored(self, tmp_path, caplog):
        path = tmp_path / "masthead.conf"
        path.write_text("OCCURRENCE_LIMIT=lots\nTELEGRAM_EDITOR_CHATS=abc\n")
        with caplog.at_level(logging.WARNING, logger="masthead.config"):
            config = load_config(path)
        assert config.occurrence_limit == 100
        assert config.telegram_editor_chats == []
        assert "OCCURRENCE_LIMIT" in caplog.text


class TestRequireBackend:
    def test_missing_settings(self):
        with pytest.raises(ConfigError, match="SUPABASE_URL, SUPABASE_SERVICE_KEY"):
            Config().require_backend()

    def test_configured(self):
        Config(supabase_url="https://x", supabase_service_key="k").require_backend()
