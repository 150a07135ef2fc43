"""
Configuration tests: environment loading, command-line overrides and
required value checks.
"""

import pytest
from click.testing import CliRunner

from notionfeed.config.settings import LogLevel, NotionFeedSettings, get_settings, load_settings
from notionfeed.utils.exceptions import ConfigurationError, ErrorCode


class TestLoadSettings:

    def test_values_come_from_environment(self):
        settings = load_settings()

        assert settings.notion.api_token == "secret_test_token"
        assert settings.notion.source_database_id == "source-db-test"
        assert settings.notion.feed_database_id == "feed-db-test"
        assert settings.notion.api_version == "2022-02-22"
        assert settings.logging.level == LogLevel.INFO

    def test_command_line_value_wins(self):
        settings = load_settings(source_database_id="cli-source", feed_database_id="cli-feed")

        assert settings.notion.source_database_id == "cli-source"
        assert settings.notion.feed_database_id == "cli-feed"

    def test_empty_command_line_value_is_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(feed_database_id="  ")

        assert exc_info.value.error_code == ErrorCode.CONFIG_INVALID
        assert exc_info.value.context["config_key"] == "notion.feed_database_id"

    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("NOTIONFEED_NOTION__API_TOKEN")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()

        assert exc_info.value.error_code == ErrorCode.CONFIG_MISSING
        assert exc_info.value.context["config_key"] == "notion.api_token"

    def test_missing_database_id_can_come_from_command_line(self, monkeypatch):
        monkeypatch.delenv("NOTIONFEED_NOTION__SOURCE_DATABASE_ID")

        with pytest.raises(ConfigurationError):
            load_settings()

        settings = load_settings(source_database_id="cli-source")
        assert settings.notion.source_database_id == "cli-source"

    def test_nested_environment_values(self, monkeypatch):
        monkeypatch.setenv("NOTIONFEED_NOTION__PAGE_SIZE", "50")
        monkeypatch.setenv("NOTIONFEED_NOTION__API_BASE_URL", "https://proxy.test/v1/")
        monkeypatch.setenv("NOTIONFEED_LIMITS__REQUEST_TIMEOUT", "12")

        settings = load_settings()

        assert settings.notion.page_size == 50
        assert settings.notion.api_base_url == "https://proxy.test/v1"
        assert settings.limits.request_timeout == 12

    def test_out_of_range_page_size(self, monkeypatch):
        monkeypatch.setenv("NOTIONFEED_NOTION__PAGE_SIZE", "500")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()

        assert exc_info.value.error_code == ErrorCode.CONFIG_INVALID

    def test_debug_forces_debug_level(self):
        settings = NotionFeedSettings(debug=True)
        assert settings.get_effective_log_level() == "DEBUG"

    def test_get_settings_caches_until_reload(self):
        first = get_settings(reload=True)
        assert get_settings() is first
        assert get_settings(reload=True, feed_database_id="other") is not first


class TestCommandLine:

    def test_check_config(self):
        from main import cli

        result = CliRunner().invoke(cli, ["check-config", "-s", "cli-source"])

        assert result.exit_code == 0
        assert "cli-source" in result.output

    def test_run_rejects_empty_database_id(self):
        from main import cli

        result = CliRunner().invoke(cli, ["run", "--notion-feed-database-id", ""])

        assert result.exit_code == 1
        assert "Failed to create application config" in result.output
