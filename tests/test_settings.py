"""
Tests for configuration loading and validation.
"""

import pytest

from marktrace.core.exceptions import ConfigurationError
from marktrace.core.settings import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.get("auto_http.enabled") is True
        assert settings.get("auto_redis.enabled") is False
        assert settings.get("auto_measure") is True
        assert settings.get("auto_http.filter") is None
        assert settings.config_path is None

    def test_yaml_file_overrides_defaults(self, isolated_config):
        (isolated_config / ".marktrace").write_text(
            "auto_http:\n  enabled: false\nauto_measure: false\n", encoding="utf-8"
        )

        settings = Settings()

        assert settings.get("auto_http.enabled") is False
        assert settings.get("auto_measure") is False
        assert settings.get("auto_redis.enabled") is False

    def test_boolean_shorthand(self, isolated_config):
        (isolated_config / ".marktrace").write_text("auto_redis: true\n", encoding="utf-8")

        assert Settings().get("auto_redis.enabled") is True

    def test_env_overrides_file(self, isolated_config, monkeypatch):
        (isolated_config / ".marktrace").write_text("auto_measure: true\n", encoding="utf-8")
        monkeypatch.setenv("MARKTRACE_AUTO_MEASURE", "off")

        assert Settings().get("auto_measure") is False

    def test_invalid_env_boolean(self, monkeypatch):
        monkeypatch.setenv("MARKTRACE_AUTO_HTTP", "maybe")

        with pytest.raises(ConfigurationError):
            Settings()

    def test_keyword_overrides_win(self, monkeypatch):
        monkeypatch.setenv("MARKTRACE_AUTO_HTTP", "true")

        def keep_all(record):
            return record

        settings = Settings(overrides={"auto_http": {"enabled": False, "filter": keep_all}})

        assert settings.get("auto_http.enabled") is False
        assert settings.get("auto_http.filter") is keep_all

    def test_filter_must_be_callable(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(overrides={"auto_http": {"filter": "drop-everything"}})

        assert exc_info.value.context["key"] == "auto_http.filter"

    def test_switch_must_be_boolean(self):
        with pytest.raises(ConfigurationError):
            Settings(overrides={"auto_measure": "yes"})

    def test_unknown_log_level(self):
        with pytest.raises(ConfigurationError):
            Settings(overrides={"logging": {"level": "LOUD"}})

    def test_invalid_yaml(self, isolated_config):
        (isolated_config / ".marktrace").write_text("auto_http: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            Settings()

    def test_non_mapping_file(self, isolated_config):
        (isolated_config / ".marktrace").write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            Settings()

    def test_require(self):
        settings = Settings()

        assert settings.require("logging.level") == "INFO"
        with pytest.raises(ConfigurationError):
            settings.require("nope.missing")

    def test_get_default(self):
        assert Settings().get("does.not.exist", 5) == 5
