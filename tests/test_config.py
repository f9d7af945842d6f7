"""Integration tests for configuration module."""

import warnings
from pathlib import Path

import pytest
from pydantic import ValidationError

from helpmatch.config import (
    AppConfig,
    ConfigurationError,
    MatchingConfig,
    TagSuggestionConfig,
    load_config,
    load_environment_config,
)
from helpmatch.config.environment import DEFAULT_DATABASE_URL
from helpmatch.config.validators import check_for_warnings

VALID_CONFIG = """
matching:
  default_top_n: 3
  max_top_n: 10
  max_workers: 2
tag_suggestion:
  enabled: true
  endpoint: https://tags.example.edu/suggest
  timeout_seconds: 5
  max_tags: 2
logging:
  level: DEBUG
  format: json
"""


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content)
    return path


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_valid_config(self, tmp_path, clean_env):
        app_config, env_config = load_config(write_config(tmp_path, VALID_CONFIG))

        assert app_config.matching.default_top_n == 3
        assert app_config.matching.max_top_n == 10
        assert app_config.matching.max_workers == 2
        assert app_config.tag_suggestion.enabled is True
        assert app_config.tag_suggestion.endpoint == "https://tags.example.edu/suggest"
        assert app_config.tag_suggestion.max_tags == 2
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"
        assert env_config.database_url == DEFAULT_DATABASE_URL

    def test_defaults_when_no_file(self, tmp_path, monkeypatch, clean_env):
        """Without --config and without config.yaml the built-in defaults apply."""
        monkeypatch.chdir(tmp_path)

        app_config, _ = load_config()

        assert app_config == AppConfig()
        assert app_config.matching.default_top_n == 5
        assert app_config.matching.min_top_n == 1
        assert app_config.matching.max_top_n == 20
        assert app_config.tag_suggestion.enabled is False
        assert app_config.logging.format == "key-value"

    def test_finds_config_in_config_directory(self, tmp_path, monkeypatch, clean_env):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("matching:\n  default_top_n: 7\n")

        app_config, _ = load_config()
        assert app_config.matching.default_top_n == 7

    def test_empty_file_uses_defaults(self, tmp_path, clean_env):
        app_config, _ = load_config(write_config(tmp_path, ""))
        assert app_config == AppConfig()

    def test_config_file_not_found(self, clean_env):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(Path("nonexistent.yaml"))

        assert "not found" in str(exc_info.value).lower()

    def test_invalid_yaml_syntax(self, tmp_path, clean_env):
        path = write_config(tmp_path, "matching:\n  default_top_n: [5\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert "parse" in str(exc_info.value).lower()

    def test_top_level_must_be_mapping(self, tmp_path, clean_env):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(write_config(tmp_path, "- a\n- b\n"))

    def test_env_endpoint_overrides_file(self, tmp_path, monkeypatch, clean_env):
        monkeypatch.setenv("TAG_SUGGEST_URL", "https://override.example.edu/tags")

        app_config, env_config = load_config(write_config(tmp_path, VALID_CONFIG))

        assert app_config.tag_suggestion.endpoint == "https://override.example.edu/tags"
        assert env_config.tag_suggest_url == "https://override.example.edu/tags"


class TestConfigurationValidation:
    """Test configuration validation rules."""

    def test_default_outside_bounds(self, tmp_path, clean_env):
        path = write_config(tmp_path, "matching:\n  default_top_n: 30\n  max_top_n: 20\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert "default_top_n" in str(exc_info.value)
        assert exc_info.value.errors

    def test_min_above_max(self):
        with pytest.raises(ValueError, match="cannot exceed"):
            MatchingConfig(min_top_n=10, max_top_n=5, default_top_n=5)

    def test_invalid_log_level(self, tmp_path, clean_env):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(write_config(tmp_path, "logging:\n  level: LOUD\n"))

        assert "logging -> level" in str(exc_info.value)

    def test_wrong_type(self, tmp_path, clean_env):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(write_config(tmp_path, "matching:\n  max_workers: many\n"))

        assert "max_workers" in str(exc_info.value)
        assert "Suggestions" in str(exc_info.value)

    def test_error_names_the_config_file(self, tmp_path, clean_env):
        path = write_config(tmp_path, "matching:\n  max_workers: many\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert exc_info.value.source == str(path)
        assert f"(source: {path})" in str(exc_info.value)

    def test_yaml_error_names_the_config_file(self, tmp_path, clean_env):
        path = write_config(tmp_path, "matching: [\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert exc_info.value.source == str(path)

    def test_endpoint_must_be_http(self):
        with pytest.raises(ValueError, match="http"):
            TagSuggestionConfig(endpoint="ftp://tags.example.edu")

    def test_blank_endpoint_is_unset(self):
        assert TagSuggestionConfig(endpoint="   ").endpoint is None


class TestConfigurationWarnings:
    """Test non-fatal configuration warnings."""

    def test_enabled_without_endpoint_warns(self, tmp_path, clean_env):
        path = write_config(tmp_path, "tag_suggestion:\n  enabled: true\n")

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            load_config(path)

        assert any("no endpoint" in str(w.message) for w in caught)

    def test_large_worker_pool_warns(self):
        messages = check_for_warnings({"matching": {"max_workers": 32}})
        assert any("max_workers" in m for m in messages)

    def test_no_warnings_for_defaults(self):
        assert check_for_warnings({}) == []


class TestConfigurationError:
    """Tests for error rendering."""

    def test_from_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            MatchingConfig(max_workers="many")

        error = ConfigurationError.from_validation_error(exc_info.value, source="built-in defaults")

        assert error.source == "built-in defaults"
        assert error.errors == ["max_workers: " + exc_info.value.errors()[0]["msg"]]
        assert str(error).startswith("Configuration validation failed (source: built-in defaults)")

    def test_without_source(self):
        error = ConfigurationError("Broken", suggestions=["Fix it"])

        assert error.source is None
        assert str(error) == "Broken\n\nSuggestions:\n  - Fix it"


class TestEnvironmentConfig:
    """Test environment variable loading."""

    def test_defaults(self, clean_env):
        env_config = load_environment_config()

        assert env_config.database_url == DEFAULT_DATABASE_URL
        assert env_config.log_level is None
        assert env_config.tag_suggest_url is None
        assert env_config.environment == "local"

    def test_reads_all_variables(self, monkeypatch, clean_env):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///tmp/x.db")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("TAG_SUGGEST_URL", "https://tags.example.edu")
        monkeypatch.setenv("TAG_SUGGEST_API_KEY", "k")
        monkeypatch.setenv("ENVIRONMENT", "staging")

        env_config = load_environment_config()

        assert env_config.database_url == "sqlite:///tmp/x.db"
        assert env_config.log_level == "DEBUG"
        assert env_config.tag_suggest_url == "https://tags.example.edu"
        assert env_config.tag_suggest_api_key == "k"
        assert env_config.environment == "staging"

    def test_invalid_log_level(self, monkeypatch, clean_env):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert "LOG_LEVEL" in str(exc_info.value)
        assert exc_info.value.source == "environment"

    def test_invalid_tag_suggest_url(self, monkeypatch, clean_env):
        monkeypatch.setenv("TAG_SUGGEST_URL", "tags.example.edu")

        with pytest.raises(ConfigurationError, match="TAG_SUGGEST_URL"):
            load_environment_config()

    def test_empty_database_url(self, monkeypatch, clean_env):
        monkeypatch.setenv("DATABASE_URL", "  ")

        with pytest.raises(ConfigurationError, match="DATABASE_URL"):
            load_environment_config()


# Pytest fixtures
@pytest.fixture
def clean_env(monkeypatch):
    """Unset every variable the loader reads."""
    for name in ("DATABASE_URL", "LOG_LEVEL", "TAG_SUGGEST_URL", "TAG_SUGGEST_API_KEY", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)
