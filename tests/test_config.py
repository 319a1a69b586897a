"""Tests for settings loading and precedence."""

import logging

import pytest

from depsteward.config import Settings, environment_overrides, load_settings, load_settings_file
from depsteward.constants import Constants
from depsteward.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the caller's environment and working directory."""
    for name in (Constants.ENV_TIMEOUT, Constants.ENV_PARALLELISM, Constants.ENV_REPOSITORIES):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestSettings:
    def test_defaults(self):
        settings = load_settings()
        assert settings.repositories == [Constants.MAVEN_CENTRAL_URL]
        assert settings.timeout == Constants.REQUEST_TIMEOUT
        assert settings.parallelism is None
        assert settings.migrations == [Constants.DEFAULT_MIGRATIONS_URL]
        assert settings.ignores == settings.pins == settings.retractions == [Constants.DEFAULT_POLICY_URL]
        assert settings.scalafix_migrations == [Constants.DEFAULT_SCALAFIX_MIGRATIONS_URL]
        assert all(url.endswith(".conf") for url in settings.ignores + settings.migrations)

    def test_policy_list_replaces_defaults(self):
        settings = Settings()
        settings.update({"ignores": ["ignores.yaml"], "pins": []})
        assert settings.ignores == ["ignores.yaml"]
        assert settings.pins == []

    def test_drop_default_policies_keeps_others(self):
        settings = Settings()
        settings.update({"ignores": [Constants.DEFAULT_POLICY_URL, "ignores.yaml"]})
        settings.drop_default_policies()
        assert settings.ignores == ["ignores.yaml"]
        assert settings.migrations == settings.pins == settings.retractions == []
        assert settings.scalafix_migrations == []

    def test_single_string_becomes_list(self):
        settings = Settings()
        settings.update({"ignores": "https://example.org/ignores.yaml"})
        assert settings.ignores == ["https://example.org/ignores.yaml"]

    def test_none_values_ignored(self):
        settings = Settings()
        settings.update({"timeout": None, "repositories": None})
        assert settings.timeout == Constants.REQUEST_TIMEOUT

    def test_unknown_key_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            Settings().update({"colour": "blue"})
        assert any("colour" in r.getMessage() for r in caplog.records)

    @pytest.mark.parametrize(
        "values",
        [
            {"timeout": "soon"},
            {"timeout": 0},
            {"parallelism": 0},
            {"parallelism": "many"},
            {"repositories": []},
            {"pins": [1, 2]},
        ],
    )
    def test_invalid_values(self, values):
        with pytest.raises(ConfigurationError):
            Settings().update(values)


class TestLoading:
    """File, environment and override precedence."""

    def test_file_section(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("depsteward:\n  timeout: 5\n  pins:\n    - file:///pins.yaml\n", encoding="utf-8")
        settings = load_settings(str(path))
        assert settings.timeout == 5.0
        assert settings.pins == ["file:///pins.yaml"]

    def test_file_top_level(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("parallelism: 2\n", encoding="utf-8")
        assert load_settings(str(path)).parallelism == 2

    def test_default_file_in_working_directory(self, tmp_path):
        (tmp_path / Constants.SETTINGS_FILE).write_text("scala_binary_version: '3'\n", encoding="utf-8")
        assert load_settings().scala_binary_version == "3"

    def test_environment_beats_file(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("timeout: 5\nparallelism: 2\n", encoding="utf-8")
        monkeypatch.setenv(Constants.ENV_TIMEOUT, "9")
        settings = load_settings(str(path))
        assert settings.timeout == 9.0
        assert settings.parallelism == 2

    def test_overrides_beat_environment(self, monkeypatch):
        monkeypatch.setenv(Constants.ENV_PARALLELISM, "3")
        assert load_settings(overrides={"parallelism": 7}).parallelism == 7
        assert load_settings(overrides={"parallelism": None}).parallelism == 3

    def test_environment_repositories(self):
        overrides = environment_overrides({Constants.ENV_REPOSITORIES: "https://a.example, https://b.example,"})
        assert overrides == {"repositories": ["https://a.example", "https://b.example"]}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings_file(str(tmp_path / "absent.yaml"))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_settings_file(str(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings_file(str(path)) == {}
