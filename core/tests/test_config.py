"""Tests for headless configuration loading."""

import json

import pytest

from headless import config as config_module
from headless.config import (
    OutputFormat,
    RunConfig,
    get_headless_config,
    get_max_session_turns,
    get_output_format,
)


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "configuration.json"
    monkeypatch.setattr(config_module, "HEADLESS_CONFIG_FILE", path)
    monkeypatch.delenv("HEADLESS_OUTPUT_FORMAT", raising=False)
    monkeypatch.delenv("HEADLESS_MAX_SESSION_TURNS", raising=False)
    return path


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")


class TestConfigFile:
    def test_missing_file_is_empty(self, config_file):
        assert get_headless_config() == {}

    def test_corrupt_file_is_empty(self, config_file):
        config_file.write_text("{not json", encoding="utf-8")
        assert get_headless_config() == {}

    def test_non_object_is_empty(self, config_file):
        _write(config_file, ["stream-json"])
        assert get_headless_config() == {}

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "other.json"
        _write(path, {"output_format": "json"})
        assert get_headless_config(path) == {"output_format": "json"}


class TestOutputFormat:
    def test_defaults_to_text(self, config_file):
        assert get_output_format() == OutputFormat.TEXT

    def test_from_file(self, config_file):
        _write(config_file, {"output_format": "stream-json"})
        assert get_output_format() == OutputFormat.STREAM_JSON

    def test_env_overrides_file(self, config_file, monkeypatch):
        _write(config_file, {"output_format": "stream-json"})
        monkeypatch.setenv("HEADLESS_OUTPUT_FORMAT", "JSON")
        assert get_output_format() == OutputFormat.JSON

    def test_unknown_value_falls_back_to_text(self, config_file, monkeypatch):
        monkeypatch.setenv("HEADLESS_OUTPUT_FORMAT", "yaml")
        assert get_output_format() == OutputFormat.TEXT


class TestMaxSessionTurns:
    def test_defaults_to_unlimited(self, config_file):
        assert get_max_session_turns() == -1

    def test_from_file(self, config_file):
        _write(config_file, {"max_session_turns": 7})
        assert get_max_session_turns() == 7

    def test_env_overrides_file(self, config_file, monkeypatch):
        _write(config_file, {"max_session_turns": 7})
        monkeypatch.setenv("HEADLESS_MAX_SESSION_TURNS", "0")
        assert get_max_session_turns() == 0

    def test_invalid_value_is_unlimited(self, config_file, monkeypatch):
        monkeypatch.setenv("HEADLESS_MAX_SESSION_TURNS", "many")
        assert get_max_session_turns() == -1


class TestRunConfig:
    def test_defaults_resolved_from_file(self, config_file):
        _write(config_file, {"output_format": "json", "max_session_turns": 3, "log_level": "debug"})
        cfg = RunConfig()
        assert cfg.output_format == OutputFormat.JSON
        assert cfg.max_session_turns == 3
        assert cfg.log_level == "DEBUG"

    def test_string_format_is_coerced(self, config_file):
        assert RunConfig(output_format="stream-json").output_format is OutputFormat.STREAM_JSON

    def test_invalid_format_rejected(self, config_file):
        with pytest.raises(ValueError):
            RunConfig(output_format="xml")

    def test_from_dict_ignores_unknown_keys(self, config_file):
        cfg = RunConfig.from_dict({"output_format": "json", "model": "ignored"})
        assert cfg.output_format == OutputFormat.JSON

    def test_effective_log_level(self, config_file):
        assert RunConfig(log_level="info").effective_log_level == "INFO"
        assert RunConfig(log_level="info", debug_mode=True).effective_log_level == "DEBUG"
