"""Unit tests for config.py"""

import pytest
from pydantic import ValidationError

from legalmd.config import load_config


def test_load_config_defaults(tmp_path, monkeypatch):
    """Settings defaults apply when no legalmd.yaml, env var, or override exists."""
    monkeypatch.chdir(tmp_path)
    settings = load_config()
    assert settings.skip_imports is False
    assert settings.import_max_depth == 10
    assert settings.filter_reserved is True


def test_load_config_reads_yaml(tmp_path, monkeypatch):
    """Values in legalmd.yaml are applied."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "legalmd.yaml").write_text("no_indent: true\nimport_max_depth: 3\n")
    settings = load_config()
    assert settings.no_indent is True
    assert settings.import_max_depth == 3


def test_load_config_env_overrides_yaml(tmp_path, monkeypatch):
    """LEGALMD_<FIELD> takes precedence over legalmd.yaml."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "legalmd.yaml").write_text("import_max_depth: 3\n")
    monkeypatch.setenv("LEGALMD_IMPORT_MAX_DEPTH", "5")
    assert load_config().import_max_depth == 5


def test_load_config_env_bool_coerced(tmp_path, monkeypatch):
    """LEGALMD_SKIP_HEADERS env var is coerced to bool."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LEGALMD_SKIP_HEADERS", "true")
    assert load_config().skip_headers is True


def test_load_config_overrides_beat_env(tmp_path, monkeypatch):
    """A non-None override beats the env var; None overrides are ignored."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LEGALMD_NO_RESET", "true")
    assert load_config(overrides={"no_reset": False}).no_reset is False
    assert load_config(overrides={"no_reset": None}).no_reset is True


def test_load_config_invalid_yaml(tmp_path, monkeypatch):
    """load_config raises ValueError when legalmd.yaml contains invalid YAML."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "legalmd.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid legalmd.yaml"):
        load_config()


def test_load_config_rejects_bad_depth(tmp_path, monkeypatch):
    """import_max_depth must be at least 1."""
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ValidationError):
        load_config(overrides={"import_max_depth": 0})
