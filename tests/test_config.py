"""
Tests for YAML configuration loading.
"""
import textwrap

import pytest

from taskboard.config import Config, ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("TASKBOARD_DB", raising=False)
    monkeypatch.delenv("TASKBOARD_API_SECRET", raising=False)


def test_defaults_when_file_missing(tmp_path):
    cfg = Config.load(str(tmp_path / "missing.yaml"))
    assert cfg.pointer_distance == 5.0
    assert cfg.touch_delay == 0.25
    assert cfg.db_path.endswith("taskboard.db")
    assert "~" not in cfg.db_path


def test_load_yaml_ignores_unknown_keys(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text(textwrap.dedent("""
        db_path: /tmp/board.db
        touch_delay: 0.4
        log_level: debug
        theme: dark
    """))
    cfg = Config.load(str(path))
    assert cfg.db_path == "/tmp/board.db"
    assert cfg.touch_delay == 0.4
    assert cfg.log_level == "DEBUG"


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("TASKBOARD_DB", str(tmp_path / "env.db"))
    monkeypatch.setenv("TASKBOARD_API_SECRET", "s3cret")
    cfg = Config.load(str(tmp_path / "missing.yaml"))
    assert cfg.db_path == str(tmp_path / "env.db")
    assert cfg.api_secret == "s3cret"


def test_negative_threshold_rejected(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text("pointer_distance: -1\n")
    with pytest.raises(ConfigError):
        Config.load(str(path))


def test_non_mapping_rejected(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        Config.load(str(path))


def test_malformed_yaml_rejected(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text("db_path: [unclosed\n")
    with pytest.raises(ConfigError):
        Config.load(str(path))


def test_method_names_are_not_settings(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text("load: yes\nresolve: 1\nport: 8080\n")
    cfg = Config.load(str(path))
    assert cfg.port == 8080
    assert callable(cfg.resolve)
