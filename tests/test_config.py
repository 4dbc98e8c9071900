# tests/test_config.py
import logging

import pytest

import config


@pytest.fixture
def settings_dir(monkeypatch, tmp_path):
    """Points the settings file at a temporary directory."""
    target = tmp_path / "cfg"
    monkeypatch.setattr(config, "CONFIG_DIR", str(target))
    monkeypatch.setattr(config, "SETTINGS_FILE", str(target / "settings.json"))
    return target


def test_settings_round_trip(settings_dir):
    assert config.load_settings() == {}
    config.save_settings("text_debounce_ms", 250)
    config.save_settings("theme", "dark")

    assert config.get_setting("text_debounce_ms") == 250
    assert config.get_setting("theme") == "dark"
    assert config.get_setting("missing", "fallback") == "fallback"


def test_corrupt_settings_file_reads_as_empty(settings_dir):
    settings_dir.mkdir()
    (settings_dir / "settings.json").write_text("{oops", encoding="utf-8")
    assert config.load_settings() == {}


def test_float_setting_lookup_order(settings_dir, monkeypatch):
    monkeypatch.delenv("SCRIPTCUT_LOAD_FALLBACK_DURATION", raising=False)
    assert config.get_float_setting("load_fallback_duration", 60) == 60.0

    config.save_settings("load_fallback_duration", 100)
    assert config.get_float_setting("load_fallback_duration", 60) == 100.0

    monkeypatch.setenv("SCRIPTCUT_LOAD_FALLBACK_DURATION", "42.5")
    assert config.get_float_setting("load_fallback_duration", 60) == 42.5


def test_invalid_float_setting_uses_default(settings_dir, monkeypatch, caplog):
    monkeypatch.setenv("SCRIPTCUT_DURATION_WAIT_TIMEOUT", "soon")
    with caplog.at_level(logging.WARNING, logger="ScriptCut.Config"):
        assert config.get_float_setting("duration_wait_timeout", 3) == 3.0
    assert "duration_wait_timeout" in caplog.text


def test_setup_logging_is_idempotent():
    logger = config.setup_logging(logging.DEBUG)
    handlers = list(logger.handlers)
    again = config.setup_logging(logging.INFO)

    assert again is logger
    assert logger.handlers == handlers
    assert logger.level == logging.INFO
    assert logger.name == config.APP_NAME


def test_tunable_defaults_are_sane():
    assert config.LOAD_FALLBACK_DURATION > 0
    assert config.MIN_SPEED_RATE == 0.1
    assert config.MAX_SPEED_RATE == 10.0
    assert config.CUT_MARGIN == 0.1
    assert config.PROJECT_EXTENSION == ".scut"
