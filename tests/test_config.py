"""Tests for focuscore/config.py and logging setup."""

import logging

import pytest

from focuscore.config import FocusConfig, load_config, save_config
from focuscore.logging_setup import LOGGER_NAME, setup_logger
from focuscore.workspace import log_dir, sounds_dir


def test_defaults_when_missing(tmp_path):
    config = load_config(tmp_path)
    assert config == FocusConfig()
    assert config.audio_backend == "pygame"


def test_load_workspace_config(workspace):
    config = load_config(workspace)
    assert config.audio_backend == "silent"
    assert config.sound_volume == 0.8
    assert config.resolve_sounds_dir(workspace) == sounds_dir(workspace)


def test_volume_is_clamped():
    assert FocusConfig.from_dict({"sound_volume": 3}).sound_volume == 1.0
    assert FocusConfig.from_dict({"sound_volume": -1}).sound_volume == 0.0


def test_fade_step_capped_at_duration():
    config = FocusConfig.from_dict({"fade_duration_sec": 0.5, "fade_step_sec": 2})
    assert config.fade_step_sec == 0.5


@pytest.mark.parametrize("bad", [
    {"audio_backend": "alsa"},
    {"tick_interval_sec": 0},
    {"fade_step_sec": -1},
])
def test_invalid_values(bad):
    with pytest.raises(ValueError):
        FocusConfig.from_dict(bad)


def test_save_round_trip(workspace):
    config = FocusConfig(fade_duration_sec=2.0, sounds_dir="/opt/sounds", log_level="DEBUG")
    save_config(config, workspace)
    assert load_config(workspace) == config


def test_setup_logger_writes_to_workspace(workspace):
    logger = setup_logger(workspace, "DEBUG")
    try:
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG
        handlers = len(logger.handlers)
        setup_logger(workspace)
        assert len(logger.handlers) == handlers
        logging.getLogger("focuscore.timer").info("hello")
        for h in logger.handlers:
            h.flush()
        assert "hello" in (log_dir(workspace) / "focus.log").read_text(encoding="utf-8")
    finally:
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()
