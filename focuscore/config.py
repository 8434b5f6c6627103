"""Focus settings loaded from planner/focus.yaml."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from focuscore.fileio import read_yaml, write_yaml_atomic
from focuscore.workspace import focus_config_path, sounds_dir, workspace_root

VALID_AUDIO_BACKENDS = {"pygame", "silent"}


def clamp_volume(level: float) -> float:
    return max(0.0, min(1.0, float(level)))


@dataclass
class FocusConfig:
    tick_interval_sec: float = 1.0
    fade_duration_sec: float = 1.0
    fade_step_sec: float = 0.05
    sound_volume: float = 1.0
    sounds_dir: str = ""  # empty -> planner/sounds
    audio_backend: str = "pygame"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FocusConfig:
        if not d or not isinstance(d, dict):
            return cls()
        backend = str(d.get("audio_backend", "pygame")).strip().lower()
        if backend not in VALID_AUDIO_BACKENDS:
            raise ValueError(f"Invalid audio backend: {backend!r}")
        tick = float(d.get("tick_interval_sec", 1.0))
        fade = float(d.get("fade_duration_sec", 1.0))
        step = float(d.get("fade_step_sec", 0.05))
        if tick <= 0 or fade <= 0 or step <= 0:
            raise ValueError("Timer and fade intervals must be positive")
        return cls(
            tick_interval_sec=tick,
            fade_duration_sec=fade,
            fade_step_sec=min(step, fade),
            sound_volume=clamp_volume(d.get("sound_volume", 1.0)),
            sounds_dir=str(d.get("sounds_dir", "") or ""),
            audio_backend=backend,
            log_level=str(d.get("log_level", "INFO")).upper(),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "tick_interval_sec": self.tick_interval_sec,
            "fade_duration_sec": self.fade_duration_sec,
            "fade_step_sec": self.fade_step_sec,
            "sound_volume": self.sound_volume,
            "audio_backend": self.audio_backend,
            "log_level": self.log_level,
        }
        if self.sounds_dir:
            d["sounds_dir"] = self.sounds_dir
        return d

    def resolve_sounds_dir(self, root: Path | None = None) -> Path:
        if self.sounds_dir:
            return Path(self.sounds_dir).expanduser()
        return sounds_dir(root)


def load_config(root: Path | None = None) -> FocusConfig:
    """Load focus.yaml into a FocusConfig, defaults when absent."""
    if root is None:
        root = workspace_root()
    return FocusConfig.from_dict(read_yaml(focus_config_path(root)))


def save_config(config: FocusConfig, root: Path | None = None) -> None:
    write_yaml_atomic(focus_config_path(root), config.to_dict())
