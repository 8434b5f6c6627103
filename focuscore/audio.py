"""Audio players used by the crossfade scheduler.

A player loops one ambient track on its own mixer channel and exposes a
settable volume. Factories turn an ``AmbientSound`` into a fresh player.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from focuscore.config import clamp_volume
from focuscore.errors import AudioPlaybackFailed
from focuscore.models import AmbientSound

logger = logging.getLogger(__name__)

SOUND_EXTENSIONS = (".mp3", ".ogg", ".wav")


class Player(Protocol):
    sound: AmbientSound
    volume: float

    def play(self) -> None: ...
    def pause(self) -> None: ...
    def resume(self) -> None: ...
    def stop(self) -> None: ...


class PlayerFactory(Protocol):
    def create(self, sound: AmbientSound) -> Player: ...


# ── pygame backend ────────────────────────────────────────────


class PygamePlayer:
    def __init__(self, sound: AmbientSound, path: Path) -> None:
        import pygame

        self.sound = sound
        self.path = path
        self._track = pygame.mixer.Sound(str(path))
        self._channel = None
        self._volume = 0.0

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, level: float) -> None:
        self._volume = clamp_volume(level)
        if self._channel is not None:
            self._channel.set_volume(self._volume)

    def play(self) -> None:
        self._channel = self._track.play(loops=-1)
        if self._channel is None:
            raise AudioPlaybackFailed(f"No free mixer channel for {self.path.name}")
        self._channel.set_volume(self._volume)

    def pause(self) -> None:
        if self._channel is not None:
            self._channel.pause()

    def resume(self) -> None:
        if self._channel is not None:
            self._channel.unpause()

    def stop(self) -> None:
        if self._channel is not None:
            self._channel.stop()
            self._channel = None


class PygamePlayerFactory:
    """Loads ``<sounds_dir>/<file_name>.(mp3|ogg|wav)`` into pygame players."""

    def __init__(self, sounds_dir: Path) -> None:
        self.sounds_dir = Path(sounds_dir)
        self._initialized = False

    def _ensure_mixer(self) -> None:
        if self._initialized:
            return
        import pygame

        try:
            pygame.mixer.init()
        except pygame.error as e:
            raise AudioPlaybackFailed(e) from e
        self._initialized = True

    def resolve(self, sound: AmbientSound) -> Path:
        if sound.file_name is None:
            raise ValueError("The silent sound has no track")
        for ext in SOUND_EXTENSIONS:
            candidate = self.sounds_dir / f"{sound.file_name}{ext}"
            if candidate.exists():
                return candidate
        raise AudioPlaybackFailed(f"Sound file not found for {sound.value} in {self.sounds_dir}")

    def create(self, sound: AmbientSound) -> PygamePlayer:
        path = self.resolve(sound)
        self._ensure_mixer()
        import pygame

        try:
            return PygamePlayer(sound, path)
        except pygame.error as e:
            raise AudioPlaybackFailed(e) from e


# ── headless backend ──────────────────────────────────────────


class SilentPlayer:
    """Tracks play state and volume without producing sound (audio_backend: silent)."""

    def __init__(self, sound: AmbientSound) -> None:
        self.sound = sound
        self.volume = 0.0
        self.playing = False

    def play(self) -> None:
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def resume(self) -> None:
        self.playing = True

    def stop(self) -> None:
        self.playing = False


class SilentPlayerFactory:
    def create(self, sound: AmbientSound) -> SilentPlayer:
        return SilentPlayer(sound)


def make_player_factory(backend: str, sounds_dir: Path) -> PlayerFactory:
    if backend == "pygame":
        return PygamePlayerFactory(sounds_dir)
    if backend == "silent":
        return SilentPlayerFactory()
    raise ValueError(f"Invalid audio backend: {backend!r}")
