"""Ambient sound playback with linear crossfades.

Exactly one sound is selected at a time. Switching sounds starts the new
player at volume 0 and ramps it up while the previous player ramps down,
in ``fade_duration / step_interval`` equal steps. At most one incoming and
one outgoing player exist; any new request cancels the ramp in flight.
"""

from __future__ import annotations

import logging

from focuscore.audio import Player, PlayerFactory
from focuscore.config import clamp_volume
from focuscore.errors import AudioPlaybackFailed
from focuscore.events import Signal
from focuscore.models import AmbientSound
from focuscore.scheduling import CancellationHandle, Scheduler

logger = logging.getLogger(__name__)


class CrossfadeScheduler:
    def __init__(
        self,
        player_factory: PlayerFactory,
        scheduler: Scheduler,
        fade_duration: float = 1.0,
        step_interval: float = 0.05,
        volume: float = 1.0,
    ) -> None:
        if fade_duration <= 0 or step_interval <= 0:
            raise ValueError("fade_duration and step_interval must be positive")
        self.player_factory = player_factory
        self.scheduler = scheduler
        self.fade_duration = fade_duration
        self.step_interval = step_interval
        self.total_steps = max(1, round(fade_duration / step_interval))
        self.volume = clamp_volume(volume)

        self.current_sound = AmbientSound.NONE
        self.is_playing = False

        self._requested = AmbientSound.NONE
        self._incoming: Player | None = None
        self._outgoing: Player | None = None
        self._outgoing_start_volume = 0.0
        self._fade_handle: CancellationHandle | None = None
        self._step = 0
        self._clear_on_complete = False

        self.current_sound_changed = Signal("current_sound_changed")
        self.is_playing_changed = Signal("is_playing_changed")
        self.error = Signal("error")

    # ── Introspection ─────────────────────────────────────────

    @property
    def incoming_player(self) -> Player | None:
        return self._incoming

    @property
    def outgoing_player(self) -> Player | None:
        return self._outgoing

    @property
    def fade_in_progress(self) -> bool:
        return self._fade_handle is not None

    # ── Operations ────────────────────────────────────────────

    def play(self, sound: AmbientSound) -> None:
        sound = AmbientSound(sound)
        # a selection whose player failed to start can be requested again
        if sound == self._requested and (sound == AmbientSound.NONE or self._incoming is not None):
            return
        self._requested = sound
        self._cancel_fade()

        previous = self._incoming
        self._incoming = None

        if sound == AmbientSound.NONE:
            if previous is None:
                self._set_selection(AmbientSound.NONE)
                self._set_playing(False)
                return
            logger.info("Fading out %s", previous.sound.value)
            self._begin_fade(previous, clear_on_complete=True)
            return

        try:
            player = self.player_factory.create(sound)
            player.volume = 0.0
            player.play()
        except (AudioPlaybackFailed, OSError) as e:
            failure = e if isinstance(e, AudioPlaybackFailed) else AudioPlaybackFailed(e)
            logger.warning("Could not play %s: %s", sound.value, failure)
            if previous is not None:
                self._begin_fade(previous, clear_on_complete=False)
            self._set_selection(sound)
            self._set_playing(False)
            self.error.emit(failure)
            return

        logger.info("Crossfading to %s", sound.value)
        self._incoming = player
        self._set_selection(sound)
        self._set_playing(True)
        self._begin_fade(previous, clear_on_complete=False)

    def pause(self) -> None:
        self._settle_fade()
        if self._incoming is not None:
            self._incoming.pause()
        self._set_playing(False)

    def resume(self) -> None:
        """Continue the selected sound, retrying its player if it never started."""
        self._settle_fade()
        if self.is_playing:
            return
        if self._incoming is None:
            if self.current_sound != AmbientSound.NONE:
                self.play(self.current_sound)
            return
        self._incoming.resume()
        self._set_playing(True)

    def toggle(self) -> bool:
        """Pause when playing, resume when paused. Returns the new playing flag."""
        if self.is_playing:
            self.pause()
        else:
            self.resume()
        return self.is_playing

    def stop(self) -> None:
        self._cancel_fade()
        if self._incoming is not None:
            self._incoming.stop()
            self._incoming = None
        self._requested = AmbientSound.NONE
        self._clear_on_complete = False
        self._set_selection(AmbientSound.NONE)
        self._set_playing(False)

    def set_volume(self, level: float) -> None:
        """Set the target volume; a ramp in flight picks it up on its next step."""
        self.volume = clamp_volume(level)
        if self._incoming is not None and not self.fade_in_progress:
            self._incoming.volume = self.volume

    # ── Fade internals ────────────────────────────────────────

    def _begin_fade(self, outgoing: Player | None, clear_on_complete: bool) -> None:
        self._outgoing = outgoing
        self._outgoing_start_volume = outgoing.volume if outgoing is not None else 0.0
        self._step = 0
        self._clear_on_complete = clear_on_complete
        self._fade_handle = self.scheduler.schedule_repeating(self.step_interval, self._fade_step)

    def _fade_step(self) -> None:
        if self._fade_handle is None:
            return
        self._step += 1
        fraction = min(self._step / self.total_steps, 1.0)
        if self._incoming is not None:
            self._incoming.volume = self.volume * fraction
        if self._outgoing is not None:
            self._outgoing.volume = self._outgoing_start_volume * (1.0 - fraction)
        if self._step >= self.total_steps:
            self._finish_fade()

    def _finish_fade(self) -> None:
        self._cancel_fade()
        if self._incoming is not None:
            self._incoming.volume = self.volume
        if self._clear_on_complete:
            self._clear_on_complete = False
            self._set_selection(AmbientSound.NONE)
            self._set_playing(False)

    def _settle_fade(self) -> None:
        if self.fade_in_progress:
            self._finish_fade()

    def _cancel_fade(self) -> None:
        """Invalidate the ramp in flight and release its outgoing player."""
        if self._fade_handle is not None:
            self._fade_handle.cancel()
            self._fade_handle = None
        if self._outgoing is not None:
            self._outgoing.stop()
            self._outgoing = None

    def _set_selection(self, sound: AmbientSound) -> None:
        if sound == self.current_sound:
            return
        self.current_sound = sound
        self.current_sound_changed.emit(sound)

    def _set_playing(self, playing: bool) -> None:
        if playing == self.is_playing:
            return
        self.is_playing = playing
        self.is_playing_changed.emit(playing)
