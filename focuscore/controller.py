"""The focus-session owner used by the UI surfaces.

Composes a ClockTimer, a CrossfadeScheduler and a SessionAccountant that
are passed in explicitly; ``build_focus_controller`` wires production
instances for one workspace.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from focuscore.accounting import SessionAccountant
from focuscore.audio import PlayerFactory, make_player_factory
from focuscore.config import FocusConfig, load_config
from focuscore.crossfade import CrossfadeScheduler
from focuscore.hooks import HookDispatcher, HookRunner, workspace_hook_runner
from focuscore.models import AmbientSound, FocusSession, FocusTask, TimerState
from focuscore.repository import JsonTaskRepository, TaskRepository
from focuscore.scheduling import Clock, Scheduler, SystemClock
from focuscore.timer import ClockTimer
from focuscore.workspace import get_user_timezone, ledger_path, workspace_root

logger = logging.getLogger(__name__)

_HOOK_POINTS = {
    "start": "on_focus_start",
    "pause": "on_focus_pause",
    "resume": "on_focus_resume",
    "stop": "on_focus_stop",
    "switch": "on_task_switch",
}


class FocusController:
    def __init__(
        self,
        timer: ClockTimer,
        sound: CrossfadeScheduler,
        accountant: SessionAccountant,
        hook_runner: HookRunner | None = None,
    ) -> None:
        self.timer = timer
        self.sound = sound
        self.accountant = accountant
        self.hook_runner = hook_runner

        self.timer.state_changed.connect(self._on_timer_state)
        self.accountant.session_changed.connect(self._on_session_changed)
        self.sound.current_sound_changed.connect(self._on_sound_changed)

    # ── State ─────────────────────────────────────────────────

    @property
    def state(self) -> TimerState:
        return self.timer.state

    @property
    def elapsed_seconds(self) -> int:
        return self.timer.elapsed_seconds

    @property
    def current_task(self) -> FocusTask | None:
        return self.accountant.current_task

    @property
    def current_session(self) -> FocusSession | None:
        return self.accountant.current_session

    # ── UI operations ─────────────────────────────────────────

    def load_current_task(self) -> FocusTask | None:
        return self.accountant.load_current_task()

    def switch_active_task(self, task: FocusTask | None) -> None:
        self.accountant.switch_active_task(task)

    def start_focus(self, task: FocusTask | None = None) -> FocusSession | None:
        return self.accountant.start_focus(task)

    def pause_focus(self) -> bool:
        return self.accountant.pause_focus()

    def resume_focus(self) -> bool:
        return self.accountant.resume_focus()

    def stop_focus(self) -> FocusSession | None:
        return self.accountant.stop_focus()

    def toggle_focus(self) -> None:
        """Single-button behavior: start, pause or resume by timer state."""
        if self.timer.state == TimerState.IDLE:
            self.start_focus()
        elif self.timer.state == TimerState.RUNNING:
            self.pause_focus()
        else:
            self.resume_focus()

    def select_sound(self, sound: AmbientSound) -> None:
        self.sound.play(sound)

    def toggle_sound_playback(self) -> bool:
        return self.sound.toggle()

    def set_volume(self, level: float) -> None:
        self.sound.set_volume(level)

    # ── App lifecycle ─────────────────────────────────────────

    def handle_suspend(self) -> None:
        self.timer.handle_suspend()

    def handle_foreground(self) -> None:
        self.timer.handle_foreground()
        self.accountant.load_current_task()

    def shutdown(self) -> None:
        """Persist a running session as paused and release audio.

        Queued hooks still finish on the dispatcher thread.
        """
        if self.timer.state == TimerState.RUNNING and self.current_session is not None:
            self.pause_focus()
        self.timer.handle_suspend()
        self.sound.stop()
        if isinstance(self.hook_runner, HookDispatcher):
            self.hook_runner.close()

    # ── Wiring ────────────────────────────────────────────────

    def _on_timer_state(self, state: TimerState) -> None:
        if state == TimerState.RUNNING:
            if self.sound.current_sound != AmbientSound.NONE and not self.sound.is_playing:
                self.sound.resume()
        elif self.sound.is_playing:
            self.sound.pause()

    def _on_session_changed(self, action: str, task: FocusTask | None, session: FocusSession | None) -> None:
        point = _HOOK_POINTS.get(action)
        if point is None:
            return
        self._run_hook(point, {
            "action": action,
            "taskId": task.id if task else None,
            "taskTitle": task.title if task else None,
            "totalFocusedSeconds": task.total_focused_time if task else 0,
            "session": session.to_dict() if session else None,
        })

    def _on_sound_changed(self, sound: AmbientSound) -> None:
        self._run_hook("on_sound_change", {"sound": sound.value})

    def _run_hook(self, point: str, context: dict[str, Any]) -> None:
        if self.hook_runner is None:
            return
        self.hook_runner(point, context)


def build_focus_controller(
    scheduler: Scheduler,
    root: Path | None = None,
    config: FocusConfig | None = None,
    repository: TaskRepository | None = None,
    clock: Clock | None = None,
    player_factory: PlayerFactory | None = None,
    hook_runner: HookRunner | None = None,
) -> FocusController:
    """Wire a controller for one workspace; every collaborator can be overridden."""
    if root is None:
        root = workspace_root()
    if config is None:
        config = load_config(root)
    if clock is None:
        clock = SystemClock(get_user_timezone(root))
    if repository is None:
        repository = JsonTaskRepository(ledger_path(root))
    if player_factory is None:
        player_factory = make_player_factory(config.audio_backend, config.resolve_sounds_dir(root))
    if hook_runner is None:
        hook_runner = workspace_hook_runner(root)

    timer = ClockTimer(clock, scheduler, tick_interval=config.tick_interval_sec)
    sound = CrossfadeScheduler(
        player_factory,
        scheduler,
        fade_duration=config.fade_duration_sec,
        step_interval=config.fade_step_sec,
        volume=config.sound_volume,
    )
    accountant = SessionAccountant(repository, timer, clock)
    logger.debug("Focus controller built for %s", root)
    return FocusController(timer, sound, accountant, hook_runner=hook_runner)
