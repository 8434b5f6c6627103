"""Display state for the focus screen.

``FocusPresenter`` listens to the controller's components and keeps three
immutable view models current. Surfaces read them (or subscribe to
``changed``) and never touch the engine's state directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from focuscore.controller import FocusController
from focuscore.errors import FocusError
from focuscore.events import Signal
from focuscore.formatting import format_clock
from focuscore.models import AmbientSound, FocusTask, TimerState

BUTTON_TITLES = {
    TimerState.IDLE: "Start",
    TimerState.RUNNING: "Pause",
    TimerState.PAUSED: "Resume",
}


@dataclass(frozen=True)
class TimerViewModel:
    timer_display: str = "00:00"
    progress: float = 0.0
    state: TimerState = TimerState.IDLE
    button_title: str = "Start"

    def to_dict(self) -> dict[str, Any]:
        return {
            "timerDisplay": self.timer_display,
            "progress": self.progress,
            "state": self.state.value,
            "buttonTitle": self.button_title,
        }


@dataclass(frozen=True)
class TaskCardViewModel:
    id: str = ""
    title: str = ""
    start_time: str = ""
    end_time: str = ""
    duration: str = ""
    progress: float = 0.0
    focused_time_display: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "progress": self.progress,
            "focusedTimeDisplay": self.focused_time_display,
        }


@dataclass(frozen=True)
class SoundViewModel:
    selected_sound: AmbientSound = AmbientSound.NONE
    display_name: str = "None"
    is_playing: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "selectedSound": self.selected_sound.value,
            "displayName": self.display_name,
            "isPlaying": self.is_playing,
        }


def cumulative_progress(cumulative_seconds: int, task: FocusTask | None) -> float:
    """Share of the task's planned time covered by ``cumulative_seconds``."""
    if task is None or task.planned_duration <= 0:
        return 0.0
    return min(max(0, cumulative_seconds) / task.planned_duration, 1.0)


class FocusPresenter:
    def __init__(self, controller: FocusController) -> None:
        self.controller = controller

        self.timer_view = TimerViewModel()
        self.task_view = TaskCardViewModel()
        self.sound_view = SoundViewModel()
        self.has_current_task = False
        self.error: FocusError | None = None

        self.changed = Signal("changed")

        accountant = controller.accountant
        timer = controller.timer
        sound = controller.sound
        accountant.task_loaded.connect(self._on_task_loaded)
        accountant.session_changed.connect(lambda *_: self._refresh())
        accountant.error.connect(self._on_error)
        timer.ticked.connect(lambda _elapsed: self._refresh())
        timer.state_changed.connect(lambda _state: self._refresh())
        sound.current_sound_changed.connect(lambda _sound: self._refresh_sound())
        sound.is_playing_changed.connect(lambda _playing: self._refresh_sound())
        sound.error.connect(self._on_error)

        self._refresh()
        self._refresh_sound()

    def clear_error(self, notify: bool = True) -> None:
        """Forget the last error; ``notify=False`` when called from a ``changed`` handler."""
        self.error = None
        if notify:
            self.changed.emit()

    def to_dict(self) -> dict[str, Any]:
        return {
            "timer": self.timer_view.to_dict(),
            "task": self.task_view.to_dict() if self.has_current_task else None,
            "sound": self.sound_view.to_dict(),
            "error": {"kind": self.error.kind, "message": str(self.error)} if self.error else None,
        }

    # ── Mapping ───────────────────────────────────────────────

    def _focused_seconds(self, task: FocusTask) -> int:
        # While a run is active the timer already carries the task's
        # completed total as its baseline.
        if self.controller.timer.is_active:
            return self.controller.timer.elapsed_seconds
        return task.total_focused_time

    def _refresh(self) -> None:
        task = self.controller.current_task
        timer = self.controller.timer
        self.has_current_task = task is not None

        focused = self._focused_seconds(task) if task else 0
        progress = cumulative_progress(focused, task)
        self.timer_view = TimerViewModel(
            timer_display=format_clock(timer.elapsed_seconds),
            progress=progress,
            state=timer.state,
            button_title=BUTTON_TITLES[timer.state],
        )
        if task is None:
            self.task_view = TaskCardViewModel()
        else:
            self.task_view = TaskCardViewModel(
                id=task.id,
                title=task.title,
                start_time=task.start_time_str,
                end_time=task.end_time_str,
                duration=task.duration_str,
                progress=progress,
                focused_time_display=format_clock(focused),
            )
        self.changed.emit()

    def _refresh_sound(self) -> None:
        sound = self.controller.sound
        self.sound_view = SoundViewModel(
            selected_sound=sound.current_sound,
            display_name=sound.current_sound.display_name,
            is_playing=sound.is_playing,
        )
        self.changed.emit()

    def _on_task_loaded(self, task: FocusTask | None) -> None:
        self._refresh()

    def _on_error(self, error: FocusError) -> None:
        self.error = error
        self.changed.emit()
