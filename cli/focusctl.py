#!/usr/bin/env python3
"""FocusLedger TUI — focus timer with ambient sound, powered by Textual."""

from __future__ import annotations

import sys
from typing import Callable

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Header, Label, ProgressBar, Static

from focuscore import (
    AmbientSound,
    FocusPresenter,
    build_focus_controller,
    format_total_time,
    load_config,
    now_local,
    setup_logger,
    total_focus_seconds,
    weekly_totals,
    workspace_root,
)
from focuscore.formatting import format_short_time, weekday_abbreviation

SOUND_ORDER = list(AmbientSound)

CSS = """
Screen { layout: vertical; }
#main-layout { height: 1fr; }
#focus-pane { width: 1fr; padding: 1 2; }
#side-pane { width: 40; padding: 1 2; border-left: solid $primary-background; }
.section-title { text-style: bold; color: $accent; margin-bottom: 1; }
#timer-display { text-style: bold; content-align: center middle; height: 5; border: round $primary; }
#timer-state { color: $text-muted; margin-bottom: 1; }
#task-card { margin-top: 1; }
#sound-info { margin-top: 1; }
"""


# ── Scheduler adapter ─────────────────────────────────────────


class _TextualHandle:
    def __init__(self, timer: Timer) -> None:
        self._timer = timer
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if not self._cancelled:
            self._cancelled = True
            self._timer.stop()


class TextualScheduler:
    """Repeating callbacks on the Textual app's message loop."""

    def __init__(self, app: App) -> None:
        self.app = app

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> _TextualHandle:
        return _TextualHandle(self.app.set_interval(interval, callback))


# ── Views ─────────────────────────────────────────────────────


class StatsScreen(Vertical):
    """This week's focus totals, Monday to Sunday."""

    def __init__(self, tasks, **kwargs) -> None:
        super().__init__(**kwargs)
        self._tasks = tasks

    def compose(self) -> ComposeResult:
        yield Label("This week", classes="section-title")
        yield Static(id="stats-total")
        yield DataTable(id="weekly-table")

    def on_mount(self) -> None:
        total = total_focus_seconds(self._tasks)
        self.query_one("#stats-total", Static).update(f"All time: {format_total_time(total)}")
        table: DataTable = self.query_one("#weekly-table", DataTable)
        table.add_columns("Day", "Date", "Focus")
        for day in weekly_totals(self._tasks, now_local()):
            table.add_row(weekday_abbreviation(day.day), day.day.isoformat(), format_short_time(day.total_seconds))


# ── Main app ───────────────────────────────────────────────────


class FocusApp(App):
    """FocusLedger — focus on the task scheduled for now."""

    TITLE = "FocusLedger"
    CSS = CSS
    AUTO_FOCUS = None

    BINDINGS = [
        Binding("space", "toggle_focus", "Start/Pause"),
        Binding("x", "stop_focus", "Stop"),
        Binding("n", "next_sound", "Sound"),
        Binding("p", "toggle_sound", "Play/Pause sound"),
        Binding("s", "toggle_stats", "Stats"),
        Binding("q", "quit_app", "Quit"),
    ]

    show_stats: reactive[bool] = reactive(False)

    def __init__(self) -> None:
        super().__init__()
        self.root_path = workspace_root()
        config = load_config(self.root_path)
        setup_logger(self.root_path, config.log_level)
        self.controller = build_focus_controller(
            TextualScheduler(self), root=self.root_path, config=config,
        )
        self.presenter = FocusPresenter(self.controller)

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            Vertical(
                Label("Focus", classes="section-title"),
                Static("00:00", id="timer-display"),
                Static(id="timer-state"),
                ProgressBar(total=1.0, show_eta=False, id="progress"),
                Static(id="task-card"),
                Static(id="sound-info"),
                id="focus-pane",
            ),
            Vertical(id="side-pane"),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.presenter.changed.connect(self._render)
        self.controller.load_current_task()
        self._render()
        # Pick up task boundaries passing while the app is open.
        self.set_interval(30, self.controller.load_current_task)

    def on_app_blur(self) -> None:
        self.controller.handle_suspend()

    def on_app_focus(self) -> None:
        self.controller.handle_foreground()

    def _render(self) -> None:
        timer = self.presenter.timer_view
        task = self.presenter.task_view
        sound = self.presenter.sound_view

        self.query_one("#timer-display", Static).update(timer.timer_display)
        self.query_one("#timer-state", Static).update(f"{timer.state.value.upper()} · [space] {timer.button_title}")
        self.query_one("#progress", ProgressBar).update(progress=timer.progress)

        if self.presenter.has_current_task:
            self.query_one("#task-card", Static).update(
                f"{task.title}\n{task.start_time}–{task.end_time} ({task.duration})\n"
                f"Focused {task.focused_time_display} · {round(task.progress * 100)}%"
            )
        else:
            self.query_one("#task-card", Static).update("No task is scheduled for now.")

        state = "playing" if sound.is_playing else "paused"
        if sound.selected_sound == AmbientSound.NONE:
            state = "off"
        self.query_one("#sound-info", Static).update(f"Sound: {sound.display_name} ({state})")

        if self.presenter.error is not None:
            error = self.presenter.error
            self.presenter.clear_error(notify=False)
            self.notify(str(error), title=error.kind.replace("_", " ").title(), severity="warning")

    # ── Actions ───────────────────────────────────────────────

    def action_toggle_focus(self) -> None:
        self.controller.toggle_focus()

    def action_stop_focus(self) -> None:
        session = self.controller.stop_focus()
        if session is not None:
            self.notify(f"Session saved: {format_short_time(session.elapsed_seconds)}", title="Focus")

    def action_next_sound(self) -> None:
        current = self.controller.sound.current_sound
        nxt = SOUND_ORDER[(SOUND_ORDER.index(current) + 1) % len(SOUND_ORDER)]
        self.controller.select_sound(nxt)

    def action_toggle_sound(self) -> None:
        self.controller.toggle_sound_playback()

    def action_toggle_stats(self) -> None:
        self.show_stats = not self.show_stats

    def watch_show_stats(self, show: bool) -> None:
        side = self.query_one("#side-pane", Vertical)
        side.remove_children()
        if show:
            side.mount(StatsScreen(self.controller.accountant.repository.fetch_tasks()))

    def action_quit_app(self) -> None:
        self.controller.shutdown()
        self.exit()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    if not root.exists():
        print(f"Workspace not found: {root}")
        print("Set PLANNER_ROOT to a directory containing planner/.")
        sys.exit(1)

    app = FocusApp()
    app.run()


if __name__ == "__main__":
    main()
