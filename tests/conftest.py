"""Shared test fixtures for FocusLedger tests."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest
import yaml

from focuscore.accounting import SessionAccountant
from focuscore.controller import FocusController
from focuscore.crossfade import CrossfadeScheduler
from focuscore.errors import AudioPlaybackFailed
from focuscore.models import AmbientSound, FocusTask
from focuscore.repository import MemoryTaskRepository
from focuscore.timer import ClockTimer

T0 = datetime(2026, 2, 11, 9, 30, tzinfo=timezone.utc)


# ── Fakes ─────────────────────────────────────────────────────


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.t = start.timestamp()

    def time(self) -> float:
        return self.t

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.t, timezone.utc)

    def advance(self, seconds: float) -> None:
        self.t += seconds


class ManualHandle:
    def __init__(self, interval: float, callback: Callable[[], None], origin: float) -> None:
        self.interval = interval
        self.callback = callback
        self.origin = origin
        self.fired = 0
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def next_due(self) -> float:
        return self.origin + (self.fired + 1) * self.interval


class ManualScheduler:
    """Fires repeating callbacks as a FakeClock is advanced.

    Due times are computed from the origin, not accumulated, so many small
    steps do not drift.
    """

    EPSILON = 1e-6

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.handles: list[ManualHandle] = []

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(interval, callback, self.clock.time())
        self.handles.append(handle)
        return handle

    @property
    def active(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.clock.time() + seconds
        while True:
            due = [h for h in self.active if h.next_due <= target + self.EPSILON]
            if not due:
                break
            handle = min(due, key=lambda h: h.next_due)
            self.clock.t = max(self.clock.t, handle.next_due)
            handle.fired += 1
            handle.callback()
        self.clock.t = target


class FakePlayer:
    def __init__(self, sound: AmbientSound) -> None:
        self.sound = sound
        self.volume = 1.0
        self.state = "created"

    def play(self) -> None:
        self.state = "playing"

    def pause(self) -> None:
        self.state = "paused"

    def resume(self) -> None:
        self.state = "playing"

    def stop(self) -> None:
        self.state = "stopped"


class FakePlayerFactory:
    """Records every player it hands out; sounds in ``failing`` raise."""

    def __init__(self) -> None:
        self.created: list[FakePlayer] = []
        self.failing: set[AmbientSound] = set()

    def create(self, sound: AmbientSound) -> FakePlayer:
        if sound in self.failing:
            raise AudioPlaybackFailed(f"missing {sound.value}")
        player = FakePlayer(sound)
        self.created.append(player)
        return player

    @property
    def live(self) -> list[FakePlayer]:
        return [p for p in self.created if p.state != "stopped"]


def make_task(title: str = "Deep work", start: datetime = T0 - timedelta(minutes=30),
              minutes: int = 120, **kwargs) -> FocusTask:
    return FocusTask(title=title, start_time=start, end_time=start + timedelta(minutes=minutes), **kwargs)


# ── Fixtures ──────────────────────────────────────────────────


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with standard structure."""
    root = tmp_path / "workspace"
    (root / "planner").mkdir(parents=True)

    (root / "planner" / "profile.yaml").write_text(
        yaml.dump({"timezone": "UTC"}, default_flow_style=False), encoding="utf-8"
    )
    focus = {
        "tick_interval_sec": 1.0,
        "fade_duration_sec": 1.0,
        "fade_step_sec": 0.05,
        "sound_volume": 0.8,
        "audio_backend": "silent",
    }
    (root / "planner" / "focus.yaml").write_text(
        yaml.dump(focus, default_flow_style=False), encoding="utf-8"
    )

    os.environ["PLANNER_ROOT"] = str(root)
    yield root
    if "PLANNER_ROOT" in os.environ:
        del os.environ["PLANNER_ROOT"]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture
def player_factory() -> FakePlayerFactory:
    return FakePlayerFactory()


@pytest.fixture
def task() -> FocusTask:
    return make_task()


@pytest.fixture
def repository(task: FocusTask) -> MemoryTaskRepository:
    return MemoryTaskRepository([task])


@pytest.fixture
def timer(clock: FakeClock, scheduler: ManualScheduler) -> ClockTimer:
    return ClockTimer(clock, scheduler, tick_interval=1.0)


@pytest.fixture
def sound(player_factory: FakePlayerFactory, scheduler: ManualScheduler) -> CrossfadeScheduler:
    return CrossfadeScheduler(player_factory, scheduler, fade_duration=1.0, step_interval=0.05, volume=1.0)


@pytest.fixture
def accountant(repository: MemoryTaskRepository, timer: ClockTimer, clock: FakeClock) -> SessionAccountant:
    return SessionAccountant(repository, timer, clock)


@pytest.fixture
def controller(timer: ClockTimer, sound: CrossfadeScheduler, accountant: SessionAccountant) -> FocusController:
    return FocusController(timer, sound, accountant)
