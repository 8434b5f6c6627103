"""Resumable stopwatch driven by wall-clock timestamps.

Elapsed time is ``accumulated + (now - started_at)`` while running and
``accumulated`` otherwise. Ticks only publish that value; missing ticks
(e.g. while the OS has the process suspended) never lose time.

Calling a transition from a state that forbids it is a silent no-op:
the method returns False, emits nothing and leaves elapsed time alone.
"""

from __future__ import annotations

import logging

from focuscore.events import Signal
from focuscore.models import TimerState
from focuscore.scheduling import CancellationHandle, Clock, Scheduler

logger = logging.getLogger(__name__)


class ClockTimer:
    def __init__(self, clock: Clock, scheduler: Scheduler, tick_interval: float = 1.0) -> None:
        self.clock = clock
        self.scheduler = scheduler
        self.tick_interval = tick_interval

        self.state = TimerState.IDLE
        self.elapsed_seconds = 0

        self._started_at: float | None = None
        self._accumulated_seconds = 0
        self._handle: CancellationHandle | None = None

        self.state_changed = Signal("state_changed")
        self.ticked = Signal("ticked")

    @property
    def is_active(self) -> bool:
        return self.state != TimerState.IDLE

    # ── Transitions ───────────────────────────────────────────

    def start(self, initial_seconds: int = 0) -> bool:
        if self.state != TimerState.IDLE:
            logger.debug("start ignored in state %s", self.state.value)
            return False
        initial_seconds = max(0, int(initial_seconds))

        self._accumulated_seconds = initial_seconds
        self.elapsed_seconds = initial_seconds
        self._started_at = self.clock.time()
        self._set_state(TimerState.RUNNING)

        # Immediate tick so observers show the baseline right away.
        self.ticked.emit(self.elapsed_seconds)
        self._schedule_ticks()
        return True

    def pause(self) -> bool:
        if self.state != TimerState.RUNNING:
            logger.debug("pause ignored in state %s", self.state.value)
            return False
        self._cancel_ticks()
        self._update_elapsed()
        self._accumulated_seconds = self.elapsed_seconds
        self._started_at = None
        self._set_state(TimerState.PAUSED)
        return True

    def resume(self) -> bool:
        if self.state != TimerState.PAUSED:
            logger.debug("resume ignored in state %s", self.state.value)
            return False
        self._started_at = self.clock.time()
        self._set_state(TimerState.RUNNING)
        self._schedule_ticks()
        self.ticked.emit(self.elapsed_seconds)
        return True

    def stop(self) -> int:
        """Return the final elapsed seconds and go back to idle."""
        if self.state == TimerState.IDLE:
            return self.elapsed_seconds
        self._cancel_ticks()
        self._update_elapsed()
        total = self.elapsed_seconds

        self._started_at = None
        self._accumulated_seconds = 0
        self.elapsed_seconds = 0
        self._set_state(TimerState.IDLE)
        return total

    def reset(self) -> None:
        self._cancel_ticks()
        self._started_at = None
        self._accumulated_seconds = 0
        self.elapsed_seconds = 0
        self._set_state(TimerState.IDLE, force=True)
        self.ticked.emit(0)

    # ── App lifecycle ─────────────────────────────────────────

    def handle_suspend(self) -> None:
        """Process is being backgrounded: stop ticking, keep the timestamps."""
        if self.state != TimerState.RUNNING:
            return
        self._cancel_ticks()

    def handle_foreground(self) -> None:
        """Process is back: recompute once, then tick again."""
        if self.state != TimerState.RUNNING:
            return
        self._update_elapsed()
        self.ticked.emit(self.elapsed_seconds)
        self._schedule_ticks()

    # ── Internals ─────────────────────────────────────────────

    def _tick(self) -> None:
        if self.state != TimerState.RUNNING:
            return
        self._update_elapsed()
        self.ticked.emit(self.elapsed_seconds)

    def _update_elapsed(self) -> None:
        if self._started_at is None:
            self.elapsed_seconds = self._accumulated_seconds
            return
        delta = int(self.clock.time() - self._started_at)
        self.elapsed_seconds = self._accumulated_seconds + max(0, delta)

    def _schedule_ticks(self) -> None:
        self._cancel_ticks()
        self._handle = self.scheduler.schedule_repeating(self.tick_interval, self._tick)

    def _cancel_ticks(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _set_state(self, state: TimerState, force: bool = False) -> None:
        if state == self.state and not force:
            return
        logger.debug("timer %s -> %s", self.state.value, state.value)
        self.state = state
        self.state_changed.emit(state)
