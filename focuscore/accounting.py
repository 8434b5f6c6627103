"""Focus session accounting.

Binds a ClockTimer to the session ledger of whichever task is current.

The timer is started from the task's previously completed total, so it
always shows cumulative focus for the task. A session's own contribution
is therefore ``timer elapsed - other completed sessions``; that
subtraction lives in ``session_delta`` and nowhere else.
"""

from __future__ import annotations

import logging

from focuscore.errors import (
    FetchFailed,
    FocusError,
    InvalidStateError,
    NoActiveSessionError,
    NoActiveTaskError,
    SaveFailed,
)
from focuscore.events import Signal
from focuscore.models import FocusSession, FocusTask, SessionStatus
from focuscore.repository import TaskRepository
from focuscore.scheduling import Clock
from focuscore.timer import ClockTimer

logger = logging.getLogger(__name__)


def session_delta(cumulative_elapsed: int, other_sessions_total: int) -> int:
    """Seconds owned by the active session, never negative."""
    return max(0, int(cumulative_elapsed) - int(other_sessions_total))


def previously_accumulated(task: FocusTask, exclude: FocusSession | None = None) -> int:
    """Total of the task's completed sessions, leaving out ``exclude``."""
    return sum(
        s.elapsed_seconds
        for s in task.sessions
        if s.status == SessionStatus.COMPLETED and s is not exclude
    )


class SessionAccountant:
    def __init__(self, repository: TaskRepository, timer: ClockTimer, clock: Clock) -> None:
        self.repository = repository
        self.timer = timer
        self.clock = clock

        self.current_task: FocusTask | None = None
        self.current_session: FocusSession | None = None

        self.task_loaded = Signal("task_loaded")
        self.error = Signal("error")
        # (action, task, session) after every successful ledger change
        self.session_changed = Signal("session_changed")

    # ── Task selection ────────────────────────────────────────

    def load_current_task(self) -> FocusTask | None:
        """Designate the task scheduled for now (or none).

        A designated task is kept until its slot has ended, even when
        another task is now the earliest one scheduled.
        """
        now = self.clock.now()
        current = self.current_task
        if current is not None and not current.is_completed and not current.has_ended(now):
            self.task_loaded.emit(current)
            return current

        try:
            task = self.repository.fetch_active_task_for_now(now)
        except Exception as e:
            logger.warning("Fetching the current task failed", exc_info=True)
            self._report(FetchFailed(e))
            return self.current_task

        if task is self.current_task:
            self.task_loaded.emit(task)
            return task
        if self.current_session is not None:
            self.switch_active_task(task)
            return task

        self._adopt(task)
        self.task_loaded.emit(task)
        return task

    def switch_active_task(self, new_task: FocusTask | None) -> None:
        """Hand off to another task, completing any running session first."""
        previous = self.current_task
        if self.current_session is not None:
            self.stop_focus()
        elif self.timer.is_active:
            self.timer.stop()

        self._adopt(new_task)
        logger.info(
            "Active task %s -> %s",
            previous.id if previous else None,
            new_task.id if new_task else None,
        )
        self.task_loaded.emit(new_task)
        self.session_changed.emit("switch", new_task, None)

    # ── Focus lifecycle ───────────────────────────────────────

    def start_focus(self, task: FocusTask | None = None) -> FocusSession | None:
        if task is not None and task is not self.current_task:
            self.switch_active_task(task)

        task = self.current_task
        if task is None:
            self._report(NoActiveTaskError())
            return None
        if self.current_session is not None or self.timer.is_active:
            self._report(InvalidStateError("A focus session is already running"))
            return None

        self._close_orphaned_sessions(task)
        baseline = previously_accumulated(task)

        session = FocusSession(task_id=task.id, started_at=self.clock.now())
        task.sessions.append(session)
        self.current_session = session
        try:
            self.repository.insert(session)
        except Exception as e:
            logger.warning("Inserting session %s failed", session.id, exc_info=True)
            self._report(SaveFailed(e))
        self._save()

        self.timer.start(baseline)
        logger.info("Focus started on %s (baseline %ss)", task.id, baseline)
        self.session_changed.emit("start", task, session)
        return session

    def pause_focus(self) -> bool:
        session = self.current_session
        if session is None:
            self._report(NoActiveSessionError())
            return False
        if not self.timer.pause():
            self._report(InvalidStateError("The focus timer is not running"))
            return False

        self._record_elapsed(session, self.timer.elapsed_seconds)
        session.pause()
        self._save()
        logger.info("Focus paused on %s at %ss", session.task_id, session.elapsed_seconds)
        self.session_changed.emit("pause", self.current_task, session)
        return True

    def resume_focus(self) -> bool:
        session = self.current_session
        if session is None:
            self._report(NoActiveSessionError())
            return False
        if not self.timer.resume():
            self._report(InvalidStateError("The focus timer is not paused"))
            return False

        session.resume()
        self._save()
        logger.info("Focus resumed on %s", session.task_id)
        self.session_changed.emit("resume", self.current_task, session)
        return True

    def stop_focus(self) -> FocusSession | None:
        session = self.current_session
        if session is None:
            self._report(NoActiveSessionError())
            return None

        total = self.timer.stop()
        self._record_elapsed(session, total)
        session.complete(self.clock.now())
        self.current_session = None
        self._save()
        logger.info(
            "Focus stopped on %s: session %ss, cumulative %ss",
            session.task_id, session.elapsed_seconds, total,
        )
        self.session_changed.emit("stop", self.current_task, session)
        return session

    # ── Internals ─────────────────────────────────────────────

    def _record_elapsed(self, session: FocusSession, cumulative: int) -> None:
        task = self.current_task
        others = previously_accumulated(task, exclude=session) if task else 0
        session.elapsed_seconds = session_delta(cumulative, others)

    def _adopt(self, task: FocusTask | None) -> None:
        self.current_task = task
        self.current_session = None
        if task is not None and not self.timer.is_active:
            self._close_orphaned_sessions(task)

    def _close_orphaned_sessions(self, task: FocusTask) -> None:
        """Complete sessions left active by a previous run (crash, kill)."""
        orphans = [s for s in task.sessions if s.is_active and s is not self.current_session]
        if not orphans:
            return
        now = self.clock.now()
        for s in orphans:
            logger.warning("Closing orphaned session %s (%ss)", s.id, s.elapsed_seconds)
            s.complete(now)
        self._save()

    def _save(self) -> None:
        try:
            self.repository.save()
        except Exception as e:
            logger.warning("Saving the focus ledger failed", exc_info=True)
            self._report(SaveFailed(e))

    def _report(self, error: FocusError) -> None:
        logger.warning("%s: %s", error.kind, error)
        self.error.emit(error)
