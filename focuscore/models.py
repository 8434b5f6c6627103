"""Typed dataclasses for the FocusLedger data model.

All persisted models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def _new_id() -> str:
    return str(uuid.uuid4())


def _parse_dt(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _format_dt(value: datetime | None) -> str | None:
    return value.isoformat(timespec="seconds") if value else None


# ── Enums ─────────────────────────────────────────────────────


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class SessionStatus(str, Enum):
    IN_PROGRESS = "inProgress"
    PAUSED = "paused"
    COMPLETED = "completed"


class AmbientSound(str, Enum):
    NONE = "none"
    WHITE_NOISE = "whiteNoise"
    BIRDS = "birds"
    NIGHT_FOREST = "nightForest"
    RAIN = "rain"

    @property
    def display_name(self) -> str:
        return _SOUND_NAMES[self]

    @property
    def icon_name(self) -> str:
        return _SOUND_ICONS[self]

    @property
    def file_name(self) -> str | None:
        """Base file name (no extension) of the looped track, None for silence."""
        return _SOUND_FILES[self]


_SOUND_NAMES = {
    AmbientSound.NONE: "None",
    AmbientSound.WHITE_NOISE: "White noise",
    AmbientSound.BIRDS: "Birds",
    AmbientSound.NIGHT_FOREST: "Night forest",
    AmbientSound.RAIN: "Rain",
}

_SOUND_ICONS = {
    AmbientSound.NONE: "speaker.slash",
    AmbientSound.WHITE_NOISE: "waveform",
    AmbientSound.BIRDS: "bird",
    AmbientSound.NIGHT_FOREST: "moon.stars",
    AmbientSound.RAIN: "cloud.rain",
}

_SOUND_FILES = {
    AmbientSound.NONE: None,
    AmbientSound.WHITE_NOISE: "white_noise",
    AmbientSound.BIRDS: "birds",
    AmbientSound.NIGHT_FOREST: "night_forest",
    AmbientSound.RAIN: "rain",
}


# ── Focus Session ─────────────────────────────────────────────


@dataclass(eq=False)
class FocusSession:
    """One contiguous (possibly paused) interval of focus on a task.

    ``elapsed_seconds`` is this session's own contribution, never the
    running total across the task's other sessions.
    """

    id: str = field(default_factory=_new_id)
    task_id: str = ""
    started_at: datetime | None = None
    ended_at: datetime | None = None
    elapsed_seconds: int = 0
    status: SessionStatus = SessionStatus.IN_PROGRESS

    @property
    def is_active(self) -> bool:
        return self.status in (SessionStatus.IN_PROGRESS, SessionStatus.PAUSED)

    def pause(self) -> bool:
        """Valid only from in-progress. Returns True if the status changed."""
        if self.status != SessionStatus.IN_PROGRESS:
            return False
        self.status = SessionStatus.PAUSED
        return True

    def resume(self) -> bool:
        """Valid only from paused. Returns True if the status changed."""
        if self.status != SessionStatus.PAUSED:
            return False
        self.status = SessionStatus.IN_PROGRESS
        return True

    def complete(self, at: datetime) -> bool:
        """Valid from in-progress or paused. Returns True if the status changed."""
        if self.status == SessionStatus.COMPLETED:
            return False
        self.ended_at = at
        self.status = SessionStatus.COMPLETED
        return True

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FocusSession:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            id=str(d.get("id") or _new_id()),
            task_id=str(d.get("taskId", d.get("task_id", ""))),
            started_at=_parse_dt(d.get("startedAt", d.get("started_at"))),
            ended_at=_parse_dt(d.get("endedAt", d.get("ended_at"))),
            elapsed_seconds=max(0, int(d.get("elapsedSeconds", d.get("elapsed_seconds", 0)) or 0)),
            status=SessionStatus(d.get("status", SessionStatus.IN_PROGRESS.value)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "startedAt": _format_dt(self.started_at),
            "endedAt": _format_dt(self.ended_at),
            "elapsedSeconds": self.elapsed_seconds,
            "status": self.status.value,
        }


# ── Focus Task ────────────────────────────────────────────────


@dataclass(eq=False)
class FocusTask:
    """A scheduled block of planned time and its ledger of sessions."""

    title: str = ""
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=_new_id)
    is_completed: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sessions: list[FocusSession] = field(default_factory=list)

    @property
    def planned_duration(self) -> int:
        """Planned seconds between start and end."""
        return int((self.end_time - self.start_time).total_seconds())

    @property
    def total_focused_time(self) -> int:
        return sum(
            s.elapsed_seconds
            for s in self.sessions
            if s.status in (SessionStatus.COMPLETED, SessionStatus.IN_PROGRESS)
        )

    @property
    def progress(self) -> float:
        if self.planned_duration <= 0:
            return 0.0
        return min(self.total_focused_time / self.planned_duration, 1.0)

    @property
    def current_session(self) -> FocusSession | None:
        for s in self.sessions:
            if s.is_active:
                return s
        return None

    def is_within_time_slot(self, at: datetime) -> bool:
        return self.start_time <= at <= self.end_time

    def has_ended(self, at: datetime) -> bool:
        return at > self.end_time

    @property
    def start_time_str(self) -> str:
        return self.start_time.strftime("%H:%M")

    @property
    def end_time_str(self) -> str:
        return self.end_time.strftime("%H:%M")

    @property
    def time_slot_str(self) -> str:
        return f"{self.start_time_str}-{self.end_time_str}"

    @property
    def duration_str(self) -> str:
        planned = max(0, self.planned_duration)
        hours = planned // 3600
        minutes = (planned % 3600) // 60
        if hours > 0 and minutes > 0:
            return f"{hours}h {minutes}m"
        if hours > 0:
            return f"{hours}h"
        return f"{minutes}m"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FocusTask:
        if not d or not isinstance(d, dict):
            raise ValueError("Task record must be a mapping")
        start = _parse_dt(d.get("startTime", d.get("start_time")))
        end = _parse_dt(d.get("endTime", d.get("end_time")))
        if start is None or end is None:
            raise ValueError(f"Task {d.get('id', '?')!r} is missing its time slot")
        task = cls(
            id=str(d.get("id") or _new_id()),
            title=str(d.get("title", "")),
            start_time=start,
            end_time=end,
            is_completed=bool(d.get("isCompleted", d.get("is_completed", False))),
            created_at=_parse_dt(d.get("createdAt", d.get("created_at"))) or start,
        )
        for sd in d.get("sessions") or []:
            session = FocusSession.from_dict(sd)
            session.task_id = task.id
            task.sessions.append(session)
        return task

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "startTime": _format_dt(self.start_time),
            "endTime": _format_dt(self.end_time),
            "isCompleted": self.is_completed,
            "createdAt": _format_dt(self.created_at),
            "sessions": [s.to_dict() for s in self.sessions],
        }
