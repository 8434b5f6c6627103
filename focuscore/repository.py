"""Task/session ledger storage.

The accountant only needs the abstract ``TaskRepository`` capability.
Objects handed out by a repository are live: mutate them, then call
``save()`` to persist (a unit of work, as in an ORM context).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from focuscore.fileio import read_json, write_json_atomic
from focuscore.models import FocusSession, FocusTask
from focuscore.workspace import ledger_path

logger = logging.getLogger(__name__)

LEDGER_VERSION = 1


class TaskRepository(ABC):
    @abstractmethod
    def fetch_active_task_for_now(self, now: datetime) -> FocusTask | None:
        """The earliest incomplete task whose time slot contains ``now``."""

    @abstractmethod
    def fetch_all_sessions_for_task(self, task_id: str) -> list[FocusSession]: ...

    @abstractmethod
    def insert(self, session: FocusSession) -> None: ...

    @abstractmethod
    def save(self) -> None:
        """Persist pending changes. Raises on failure."""

    @abstractmethod
    def delete(self, session: FocusSession) -> None: ...


class MemoryTaskRepository(TaskRepository):
    """In-memory ledger; the base for the JSON file store."""

    def __init__(self, tasks: list[FocusTask] | None = None) -> None:
        self._tasks: list[FocusTask] = list(tasks or [])
        self.save_count = 0

    # ── Tasks ─────────────────────────────────────────────────

    def fetch_tasks(self) -> list[FocusTask]:
        return sorted(self._tasks, key=lambda t: t.start_time)

    def get_task(self, task_id: str) -> FocusTask | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def add_task(self, task: FocusTask) -> FocusTask:
        if task.end_time < task.start_time:
            raise ValueError("Task end time must not be before its start time")
        if self.get_task(task.id):
            raise ValueError(f"Task ID already exists: {task.id}")
        self._tasks.append(task)
        return task

    def delete_task(self, task_id: str) -> bool:
        """Remove a task and, with it, all of its sessions."""
        task = self.get_task(task_id)
        if task is None:
            return False
        self._tasks.remove(task)
        return True

    def fetch_active_task_for_now(self, now: datetime) -> FocusTask | None:
        candidates = [
            t for t in self._tasks
            if not t.is_completed and t.is_within_time_slot(now)
        ]
        candidates.sort(key=lambda t: t.start_time)
        return candidates[0] if candidates else None

    # ── Sessions ──────────────────────────────────────────────

    def fetch_all_sessions_for_task(self, task_id: str) -> list[FocusSession]:
        task = self.get_task(task_id)
        return list(task.sessions) if task else []

    def insert(self, session: FocusSession) -> None:
        task = self.get_task(session.task_id)
        if task is None:
            raise ValueError(f"Task not found: {session.task_id}")
        if not any(s is session for s in task.sessions):
            task.sessions.append(session)

    def delete(self, session: FocusSession) -> None:
        task = self.get_task(session.task_id)
        if task is None:
            return
        task.sessions = [s for s in task.sessions if s is not session]

    def save(self) -> None:
        self.save_count += 1


class JsonTaskRepository(MemoryTaskRepository):
    """Ledger persisted as planner/focus_tasks.json (atomic writes)."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or ledger_path()
        super().__init__(self._load())

    def _load(self) -> list[FocusTask]:
        data = read_json(self.path)
        tasks = [FocusTask.from_dict(d) for d in (data.get("tasks") or [])]
        logger.debug("Loaded %d tasks from %s", len(tasks), self.path)
        return tasks

    def reload(self) -> None:
        """Discard in-memory changes and re-read the file."""
        self._tasks = self._load()

    def to_dict(self) -> dict:
        return {
            "version": LEDGER_VERSION,
            "tasks": [t.to_dict() for t in self.fetch_tasks()],
        }

    def save(self) -> None:
        write_json_atomic(self.path, self.to_dict())
        super().save()
