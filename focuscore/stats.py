"""Focus statistics over the task ledger.

Only completed sessions count toward totals; days are bucketed by the
session's start time in the timezone of ``now``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable

from focuscore.formatting import (
    format_daily_date,
    format_short_time,
    format_total_time,
    start_of_week,
    weekday_abbreviation,
)
from focuscore.models import FocusSession, FocusTask, SessionStatus

DAILY_RECORD_LIMIT_DAYS = 30


@dataclass
class DayTotal:
    day: date
    total_seconds: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "weekday": weekday_abbreviation(self.day),
            "totalSeconds": self.total_seconds,
            "display": format_short_time(self.total_seconds),
        }


@dataclass
class DailyRecord:
    day: date
    focus_seconds: int = 0
    planned_seconds: int = 0

    @property
    def completion(self) -> float:
        if self.planned_seconds <= 0:
            return 0.0
        return min(self.focus_seconds / self.planned_seconds, 1.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "label": format_daily_date(self.day),
            "focusSeconds": self.focus_seconds,
            "plannedSeconds": self.planned_seconds,
            "completion": round(self.completion, 4),
        }


def _completed_sessions(tasks: Iterable[FocusTask]) -> list[FocusSession]:
    return [
        s for t in tasks for s in t.sessions
        if s.status == SessionStatus.COMPLETED and s.started_at is not None
    ]


def _local_day(value: datetime, now: datetime) -> date:
    if value.tzinfo is not None and now.tzinfo is not None:
        value = value.astimezone(now.tzinfo)
    return value.date()


def total_focus_seconds(tasks: Iterable[FocusTask]) -> int:
    return sum(s.elapsed_seconds for s in _completed_sessions(tasks))


def weekly_totals(tasks: Iterable[FocusTask], now: datetime) -> list[DayTotal]:
    """Seven totals, Monday through Sunday of the week containing ``now``."""
    week_start = start_of_week(now)
    totals = [DayTotal(week_start + timedelta(days=i)) for i in range(7)]
    for s in _completed_sessions(tasks):
        offset = (_local_day(s.started_at, now) - week_start).days
        if 0 <= offset < 7:
            totals[offset].total_seconds += s.elapsed_seconds
    return totals


def daily_records(
    tasks: Iterable[FocusTask],
    now: datetime,
    limit_days: int = DAILY_RECORD_LIMIT_DAYS,
) -> list[DailyRecord]:
    """Per-day focus vs planned time for the last ``limit_days`` days, newest first."""
    tasks = list(tasks)
    cutoff = now - timedelta(days=limit_days)
    records: dict[date, DailyRecord] = defaultdict(lambda: DailyRecord(date.min))

    def record_for(day: date) -> DailyRecord:
        record = records[day]
        record.day = day
        return record

    for s in _completed_sessions(tasks):
        if s.started_at >= cutoff:
            record_for(_local_day(s.started_at, now)).focus_seconds += s.elapsed_seconds

    for t in tasks:
        if t.start_time >= cutoff:
            record_for(_local_day(t.start_time, now)).planned_seconds += max(0, t.planned_duration)

    kept = [r for r in records.values() if r.focus_seconds > 0 or r.planned_seconds > 0]
    return sorted(kept, key=lambda r: r.day, reverse=True)


def focus_stats(tasks: Iterable[FocusTask], now: datetime) -> dict[str, Any]:
    """JSON-ready dashboard summary."""
    tasks = list(tasks)
    total = total_focus_seconds(tasks)
    return {
        "totalFocusSeconds": total,
        "totalFocusDisplay": format_total_time(total),
        "weekStart": start_of_week(now).isoformat(),
        "weekly": [d.to_dict() for d in weekly_totals(tasks, now)],
        "daily": [r.to_dict() for r in daily_records(tasks, now)],
    }
