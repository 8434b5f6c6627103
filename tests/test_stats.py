"""Tests for focuscore/stats.py — dashboard aggregation."""

from datetime import date, timedelta

from conftest import T0, make_task
from focuscore.models import FocusSession, SessionStatus
from focuscore.stats import daily_records, focus_stats, total_focus_seconds, weekly_totals


def _done(task, started, seconds):
    session = FocusSession(task_id=task.id, started_at=started, elapsed_seconds=seconds,
                           status=SessionStatus.COMPLETED)
    task.sessions.append(session)
    return session


def _tasks():
    today = make_task("Today", start=T0 - timedelta(minutes=30), minutes=60)
    _done(today, T0 - timedelta(minutes=25), 1200)
    today.sessions.append(FocusSession(task_id=today.id, started_at=T0, elapsed_seconds=500))  # active

    monday = make_task("Monday", start=T0 - timedelta(days=2), minutes=120)
    _done(monday, T0 - timedelta(days=2), 3600)

    old = make_task("Old", start=T0 - timedelta(days=40), minutes=30)
    _done(old, T0 - timedelta(days=40), 900)
    return [today, monday, old]


def test_total_counts_completed_only():
    assert total_focus_seconds(_tasks()) == 1200 + 3600 + 900


def test_weekly_totals_monday_to_sunday():
    week = weekly_totals(_tasks(), T0)
    assert [d.day for d in week] == [date(2026, 2, 9) + timedelta(days=i) for i in range(7)]
    assert week[0].total_seconds == 3600
    assert week[2].total_seconds == 1200
    assert sum(d.total_seconds for d in week) == 4800


def test_daily_records_newest_first_within_limit():
    records = daily_records(_tasks(), T0)
    assert [r.day for r in records] == [date(2026, 2, 11), date(2026, 2, 9)]
    today, monday = records
    assert today.focus_seconds == 1200
    assert today.planned_seconds == 3600
    assert today.completion == 1200 / 3600
    assert monday.completion == 0.5


def test_completion_caps_at_one():
    task = make_task(minutes=10)
    _done(task, T0, 3600)
    assert daily_records([task], T0)[0].completion == 1.0


def test_focus_stats_summary():
    data = focus_stats(_tasks(), T0)
    assert data["totalFocusSeconds"] == 5700
    assert data["totalFocusDisplay"] == "1h"
    assert data["weekStart"] == "2026-02-09"
    assert len(data["weekly"]) == 7
    assert data["weekly"][0]["weekday"] == "Mon"
    assert data["daily"][0]["label"] == "Feb 11"


def test_empty_ledger():
    data = focus_stats([], T0)
    assert data["totalFocusSeconds"] == 0
    assert data["totalFocusDisplay"] == "No data"
    assert data["daily"] == []
