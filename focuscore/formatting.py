"""Display formatting for focus durations and dates."""

from __future__ import annotations

from datetime import date, datetime, timedelta

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365

NO_DATA = "No data"

_WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_clock(seconds: int) -> str:
    """MM:SS with minutes allowed past 59 (3661 -> '61:01')."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def format_total_time(total_seconds: int) -> str:
    """'1y 2mo 3d 4h' with zero units omitted.

    Minutes only appear when nothing larger does, or under one hour.
    """
    if total_seconds <= 0:
        return NO_DATA

    total_days, remaining = divmod(int(total_seconds), SECONDS_PER_DAY)
    years, days = divmod(total_days, DAYS_PER_YEAR)
    months, days = divmod(days, DAYS_PER_MONTH)
    hours, remaining = divmod(remaining, SECONDS_PER_HOUR)
    minutes = remaining // SECONDS_PER_MINUTE

    parts = []
    if years:
        parts.append(f"{years}y")
    if months:
        parts.append(f"{months}mo")
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes and (not parts or total_seconds < SECONDS_PER_HOUR):
        parts.append(f"{minutes}m")

    return " ".join(parts) if parts else NO_DATA


def format_short_time(seconds: int) -> str:
    """'1h 30m', '1h' or '45m'; '-' when there is nothing."""
    if seconds <= 0:
        return "-"
    hours = seconds // SECONDS_PER_HOUR
    minutes = (seconds % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"


def format_planned_duration(start: datetime, end: datetime) -> str:
    planned = max(0, int((end - start).total_seconds()))
    return format_short_time(planned) if planned >= SECONDS_PER_MINUTE else "0m"


def start_of_week(day: date | datetime) -> date:
    """Monday of the week containing ``day``."""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=day.weekday())


def weekday_abbreviation(day: date | datetime) -> str:
    return _WEEKDAYS[day.weekday()]


def format_daily_date(day: date | datetime) -> str:
    """'Jan 25'."""
    return f"{_MONTHS[day.month - 1]} {day.day}"
