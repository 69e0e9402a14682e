"""Date and time utilities."""

from datetime import date, datetime, time, timedelta
from typing import Dict, List, Tuple

WEEKEND_DAYS = (5, 6)  # Saturday, Sunday


def is_weekend(day: date) -> bool:
    """Check if a date falls on Saturday or Sunday."""
    return day.weekday() in WEEKEND_DAYS


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=day.weekday())


def iso_week_label(day: date) -> str:
    """ISO week label such as ``2026-W42``."""
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def split_by_day(start: datetime, end: datetime) -> List[Tuple[date, float]]:
    """Split ``[start, end)`` into calendar days with the hours covered on each."""
    pieces = []
    current = start
    while current < end:
        next_midnight = datetime.combine(current.date() + timedelta(days=1), time.min, tzinfo=current.tzinfo)
        piece_end = min(next_midnight, end)
        pieces.append((current.date(), (piece_end - current).total_seconds() / 3600))
        current = piece_end
    return pieces


def split_by_week(start: datetime, end: datetime) -> Dict[date, float]:
    """Hours of ``[start, end)`` falling in each ISO week, keyed by Monday."""
    weeks: Dict[date, float] = {}
    for day, hours in split_by_day(start, end):
        monday = week_start(day)
        weeks[monday] = weeks.get(monday, 0.0) + hours
    return weeks
