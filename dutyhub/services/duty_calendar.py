"""
Calendar helpers for duty schedules.
Date windows for month/week views and grouping a day's schedules into events.
"""
import calendar
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pytz

from ..config import settings
from ..schemas.schedules import CalendarEvent


INDIVIDUAL_DUTIES = "Individual Duties"


def today(tz_name: Optional[str] = None) -> date:
    """Current date in the organization's timezone (default from settings)."""
    tz = pytz.timezone(tz_name or settings.tz_default)
    return datetime.now(tz).date()


def schedule_window(anchor: date, view: str = "month") -> Tuple[date, date]:
    """
    Inclusive date range covered by a calendar view.

    Args:
        anchor: Any date inside the period
        view: "month" or "week" (weeks start on Sunday)

    Returns:
        (first_day, last_day)
    """
    if view == "month":
        last = calendar.monthrange(anchor.year, anchor.month)[1]
        return anchor.replace(day=1), anchor.replace(day=last)
    if view == "week":
        start = anchor - timedelta(days=(anchor.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    raise ValueError(f"Unknown calendar view: {view}")


def _duty_date(row: Mapping[str, Any]) -> str:
    value = row.get("duty_date")
    return value.isoformat() if isinstance(value, date) else str(value)


def group_events(schedules: Iterable[Mapping[str, Any]], day: date) -> List[CalendarEvent]:
    """
    Group one day's schedules by title; untitled rows share one "Individual Duties" entry.
    Events keep the order in which their first schedule appears.
    """
    day_key = day.isoformat()
    groups: Dict[str, CalendarEvent] = {}
    for row in schedules:
        if _duty_date(row) != day_key:
            continue
        title = row.get("title") or INDIVIDUAL_DUTIES
        event = groups.get(title)
        if event is None:
            event = CalendarEvent(title=title, date=day, is_group=bool(row.get("title")), schedules=[])
            groups[title] = event
        event.schedules.append(dict(row))
    return list(groups.values())


def events_by_day(schedules: Iterable[Mapping[str, Any]], start: date, end: date) -> Dict[str, List[CalendarEvent]]:
    rows = list(schedules)
    days: Dict[str, List[CalendarEvent]] = {}
    current = start
    while current <= end:
        days[current.isoformat()] = group_events(rows, current)
        current += timedelta(days=1)
    return days
