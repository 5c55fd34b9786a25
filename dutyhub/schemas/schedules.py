from datetime import date, time
from pydantic import BaseModel, BeforeValidator, ConfigDict
from typing import Annotated, Any, Dict, List, Optional


class Schedule(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    personnel_id: str
    duty_date: date
    start_time: time
    end_time: time
    title: Optional[str] = None
    notes: Optional[str] = None
    personnel: Optional[Dict[str, Any]] = None


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


class ScheduleCreate(BaseModel):
    personnel_id: str
    duty_date: date
    start_time: time = time(8, 0)
    end_time: time = time(17, 0)
    title: OptionalText = None
    notes: OptionalText = None

    def row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class ScheduleUpdate(BaseModel):
    personnel_id: Optional[str] = None
    duty_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    title: OptionalText = None
    notes: OptionalText = None

    def patch(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, mode="json")


class CalendarEvent(BaseModel):
    """Schedules on one day sharing a title, shown as a single calendar entry."""
    title: str
    date: date
    is_group: bool
    schedules: List[Dict[str, Any]]
