from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, Optional


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    EXCUSED = "excused"


class Attendance(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    schedule_id: str
    personnel_id: str
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


class AttendanceCreate(BaseModel):
    schedule_id: str
    personnel_id: str
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    status: AttendanceStatus
    notes: Optional[str] = None

    def row(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True, mode="json")


class AttendanceUpdate(BaseModel):
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None

    def patch(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, mode="json")


class CheckInRequest(BaseModel):
    schedule_id: str
    personnel_id: str


class MarkStatusRequest(BaseModel):
    schedule_id: str
    personnel_id: str
    status: AttendanceStatus
    notes: Optional[str] = None
