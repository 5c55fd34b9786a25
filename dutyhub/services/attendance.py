"""
Attendance data access.
Records are created against an existing schedule and are never deleted on
their own; they only disappear with their schedule or person.
"""
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Union

from ..schemas.attendance import AttendanceCreate, AttendanceStatus, AttendanceUpdate
from ..store.provider import ErrorKind, StoreError, StoreResult, TableStore, desc, eq, first_row
from .schedules import get_schedule


TABLE = "attendance"
COLUMNS = "*, personnel(name), schedules(duty_date, start_time, end_time)"
# !inner makes the duty_date filter drop attendance rows instead of just blanking the embed
COLUMNS_FOR_DATE = "*, personnel(name), schedules!inner(duty_date, start_time, end_time)"


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def list_attendance(store: TableStore, on_date: Optional[Union[date, str]] = None) -> StoreResult:
    if on_date:
        return await store.select(
            TABLE,
            columns=COLUMNS_FOR_DATE,
            filters=[eq("schedules.duty_date", on_date)],
            order=[desc("created_at")],
        )
    return await store.select(TABLE, columns=COLUMNS, order=[desc("created_at")])


async def get_attendance(store: TableStore, attendance_id: str) -> StoreResult:
    return first_row(await store.select(TABLE, filters=[eq("id", attendance_id)], limit=1))


async def create_attendance(store: TableStore, row: Mapping[str, Any]) -> StoreResult:
    return first_row(await store.insert(TABLE, row), required=True)


async def update_attendance(store: TableStore, attendance_id: str, patch: Mapping[str, Any]) -> StoreResult:
    return first_row(await store.update(TABLE, patch, filters=[eq("id", attendance_id)]), required=True)


async def _require_assignment(store: TableStore, schedule_id: str, personnel_id: str) -> Optional[StoreError]:
    schedule, error = await get_schedule(store, schedule_id)
    if error is not None:
        return error
    if schedule is None or str(schedule.get("personnel_id")) != str(personnel_id):
        return StoreError("No schedule assigns this person to that duty", ErrorKind.VALIDATION)
    return None


async def check_in(
    store: TableStore, schedule_id: str, personnel_id: str, at: Optional[datetime] = None
) -> StoreResult:
    error = await _require_assignment(store, schedule_id, personnel_id)
    if error is not None:
        return StoreResult(None, error)
    record = AttendanceCreate(
        schedule_id=schedule_id,
        personnel_id=personnel_id,
        check_in=at or _now(),
        status=AttendanceStatus.PRESENT,
    )
    return await create_attendance(store, record.row())


async def mark_status(
    store: TableStore,
    schedule_id: str,
    personnel_id: str,
    status: AttendanceStatus,
    notes: Optional[str] = None,
) -> StoreResult:
    error = await _require_assignment(store, schedule_id, personnel_id)
    if error is not None:
        return StoreResult(None, error)
    record = AttendanceCreate(schedule_id=schedule_id, personnel_id=personnel_id, status=status, notes=notes or None)
    return await create_attendance(store, record.row())


async def check_out(store: TableStore, attendance_id: str, at: Optional[datetime] = None) -> StoreResult:
    record, error = await get_attendance(store, attendance_id)
    if error is not None:
        return StoreResult(None, error)
    if record is None:
        return StoreResult(None, StoreError("Attendance record not found", ErrorKind.NOT_FOUND))
    if not record.get("check_in") and record.get("status") != AttendanceStatus.PRESENT.value:
        return StoreResult(None, StoreError("Cannot check out before checking in", ErrorKind.VALIDATION))
    patch = AttendanceUpdate(check_out=at or _now()).patch()
    return await update_attendance(store, attendance_id, patch)
