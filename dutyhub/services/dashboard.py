from datetime import date

from ..schemas.attendance import AttendanceStatus
from ..schemas.swaps import SwapStatus
from ..store.provider import StoreResult, TableStore
from .attendance import list_attendance
from .personnel import list_personnel
from .schedules import list_schedules
from .swaps import list_swap_requests


ATTENDED = {AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value}


async def dashboard_summary(store: TableStore, on_date: date) -> StoreResult:
    """
    Headline numbers for one day.

    Returns:
        StoreResult with totals and the day's schedules; counts fall back to
        zero for any read that failed, and the first failure is reported.
    """
    personnel = await list_personnel(store)
    schedules = await list_schedules(store, on_date, on_date)
    swaps = await list_swap_requests(store, SwapStatus.PENDING)
    attendance = await list_attendance(store, on_date)

    today_schedules = schedules.data or []
    attended = sum(1 for row in attendance.data or [] if row.get("status") in ATTENDED)
    rate = round(attended * 100 / len(today_schedules)) if today_schedules else 0

    error = next((r.error for r in (personnel, schedules, swaps, attendance) if r.error is not None), None)
    summary = {
        "date": on_date.isoformat(),
        "total_personnel": len(personnel.data or []),
        "today_duties": len(today_schedules),
        "pending_swaps": len(swaps.data or []),
        "attendance_rate": rate,
        "today_schedule": today_schedules,
    }
    return StoreResult(summary, error)
