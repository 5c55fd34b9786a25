from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import RequestContext, require_active
from ..schemas.schedules import Schedule, ScheduleCreate, ScheduleUpdate
from ..services import schedules as schedules_service
from ..services.duty_calendar import events_by_day, schedule_window, today
from .common import raise_for_error, unwrap


router = APIRouter(prefix="/schedules", tags=["schedules"])


def _can_modify(ctx: RequestContext, personnel_id: Optional[str]) -> bool:
    # Admins manage every row; everyone else only their own
    return ctx.is_admin or (ctx.profile is not None and str(personnel_id) == ctx.profile.id)


async def _load_for_change(ctx: RequestContext, schedule_id: str) -> dict:
    row = unwrap(await schedules_service.get_schedule(ctx.store, schedule_id))
    if row is None:
        raise HTTPException(status_code=404, detail="Schedule not found")
    if not _can_modify(ctx, row.get("personnel_id")):
        raise HTTPException(status_code=403, detail="You can only change your own schedule entries")
    return row


@router.get("")
async def list_schedules(
    start: Optional[date] = None,
    end: Optional[date] = None,
    ctx: RequestContext = Depends(require_active),
):
    return unwrap(await schedules_service.list_schedules(ctx.store, start, end)) or []


@router.get("/calendar")
async def calendar_events(
    anchor: Optional[date] = None,
    view: str = "month",
    ctx: RequestContext = Depends(require_active),
):
    try:
        start, end = schedule_window(anchor or today(), view)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    rows = unwrap(await schedules_service.list_schedules(ctx.store, start, end)) or []
    return {"start": start.isoformat(), "end": end.isoformat(), "days": events_by_day(rows, start, end)}


@router.get("/mine")
async def my_schedules(ctx: RequestContext = Depends(require_active)):
    return unwrap(await schedules_service.list_schedules_by_personnel(ctx.store, ctx.profile.id)) or []


@router.post("", response_model=Schedule)
async def create_schedule(payload: ScheduleCreate, ctx: RequestContext = Depends(require_active)):
    if not _can_modify(ctx, payload.personnel_id):
        raise HTTPException(status_code=403, detail="You can only schedule yourself")
    return unwrap(await schedules_service.create_schedule(ctx.store, payload.row()))


@router.patch("/{schedule_id}", response_model=Schedule)
async def update_schedule(schedule_id: str, payload: ScheduleUpdate, ctx: RequestContext = Depends(require_active)):
    await _load_for_change(ctx, schedule_id)
    patch = payload.patch()
    if not patch:
        raise HTTPException(status_code=400, detail="Nothing to update")
    if "personnel_id" in patch and not _can_modify(ctx, patch["personnel_id"]):
        raise HTTPException(status_code=403, detail="You can only schedule yourself")
    return unwrap(await schedules_service.update_schedule(ctx.store, schedule_id, patch))


@router.delete("/{schedule_id}")
async def delete_schedule(schedule_id: str, ctx: RequestContext = Depends(require_active)):
    """Delete a schedule with its attendance and swap requests."""
    await _load_for_change(ctx, schedule_id)
    outcome, error = await schedules_service.delete_schedule(ctx.store, schedule_id)
    raise_for_error(error)
    return {"status": "ok", "deleted": outcome.tables}
