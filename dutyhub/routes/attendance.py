from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from ..auth.security import RequestContext, require_active
from ..schemas.attendance import Attendance, CheckInRequest, MarkStatusRequest
from ..services import attendance as attendance_service
from .common import unwrap


router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get("")
async def list_attendance(on: Optional[date] = None, ctx: RequestContext = Depends(require_active)):
    return unwrap(await attendance_service.list_attendance(ctx.store, on)) or []


@router.post("/check-in", response_model=Attendance)
async def check_in(payload: CheckInRequest, ctx: RequestContext = Depends(require_active)):
    return unwrap(await attendance_service.check_in(ctx.store, payload.schedule_id, payload.personnel_id))


@router.post("/{attendance_id}/check-out", response_model=Attendance)
async def check_out(attendance_id: str, ctx: RequestContext = Depends(require_active)):
    return unwrap(await attendance_service.check_out(ctx.store, attendance_id))


@router.post("/mark", response_model=Attendance)
async def mark_status(payload: MarkStatusRequest, ctx: RequestContext = Depends(require_active)):
    return unwrap(
        await attendance_service.mark_status(
            ctx.store, payload.schedule_id, payload.personnel_id, payload.status, payload.notes
        )
    )
