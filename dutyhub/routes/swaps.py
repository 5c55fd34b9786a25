from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import RequestContext, require_active, require_admin
from ..schemas.swaps import SwapRequest, SwapRequestCreate, SwapStatus
from ..services import schedules as schedules_service
from ..services import swaps as swaps_service
from .common import unwrap


router = APIRouter(prefix="/swaps", tags=["swaps"])


@router.get("")
async def list_swaps(status: Optional[SwapStatus] = None, ctx: RequestContext = Depends(require_active)):
    return unwrap(await swaps_service.list_swap_requests(ctx.store, status)) or []


@router.post("", response_model=SwapRequest)
async def request_swap(payload: SwapRequestCreate, ctx: RequestContext = Depends(require_active)):
    requester_id = ctx.profile.id
    if payload.target_id == requester_id:
        raise HTTPException(status_code=400, detail="Pick someone else to swap with")
    schedule = unwrap(await schedules_service.get_schedule(ctx.store, payload.schedule_id))
    if schedule is None or str(schedule.get("personnel_id")) != requester_id:
        raise HTTPException(status_code=400, detail="You can only offer your own schedule entries")
    row = {"requester_id": requester_id, "target_id": payload.target_id, "schedule_id": payload.schedule_id}
    if payload.reason:
        row["reason"] = payload.reason
    return unwrap(await swaps_service.create_swap_request(ctx.store, row))


async def _decide(ctx: RequestContext, request_id: str, status: SwapStatus):
    current = unwrap(await swaps_service.get_swap_request(ctx.store, request_id))
    if current is None:
        raise HTTPException(status_code=404, detail="Swap request not found")
    if current.get("status") != SwapStatus.PENDING.value:
        raise HTTPException(status_code=409, detail=f"Swap request is already {current.get('status')}")
    return unwrap(await swaps_service.update_swap_request(ctx.store, request_id, status))


@router.post("/{request_id}/approve", response_model=SwapRequest)
async def approve_swap(request_id: str, ctx: RequestContext = Depends(require_admin)):
    return await _decide(ctx, request_id, SwapStatus.APPROVED)


@router.post("/{request_id}/reject", response_model=SwapRequest)
async def reject_swap(request_id: str, ctx: RequestContext = Depends(require_admin)):
    return await _decide(ctx, request_id, SwapStatus.REJECTED)
