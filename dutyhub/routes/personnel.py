from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import RequestContext, require_admin
from ..schemas.personnel import Department, DepartmentCreate, PersonnelCreate, PersonnelUpdate
from ..services import departments as departments_service
from ..services import personnel as personnel_service
from .common import raise_for_error, unwrap


router = APIRouter(prefix="/personnel", tags=["personnel"])
departments_router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("")
async def list_personnel(active_only: bool = False, ctx: RequestContext = Depends(require_admin)):
    rows = unwrap(await personnel_service.list_personnel(ctx.store)) or []
    if active_only:
        rows = [r for r in rows if r.get("is_active") is not False]
    return rows


@router.get("/{personnel_id}")
async def get_personnel(personnel_id: str, ctx: RequestContext = Depends(require_admin)):
    row = unwrap(await personnel_service.get_personnel_by_id(ctx.store, personnel_id))
    if row is None:
        raise HTTPException(status_code=404, detail="Not found")
    return row


@router.post("")
async def create_personnel(payload: PersonnelCreate, ctx: RequestContext = Depends(require_admin)):
    """
    Register a person. With ``create_account`` a login is created as well and the
    temporary password is returned once so the admin can hand it over.
    """
    return unwrap(await personnel_service.create_personnel_account(ctx.store, ctx.auth, payload))


@router.patch("/{personnel_id}")
async def update_personnel(personnel_id: str, payload: PersonnelUpdate, ctx: RequestContext = Depends(require_admin)):
    patch = payload.patch()
    if not patch:
        raise HTTPException(status_code=400, detail="Nothing to update")
    return unwrap(await personnel_service.update_personnel(ctx.store, personnel_id, patch))


@router.delete("/{personnel_id}")
async def delete_personnel(personnel_id: str, ctx: RequestContext = Depends(require_admin)):
    """Delete a person together with their schedules, attendance and swap requests."""
    outcome, error = await personnel_service.delete_personnel(ctx.store, personnel_id)
    raise_for_error(error)
    return {"status": "ok", "deleted": outcome.tables}


@departments_router.get("")
async def list_departments(ctx: RequestContext = Depends(require_admin)):
    return unwrap(await departments_service.list_departments(ctx.store)) or []


@departments_router.post("", response_model=Department)
async def create_department(payload: DepartmentCreate, ctx: RequestContext = Depends(require_admin)):
    return unwrap(await departments_service.create_department(ctx.store, payload.name))
