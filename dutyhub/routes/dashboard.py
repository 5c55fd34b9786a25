from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from ..auth.security import RequestContext, require_active
from ..services.dashboard import dashboard_summary
from ..services.duty_calendar import today


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("")
async def dashboard(on: Optional[date] = None, ctx: RequestContext = Depends(require_active)):
    # Partial reads still render; the first failure is passed along for display
    summary, error = await dashboard_summary(ctx.store, on or today())
    profile = ctx.profile
    summary["greeting_name"] = profile.name.split(" ")[0] if profile and profile.name else "User"
    summary["error"] = error.message if error is not None else None
    return summary
