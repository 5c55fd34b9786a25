from dataclasses import dataclass
from typing import AsyncIterator, Optional, Tuple

import httpx
import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings
from ..schemas.personnel import Personnel
from ..store.postgrest_provider import PostgrestStore
from ..store.provider import TableStore
from ..store.unconfigured_provider import UnconfiguredStore
from .gate import Admission, SessionGate
from .gotrue_provider import GoTrueAuth
from .provider import AuthProvider
from .unconfigured_provider import UnconfiguredAuth


logger = structlog.get_logger(__name__)

http_bearer = HTTPBearer(auto_error=False)


@dataclass
class RequestContext:
    gate: SessionGate
    store: TableStore
    auth: AuthProvider

    @property
    def profile(self) -> Optional[Personnel]:
        return self.gate.profile

    @property
    def is_admin(self) -> bool:
        return self.gate.is_admin


def build_providers(client: httpx.AsyncClient) -> Tuple[TableStore, AuthProvider]:
    """Fresh auth + store pair for one caller; both share the app-wide connection pool."""
    if not settings.is_configured:
        return UnconfiguredStore(), UnconfiguredAuth()
    auth = GoTrueAuth(client)
    store = PostgrestStore(client, access_token=auth.access_token)
    return store, auth


def get_providers(request: Request) -> Tuple[TableStore, AuthProvider]:
    return build_providers(request.app.state.http_client)


async def get_context(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    providers: Tuple[TableStore, AuthProvider] = Depends(get_providers),
) -> AsyncIterator[RequestContext]:
    store, auth = providers
    if creds is not None:
        _, error = await auth.restore_session(creds.credentials)
        if error is not None:
            logger.info("session_restore_failed", error=error.message)
    gate = SessionGate(auth, store)
    await gate.initialize()
    try:
        yield RequestContext(gate=gate, store=store, auth=auth)
    finally:
        gate.shutdown()


def require_access(admin_only: bool = False):
    """Route dependency that applies the gate's admission decision."""
    async def _dep(ctx: RequestContext = Depends(get_context)) -> RequestContext:
        decision = await ctx.gate.admit(admin_only=admin_only)
        if decision == Admission.ADMIT:
            return ctx
        if decision == Admission.LOADING:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Session is still loading")
        if decision == Admission.REDIRECT_DEFAULT:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden", headers={"Location": "/"})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    return _dep


require_active = require_access()
require_admin = require_access(admin_only=True)
