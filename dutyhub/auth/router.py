from typing import Tuple

from fastapi import APIRouter, Depends, HTTPException, status

from ..logging import structlog
from ..routes.common import raise_for_error
from ..schemas.auth import (
    LoginRequest,
    MeResponse,
    PasswordForgotRequest,
    PasswordUpdateRequest,
    TokenResponse,
)
from ..store.provider import ErrorKind, TableStore
from .gate import Admission, SessionGate
from .provider import AuthProvider
from .security import RequestContext, get_context, get_providers, require_active


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, providers: Tuple[TableStore, AuthProvider] = Depends(get_providers)):
    store, auth = providers
    gate = SessionGate(auth, store)
    await gate.initialize()
    try:
        data, error = await gate.sign_in(payload.email, payload.password)
        if error is not None:
            if error.kind == ErrorKind.NOT_CONFIGURED:
                raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=error.message)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=error.message)
        # Sign-in already ran profile resolution; anything short of admission ends the session
        if await gate.admit() != Admission.ADMIT:
            structlog.get_logger().info("login_denied", email=payload.email)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This account has no active personnel record")
        session = data["session"]
        return TokenResponse(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            is_admin=gate.is_admin,
            profile=gate.profile.model_dump(mode="json"),
        )
    finally:
        gate.shutdown()


@router.post("/logout")
async def logout(ctx: RequestContext = Depends(get_context)):
    _, error = await ctx.gate.sign_out()
    if error is not None:
        structlog.get_logger().warning("logout_failed", error=error.message)
    return {"status": "ok"}


@router.get("/me", response_model=MeResponse)
async def me(ctx: RequestContext = Depends(require_active)):
    identity = ctx.gate.identity
    return MeResponse(
        id=identity.id,
        email=identity.email,
        status=ctx.gate.status.value,
        is_admin=ctx.is_admin,
        profile=ctx.profile.model_dump(mode="json") if ctx.profile else None,
    )


@router.post("/password/forgot")
async def password_forgot(payload: PasswordForgotRequest, providers: Tuple[TableStore, AuthProvider] = Depends(get_providers)):
    _, auth = providers
    _, error = await auth.reset_password_for_email(payload.email)
    raise_for_error(error)
    return {"status": "ok"}


@router.post("/password/update")
async def password_update(payload: PasswordUpdateRequest, ctx: RequestContext = Depends(get_context)):
    """Set a new password for the current session (settings page or a recovery link)."""
    if ctx.gate.identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    _, error = await ctx.gate.update_password(payload.password)
    raise_for_error(error)
    return {"status": "ok"}
