"""
Session/authorization gate.

Holds the one authoritative view of "who is signed in and may they use the
app": the auth identity, the matching personnel profile, and a loading flag.
Consumers subscribe for snapshots instead of re-fetching.

Profile resolution runs on initialize() and on every SIGNED_IN event. A
person with no personnel row, or with is_active=false, is signed out of the
remote session, not just hidden locally. Each resolution carries a generation
number; when it finishes after a newer resolution (or a sign-out) started, its
result is dropped, so the last one triggered wins.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import structlog
from pydantic import ValidationError

from ..schemas.auth import AuthSession, AuthUser
from ..schemas.personnel import Personnel
from ..services.personnel import get_personnel_by_email, get_personnel_by_id
from ..store.provider import StoreResult, TableStore
from .provider import AuthEvent, AuthProvider, Subscription


logger = structlog.get_logger(__name__)


class GatePhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class SessionStatus(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    NO_PROFILE = "authenticated_no_profile"
    INACTIVE = "authenticated_inactive"
    ACTIVE_STAFF = "authenticated_active_staff"
    ACTIVE_ADMIN = "authenticated_active_admin"


class Admission(str, Enum):
    LOADING = "loading"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_DEFAULT = "redirect_default"
    ADMIT = "admit"


@dataclass(frozen=True)
class GateSnapshot:
    phase: GatePhase
    status: SessionStatus
    loading: bool
    identity: Optional[AuthUser]
    profile: Optional[Personnel]
    is_admin: bool


GateListener = Callable[[GateSnapshot], None]


class SessionGate:
    def __init__(self, auth: AuthProvider, store: TableStore):
        self.auth = auth
        self.store = store
        self.identity: Optional[AuthUser] = None
        self.profile: Optional[Personnel] = None
        self.loading = True
        self.initialized = False
        self._alive = False
        self._generation = 0
        self._listeners: List[GateListener] = []
        self._subscription: Optional[Subscription] = None

    # ----- derived state -----

    @property
    def configured(self) -> bool:
        return bool(self.auth.configured and self.store.configured)

    @property
    def is_admin(self) -> bool:
        return self.profile is not None and self.profile.is_admin

    @property
    def phase(self) -> GatePhase:
        if not self.initialized:
            return GatePhase.UNINITIALIZED
        if self.loading:
            return GatePhase.LOADING
        if self.identity is None:
            return GatePhase.UNAUTHENTICATED
        return GatePhase.AUTHENTICATED

    @property
    def status(self) -> SessionStatus:
        if self.loading:
            return SessionStatus.AUTHENTICATING
        if self.identity is None:
            return SessionStatus.UNAUTHENTICATED
        if self.profile is None:
            return SessionStatus.NO_PROFILE
        if not self.profile.active:
            return SessionStatus.INACTIVE
        return SessionStatus.ACTIVE_ADMIN if self.profile.is_admin else SessionStatus.ACTIVE_STAFF

    def snapshot(self) -> GateSnapshot:
        return GateSnapshot(
            phase=self.phase,
            status=self.status,
            loading=self.loading,
            identity=self.identity,
            profile=self.profile,
            is_admin=self.is_admin,
        )

    # ----- observers -----

    def subscribe(self, listener: GateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("gate_listener_failed")

    # ----- lifecycle -----

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return self._alive and generation == self._generation

    def _clear(self) -> None:
        self._next_generation()
        self.identity = None
        self.profile = None
        self.loading = False
        self._notify()

    async def initialize(self) -> None:
        if self.initialized:
            return
        self.initialized = True
        self._alive = True

        if not self.configured:
            logger.info("gate_backend_not_configured")
            self.loading = False
            self._notify()
            return

        self._subscription = self.auth.on_auth_state_change(self._on_auth_event)
        generation = self._next_generation()
        try:
            session, error = await self.auth.get_session()
        except Exception:
            logger.exception("session_load_failed")
            session, error = None, None
        if not self._is_current(generation):
            return
        if error is not None:
            logger.warning("session_load_failed", error=error.message)

        if session is None:
            self.loading = False
            self._notify()
            return

        self.identity = session.user
        self._notify()
        await self._resolve(session.user, generation)

    def shutdown(self) -> None:
        self._alive = False
        self._next_generation()
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()

    # ----- profile resolution -----

    async def resolve_profile(self, user: AuthUser) -> None:
        generation = self._next_generation()
        self.identity = user
        self.loading = True
        self._notify()
        await self._resolve(user, generation)

    async def _lookup(self, user: AuthUser) -> StoreResult:
        row, error = await get_personnel_by_id(self.store, user.id)
        if error is None and row is None and user.email:
            row, error = await get_personnel_by_email(self.store, user.email)
        return StoreResult(row, error)

    async def _resolve(self, user: AuthUser, generation: int) -> None:
        try:
            row, error = await self._lookup(user)
        except Exception:
            logger.exception("profile_load_failed", user_id=user.id)
            if self._is_current(generation):
                self.loading = False
                self._notify()
            return

        if not self._is_current(generation):
            logger.info("profile_resolution_superseded", user_id=user.id)
            return

        if error is not None:
            # Abandon this attempt; admission will sign the identity out
            logger.warning("profile_load_failed", user_id=user.id, error=error.message)
            self.loading = False
            self._notify()
            return

        profile = None
        if row is not None:
            try:
                profile = Personnel.model_validate(row)
            except ValidationError as e:
                logger.warning("profile_invalid", user_id=user.id, error=str(e))

        if profile is None:
            await self._deny(user, "no_profile")
            return
        if not profile.active:
            await self._deny(user, "inactive")
            return

        self.profile = profile
        self.loading = False
        logger.info("profile_resolved", user_id=user.id, personnel_id=profile.id, role=profile.role.value)
        self._notify()

    async def _deny(self, user: AuthUser, reason: str) -> None:
        logger.info("profile_denied", user_id=user.id, reason=reason)
        self._clear()
        _, error = await self.auth.sign_out()
        if error is not None:
            logger.warning("sign_out_failed", user_id=user.id, error=error.message)

    async def _on_auth_event(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        if not self._alive:
            return
        if session is None:
            self._clear()
            return
        if event == AuthEvent.SIGNED_IN:
            await self.resolve_profile(session.user)
            return
        self.identity = session.user
        self._notify()

    # ----- admission -----

    async def admit(self, admin_only: bool = False) -> Admission:
        if self.loading:
            return Admission.LOADING
        if self.identity is None:
            return Admission.REDIRECT_LOGIN
        if self.profile is None or not self.profile.active:
            await self.sign_out()
            return Admission.REDIRECT_LOGIN
        if admin_only and not self.is_admin:
            return Admission.REDIRECT_DEFAULT
        return Admission.ADMIT

    # ----- auth actions -----

    async def sign_in(self, email: str, password: str) -> StoreResult:
        return await self.auth.sign_in(email.strip().lower(), password)

    async def sign_up(self, email: str, password: str, metadata: Optional[dict] = None) -> StoreResult:
        return await self.auth.sign_up(email.strip().lower(), password, metadata)

    async def sign_out(self) -> StoreResult:
        result = await self.auth.sign_out()
        self._clear()
        return result

    async def update_password(self, new_password: str) -> StoreResult:
        return await self.auth.update_password(new_password)

    async def reset_password_for_email(self, email: str) -> StoreResult:
        return await self.auth.reset_password_for_email(email.strip().lower())
