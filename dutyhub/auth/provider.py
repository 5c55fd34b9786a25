"""
Auth provider contract.

Mirrors the hosted auth service: password sign-in/sign-up, sign-out, password
update/recovery and a session-change stream that consumers subscribe to.
"""
import inspect
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import structlog

from ..schemas.auth import AuthSession
from ..store.provider import StoreResult


logger = structlog.get_logger(__name__)


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


AuthListener = Callable[[AuthEvent, Optional[AuthSession]], Union[None, Awaitable[None]]]


class Subscription:
    def __init__(self, unsubscribe: Callable[[], None]):
        self._unsubscribe = unsubscribe
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._unsubscribe()


class AuthProvider:
    configured = True

    def __init__(self):
        self._session: Optional[AuthSession] = None
        self._listeners: List[AuthListener] = []

    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    async def get_session(self) -> StoreResult:
        return StoreResult(self._session, None)

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        self._listeners.append(callback)

        def _remove():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return Subscription(_remove)

    async def _emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        logger.info("auth_state_change", auth_event=event.value)
        for listener in list(self._listeners):
            try:
                result = listener(event, session)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("auth_listener_failed", auth_event=event.value)

    async def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> StoreResult:
        raise NotImplementedError

    async def sign_in(self, email: str, password: str) -> StoreResult:
        raise NotImplementedError

    async def sign_out(self) -> StoreResult:
        raise NotImplementedError

    async def update_password(self, new_password: str) -> StoreResult:
        raise NotImplementedError

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> StoreResult:
        raise NotImplementedError

    async def restore_session(self, access_token: str, refresh_token: Optional[str] = None) -> StoreResult:
        raise NotImplementedError
