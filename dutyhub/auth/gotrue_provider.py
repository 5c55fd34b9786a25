"""
Hosted auth client (GoTrue dialect, ``/auth/v1``).
Keeps the current session in memory and announces changes to subscribers.
"""
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..config import settings
from ..schemas.auth import AuthSession, AuthUser
from ..store.http import send
from ..store.provider import ErrorKind, StoreError, StoreResult
from .provider import AuthEvent, AuthProvider


SESSION_MISSING = "Auth session missing"


def _malformed(what: str) -> StoreResult:
    return StoreResult(None, StoreError(f"Malformed {what} from auth service", ErrorKind.STORE))


class GoTrueAuth(AuthProvider):
    def __init__(self, client: httpx.AsyncClient, base_url: Optional[str] = None, api_key: Optional[str] = None):
        super().__init__()
        self.client = client
        self.base_url = (base_url or settings.auth_url).rstrip("/")
        self.api_key = api_key or settings.supabase_anon_key

        if not self.api_key:
            raise ValueError("Backend anon key is required")

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
            "Content-Type": "application/json",
        }

    async def _call(self, method: str, path: str, token: Optional[str] = None, **kwargs) -> StoreResult:
        url = f"{self.base_url}/{path.lstrip('/')}"
        return await send(self.client, method, url, headers=self._headers(token), **kwargs)

    async def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> StoreResult:
        """
        Register a login account.

        The current session is left untouched, so an admin creating accounts for
        other people stays signed in as themselves.
        """
        data, error = await self._call(
            "POST", "/signup", json={"email": email, "password": password, "data": metadata or {}}
        )
        if error is not None:
            return StoreResult(None, error)
        try:
            if isinstance(data, dict) and "access_token" in data:
                session = AuthSession.model_validate(data)
                return StoreResult({"user": session.user, "session": session}, None)
            user_payload = data.get("user", data) if isinstance(data, dict) else None
            return StoreResult({"user": AuthUser.model_validate(user_payload), "session": None}, None)
        except ValidationError:
            return _malformed("sign-up response")

    async def sign_in(self, email: str, password: str) -> StoreResult:
        data, error = await self._call(
            "POST", "/token", params={"grant_type": "password"}, json={"email": email, "password": password}
        )
        if error is not None:
            return StoreResult(None, error)
        try:
            session = AuthSession.model_validate(data)
        except ValidationError:
            return _malformed("session")
        self._session = session
        await self._emit(AuthEvent.SIGNED_IN, session)
        return StoreResult({"user": session.user, "session": session}, None)

    async def sign_out(self) -> StoreResult:
        session = self._session
        if session is None:
            return StoreResult(None, None)
        _, error = await self._call("POST", "/logout", token=session.access_token)
        # The local session is dropped even when the remote revoke fails,
        # unless another sign-in replaced it while the revoke was in flight
        if self._session is session:
            self._session = None
            await self._emit(AuthEvent.SIGNED_OUT, None)
        return StoreResult(None, error)

    async def update_password(self, new_password: str) -> StoreResult:
        session = self._session
        if session is None:
            return StoreResult(None, StoreError(SESSION_MISSING, ErrorKind.STORE))
        data, error = await self._call("PUT", "/user", token=session.access_token, json={"password": new_password})
        if error is not None:
            return StoreResult(None, error)
        try:
            user = AuthUser.model_validate(data)
        except ValidationError:
            return _malformed("user")
        self._session = session.model_copy(update={"user": user})
        await self._emit(AuthEvent.USER_UPDATED, self._session)
        return StoreResult({"user": user}, None)

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> StoreResult:
        redirect_to = redirect_to or settings.password_reset_redirect_url
        params = {"redirect_to": redirect_to} if redirect_to else None
        _, error = await self._call("POST", "/recover", params=params, json={"email": email})
        return StoreResult(None, error)

    async def restore_session(self, access_token: str, refresh_token: Optional[str] = None) -> StoreResult:
        """Adopt a bearer token issued earlier; the token is checked against ``/user``."""
        data, error = await self._call("GET", "/user", token=access_token)
        if error is not None:
            return StoreResult(None, error)
        try:
            user = AuthUser.model_validate(data)
        except ValidationError:
            return _malformed("user")
        self._session = AuthSession(access_token=access_token, refresh_token=refresh_token, user=user)
        return StoreResult(self._session, None)
