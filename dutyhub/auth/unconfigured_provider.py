from typing import Any, Dict, Optional

from ..store.provider import StoreResult, not_configured
from .provider import AuthProvider


class UnconfiguredAuth(AuthProvider):
    """Auth stand-in for a missing backend: never holds a session."""

    configured = False

    async def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> StoreResult:
        return StoreResult(None, not_configured())

    async def sign_in(self, email: str, password: str) -> StoreResult:
        return StoreResult(None, not_configured())

    async def sign_out(self) -> StoreResult:
        return StoreResult(None, None)

    async def update_password(self, new_password: str) -> StoreResult:
        return StoreResult(None, not_configured())

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> StoreResult:
        return StoreResult(None, not_configured())

    async def restore_session(self, access_token: str, refresh_token: Optional[str] = None) -> StoreResult:
        return StoreResult(None, not_configured())
