import json

import httpx
import pytest

from dutyhub.auth.gotrue_provider import GoTrueAuth
from dutyhub.auth.provider import AuthEvent
from dutyhub.auth.security import build_providers
from dutyhub.config import Settings, settings
from dutyhub.store.postgrest_provider import PostgrestStore
from dutyhub.store.provider import ErrorKind, any_of, asc, eq, gte, in_
from dutyhub.store.unconfigured_provider import UnconfiguredStore


pytestmark = pytest.mark.anyio

BASE = "https://demo.supabase.co"

SESSION = {
    "access_token": "jwt-1",
    "refresh_token": "refresh-1",
    "expires_in": 3600,
    "token_type": "bearer",
    "user": {"id": "U1", "email": "ana@example.com", "user_metadata": {}},
}


def _client(handler, sent):
    def _record(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return handler(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(_record))


def _store(client, token="user-jwt"):
    return PostgrestStore(client, base_url=f"{BASE}/rest/v1", api_key="anon", access_token=lambda: token)


def _auth(client):
    return GoTrueAuth(client, base_url=f"{BASE}/auth/v1", api_key="anon")


# ----- REST store -----

async def test_select_query_string():
    sent = []
    async with _client(lambda r: httpx.Response(200, json=[{"id": "S1"}]), sent) as client:
        rows, error = await _store(client).select(
            "schedules",
            columns="*, personnel(name, role)",
            filters=[gte("duty_date", "2024-05-01")],
            order=[asc("duty_date"), asc("start_time")],
            limit=5,
        )

    assert error is None
    assert rows == [{"id": "S1"}]
    request = sent[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/schedules"
    assert request.url.params["select"] == "*,personnel(name,role)"
    assert request.url.params["duty_date"] == "gte.2024-05-01"
    assert request.url.params["order"] == "duty_date.asc,start_time.asc"
    assert request.url.params["limit"] == "5"
    assert request.headers["apikey"] == "anon"
    assert request.headers["Authorization"] == "Bearer user-jwt"


async def test_anon_key_used_without_session():
    sent = []
    async with _client(lambda r: httpx.Response(200, json=[]), sent) as client:
        await _store(client, token=None).select("departments")

    assert sent[0].headers["Authorization"] == "Bearer anon"


async def test_or_and_in_filters_on_delete():
    sent = []
    async with _client(lambda r: httpx.Response(204), sent) as client:
        store = _store(client)
        result = await store.delete("swap_requests", [any_of(eq("requester_id", "U1"), eq("target_id", "U1"))])
        await store.delete("schedules", [in_("id", ["S1", "a,b"])])

    assert result.data is None and result.error is None
    assert sent[0].method == "DELETE"
    assert sent[0].url.params["or"] == "(requester_id.eq.U1,target_id.eq.U1)"
    assert sent[0].headers["Prefer"] == "return=minimal"
    assert sent[1].url.params["id"] == 'in.(S1,"a,b")'


async def test_insert_asks_for_representation():
    sent = []
    async with _client(lambda r: httpx.Response(201, json=[{"id": "D1", "name": "Field"}]), sent) as client:
        rows, error = await _store(client).insert("departments", {"name": "Field"})

    assert error is None
    assert rows[0]["id"] == "D1"
    assert sent[0].headers["Prefer"] == "return=representation"
    assert json.loads(sent[0].content) == [{"name": "Field"}]


async def test_store_error_carries_status_and_code():
    body = {"message": "violates foreign key constraint", "code": "23503"}
    async with _client(lambda r: httpx.Response(409, json=body), []) as client:
        _, error = await _store(client).delete("personnel", [eq("id", "U1")])

    assert error.kind == ErrorKind.STORE
    assert error.status == 409
    assert error.code == "23503"
    assert error.message == "violates foreign key constraint"


async def test_transport_failure_returns_empty_rows():
    def _boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(_boom, []) as client:
        rows, error = await _store(client).select("personnel")

    assert rows == []
    assert error.kind == ErrorKind.TRANSPORT


async def test_unfiltered_writes_are_refused():
    async with _client(lambda r: httpx.Response(204), []) as client:
        store = _store(client)
        with pytest.raises(ValueError):
            await store.delete("attendance", [])
        with pytest.raises(ValueError):
            await store.update("attendance", {"status": "present"}, [])


# ----- auth -----

async def test_sign_in_stores_session_and_notifies():
    sent, events = [], []
    async with _client(lambda r: httpx.Response(200, json=SESSION), sent) as client:
        auth = _auth(client)
        auth.on_auth_state_change(lambda event, session: events.append((event, session)))
        data, error = await auth.sign_in("ana@example.com", "secret123")

    assert error is None
    assert data["user"].id == "U1"
    assert auth.access_token() == "jwt-1"
    assert sent[0].url.path == "/auth/v1/token"
    assert sent[0].url.params["grant_type"] == "password"
    assert events[0][0] == AuthEvent.SIGNED_IN


async def test_bad_credentials():
    body = {"error": "invalid_grant", "error_description": "Invalid login credentials"}
    async with _client(lambda r: httpx.Response(400, json=body), []) as client:
        auth = _auth(client)
        _, error = await auth.sign_in("ana@example.com", "wrong")

    assert error.message == "Invalid login credentials"
    assert auth.access_token() is None


async def test_sign_out_drops_session_even_if_revoke_fails():
    def _handler(request):
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json=SESSION)
        return httpx.Response(500, json={"msg": "unavailable"})

    sent, events = [], []
    async with _client(_handler, sent) as client:
        auth = _auth(client)
        await auth.sign_in("ana@example.com", "secret123")
        auth.on_auth_state_change(lambda event, session: events.append(event))
        _, error = await auth.sign_out()

    assert error.message == "unavailable"
    assert auth.access_token() is None
    assert sent[1].headers["Authorization"] == "Bearer jwt-1"
    assert events == [AuthEvent.SIGNED_OUT]


async def test_update_password_needs_session():
    async with _client(lambda r: httpx.Response(200, json={}), []) as client:
        _, error = await _auth(client).update_password("newpass1")

    assert error.message == "Auth session missing"


async def test_reset_password_passes_redirect():
    sent = []
    async with _client(lambda r: httpx.Response(200, json={}), sent) as client:
        _, error = await _auth(client).reset_password_for_email("ana@example.com", "https://app/reset")

    assert error is None
    assert sent[0].url.path == "/auth/v1/recover"
    assert sent[0].url.params["redirect_to"] == "https://app/reset"


async def test_restore_session_checks_token():
    sent = []
    async with _client(lambda r: httpx.Response(200, json=SESSION["user"]), sent) as client:
        auth = _auth(client)
        session, error = await auth.restore_session("jwt-9")

    assert error is None
    assert session.user.id == "U1"
    assert auth.access_token() == "jwt-9"
    assert sent[0].headers["Authorization"] == "Bearer jwt-9"


# ----- configuration -----

def test_placeholders_are_not_configured():
    assert not Settings(_env_file=None, SUPABASE_URL="YOUR_SUPABASE_URL", SUPABASE_ANON_KEY="k").is_configured
    assert not Settings(_env_file=None, SUPABASE_URL=BASE, SUPABASE_ANON_KEY="YOUR_SUPABASE_ANON_KEY").is_configured
    assert not Settings(_env_file=None, SUPABASE_URL=" ", SUPABASE_ANON_KEY="k").is_configured
    assert Settings(_env_file=None, SUPABASE_URL=BASE, SUPABASE_ANON_KEY="k").is_configured


def test_endpoint_urls():
    s = Settings(_env_file=None, SUPABASE_URL=f"{BASE}/", SUPABASE_ANON_KEY="k")

    assert s.rest_url == f"{BASE}/rest/v1"
    assert s.auth_url == f"{BASE}/auth/v1"


async def test_missing_configuration_degrades(monkeypatch):
    monkeypatch.setattr(settings, "supabase_url", None)
    async with httpx.AsyncClient() as client:
        store, auth = build_providers(client)

    assert isinstance(store, UnconfiguredStore)
    rows, error = await store.select("personnel")
    assert rows == []
    assert error.kind == ErrorKind.NOT_CONFIGURED
    assert error.message == "Not configured"
    data, error = await store.insert("personnel", {"name": "x"})
    assert data is None and error.kind == ErrorKind.NOT_CONFIGURED
    session, _ = await auth.get_session()
    assert session is None


async def test_malformed_backend_url_is_a_transport_error():
    async with _client(lambda r: httpx.Response(200, json=[]), []) as client:
        store = PostgrestStore(client, base_url="https://demo.supabase.co:port/rest/v1", api_key="anon")
        rows, error = await store.select("personnel")

    assert rows == []
    assert error.kind == ErrorKind.TRANSPORT
