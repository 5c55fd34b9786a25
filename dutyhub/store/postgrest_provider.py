"""
PostgREST table store.
Translates the table contract into the hosted backend's REST dialect
(``/rest/v1/<table>?col=op.value``) over a shared httpx.AsyncClient.
"""
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import httpx

from ..config import settings
from .http import send
from .provider import AnyOf, Filter, FilterLike, Order, StoreResult, TableStore


_RESERVED = re.compile(r'[,.:()"\s]')


def _format_value(value: Any, quote: bool = False) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    text = str(value)
    if quote and _RESERVED.search(text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


def _condition(f: Filter, nested: bool = False) -> str:
    """Render ``op.value`` for one filter; values inside lists and or-groups are quoted."""
    if f.op == "in":
        inner = ",".join(_format_value(v, quote=True) for v in f.value)
        return f"in.({inner})"
    if f.value is None and f.op == "eq":
        return "is.null"
    return f"{f.op}.{_format_value(f.value, quote=nested)}"


def filter_params(filters: Sequence[FilterLike]) -> List[Tuple[str, str]]:
    params: List[Tuple[str, str]] = []
    for f in filters:
        if isinstance(f, AnyOf):
            parts = [f"{sub.column}.{_condition(sub, nested=True)}" for sub in f.filters]
            params.append(("or", f"({','.join(parts)})"))
        else:
            params.append((f.column, _condition(f)))
    return params


def order_param(order: Sequence[Order]) -> Optional[Tuple[str, str]]:
    if not order:
        return None
    return ("order", ",".join(f"{o.column}.{'asc' if o.ascending else 'desc'}" for o in order))


def compact_columns(columns: str) -> str:
    # Embedded selects are written with spaces for readability; the query string must not carry them
    return re.sub(r"\s+", "", columns)


class PostgrestStore(TableStore):
    """Relational store reached through the backend's REST endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.client = client
        self.base_url = (base_url or settings.rest_url).rstrip("/")
        self.api_key = api_key or settings.supabase_anon_key
        # Row-level auth: requests run as the signed-in user when a session exists
        self._access_token = access_token

        if not self.api_key:
            raise ValueError("Backend anon key is required")

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        token = self._access_token() if self._access_token else None
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url}/{table}"

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[FilterLike] = (),
        order: Sequence[Order] = (),
        limit: Optional[int] = None,
    ) -> StoreResult:
        params = [("select", compact_columns(columns))]
        params.extend(filter_params(filters))
        ordering = order_param(order)
        if ordering:
            params.append(ordering)
        if limit is not None:
            params.append(("limit", str(limit)))

        data, error = await send(self.client, "GET", self._url(table), headers=self._headers(), params=params)
        if error is not None:
            return StoreResult([], error)
        return StoreResult(data or [], None)

    async def insert(
        self,
        table: str,
        rows: Union[Mapping[str, Any], List[Mapping[str, Any]]],
        returning: str = "*",
    ) -> StoreResult:
        payload = [dict(rows)] if isinstance(rows, Mapping) else [dict(r) for r in rows]
        return await send(
            self.client,
            "POST",
            self._url(table),
            headers=self._headers(prefer="return=representation"),
            params=[("select", compact_columns(returning))],
            json=payload,
        )

    async def update(
        self,
        table: str,
        patch: Mapping[str, Any],
        filters: Sequence[FilterLike],
        returning: str = "*",
    ) -> StoreResult:
        if not filters:
            raise ValueError("Refusing to update every row of a table")
        params = filter_params(filters)
        params.append(("select", compact_columns(returning)))
        return await send(
            self.client,
            "PATCH",
            self._url(table),
            headers=self._headers(prefer="return=representation"),
            params=params,
            json=dict(patch),
        )

    async def delete(self, table: str, filters: Sequence[FilterLike]) -> StoreResult:
        if not filters:
            raise ValueError("Refusing to delete every row of a table")
        return await send(
            self.client,
            "DELETE",
            self._url(table),
            headers=self._headers(prefer="return=minimal"),
            params=filter_params(filters),
        )
