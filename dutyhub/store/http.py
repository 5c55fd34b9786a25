"""
Shared request plumbing for the hosted backend's REST and auth endpoints.
"""
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
import structlog

from .provider import ErrorKind, StoreError, StoreResult


logger = structlog.get_logger(__name__)

Params = Union[Dict[str, str], List[Tuple[str, str]], None]


def error_from_response(response: httpx.Response) -> StoreError:
    """Build a StoreError from a REST (``message``/``code``) or auth (``msg``/``error_description``) error body."""
    message = None
    code = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("msg") or body.get("error_description") or body.get("error")
        code = body.get("code") or body.get("error_code")
    return StoreError(
        message=str(message) if message else f"HTTP {response.status_code}",
        kind=ErrorKind.STORE,
        code=str(code) if code is not None else None,
        status=response.status_code,
    )


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    headers: Dict[str, str],
    params: Params = None,
    json: Any = None,
) -> StoreResult:
    try:
        response = await client.request(method, url, headers=headers, params=params, json=json)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("backend_request_failed", method=method, url=url, error=str(e) or e.__class__.__name__)
        return StoreResult(None, StoreError(str(e) or e.__class__.__name__, ErrorKind.TRANSPORT))

    if response.is_error:
        error = error_from_response(response)
        logger.warning(
            "backend_request_rejected",
            method=method,
            url=url,
            status=response.status_code,
            code=error.code,
            error=error.message,
        )
        return StoreResult(None, error)

    if not response.content:
        return StoreResult(None, None)
    try:
        return StoreResult(response.json(), None)
    except ValueError:
        return StoreResult(None, StoreError("Malformed response from backend", ErrorKind.STORE, status=response.status_code))
