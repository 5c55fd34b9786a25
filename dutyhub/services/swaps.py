"""
Swap request data access.
Approval and rejection are plain status writes; refusing to touch a request
that is no longer pending is up to the caller.
"""
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from ..schemas.swaps import SwapStatus
from ..store.provider import ErrorKind, StoreError, StoreResult, TableStore, desc, eq, first_row


TABLE = "swap_requests"
COLUMNS = (
    "*, "
    "requester:personnel!swap_requests_requester_id_fkey(name), "
    "target:personnel!swap_requests_target_id_fkey(name), "
    "schedules(duty_date, start_time, end_time)"
)


def _status(status: Union[SwapStatus, str]) -> Optional[SwapStatus]:
    try:
        return SwapStatus(status)
    except ValueError:
        return None


def _bad_status(status: Any, empty: Any) -> StoreResult:
    return StoreResult(empty, StoreError(f"Unknown swap status: {status}", ErrorKind.VALIDATION))


async def list_swap_requests(store: TableStore, status: Optional[Union[SwapStatus, str]] = None) -> StoreResult:
    filters = []
    if status:
        known = _status(status)
        if known is None:
            return _bad_status(status, [])
        filters.append(eq("status", known.value))
    return await store.select(TABLE, columns=COLUMNS, filters=filters, order=[desc("created_at")])


async def get_swap_request(store: TableStore, request_id: str) -> StoreResult:
    return first_row(await store.select(TABLE, filters=[eq("id", request_id)], limit=1))


async def create_swap_request(store: TableStore, row: Mapping[str, Any]) -> StoreResult:
    payload = dict(row)
    payload["status"] = SwapStatus.PENDING.value
    return first_row(await store.insert(TABLE, payload), required=True)


async def update_swap_request(store: TableStore, request_id: str, status: Union[SwapStatus, str]) -> StoreResult:
    known = _status(status)
    if known is None:
        return _bad_status(status, None)
    patch = {"status": known.value, "updated_at": datetime.now(timezone.utc).isoformat()}
    return first_row(await store.update(TABLE, patch, filters=[eq("id", request_id)]), required=True)


async def approve_swap_request(store: TableStore, request_id: str) -> StoreResult:
    return await update_swap_request(store, request_id, SwapStatus.APPROVED)


async def reject_swap_request(store: TableStore, request_id: str) -> StoreResult:
    return await update_swap_request(store, request_id, SwapStatus.REJECTED)
