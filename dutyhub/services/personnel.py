"""
Personnel data access.
Pass-through reads/writes plus the personnel cascade delete and the
"create personnel with a login account" flow.
"""
import secrets
import string
from typing import Any, Mapping, Optional

import structlog

from ..auth.provider import AuthProvider
from ..config import settings
from ..schemas.personnel import PersonnelCreate
from ..store.provider import (
    ErrorKind,
    StoreError,
    StoreResult,
    TableStore,
    any_of,
    asc,
    eq,
    first_row,
    in_,
)
from .cascade import CascadeExecutor, CascadePlan, delete_step, execute_cascade, plan_failure


logger = structlog.get_logger(__name__)

TABLE = "personnel"
COLUMNS = "*, departments(name)"
PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%"


async def list_personnel(store: TableStore) -> StoreResult:
    return await store.select(TABLE, columns=COLUMNS, order=[asc("name")])


async def get_personnel_by_id(store: TableStore, personnel_id: str) -> StoreResult:
    return first_row(await store.select(TABLE, columns=COLUMNS, filters=[eq("id", personnel_id)], limit=1))


async def get_personnel_by_email(store: TableStore, email: str) -> StoreResult:
    return first_row(await store.select(TABLE, columns=COLUMNS, filters=[eq("email", email)], limit=1))


async def create_personnel(store: TableStore, row: Mapping[str, Any]) -> StoreResult:
    return first_row(await store.insert(TABLE, row), required=True)


async def update_personnel(store: TableStore, personnel_id: str, patch: Mapping[str, Any]) -> StoreResult:
    return first_row(await store.update(TABLE, patch, filters=[eq("id", personnel_id)]), required=True)


async def build_delete_plan(store: TableStore, personnel_id: str) -> StoreResult:
    """
    Assemble the ordered delete plan for one person.

    Order: swap requests naming the person, their attendance, then for every
    schedule they own the schedule's attendance and swap requests, then the
    schedules, and finally the personnel row.

    Returns:
        StoreResult whose data is the CascadePlan. On a failed schedule lookup
        the data is a plan holding only the steps known so far, and the error is set.
    """
    head = (
        delete_step("swap_requests", any_of(eq("requester_id", personnel_id), eq("target_id", personnel_id))),
        delete_step("attendance", eq("personnel_id", personnel_id)),
    )
    parent = delete_step(TABLE, eq("id", personnel_id))

    schedules, error = await store.select("schedules", columns="id", filters=[eq("personnel_id", personnel_id)])
    if error is not None:
        return StoreResult(CascadePlan(TABLE, personnel_id, head, parent), error)

    schedule_ids = [row["id"] for row in schedules or []]
    tail = ()
    if schedule_ids:
        tail = (
            delete_step("attendance", in_("schedule_id", schedule_ids)),
            delete_step("swap_requests", in_("schedule_id", schedule_ids)),
            delete_step("schedules", in_("id", schedule_ids)),
        )
    return StoreResult(CascadePlan(TABLE, personnel_id, head + tail, parent), None)


async def delete_personnel(
    store: TableStore, personnel_id: str, executor: Optional[CascadeExecutor] = None
) -> StoreResult:
    plan, error = await build_delete_plan(store, personnel_id)
    prior_failure = plan_failure(plan, error) if error is not None else None
    return await execute_cascade(store, plan, executor=executor, prior_failure=prior_failure)


def generate_temporary_password(length: Optional[int] = None) -> str:
    length = length or settings.temp_password_length
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


async def create_personnel_account(store: TableStore, auth: AuthProvider, payload: PersonnelCreate) -> StoreResult:
    """
    Create a personnel row, optionally with a login account.

    With ``create_account`` the auth account is registered first and the
    personnel row reuses its user id, so the session gate can match them.
    A missing password is replaced by a generated temporary one.

    Returns:
        StoreResult with ``{"personnel": row, "temporary_password": str | None}``
    """
    row = payload.row()
    if not payload.create_account:
        data, error = await create_personnel(store, row)
        if error is not None:
            return StoreResult(None, error)
        return StoreResult({"personnel": data, "temporary_password": None}, None)

    if not payload.email:
        return StoreResult(None, StoreError("An email is required to create a login account", ErrorKind.VALIDATION))

    password = payload.password or generate_temporary_password()
    data, error = await auth.sign_up(payload.email, password, {"name": payload.name})
    if error is not None:
        logger.warning("account_creation_failed", email=payload.email, error=error.message)
        return StoreResult(None, StoreError(f"Account creation failed: {error.message}", error.kind, error.code, error.status))

    row["id"] = data["user"].id
    created, error = await create_personnel(store, row)
    if error is not None:
        # The auth account is not rolled back
        logger.warning("personnel_creation_failed", user_id=row["id"], error=error.message)
        return StoreResult(None, StoreError(f"Personnel creation failed: {error.message}", error.kind, error.code, error.status))

    logger.info("personnel_account_created", personnel_id=row["id"])
    return StoreResult({"personnel": created, "temporary_password": password}, None)
