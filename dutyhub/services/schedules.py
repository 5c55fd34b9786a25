"""
Schedule data access and the schedule cascade delete.
"""
from datetime import date
from typing import Any, Mapping, Optional, Union

from ..store.provider import StoreResult, TableStore, asc, eq, first_row, gte, lte
from .cascade import CascadeExecutor, CascadePlan, delete_step, execute_cascade


TABLE = "schedules"
COLUMNS = "*, personnel(name, role)"

DateLike = Union[date, str]


async def list_schedules(
    store: TableStore, start_date: Optional[DateLike] = None, end_date: Optional[DateLike] = None
) -> StoreResult:
    """
    List schedules in an optional inclusive duty_date range.

    Args:
        store: Table store
        start_date: Earliest duty_date (inclusive)
        end_date: Latest duty_date (inclusive)

    Returns:
        Rows with the assigned person's name and role, ordered by date then start time
    """
    filters = []
    if start_date:
        filters.append(gte("duty_date", start_date))
    if end_date:
        filters.append(lte("duty_date", end_date))
    return await store.select(TABLE, columns=COLUMNS, filters=filters, order=[asc("duty_date"), asc("start_time")])


async def list_schedules_by_personnel(store: TableStore, personnel_id: str) -> StoreResult:
    return await store.select(TABLE, filters=[eq("personnel_id", personnel_id)], order=[asc("duty_date")])


async def get_schedule(store: TableStore, schedule_id: str) -> StoreResult:
    return first_row(await store.select(TABLE, columns=COLUMNS, filters=[eq("id", schedule_id)], limit=1))


async def create_schedule(store: TableStore, row: Mapping[str, Any]) -> StoreResult:
    return first_row(await store.insert(TABLE, row, returning=COLUMNS), required=True)


async def update_schedule(store: TableStore, schedule_id: str, patch: Mapping[str, Any]) -> StoreResult:
    return first_row(await store.update(TABLE, patch, filters=[eq("id", schedule_id)]), required=True)


def build_delete_plan(schedule_id: str) -> CascadePlan:
    return CascadePlan(
        entity=TABLE,
        entity_id=schedule_id,
        dependents=(
            delete_step("attendance", eq("schedule_id", schedule_id)),
            delete_step("swap_requests", eq("schedule_id", schedule_id)),
        ),
        parent=delete_step(TABLE, eq("id", schedule_id)),
    )


async def delete_schedule(
    store: TableStore, schedule_id: str, executor: Optional[CascadeExecutor] = None
) -> StoreResult:
    return await execute_cascade(store, build_delete_plan(schedule_id), executor=executor)
