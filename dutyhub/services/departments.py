from ..store.provider import StoreResult, TableStore, asc, first_row


TABLE = "departments"


async def list_departments(store: TableStore) -> StoreResult:
    return await store.select(TABLE, order=[asc("name")])


async def create_department(store: TableStore, name: str) -> StoreResult:
    return first_row(await store.insert(TABLE, {"name": name}), required=True)
