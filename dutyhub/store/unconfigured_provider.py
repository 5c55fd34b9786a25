from typing import Any, List, Mapping, Optional, Sequence, Union

from .provider import FilterLike, Order, StoreResult, TableStore, not_configured


class UnconfiguredStore(TableStore):
    """Stand-in used when the backend URL/key are missing; reads come back empty."""

    configured = False

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[FilterLike] = (),
        order: Sequence[Order] = (),
        limit: Optional[int] = None,
    ) -> StoreResult:
        return StoreResult([], not_configured())

    async def insert(
        self,
        table: str,
        rows: Union[Mapping[str, Any], List[Mapping[str, Any]]],
        returning: str = "*",
    ) -> StoreResult:
        return StoreResult(None, not_configured())

    async def update(
        self,
        table: str,
        patch: Mapping[str, Any],
        filters: Sequence[FilterLike],
        returning: str = "*",
    ) -> StoreResult:
        return StoreResult(None, not_configured())

    async def delete(self, table: str, filters: Sequence[FilterLike]) -> StoreResult:
        return StoreResult(None, not_configured())
