"""
Table store contract.

The hosted backend exposes per-table select/insert/update/delete. Providers
resolve every call to a StoreResult ``(data, error)`` pair and never raise for
remote failures; callers inspect ``error`` before trusting ``data``.
"""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union


class ErrorKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    TRANSPORT = "transport"
    STORE = "store"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"


NOT_CONFIGURED_MESSAGE = "Not configured"


@dataclass(frozen=True)
class StoreError:
    message: str
    kind: ErrorKind = ErrorKind.STORE
    code: Optional[str] = None
    status: Optional[int] = None

    def __str__(self) -> str:
        return self.message


def not_configured() -> StoreError:
    return StoreError(NOT_CONFIGURED_MESSAGE, ErrorKind.NOT_CONFIGURED)


class StoreResult(NamedTuple):
    data: Any = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any


@dataclass(frozen=True)
class AnyOf:
    """Matches when at least one of the wrapped filters matches."""
    filters: Tuple[Filter, ...]


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


FilterLike = Union[Filter, AnyOf]


def _plain(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", _plain(value))


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", _plain(value))


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", _plain(value))


def in_(column: str, values: Iterable[Any]) -> Filter:
    return Filter(column, "in", tuple(_plain(v) for v in values))


def any_of(*filters: Filter) -> AnyOf:
    return AnyOf(tuple(filters))


def asc(column: str) -> Order:
    return Order(column, True)


def desc(column: str) -> Order:
    return Order(column, False)


def first_row(result: StoreResult, required: bool = False) -> StoreResult:
    """
    Collapse a list result to its first row.

    Args:
        result: Result of a select/insert/update
        required: Report NOT_FOUND instead of ``None`` when no row came back

    Returns:
        StoreResult carrying a single row (or None)
    """
    if result.error is not None:
        return StoreResult(None, result.error)
    rows = result.data
    if isinstance(rows, Mapping):
        return StoreResult(dict(rows), None)
    if rows:
        return StoreResult(rows[0], None)
    if required:
        return StoreResult(None, StoreError("No rows matched", ErrorKind.NOT_FOUND))
    return StoreResult(None, None)


class TableStore:
    configured = True

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[FilterLike] = (),
        order: Sequence[Order] = (),
        limit: Optional[int] = None,
    ) -> StoreResult:
        raise NotImplementedError

    async def insert(
        self,
        table: str,
        rows: Union[Mapping[str, Any], List[Mapping[str, Any]]],
        returning: str = "*",
    ) -> StoreResult:
        raise NotImplementedError

    async def update(
        self,
        table: str,
        patch: Mapping[str, Any],
        filters: Sequence[FilterLike],
        returning: str = "*",
    ) -> StoreResult:
        raise NotImplementedError

    async def delete(self, table: str, filters: Sequence[FilterLike]) -> StoreResult:
        raise NotImplementedError
