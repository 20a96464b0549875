"""
Store interface shared by every feature package.

Handlers never talk to Supabase/Postgres directly. They receive a `Store`
through FastAPI dependency injection (see `core/dependencies.py`) and only
use the capability set below.

Store-reported failures are translated exactly once, in the concrete client,
into `StoreError` with a `StoreErrorKind`. Callers match on the kind and
never parse error messages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Protocol, Sequence

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Filters = Mapping[str, Any]


class StoreErrorKind(str, Enum):
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"
    MISSING_CONFLICT_CONSTRAINT = "MISSING_CONFLICT_CONSTRAINT"
    UNIQUE_VIOLATION = "UNIQUE_VIOLATION"
    UNDEFINED_COLUMN = "UNDEFINED_COLUMN"
    NO_ROWS = "NO_ROWS"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    TIMEOUT = "TIMEOUT"
    UNAVAILABLE = "UNAVAILABLE"
    OTHER = "OTHER"


# PostgREST codes (PGRST*) and Postgres SQLSTATEs seen in the wild.
_KIND_BY_CODE: dict[str, StoreErrorKind] = {
    "PGRST205": StoreErrorKind.TABLE_NOT_FOUND,
    "42P01": StoreErrorKind.TABLE_NOT_FOUND,
    "42P10": StoreErrorKind.MISSING_CONFLICT_CONSTRAINT,
    "23505": StoreErrorKind.UNIQUE_VIOLATION,
    "PGRST204": StoreErrorKind.UNDEFINED_COLUMN,
    "42703": StoreErrorKind.UNDEFINED_COLUMN,
    "PGRST116": StoreErrorKind.NO_ROWS,
}


def kind_for_code(code: str | None) -> StoreErrorKind:
    return _KIND_BY_CODE.get((code or "").strip().upper(), StoreErrorKind.OTHER)


class StoreError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        kind: StoreErrorKind = StoreErrorKind.OTHER,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code
        self.details = details
        self.hint = hint

    @classmethod
    def from_code(
        cls,
        code: str | None,
        message: str,
        *,
        details: str | None = None,
        hint: str | None = None,
    ) -> "StoreError":
        return cls(message, kind=kind_for_code(code), code=code, details=details, hint=hint)

    def __repr__(self) -> str:
        return f"StoreError(kind={self.kind.value}, code={self.code!r}, message={self.message!r})"


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


def desc(column: str) -> Order:
    return Order(column, ascending=False)


def asc(column: str) -> Order:
    return Order(column, ascending=True)


class Store(Protocol):
    """Capability set the orchestration layer needs from the tabular store."""

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Filters | None = None,
        order: Sequence[Order] = (),
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Row]:
        ...

    async def count(self, table: str, *, filters: Filters | None = None) -> int:
        ...

    async def insert(self, table: str, rows: Row | Iterable[Row]) -> list[Row]:
        ...

    async def update(self, table: str, values: Row, *, filters: Filters) -> list[Row]:
        ...

    async def delete(self, table: str, *, filters: Filters) -> list[Row]:
        ...

    async def upsert(
        self,
        table: str,
        rows: Row | Iterable[Row],
        *,
        on_conflict: Sequence[str],
    ) -> list[Row]:
        ...

    async def aclose(self) -> None:
        ...


def as_rows(rows: Row | Iterable[Row]) -> list[Row]:
    if isinstance(rows, Mapping):
        return [dict(rows)]
    return [dict(r) for r in rows]


def split_columns(columns: str) -> list[str] | None:
    """
    Parse a "a, b, c" projection. `None` means every column.
    """
    raw = (columns or "*").strip()
    if raw == "*":
        return None
    return [c.strip() for c in raw.split(",") if c.strip()]


async def select_one(
    store: Store,
    table: str,
    *,
    columns: str = "*",
    filters: Filters | None = None,
    order: Sequence[Order] = (),
) -> Row | None:
    """
    First matching row or None (duplicates are tolerated, not an error).
    """
    rows = await store.select(table, columns=columns, filters=filters, order=order, limit=1)
    return rows[0] if rows else None


_NOT_CONFIGURED_MESSAGE = "Store is not configured (SUPABASE_URL/SUPABASE_SERVICE_KEY missing or invalid)."


class NotConfiguredStore:
    """
    Stand-in used when no store credentials are available.

    Every operation fails the same way so each route degrades to a uniform
    "not configured" response instead of crashing the process.
    """

    def _fail(self) -> StoreError:
        return StoreError(_NOT_CONFIGURED_MESSAGE, kind=StoreErrorKind.NOT_CONFIGURED)

    async def select(self, table: str, **_: Any) -> list[Row]:
        raise self._fail()

    async def count(self, table: str, **_: Any) -> int:
        raise self._fail()

    async def insert(self, table: str, rows: Any) -> list[Row]:
        raise self._fail()

    async def update(self, table: str, values: Row, **_: Any) -> list[Row]:
        raise self._fail()

    async def delete(self, table: str, **_: Any) -> list[Row]:
        raise self._fail()

    async def upsert(self, table: str, rows: Any, **_: Any) -> list[Row]:
        raise self._fail()

    async def aclose(self) -> None:
        return None


async def select_optional(store: Store, table: str, **kwargs: Any) -> list[Row]:
    """
    `select` for secondary tables: a missing table reads as empty.
    """
    try:
        return await store.select(table, **kwargs)
    except StoreError as exc:
        if exc.kind is not StoreErrorKind.TABLE_NOT_FOUND:
            raise
        logger.warning("optional_table_missing table=%s code=%s", table, exc.code)
        return []
