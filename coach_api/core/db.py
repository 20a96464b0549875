"""
Direct Postgres store (raw SQL) using asyncpg.

Used when `DATABASE_URL` points at the database behind the hosted store
(e.g. the Supabase connection string). The connection pool is opened on
startup and closed on shutdown (see `coach_api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
- every statement is prepared first so arguments can be coerced to the
  parameter types Postgres reports (ISO strings -> timestamptz, "5" -> int8).
"""

from __future__ import annotations

import asyncio
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .normalize import parse_datetime
from .store import Filters, Order, Row, StoreError, StoreErrorKind, as_rows, split_columns


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _projection(columns: str) -> str:
    names = split_columns(columns)
    if names is None:
        return "*"
    return ", ".join(quote_ident(n) for n in names)


def build_where(filters: Filters | None, args: list[Any]) -> str:
    """
    Equality filters -> WHERE clause. Appends parameters to `args`.
    """
    clauses: list[str] = []
    for column, value in (filters or {}).items():
        if value is None:
            clauses.append(f"{quote_ident(column)} IS NULL")
            continue
        args.append(value)
        clauses.append(f"{quote_ident(column)} = ${len(args)}")
    return f" WHERE {' AND '.join(clauses)}" if clauses else ""


def build_select(
    table: str,
    *,
    columns: str = "*",
    filters: Filters | None = None,
    order: Sequence[Order] = (),
    limit: int | None = None,
    offset: int | None = None,
) -> tuple[str, list[Any]]:
    args: list[Any] = []
    sql = f"SELECT {_projection(columns)} FROM {quote_ident(table)}"
    sql += build_where(filters, args)
    if order:
        sql += " ORDER BY " + ", ".join(
            f"{quote_ident(o.column)} {'ASC' if o.ascending else 'DESC'}" for o in order
        )
    if limit is not None:
        args.append(int(limit))
        sql += f" LIMIT ${len(args)}"
    if offset:
        args.append(int(offset))
        sql += f" OFFSET ${len(args)}"
    return sql, args


def build_insert(table: str, row: Row, *, on_conflict: Sequence[str] = ()) -> tuple[str, list[Any]]:
    columns = list(row.keys())
    args = [row[c] for c in columns]
    if columns:
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        sql = (
            f"INSERT INTO {quote_ident(table)} ({', '.join(quote_ident(c) for c in columns)}) "
            f"VALUES ({placeholders})"
        )
    else:
        sql = f"INSERT INTO {quote_ident(table)} DEFAULT VALUES"

    if on_conflict:
        target = ", ".join(quote_ident(c) for c in on_conflict)
        updatable = [c for c in columns if c not in on_conflict]
        if updatable:
            assignments = ", ".join(f"{quote_ident(c)} = EXCLUDED.{quote_ident(c)}" for c in updatable)
            sql += f" ON CONFLICT ({target}) DO UPDATE SET {assignments}"
        else:
            sql += f" ON CONFLICT ({target}) DO NOTHING"
    return sql + " RETURNING *", args


def build_update(table: str, values: Row, filters: Filters) -> tuple[str, list[Any]]:
    args: list[Any] = []
    assignments: list[str] = []
    for column, value in values.items():
        args.append(value)
        assignments.append(f"{quote_ident(column)} = ${len(args)}")
    sql = f"UPDATE {quote_ident(table)} SET {', '.join(assignments)}"
    sql += build_where(filters, args)
    return sql + " RETURNING *", args


def build_delete(table: str, filters: Filters) -> tuple[str, list[Any]]:
    args: list[Any] = []
    sql = f"DELETE FROM {quote_ident(table)}" + build_where(filters, args)
    return sql + " RETURNING *", args


_INT_TYPES = {"int2", "int4", "int8"}
_FLOAT_TYPES = {"float4", "float8"}
_TEXT_TYPES = {"text", "varchar", "bpchar", "name"}


def coerce_arg(type_name: str, value: Any) -> Any:
    """
    Convert a loosely-typed request value to what asyncpg expects for `type_name`.
    """
    if value is None:
        return None
    if type_name in ("timestamptz", "timestamp"):
        if isinstance(value, datetime):
            return value
        parsed = parse_datetime(value)
        if parsed is None:
            raise StoreError(f"Invalid timestamp value: {value!r}", code="22007")
        return parsed if type_name == "timestamptz" else parsed.replace(tzinfo=None)
    if type_name == "date":
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        parsed = parse_datetime(value)
        if parsed is None:
            raise StoreError(f"Invalid date value: {value!r}", code="22007")
        return parsed.date()
    if type_name in _INT_TYPES:
        if isinstance(value, bool):
            return int(value)
        return int(str(value).strip()) if isinstance(value, str) else int(value)
    if type_name in _FLOAT_TYPES:
        return float(value)
    if type_name == "numeric":
        return Decimal(str(value))
    if type_name == "bool":
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "t", "yes")
        return bool(value)
    if type_name in _TEXT_TYPES and not isinstance(value, str):
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False)
        return str(value)
    return value


async def _init_connection(conn: asyncpg.Connection) -> None:
    # Return json/jsonb as Python objects and accept Python objects for them.
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=lambda v: json.dumps(v, ensure_ascii=False, default=str),
            decoder=json.loads,
            schema="pg_catalog",
        )


class PostgresStore:
    def __init__(self, dsn: str, *, min_size: int = 1, max_size: int = 5, command_timeout: float = 30.0) -> None:
        if not dsn:
            raise ValueError("DATABASE_URL is required for PostgresStore.")
        self._dsn = _sanitize_database_url(dsn)
        self._min_size = min_size
        self._max_size = max_size
        self._command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None

    async def open(self) -> None:
        if self._pool is not None:
            return None
        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
                init=_init_connection,
            )
        except (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            raise StoreError(f"Database is unreachable: {exc}", kind=StoreErrorKind.UNAVAILABLE) from exc

    async def aclose(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None

    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise StoreError(
                "DB pool is not initialized. Call open() on startup.",
                kind=StoreErrorKind.UNAVAILABLE,
            )
        return self._pool

    async def _fetch(self, conn: asyncpg.Connection, sql: str, args: list[Any]) -> list[Row]:
        stmt = await conn.prepare(sql)
        params = stmt.get_parameters()
        coerced = [coerce_arg(p.name, a) for p, a in zip(params, args)]
        records = await stmt.fetch(*coerced)
        return [dict(r) for r in records]

    async def _run(self, statements: list[tuple[str, list[Any]]]) -> list[Row]:
        """
        Execute statements in one transaction and concatenate their rows.
        """
        try:
            async with self.pool().acquire() as conn:
                async with conn.transaction():
                    out: list[Row] = []
                    for sql, args in statements:
                        out.extend(await self._fetch(conn, sql, args))
                    return out
        except asyncpg.PostgresError as exc:
            raise StoreError.from_code(
                exc.sqlstate,
                str(exc),
                details=getattr(exc, "detail", None),
                hint=getattr(exc, "hint", None),
            ) from exc
        except asyncio.TimeoutError as exc:
            raise StoreError("Database query timed out.", kind=StoreErrorKind.TIMEOUT) from exc
        except (OSError, asyncpg.InterfaceError) as exc:
            raise StoreError(f"Database is unreachable: {exc}", kind=StoreErrorKind.UNAVAILABLE) from exc
        except (TypeError, ValueError) as exc:
            # Argument coercion failures (e.g. "abc" for an integer column).
            raise StoreError(f"Invalid query argument: {exc}", code="22P02") from exc

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
        return await self._run(
            [build_select(table, columns=columns, filters=filters, order=order, limit=limit, offset=offset)]
        )

    async def count(self, table: str, *, filters: Filters | None = None) -> int:
        args: list[Any] = []
        sql = f"SELECT count(*) AS n FROM {quote_ident(table)}" + build_where(filters, args)
        rows = await self._run([(sql, args)])
        return int(rows[0]["n"]) if rows else 0

    async def insert(self, table: str, rows: Row | Iterable[Row]) -> list[Row]:
        return await self._run([build_insert(table, row) for row in as_rows(rows)])

    async def update(self, table: str, values: Row, *, filters: Filters) -> list[Row]:
        if not filters:
            raise ValueError("update() requires at least one filter.")
        return await self._run([build_update(table, dict(values), filters)])

    async def delete(self, table: str, *, filters: Filters) -> list[Row]:
        if not filters:
            raise ValueError("delete() requires at least one filter.")
        return await self._run([build_delete(table, filters)])

    async def upsert(
        self,
        table: str,
        rows: Row | Iterable[Row],
        *,
        on_conflict: Sequence[str],
    ) -> list[Row]:
        return await self._run(
            [build_insert(table, row, on_conflict=on_conflict) for row in as_rows(rows)]
        )
