"""
In-memory store for local development and tests.

It mimics the store behaviors the handlers depend on:
- store-assigned integer ids
- unique keys (insert/update conflicts raise UNIQUE_VIOLATION)
- upsert only against a declared unique key (otherwise
  MISSING_CONFLICT_CONSTRAINT, like Postgres 42P10)
- tables can be declared missing (TABLE_NOT_FOUND) or restricted to a column
  set (UNDEFINED_COLUMN)
"""

from __future__ import annotations

import copy
import itertools
from typing import Any, Iterable, Sequence

from .store import Filters, Order, Row, StoreError, StoreErrorKind, as_rows, split_columns

DEFAULT_UNIQUE_KEYS: dict[str, list[tuple[str, ...]]] = {
    "users": [("email",)],
    "alunos": [("email",)],
    "contract_settings": [("professor_email", "aluno_email")],
    "settings": [("chave",)],
    "curtidas": [("post_id", "usuario_email")],
}


def _cmp_key(value: Any) -> Any:
    # PostgREST compares filter values as text ("5" matches 5).
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _sort_rows(rows: list[Row], order: Sequence[Order]) -> list[Row]:
    # Apply the least significant key first; Python's sort is stable.
    for o in reversed(order):
        present = [r for r in rows if r.get(o.column) is not None]
        missing = [r for r in rows if r.get(o.column) is None]
        present.sort(key=lambda r: r[o.column], reverse=not o.ascending)
        # Postgres puts NULLs last for ASC and first for DESC.
        rows = present + missing if o.ascending else missing + present
    return rows


class InMemoryStore:
    def __init__(
        self,
        *,
        unique_keys: dict[str, list[tuple[str, ...]]] | None = None,
        missing_tables: Iterable[str] = (),
        table_columns: dict[str, set[str]] | None = None,
    ) -> None:
        self.unique_keys = copy.deepcopy(DEFAULT_UNIQUE_KEYS if unique_keys is None else unique_keys)
        self.missing_tables: set[str] = set(missing_tables)
        self.table_columns: dict[str, set[str]] = dict(table_columns or {})
        self.tables: dict[str, list[Row]] = {}
        self._ids: dict[str, itertools.count] = {}

    def reset(self) -> None:
        """Clear all stored rows (useful in tests)."""
        self.tables.clear()
        self._ids.clear()

    def rows(self, table: str) -> list[Row]:
        return self.tables.setdefault(table, [])

    def _check_table(self, table: str) -> None:
        if table in self.missing_tables:
            raise StoreError.from_code(
                "PGRST205",
                f"Could not find the table 'public.{table}' in the schema cache",
            )

    def _check_columns(self, table: str, row: Row) -> None:
        allowed = self.table_columns.get(table)
        if allowed is None:
            return
        unknown = sorted(set(row) - allowed - {"id"})
        if unknown:
            raise StoreError.from_code(
                "PGRST204",
                f"Could not find the '{unknown[0]}' column of '{table}' in the schema cache",
            )

    def _check_unique(self, table: str, row: Row, *, ignore: Row | None = None) -> None:
        for key in self.unique_keys.get(table, []):
            if any(row.get(c) is None for c in key):
                continue
            wanted = tuple(_cmp_key(row.get(c)) for c in key)
            for existing in self.rows(table):
                if existing is ignore:
                    continue
                if tuple(_cmp_key(existing.get(c)) for c in key) == wanted:
                    raise StoreError.from_code(
                        "23505",
                        f'duplicate key value violates unique constraint "{table}_{"_".join(key)}_key"',
                        details=f"Key ({', '.join(key)})=({', '.join(str(v) for v in wanted)}) already exists.",
                    )

    def _next_id(self, table: str) -> int:
        counter = self._ids.setdefault(table, itertools.count(1))
        return next(counter)

    def _matching(self, table: str, filters: Filters | None) -> list[Row]:
        wanted = {column: _cmp_key(value) for column, value in (filters or {}).items()}
        return [
            row
            for row in self.rows(table)
            if all(_cmp_key(row.get(column)) == value for column, value in wanted.items())
        ]

    @staticmethod
    def _project(row: Row, columns: str) -> Row:
        names = split_columns(columns)
        if names is None:
            return copy.deepcopy(row)
        return {n: copy.deepcopy(row.get(n)) for n in names}

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
        self._check_table(table)
        rows = _sort_rows(self._matching(table, filters), order)
        start = max(int(offset or 0), 0)
        end = None if limit is None else start + max(int(limit), 0)
        return [self._project(r, columns) for r in rows[start:end]]

    async def count(self, table: str, *, filters: Filters | None = None) -> int:
        self._check_table(table)
        return len(self._matching(table, filters))

    def _insert_row(self, table: str, row: Row) -> Row:
        self._check_columns(table, row)
        self._check_unique(table, row)
        stored = copy.deepcopy(row)
        if stored.get("id") is None:
            stored["id"] = self._next_id(table)
        self.rows(table).append(stored)
        return copy.deepcopy(stored)

    async def insert(self, table: str, rows: Row | Iterable[Row]) -> list[Row]:
        self._check_table(table)
        return [self._insert_row(table, row) for row in as_rows(rows)]

    async def update(self, table: str, values: Row, *, filters: Filters) -> list[Row]:
        if not filters:
            raise ValueError("update() requires at least one filter.")
        self._check_table(table)
        self._check_columns(table, values)
        updated: list[Row] = []
        for row in self._matching(table, filters):
            candidate = {**row, **copy.deepcopy(values)}
            self._check_unique(table, candidate, ignore=row)
            row.update(copy.deepcopy(values))
            updated.append(copy.deepcopy(row))
        return updated

    async def delete(self, table: str, *, filters: Filters) -> list[Row]:
        if not filters:
            raise ValueError("delete() requires at least one filter.")
        self._check_table(table)
        doomed = self._matching(table, filters)
        doomed_ids = {id(r) for r in doomed}
        self.tables[table] = [r for r in self.rows(table) if id(r) not in doomed_ids]
        return [copy.deepcopy(r) for r in doomed]

    async def upsert(
        self,
        table: str,
        rows: Row | Iterable[Row],
        *,
        on_conflict: Sequence[str],
    ) -> list[Row]:
        self._check_table(table)
        target = tuple(on_conflict)
        if target not in self.unique_keys.get(table, []):
            raise StoreError.from_code(
                "42P10",
                "there is no unique or exclusion constraint matching the ON CONFLICT specification",
            )
        out: list[Row] = []
        for row in as_rows(rows):
            existing = self._matching(table, {c: row.get(c) for c in target})
            if existing:
                self._check_columns(table, row)
                existing[0].update(copy.deepcopy(row))
                out.append(copy.deepcopy(existing[0]))
            else:
                out.append(self._insert_row(table, row))
        return out

    async def aclose(self) -> None:
        return None
