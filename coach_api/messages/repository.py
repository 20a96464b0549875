"""
Message persistence helpers.
"""

from __future__ import annotations

from coach_api.core.store import Row, Store, desc

MESSAGES = "mensagens"


async def search(store: Store, *, para: str | None = None, de: str | None = None) -> list[Row]:
    filters = {}
    if para:
        filters["para"] = para
    if de:
        filters["de"] = de
    return await store.select(MESSAGES, filters=filters or None)


async def inbox(store: Store, email: str) -> list[Row]:
    return await store.select(MESSAGES, filters={"para": email}, order=[desc("data")])


async def create(store: Store, row: Row) -> Row | None:
    rows = await store.insert(MESSAGES, row)
    return rows[0] if rows else None


async def delete(store: Store, message_id: int) -> list[Row]:
    return await store.delete(MESSAGES, filters={"id": message_id})
