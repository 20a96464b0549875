"""
Consultation persistence helpers.
"""

from __future__ import annotations

from coach_api.core.store import Row, Store, desc, select_one, select_optional

CONSULTATIONS = "consultorias"


async def create(store: Store, row: Row) -> list[Row]:
    return await store.insert(CONSULTATIONS, row)


async def for_client(store: Store, client_id: int) -> list[Row]:
    return await select_optional(store, CONSULTATIONS, filters={"client_id": client_id}, order=[desc("data")])


async def get(store: Store, consultation_id: int) -> Row | None:
    return await select_one(store, CONSULTATIONS, columns="id", filters={"id": consultation_id})


async def delete(store: Store, consultation_id: int) -> list[Row]:
    return await store.delete(CONSULTATIONS, filters={"id": consultation_id})


async def user_id_for_email(store: Store, email: str) -> int | None:
    row = await select_one(store, "users", columns="id,email", filters={"email": email})
    return row.get("id") if row else None
