"""
Student profile persistence helpers (`alunos` table).
"""

from __future__ import annotations

from coach_api.core.store import Row, Store, select_one

PROFILES = "alunos"

PROFILE_COLUMNS = "nome,email,data_aniversario,bio,foto_url"


async def get_profile(store: Store, email: str, *, columns: str = PROFILE_COLUMNS) -> Row | None:
    return await select_one(store, PROFILES, columns=columns, filters={"email": email})


async def update_profile(store: Store, email: str, values: Row) -> list[Row]:
    return await store.update(PROFILES, values, filters={"email": email})


async def create_profile(store: Store, row: Row) -> Row | None:
    rows = await store.insert(PROFILES, row)
    return rows[0] if rows else None
