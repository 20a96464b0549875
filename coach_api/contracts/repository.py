"""
Contract persistence helpers (`contracts`, `contract_settings`).
"""

from __future__ import annotations

from coach_api.core.store import Row, Store, select_one

CONTRACTS = "contracts"
SETTINGS = "contract_settings"
SETTINGS_KEY = ("professor_email", "aluno_email")


async def create(store: Store, row: Row) -> list[Row]:
    return await store.insert(CONTRACTS, row)


async def list_all(store: Store) -> list[Row]:
    return await store.select(CONTRACTS)


async def get(store: Store, contract_id: int) -> Row | None:
    return await select_one(store, CONTRACTS, filters={"id": contract_id})


async def delete(store: Store, contract_id: int) -> list[Row]:
    return await store.delete(CONTRACTS, filters={"id": contract_id})


async def upsert_settings(store: Store, row: Row) -> list[Row]:
    return await store.upsert(SETTINGS, row, on_conflict=SETTINGS_KEY)


async def update_settings(store: Store, row: Row) -> list[Row]:
    return await store.update(SETTINGS, row, filters={k: row[k] for k in SETTINGS_KEY})


async def insert_settings(store: Store, row: Row) -> list[Row]:
    return await store.insert(SETTINGS, row)


async def get_settings(store: Store, professor_email: str, aluno_email: str) -> Row | None:
    return await select_one(
        store,
        SETTINGS,
        filters={"professor_email": professor_email, "aluno_email": aluno_email},
    )
