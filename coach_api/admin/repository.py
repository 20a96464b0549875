"""
Admin persistence helpers (`admin_contracts`, `settings`).
"""

from __future__ import annotations

from coach_api.core.store import Row, Store, desc, select_one, select_optional

ADMIN_CONTRACTS = "admin_contracts"
SETTINGS = "settings"

ADMIN_CONTRACT_COLUMNS = "id,professor_email,contract_end,contract_start,status"


async def update_admin_contract(store: Store, professor_email: str, values: Row) -> list[Row]:
    return await store.update(ADMIN_CONTRACTS, values, filters={"professor_email": professor_email})


async def insert_admin_contract(store: Store, row: Row) -> list[Row]:
    return await store.insert(ADMIN_CONTRACTS, row)


async def list_admin_contracts(store: Store) -> list[Row]:
    return await select_optional(
        store,
        ADMIN_CONTRACTS,
        columns=ADMIN_CONTRACT_COLUMNS,
        order=[desc("contract_end")],
    )


async def get_setting(store: Store, chave: str) -> Row | None:
    return await select_one(store, SETTINGS, filters={"chave": chave})


async def upsert_setting(store: Store, row: Row) -> list[Row]:
    return await store.upsert(SETTINGS, row, on_conflict=("chave",))
