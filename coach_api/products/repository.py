"""
Store product persistence helpers (`produtos_loja`).
"""

from __future__ import annotations

from coach_api.core.store import Row, Store, asc, select_one

PRODUCTS = "produtos_loja"


async def list_active(store: Store) -> list[Row]:
    return await store.select(PRODUCTS, filters={"ativo": True}, order=[asc("ordem")])


async def max_order(store: Store) -> int:
    rows = await store.select(PRODUCTS, columns="ordem")
    values = [int(r["ordem"]) for r in rows if isinstance(r.get("ordem"), (int, float))]
    return max(values, default=0)


async def create(store: Store, row: Row) -> Row | None:
    rows = await store.insert(PRODUCTS, row)
    return rows[0] if rows else None


async def update(store: Store, product_id: int, values: Row) -> list[Row]:
    return await store.update(PRODUCTS, values, filters={"id": product_id})


async def get(store: Store, product_id: int) -> Row | None:
    return await select_one(store, PRODUCTS, filters={"id": product_id})
