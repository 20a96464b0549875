"""
Users persistence helpers.
"""

from __future__ import annotations

from coach_api.core.store import Row, Store, select_one

USERS = "users"
STUDENT_PROFILES = "alunos"

NOTIFY_COLUMNS = "id,email,tipo,criado_por,contract_end,blocked"


async def find_users_by_email(store: Store, email: str) -> list[Row]:
    # No limit: duplicates are tolerated and reported by the caller.
    return await store.select(USERS, filters={"email": email})


async def get_user_by_email(store: Store, email: str) -> Row | None:
    return await select_one(store, USERS, filters={"email": email})


async def get_user_by_id(store: Store, user_id: int, *, columns: str = "*") -> Row | None:
    return await select_one(store, USERS, columns=columns, filters={"id": user_id})


async def list_users(store: Store, *, tipo: str | None = None) -> list[Row]:
    filters = {"tipo": tipo} if tipo else None
    return await store.select(USERS, filters=filters)


async def create_user(store: Store, row: Row) -> Row | None:
    rows = await store.insert(USERS, row)
    return rows[0] if rows else None


async def create_student_profile(store: Store, row: Row) -> None:
    await store.insert(STUDENT_PROFILES, row)


async def update_user(store: Store, user_id: int, values: Row) -> list[Row]:
    return await store.update(USERS, values, filters={"id": user_id})


async def update_user_by_email(store: Store, email: str, values: Row) -> list[Row]:
    return await store.update(USERS, values, filters={"email": email})


async def delete_user(store: Store, user_id: int) -> list[Row]:
    return await store.delete(USERS, filters={"id": user_id})


async def student_emails_of(store: Store, professor_email: str) -> list[str]:
    rows = await store.select(USERS, columns="email", filters={"criado_por": professor_email})
    return [str(r["email"]) for r in rows if r.get("email")]
