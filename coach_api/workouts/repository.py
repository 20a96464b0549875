"""
Workout and progress persistence helpers.
"""

from __future__ import annotations

from coach_api.core.store import Row, Store, desc, select_one, select_optional

WORKOUTS = "treinos"
PROGRESS = "progresso"
CONSULTATIONS = "consultorias"
USERS = "users"


async def list_workouts(store: Store) -> list[Row]:
    return await store.select(WORKOUTS)


async def list_workouts_for(store: Store, aluno_email: str) -> list[Row]:
    return await store.select(WORKOUTS, filters={"aluno_email": aluno_email}, order=[desc("data")])


async def create_workout(store: Store, row: Row) -> list[Row]:
    return await store.insert(WORKOUTS, row)


async def insert_progress(store: Store, row: Row) -> list[Row]:
    return await store.insert(PROGRESS, row)


async def progress_for(store: Store, aluno_email: str) -> list[Row]:
    return await select_optional(store, PROGRESS, filters={"aluno_email": aluno_email}, order=[desc("criado_em")])


async def consultations_for(store: Store, client_id: int) -> list[Row]:
    return await select_optional(store, CONSULTATIONS, filters={"client_id": client_id}, order=[desc("data")])


async def get_user_link(store: Store, email: str) -> Row | None:
    return await select_one(store, USERS, columns="id,email,criado_por", filters={"email": email})
