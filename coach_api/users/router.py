"""
Users API endpoints (login, students, professors, contracts).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from coach_api.core.dependencies import get_store
from coach_api.core.store import Store

from . import schemas, service

router = APIRouter()


@router.post("/login")
async def login(request: schemas.LoginRequest, store: Store = Depends(get_store)) -> dict:
    return await service.authenticate(store, request)


@router.post("/test-login")
async def test_login(request: schemas.LoginRequest, store: Store = Depends(get_store)) -> dict:
    user = await service.authenticate(store, request)
    return {"success": True, "user": user, "message": "Login successful."}


@router.post("/setup-admin")
async def setup_admin(store: Store = Depends(get_store)) -> dict:
    return await service.setup_admin(store)


@router.get("/users")
async def list_users(store: Store = Depends(get_store)) -> list[dict]:
    return await service.list_users(store)


@router.get("/professores")
async def list_professors(store: Store = Depends(get_store)) -> list[dict]:
    return await service.list_users(store, tipo="professor")


@router.get("/alunos")
async def list_students(store: Store = Depends(get_store)) -> list[dict]:
    return await service.list_users(store, tipo="aluno")


@router.post("/alunos")
async def create_student(request: schemas.CreateUserRequest, store: Store = Depends(get_store)) -> dict:
    return await service.create_user(store, request)


@router.post("/api/professor/create-student")
async def create_student_for_professor(
    request: schemas.CreateUserRequest,
    store: Store = Depends(get_store),
) -> dict:
    return await service.create_user(store, request)


# Registered before /alunos/{user_id} so "session" is not taken as an id.
@router.get("/alunos/session")
async def student_session() -> dict:
    return {}


@router.get("/alunos/{user_id}")
async def get_student(user_id: str, store: Store = Depends(get_store)) -> dict:
    return await service.get_user(store, user_id)


@router.patch("/alunos/{user_id}/contract")
async def update_contract(
    user_id: str,
    request: schemas.ContractUpdateRequest,
    store: Store = Depends(get_store),
) -> dict:
    return await service.update_contract(store, user_id, request)


@router.put("/alunos/foto/{user_id}")
async def update_photo(
    user_id: str,
    request: schemas.PhotoUpdateRequest,
    store: Store = Depends(get_store),
) -> dict:
    return await service.update_photo(store, user_id, request)


@router.delete("/alunos/{user_id}")
async def delete_user(user_id: str, store: Store = Depends(get_store)) -> dict:
    return await service.delete_user(store, user_id)
