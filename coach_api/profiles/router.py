"""
Student profile endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from coach_api.core.dependencies import get_store
from coach_api.core.store import Store

from . import schemas, service

router = APIRouter()


@router.get("/aluno/perfil/{email}")
async def get_profile(email: str, store: Store = Depends(get_store)) -> dict:
    return await service.get_profile(store, email)


@router.post("/aluno/perfil")
async def save_profile(request: schemas.ProfileRequest, store: Store = Depends(get_store)) -> dict:
    return await service.save_profile(store, request)


@router.post("/aluno/verify-or-create")
async def verify_or_create(request: schemas.VerifyOrCreateRequest, store: Store = Depends(get_store)) -> dict:
    return await service.verify_or_create(store, request)
