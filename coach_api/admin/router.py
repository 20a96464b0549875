"""
Admin endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from coach_api.core.dependencies import get_store
from coach_api.core.store import Store

from . import schemas, service

router = APIRouter()


@router.post("/admin-contracts/renovar")
async def renew_contract(request: schemas.RenewContractRequest, store: Store = Depends(get_store)) -> dict:
    return await service.renew_contract(store, request)


@router.get("/admin-contracts")
async def list_admin_contracts(store: Store = Depends(get_store)) -> list[dict]:
    return await service.list_admin_contracts(store)


@router.get("/admin/settings/{chave}")
async def get_setting(chave: str, store: Store = Depends(get_store)) -> dict:
    return await service.get_setting(store, chave)


@router.post("/admin/settings/{chave}")
async def save_setting(chave: str, request: schemas.SettingRequest, store: Store = Depends(get_store)) -> dict:
    return await service.save_setting(store, chave, request.valor)
