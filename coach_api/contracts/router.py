"""
Contract endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse

from coach_api.core.dependencies import get_attachments, get_store
from coach_api.core.files import AttachmentStore
from coach_api.core.forms import read_form_or_json
from coach_api.core.store import Store

from . import schemas, service

router = APIRouter()


@router.post("/contracts")
async def create_contract(
    request: Request,
    store: Store = Depends(get_store),
    attachments: AttachmentStore = Depends(get_attachments),
) -> list[dict]:
    body, upload = await read_form_or_json(request, "file")
    return await service.create_contract(store, attachments, body, upload)


@router.post("/contract-settings")
async def save_settings(request: schemas.ContractSettingsRequest, store: Store = Depends(get_store)) -> list[dict]:
    return await service.save_settings(store, request)


@router.get("/contract-settings/{professor_email}/{aluno_email}")
async def get_settings(professor_email: str, aluno_email: str, store: Store = Depends(get_store)) -> dict:
    return await service.get_settings(store, professor_email, aluno_email)


@router.get("/contracts/professor/{professor_email}")
async def contracts_for_professor(professor_email: str, store: Store = Depends(get_store)) -> list[dict]:
    return await service.contracts_for_professor(store, professor_email)


@router.get("/contracts-debug/all")
async def list_all_contracts(store: Store = Depends(get_store)) -> list[dict]:
    return await service.list_all(store)


@router.get("/contracts/{contract_id}")
async def get_contract(contract_id: str, store: Store = Depends(get_store)) -> dict:
    return await service.get_contract(store, contract_id)


@router.get("/contracts/{contract_id}/pdf")
async def contract_pdf(
    contract_id: str,
    store: Store = Depends(get_store),
    attachments: AttachmentStore = Depends(get_attachments),
) -> FileResponse:
    path = await service.contract_file(store, attachments, contract_id)
    return FileResponse(path)


@router.delete("/contracts/{contract_id}")
async def delete_contract(
    contract_id: str,
    professor_email: str | None = Query(default=None),
    store: Store = Depends(get_store),
) -> dict:
    return await service.delete_contract(store, contract_id, professor_email)
