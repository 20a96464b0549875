"""
Consultation endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from coach_api.core.dependencies import get_store
from coach_api.core.store import Store

from . import schemas, service

router = APIRouter()


@router.post("/consultorias")
async def create_consultation(request: schemas.ConsultationRequest, store: Store = Depends(get_store)) -> list[dict]:
    return await service.create(store, request)


@router.get("/consultorias/email/{email}")
async def consultations_for_email(email: str, store: Store = Depends(get_store)) -> list[dict]:
    return await service.for_email(store, email)


@router.get("/consultorias/{client_id}")
async def consultations_for_client(client_id: str, store: Store = Depends(get_store)) -> list[dict]:
    return await service.for_client(store, client_id)


@router.delete("/consultorias/{consultation_id}")
async def delete_consultation(consultation_id: str, store: Store = Depends(get_store)) -> dict:
    return await service.delete(store, consultation_id)
