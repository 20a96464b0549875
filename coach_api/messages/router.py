"""
Message endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from coach_api.core.dependencies import get_store
from coach_api.core.store import Store

from . import schemas, service

router = APIRouter()


@router.get("/mensagens")
async def search_messages(
    para: str | None = Query(default=None),
    de: str | None = Query(default=None),
    store: Store = Depends(get_store),
) -> list[dict]:
    return await service.search(store, para=para, de=de)


@router.get("/mensagens/para/{email}")
async def inbox(email: str, store: Store = Depends(get_store)) -> list[dict]:
    return await service.inbox(store, email)


@router.post("/mensagens")
async def send_message(request: schemas.MessageRequest, store: Store = Depends(get_store)) -> dict | None:
    return await service.send(store, request)


@router.delete("/mensagens/{message_id}")
async def delete_message(message_id: str, store: Store = Depends(get_store)) -> dict:
    return await service.delete(store, message_id)
