"""
Social feed endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Header, Query, Request

from coach_api.core.dependencies import get_attachments, get_store
from coach_api.core.files import AttachmentStore
from coach_api.core.forms import read_form_or_json
from coach_api.core.store import Store

from . import schemas, service

router = APIRouter()


@router.post("/posts")
async def create_post(
    request: Request,
    x_user_email: str | None = Header(default=None),
    store: Store = Depends(get_store),
    attachments: AttachmentStore = Depends(get_attachments),
) -> dict:
    body, upload = await read_form_or_json(request, "imagem")
    return await service.create_post(store, attachments, body, upload, x_user_email)


@router.get("/posts/feed")
async def feed_query(
    limit: str | None = Query(default=None),
    offset: str | None = Query(default=None),
    store: Store = Depends(get_store),
) -> list[dict]:
    return await service.feed(store, limit, offset)


@router.get("/posts/feed/{limit}/{offset}")
async def feed(limit: str, offset: str, store: Store = Depends(get_store)) -> list[dict]:
    return await service.feed(store, limit, offset)


@router.post("/posts/{post_id}/curtir")
async def toggle_like(
    post_id: str,
    payload: schemas.LikeRequest | None = Body(default=None),
    x_user_email: str | None = Header(default=None),
    store: Store = Depends(get_store),
) -> dict:
    email = service.actor_email(payload.usuario_email if payload else None, x_user_email)
    return await service.toggle_like(store, post_id, email)


@router.post("/posts/{post_id}/comentar")
async def add_comment(
    post_id: str,
    payload: schemas.CommentRequest,
    x_user_email: str | None = Header(default=None),
    store: Store = Depends(get_store),
) -> dict:
    email = service.actor_email(payload.usuario_email, x_user_email)
    return await service.add_comment(store, post_id, payload.texto, email, payload.usuario_nome)


@router.get("/posts/{post_id}/curtido-por/{usuario_email}")
async def liked_by(post_id: str, usuario_email: str, store: Store = Depends(get_store)) -> dict:
    return await service.liked_by(store, post_id, usuario_email)


@router.get("/posts/{post_id}/curtidas")
async def like_count(post_id: str, store: Store = Depends(get_store)) -> dict:
    return await service.like_count(store, post_id)
