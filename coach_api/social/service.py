"""
Social feed: posts, likes, comments and the aggregated feed page.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import UploadFile

from coach_api.core.errors import bad_request, store_errors
from coach_api.core.files import POSTS, AttachmentError, AttachmentStore, data_uri_suffix, is_data_uri
from coach_api.core.normalize import normalize_email, parse_int_id, parse_leading_int, utc_now_iso
from coach_api.core.store import Row, Store, StoreError, StoreErrorKind

from . import repository

logger = logging.getLogger(__name__)

ANONYMOUS = "Anônimo"
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def clamp_page(raw_limit: Any, raw_offset: Any) -> tuple[int, int]:
    """
    limit: non-numeric -> 20, then clamped to [0, 100]; offset: >= 0.
    """
    limit = parse_leading_int(raw_limit)
    if limit is None:
        limit = DEFAULT_PAGE_SIZE
    offset = parse_leading_int(raw_offset) or 0
    return max(0, min(limit, MAX_PAGE_SIZE)), max(offset, 0)


def require_post_id(raw: Any) -> int:
    post_id = parse_int_id(raw)
    if post_id is None:
        raise bad_request("post id is invalid")
    return post_id


def actor_email(body_email: str | None, header_email: str | None) -> str:
    email = normalize_email(body_email or header_email)
    if not email:
        raise bad_request("usuario_email is required")
    return email


async def _image_url(attachments: AttachmentStore, upload: UploadFile | None, imagem_url: str | None) -> str | None:
    if upload is not None and upload.filename:
        return "/" + await attachments.save_upload(POSTS, "post", upload)
    if is_data_uri(imagem_url):
        try:
            return "/" + await attachments.save_base64(POSTS, "post", imagem_url, suffix=data_uri_suffix(imagem_url, ".png"))
        except AttachmentError as exc:
            raise bad_request("imagem is invalid") from exc
    return imagem_url or None


async def create_post(
    store: Store,
    attachments: AttachmentStore,
    body: dict[str, Any],
    upload: UploadFile | None,
    header_email: str | None,
) -> dict:
    conteudo = str(body.get("conteudo") or "").strip()
    autor_email = normalize_email(body.get("autor_email") or header_email)
    if not autor_email:
        raise bad_request("autor_email is required")
    if not conteudo and upload is None and not body.get("imagem_url"):
        raise bad_request("Post needs text or an image.")

    imagem_url = await _image_url(attachments, upload, body.get("imagem_url"))
    if not conteudo and not imagem_url:
        raise bad_request("Post needs text or an image.")

    row = {
        "autor_email": autor_email,
        "autor_nome": body.get("autor_nome") or ANONYMOUS,
        "conteudo": conteudo,
        "imagem_url": imagem_url,
        "criado_em": utc_now_iso(),
    }
    with store_errors("Failed to create post."):
        created = await repository.create_post(store, row)
    logger.info("post_created id=%s autor_email=%s image=%s", (created or {}).get("id"), autor_email, bool(imagem_url))
    return {"success": True, "data": created}


async def _enrich(store: Store, post: Row) -> Row:
    likes, comments, preview = await asyncio.gather(
        repository.like_count(store, post["id"]),
        repository.comment_count(store, post["id"]),
        repository.latest_comments(store, post["id"]),
    )
    return {**post, "curtidas_count": likes, "comentarios_count": comments, "comentarios_preview": preview}


async def feed(store: Store, raw_limit: Any, raw_offset: Any) -> list[Row]:
    """
    One page of posts, newest first, each with like/comment counts and the
    three most recent comments.
    """
    limit, offset = clamp_page(raw_limit, raw_offset)
    if limit == 0:
        return []
    with store_errors("Failed to load posts."):
        posts = await repository.page_of_posts(store, limit=limit, offset=offset)
        return list(await asyncio.gather(*(_enrich(store, p) for p in posts)))


async def toggle_like(store: Store, raw_post_id: Any, usuario_email: str) -> dict:
    """
    Like the post if the user has not, otherwise remove the like.

    Read-then-write: two concurrent toggles by the same user can both observe
    "not liked". The unique key on (post_id, usuario_email) turns the second
    insert into a conflict, which is reported as liked.
    """
    post_id = require_post_id(raw_post_id)
    with store_errors("Failed to like post."):
        existing = await repository.get_like(store, post_id, usuario_email)
        if existing is not None:
            await repository.remove_like(store, post_id, usuario_email)
            logger.info("post_unliked post_id=%s usuario_email=%s", post_id, usuario_email)
            return {"success": True, "curtido": False}
        try:
            await repository.add_like(
                store,
                {"post_id": post_id, "usuario_email": usuario_email, "criado_em": utc_now_iso()},
            )
        except StoreError as exc:
            if exc.kind is not StoreErrorKind.UNIQUE_VIOLATION:
                raise
            logger.warning("post_like_race post_id=%s usuario_email=%s", post_id, usuario_email)
    logger.info("post_liked post_id=%s usuario_email=%s", post_id, usuario_email)
    return {"success": True, "curtido": True}


async def add_comment(
    store: Store,
    raw_post_id: Any,
    texto: str | None,
    usuario_email: str,
    usuario_nome: str | None,
) -> dict:
    post_id = require_post_id(raw_post_id)
    texto = (texto or "").strip()
    if not texto:
        raise bad_request("texto is required")
    row = {
        "post_id": post_id,
        "usuario_email": usuario_email,
        "usuario_nome": usuario_nome or ANONYMOUS,
        "texto": texto,
        "criado_em": utc_now_iso(),
    }
    with store_errors("Failed to add comment."):
        created = await repository.add_comment(store, row)
    logger.info("comment_added post_id=%s usuario_email=%s", post_id, usuario_email)
    return {"success": True, "data": created}


async def liked_by(store: Store, raw_post_id: Any, raw_email: str) -> dict:
    post_id = require_post_id(raw_post_id)
    with store_errors("Failed to check like."):
        existing = await repository.get_like(store, post_id, normalize_email(raw_email))
    return {"curtido": existing is not None}


async def like_count(store: Store, raw_post_id: Any) -> dict:
    post_id = require_post_id(raw_post_id)
    with store_errors("Failed to count likes."):
        count = await repository.like_count(store, post_id)
    return {"post_id": post_id, "curtidas_count": count}
