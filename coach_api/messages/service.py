"""
Direct messages between users (and from the `sistema` sender).
"""

from __future__ import annotations

import logging

from coach_api.core.errors import bad_request, store_errors
from coach_api.core.normalize import normalize_email, optional_email, parse_int_id, utc_now_iso
from coach_api.core.store import Row, Store

from . import repository, schemas

logger = logging.getLogger(__name__)


async def search(store: Store, *, para: str | None, de: str | None) -> list[Row]:
    with store_errors("Failed to fetch messages."):
        return await repository.search(store, para=optional_email(para), de=optional_email(de))


async def inbox(store: Store, raw_email: str) -> list[Row]:
    email = normalize_email(raw_email)
    if not email:
        raise bad_request("email is required")
    with store_errors("Failed to fetch messages for recipient."):
        return await repository.inbox(store, email)


async def send(store: Store, payload: schemas.MessageRequest) -> Row | None:
    de = normalize_email(payload.de)
    para = normalize_email(payload.para)
    if not de:
        raise bad_request("de is required")
    if not para:
        raise bad_request("para is required")
    row = {"de": de, "para": para, "mensagem": payload.mensagem, "data": utc_now_iso()}
    with store_errors("Failed to save message."):
        created = await repository.create(store, row)
    logger.info("message_sent de=%s para=%s", de, para)
    return created


async def delete(store: Store, raw_id: str) -> dict:
    message_id = parse_int_id(raw_id)
    if message_id is None:
        raise bad_request("id is invalid")
    with store_errors("Failed to delete message."):
        await repository.delete(store, message_id)
    return {"deleted": True}
