"""
Consultations (assessments, bioimpedance readings) linked to a student id.
"""

from __future__ import annotations

import logging

from coach_api.core.errors import bad_request, not_found, store_errors
from coach_api.core.normalize import normalize_email, optional_email, parse_int_id, utc_now_iso
from coach_api.core.store import Row, Store

from . import repository, schemas

logger = logging.getLogger(__name__)


async def create(store: Store, payload: schemas.ConsultationRequest) -> list[Row]:
    client_id = parse_int_id(payload.client_id)
    if client_id is None:
        raise bad_request("aluno_id is required")
    row = {
        "client_id": client_id,
        "tipo": payload.tipo or "consultoria",
        "dados": payload.dados or {},
        "criado_por": optional_email(payload.criado_por),
        "data": utc_now_iso(),
    }
    with store_errors("Failed to save consultation."):
        rows = await repository.create(store, row)
    logger.info("consultation_created client_id=%s tipo=%s", client_id, row["tipo"])
    return rows


async def for_client(store: Store, raw_client_id: str) -> list[Row]:
    client_id = parse_int_id(raw_client_id)
    if client_id is None:
        raise bad_request("clientId is invalid")
    with store_errors("Failed to fetch consultations."):
        return await repository.for_client(store, client_id)


async def for_email(store: Store, raw_email: str) -> list[Row]:
    email = normalize_email(raw_email)
    if not email:
        raise bad_request("email is invalid")
    with store_errors("Failed to fetch consultations."):
        user_id = await repository.user_id_for_email(store, email)
        if not user_id:
            return []
        return await repository.for_client(store, user_id)


async def delete(store: Store, raw_id: str) -> dict:
    consultation_id = parse_int_id(raw_id)
    if consultation_id is None:
        raise bad_request("id is invalid")
    with store_errors("Failed to delete consultation."):
        if await repository.get(store, consultation_id) is None:
            raise not_found("Consultation not found.")
        await repository.delete(store, consultation_id)
    logger.info("consultation_deleted id=%s", consultation_id)
    return {"deleted": True}
