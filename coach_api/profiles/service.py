"""
Student profile logic.
"""

from __future__ import annotations

import logging

from coach_api.core.errors import bad_request, store_errors
from coach_api.core.normalize import normalize_email, utc_now_iso
from coach_api.core.store import Row, Store

from . import repository, schemas

logger = logging.getLogger(__name__)


def empty_profile(email: str) -> Row:
    return {"email": email, "nome": "", "data_aniversario": "", "bio": "", "foto_url": ""}


async def get_profile(store: Store, raw_email: str) -> Row:
    email = normalize_email(raw_email)
    with store_errors("Failed to load profile."):
        row = await repository.get_profile(store, email)
    return row if row is not None else empty_profile(email)


async def save_profile(store: Store, payload: schemas.ProfileRequest) -> dict:
    """
    Update the profile when it exists, otherwise create it.
    """
    email = normalize_email(payload.email)
    if not email:
        raise bad_request("email is required")
    fields = {
        "nome": payload.nome,
        "data_aniversario": payload.data_aniversario or None,
        "bio": payload.bio or None,
        "foto_url": payload.foto_url or None,
    }
    with store_errors("Failed to save profile."):
        existing = await repository.get_profile(store, email, columns="email")
        if existing is not None:
            await repository.update_profile(store, email, {**fields, "atualizado_em": utc_now_iso()})
            logger.info("profile_updated email=%s", email)
            return {"success": True, "message": "Profile updated."}
        await repository.create_profile(store, {"email": email, **fields, "criado_em": utc_now_iso()})
    logger.info("profile_created email=%s", email)
    return {"success": True, "message": "Profile created."}


async def verify_or_create(store: Store, payload: schemas.VerifyOrCreateRequest) -> dict:
    email = normalize_email(payload.email)
    if not email:
        raise bad_request("email is required")
    with store_errors("Failed to verify or create student."):
        existing = await repository.get_profile(store, email, columns="email,nome")
        if existing is not None:
            return {"created": False, "aluno": existing}
        nome = (payload.nome or "").strip() or email.split("@")[0]
        created = await repository.create_profile(store, {"email": email, "nome": nome, "criado_em": utc_now_iso()})
    logger.info("profile_created email=%s via=verify_or_create", email)
    aluno = {"email": email, "nome": nome}
    if created:
        aluno = {"email": created.get("email", email), "nome": created.get("nome", nome)}
    return {"created": True, "aluno": aluno}
