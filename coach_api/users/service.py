"""
Users business logic: login, account creation, contract status.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import status

from coach_api.core import config, notify, security
from coach_api.core.errors import ApiError, bad_request, not_found, store_errors
from coach_api.core.normalize import (
    is_past_or_now,
    normalize_email,
    normalize_timestamp,
    optional_email,
    parse_int_id,
    utc_now_iso,
)
from coach_api.core.store import Row, Store, StoreErrorKind

from . import repository, schemas

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."

CONTRACT_EXPIRED_TO_USER = "Seu contrato expirou. Por favor, contate seu administrador para renovar."
CONTRACT_RENEWED_TO_USER = "Seu contrato foi atualizado até {end}. Acesse sua conta para mais detalhes."
CONTRACT_EXPIRED_TO_PROFESSOR = (
    "O contrato do aluno {email} expirou. Por favor, verifique e tome as providências necessárias."
)
CONTRACT_RENEWED_TO_PROFESSOR = "O contrato do aluno {email} foi renovado até {end}."


def require_user_id(raw: Any) -> int:
    user_id = parse_int_id(raw)
    if user_id is None:
        raise bad_request("id is invalid")
    return user_id


async def authenticate(store: Store, payload: schemas.LoginRequest) -> Row:
    """
    Return the first user whose email and password match.

    Unknown email and wrong password produce the same 401 body.
    """
    email = normalize_email(payload.email)
    try:
        with store_errors("Failed to log in."):
            rows = await asyncio.wait_for(
                repository.find_users_by_email(store, email),
                timeout=config.login_timeout_s(),
            )
    except asyncio.TimeoutError as exc:
        logger.error("login_timeout email=%s timeout_s=%s", email, config.login_timeout_s())
        raise ApiError(
            status.HTTP_504_GATEWAY_TIMEOUT,
            "Timed out waiting for the database.",
            code=StoreErrorKind.TIMEOUT.value,
        ) from exc

    if not rows:
        security.dummy_verify(payload.senha)
    matches = [r for r in rows if security.verify_password(payload.senha, str(r.get("senha") or ""))]
    if not matches:
        logger.info("login_failed email=%s", email)
        raise ApiError(status.HTTP_401_UNAUTHORIZED, INVALID_CREDENTIALS)
    if len(matches) > 1:
        logger.warning("login_duplicate_users email=%s count=%s using=first", email, len(matches))

    user = matches[0]
    logger.info("login_ok user_id=%s tipo=%s", user.get("id"), user.get("tipo"))
    return security.public_user(user)


async def setup_admin(store: Store) -> dict:
    email = config.admin_email()
    with store_errors("Failed to create admin."):
        existing = await repository.get_user_by_email(store, email)
        if existing is not None:
            return {"message": "Admin already exists.", "data": security.public_user(existing)}
        created = await repository.create_user(
            store,
            {
                "email": email,
                "senha": security.hash_password(config.admin_password()),
                "nome": "Administrador",
                "tipo": "admin",
            },
        )
    if created is None:
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Admin was not created.")
    logger.info("admin_created email=%s", email)
    return {"message": "Admin created.", "data": security.public_user(created)}


async def list_users(store: Store, *, tipo: str | None = None) -> list[Row]:
    with store_errors("Failed to list users."):
        rows = await repository.list_users(store, tipo=tipo)
    return [security.public_user(r) for r in rows]


async def create_user(store: Store, payload: schemas.CreateUserRequest) -> Row:
    nome = payload.nome.strip()
    email = normalize_email(payload.email)
    if not nome:
        raise bad_request("nome is required")
    if not email:
        raise bad_request("email is required")
    tipo = payload.tipo or "aluno"
    criado_por = optional_email(payload.criado_por)

    row: Row = {
        "nome": nome,
        "email": email,
        "senha": security.hash_password(payload.senha),
        "tipo": tipo,
        "criado_por": criado_por,
    }
    if payload.contract_end:
        row["contract_end"] = payload.contract_end

    with store_errors("Failed to create user."):
        created = await repository.create_user(store, row)
    if created is None:
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Insert returned no data.")
    logger.info("user_created user_id=%s tipo=%s criado_por=%s", created.get("id"), tipo, criado_por)

    if tipo == "aluno":
        profile = {"email": email, "nome": nome, "professor_email": criado_por, "criado_em": utc_now_iso()}
        await notify.run_best_effort(
            "student_profile",
            lambda: repository.create_student_profile(store, profile),
        )

    return security.public_user(created)


async def get_user(store: Store, raw_id: Any) -> Row:
    user_id = require_user_id(raw_id)
    with store_errors("Failed to fetch student."):
        row = await repository.get_user_by_id(store, user_id)
    if row is None:
        raise not_found("Student not found.")
    return security.public_user(row)


def professor_recipient(user: Row, body_professor_email: str | None) -> str | None:
    """
    Who else hears about a contract change.

    A professor is their own recipient; otherwise the explicit professor email
    wins over the user's enrolling professor.
    """
    if user.get("tipo") == "professor":
        return user.get("email")
    return optional_email(body_professor_email) or user.get("criado_por") or None


async def update_contract(store: Store, raw_id: Any, payload: schemas.ContractUpdateRequest) -> dict:
    user_id = require_user_id(raw_id)
    if payload.contract_end in ("", None):
        raise bad_request("contract_end is required")

    contract_end = normalize_timestamp(payload.contract_end)
    blocked = is_past_or_now(contract_end)

    with store_errors("Failed to update contract."):
        await repository.update_user(store, user_id, {"contract_end": contract_end, "blocked": 1 if blocked else 0})
        user = await repository.get_user_by_id(store, user_id, columns=repository.NOTIFY_COLUMNS)
    logger.info("contract_updated user_id=%s contract_end=%s blocked=%s", user_id, contract_end, blocked)

    if user and user.get("email"):
        user_email = str(user["email"])
        text = CONTRACT_EXPIRED_TO_USER if blocked else CONTRACT_RENEWED_TO_USER.format(end=contract_end)
        await notify.send_message_best_effort(
            store,
            sender=notify.SYSTEM_SENDER,
            recipient=user_email,
            body=text,
            label="contract_user",
        )

        professor = professor_recipient(user, payload.professor_email)
        if not professor:
            logger.info("contract_notify_skipped user_id=%s reason=no_professor", user_id)
        elif normalize_email(professor) == normalize_email(user_email):
            logger.info("contract_notify_skipped user_id=%s reason=same_recipient", user_id)
        else:
            template = CONTRACT_EXPIRED_TO_PROFESSOR if blocked else CONTRACT_RENEWED_TO_PROFESSOR
            await notify.send_message_best_effort(
                store,
                sender=notify.SYSTEM_SENDER,
                recipient=professor,
                body=template.format(email=user_email, end=contract_end),
                label="contract_professor",
            )

    return {"id": user_id, "contract_end": contract_end, "blocked": 1 if blocked else 0}


async def update_photo(store: Store, raw_id: Any, payload: schemas.PhotoUpdateRequest) -> dict:
    user_id = require_user_id(raw_id)
    with store_errors("Failed to save photo."):
        rows = await repository.update_user(store, user_id, {"foto": payload.foto})
    if not rows:
        raise not_found("Student not found.")
    return {"success": True, "data": security.public_user(rows[0])}


async def delete_user(store: Store, raw_id: Any) -> dict:
    user_id = require_user_id(raw_id)
    with store_errors("Failed to delete user."):
        await repository.delete_user(store, user_id)
    logger.info("user_deleted user_id=%s", user_id)
    return {"deleted": True}
