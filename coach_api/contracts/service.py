"""
Signed contracts and per-student contract settings.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from fastapi import UploadFile, status

from coach_api.core.errors import ApiError, bad_request, http_error_for, not_found, store_errors
from coach_api.core.files import CONTRACTS, AttachmentError, AttachmentStore, is_data_uri
from coach_api.core.normalize import normalize_email, optional_email, parse_int_id, utc_now_iso
from coach_api.core.store import Row, Store, StoreError, StoreErrorKind
from coach_api.users import repository as users_repository

from . import repository, schemas

logger = logging.getLogger(__name__)

SETTINGS_TABLE_MISSING = (
    "Table 'contract_settings' not found. Run create_contract_settings_table.sql in the Supabase SQL editor."
)

# Stored path columns, in lookup order.
PATH_COLUMNS = ("arquivo_path", "pdf_path", "file_path", "signature_path")


def require_contract_id(raw: Any) -> int:
    contract_id = parse_int_id(raw)
    if contract_id is None:
        raise bad_request("id is invalid")
    return contract_id


async def _save_embedded(body: dict[str, Any], attachments: AttachmentStore) -> dict[str, Any]:
    """
    Move embedded base64 payloads out of the body and onto disk.

    A payload that fails to decode is dropped with a warning; the contract
    record is still written.
    """
    pdf = body.pop("pdf_base64", None)
    if pdf:
        try:
            body["pdf_path"] = await attachments.save_base64(CONTRACTS, "contract", str(pdf), suffix=".pdf")
        except AttachmentError as exc:
            logger.warning("contract_pdf_not_saved reason=%s", exc)

    dados = body.get("dados") if isinstance(body.get("dados"), dict) else None
    signature = (dados or {}).get("signature") or body.get("signature")
    if is_data_uri(signature):
        try:
            body["signature_path"] = await attachments.save_base64(CONTRACTS, "signature", signature, suffix=".png")
        except AttachmentError as exc:
            logger.warning("contract_signature_not_saved reason=%s", exc)
        else:
            body.pop("signature", None)
            if dados is not None:
                dados.pop("signature", None)
    return body


def build_contract_record(body: Mapping[str, Any]) -> tuple[Row, Row]:
    """
    (full record, minimal record). The minimal one only uses columns every
    deployment of the `contracts` table has.
    """
    minimal = {
        "aluno_email": optional_email(body.get("aluno_email")),
        "arquivo_path": body.get("pdf_path") or body.get("arquivo_path") or body.get("file_path") or None,
    }
    full = dict(minimal)
    professor_email = optional_email(body.get("professor_email"))
    if professor_email:
        full["professor_email"] = professor_email
    if body.get("dados"):
        full["dados"] = body["dados"]
    if body.get("data_assinatura"):
        full["data_assinatura"] = body["data_assinatura"]
    if body.get("signature_path"):
        full["signature_path"] = body["signature_path"]
    return full, minimal


async def create_contract(
    store: Store,
    attachments: AttachmentStore,
    body: dict[str, Any],
    upload: UploadFile | None = None,
) -> list[Row]:
    if upload is not None and upload.filename:
        body["file_path"] = await attachments.save_upload(CONTRACTS, "contract", upload)
    body = await _save_embedded(body, attachments)
    full, minimal = build_contract_record(body)

    with store_errors("Failed to save contract."):
        try:
            rows = await repository.create(store, full)
        except StoreError as exc:
            if exc.kind is not StoreErrorKind.UNDEFINED_COLUMN or full == minimal:
                raise
            logger.warning("contract_optional_columns_rejected detail=%r retry=minimal", exc.message)
            rows = await repository.create(store, minimal)
    logger.info("contract_created aluno_email=%s arquivo_path=%s", minimal["aluno_email"], minimal["arquivo_path"])
    return rows


async def save_settings(store: Store, payload: schemas.ContractSettingsRequest) -> list[Row]:
    """
    Upsert one (professor, student) settings row.

    Stores whose table lacks the composite unique constraint reject the native
    upsert; those get UPDATE-then-INSERT instead. Two concurrent first writes
    on that path can both miss the UPDATE and insert twice.
    """
    professor_email = normalize_email(payload.professor_email)
    aluno_email = normalize_email(payload.aluno_email)
    if not professor_email:
        raise bad_request("professor_email is required")
    if not aluno_email:
        raise bad_request("aluno_email is required")
    row = {
        "professor_email": professor_email,
        "aluno_email": aluno_email,
        "professor_name": payload.professor_name or None,
        "professor_cref": payload.professor_cref or None,
        "option1_value": payload.option1_value,
        "option2_value": payload.option2_value,
        "updated_at": utc_now_iso(),
    }

    try:
        return await repository.upsert_settings(store, row)
    except StoreError as exc:
        if exc.kind is StoreErrorKind.TABLE_NOT_FOUND:
            logger.error("contract_settings_table_missing code=%s", exc.code)
            raise ApiError(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                SETTINGS_TABLE_MISSING,
                details=exc.message,
                code=exc.code,
            ) from exc
        if exc.kind is not StoreErrorKind.MISSING_CONFLICT_CONSTRAINT:
            logger.error("contract_settings_upsert_failed kind=%s code=%s", exc.kind.value, exc.code)
            raise http_error_for(exc, "Failed to save contract settings.") from exc

    logger.warning("contract_settings_manual_upsert professor=%s aluno=%s", professor_email, aluno_email)
    with store_errors("Failed to save contract settings (manual upsert)."):
        updated = await repository.update_settings(store, row)
        if updated:
            return updated
        return await repository.insert_settings(store, row)


async def get_settings(store: Store, professor: str, aluno: str) -> Row:
    professor_email = normalize_email(professor)
    aluno_email = normalize_email(aluno)
    if not professor_email or not aluno_email:
        raise bad_request("professor_email and aluno_email are required")
    with store_errors("Failed to fetch contract settings."):
        row = await repository.get_settings(store, professor_email, aluno_email)
    return row or {}


async def contracts_for_professor(store: Store, raw_email: str) -> list[Row]:
    """
    Contracts signed by the students this professor enrolled.
    """
    professor = normalize_email(raw_email)
    if not professor:
        raise bad_request("professor_email is required")
    with store_errors("Failed to fetch contracts."):
        student_emails = {normalize_email(e) for e in await users_repository.student_emails_of(store, professor)}
        if not student_emails:
            return []
        contracts = await repository.list_all(store)
    matched = [c for c in contracts if normalize_email(c.get("aluno_email")) in student_emails]
    logger.info("contracts_for_professor professor=%s students=%s contracts=%s", professor, len(student_emails), len(matched))
    return matched


async def list_all(store: Store) -> list[Row]:
    with store_errors("Failed to fetch contracts."):
        return await repository.list_all(store)


async def get_contract(store: Store, raw_id: Any) -> Row:
    contract_id = require_contract_id(raw_id)
    with store_errors("Failed to fetch contract."):
        row = await repository.get(store, contract_id)
    if row is None:
        raise not_found("Contract not found.")
    return row


async def contract_file(store: Store, attachments: AttachmentStore, raw_id: Any) -> Path:
    contract = await get_contract(store, raw_id)
    stored = next((contract[c] for c in PATH_COLUMNS if contract.get(c)), None)
    if not stored:
        raise not_found("No PDF for this contract.")
    path = attachments.resolve(str(stored))
    if path is None:
        logger.warning("contract_file_missing id=%s path=%s", contract.get("id"), stored)
        raise not_found("Contract file not found.")
    return path


async def delete_contract(store: Store, raw_id: Any, professor_email: str | None) -> dict:
    """
    Delete a contract. When an actor email is given it must match one of the
    contract's owning professor fields.
    """
    contract_id = require_contract_id(raw_id)
    actor = optional_email(professor_email)
    with store_errors("Failed to delete contract."):
        existing = await repository.get(store, contract_id)
        if existing is None:
            raise not_found("Contract not found.")
        owners = {normalize_email(existing.get(k)) for k in ("criado_por", "professor_email")} - {""}
        if actor and owners and actor not in owners:
            logger.warning("contract_delete_forbidden id=%s actor=%s", contract_id, actor)
            raise ApiError(status.HTTP_403_FORBIDDEN, "Not authorized to delete this contract.")
        await repository.delete(store, contract_id)
    logger.info("contract_deleted id=%s actor=%s", contract_id, actor)
    return {"deleted": True}
