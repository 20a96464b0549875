"""
Workout plans, completions and the merged progress timeline.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import status

from coach_api.core import notify
from coach_api.core.errors import ApiError, bad_request, http_error_for, store_errors
from coach_api.core.normalize import normalize_email, parse_datetime, parse_number, utc_now_iso
from coach_api.core.store import Row, Store, StoreError, StoreErrorKind

from . import repository, schemas

logger = logging.getLogger(__name__)

PROGRESS_TABLE_MISSING = (
    "Table 'progresso' not found. Run backend/create_progresso_table.sql in the Supabase SQL editor."
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def serialize_plan(treino: Any) -> str:
    return treino if isinstance(treino, str) else json.dumps(treino, ensure_ascii=False)


async def list_workouts(store: Store) -> list[Row]:
    with store_errors("Failed to list workouts."):
        return await repository.list_workouts(store)


async def list_workouts_for(store: Store, raw_email: str) -> list[Row]:
    aluno_email = normalize_email(raw_email)
    if not aluno_email:
        raise bad_request("aluno_email is required")
    with store_errors("Failed to fetch workouts."):
        return await repository.list_workouts_for(store, aluno_email)


async def create_workout(store: Store, payload: schemas.WorkoutCreateRequest) -> list[Row]:
    if payload.treino in (None, "", [], {}):
        raise bad_request("treino is required")
    row = {
        "aluno_email": normalize_email(payload.aluno_email),
        "treino": serialize_plan(payload.treino),
        "data": payload.data or utc_now_iso(),
    }
    with store_errors("Failed to save workout."):
        rows = await repository.create_workout(store, row)
    logger.info("workout_created aluno_email=%s", row["aluno_email"])
    return rows


def completion_message(aluno_email: str, treino_id: str, row: Row) -> str:
    weight = row.get("peso_corporal") or "—"
    dados = row.get("dados") or {}
    percent = f"{dados['percent']}%" if isinstance(dados, dict) and dados.get("percent") else "—"
    return f"O aluno {aluno_email} concluiu um treino (id {treino_id}) com {weight} kg e progresso {percent}."


async def _notify_professor(store: Store, aluno_email: str, treino_id: str, row: Row) -> None:
    link = await repository.get_user_link(store, aluno_email)
    professor = (link or {}).get("criado_por")
    if not professor:
        logger.info("completion_notify_skipped aluno_email=%s reason=no_professor", aluno_email)
        return None
    await store.insert(
        notify.MESSAGES_TABLE,
        {
            "de": aluno_email,
            "para": professor,
            "mensagem": completion_message(aluno_email, treino_id, row),
            "data": utc_now_iso(),
        },
    )


async def complete_workout(store: Store, treino_id: str, payload: schemas.WorkoutCompletionRequest) -> list[Row]:
    """
    Record a completed workout, then tell the student's professor.
    """
    treino_id = (treino_id or "").strip()
    if not treino_id:
        raise bad_request("treino id is required")
    aluno_email = normalize_email(payload.aluno_email)
    if not aluno_email:
        raise bad_request("aluno_email is required")

    row: Row = {
        "aluno_email": aluno_email,
        "treino_id": treino_id,
        "peso_corporal": parse_number(payload.peso_corporal),
        "loads": payload.loads or None,
        "dados": payload.dados or None,
        "criado_em": utc_now_iso(),
    }
    try:
        inserted = await repository.insert_progress(store, row)
    except StoreError as exc:
        logger.error(
            "workout_completion_failed aluno_email=%s treino_id=%s kind=%s code=%s",
            aluno_email,
            treino_id,
            exc.kind.value,
            exc.code,
        )
        if exc.kind is StoreErrorKind.TABLE_NOT_FOUND:
            raise ApiError(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                PROGRESS_TABLE_MISSING,
                details=exc.message,
                code=exc.code,
            ) from exc
        raise http_error_for(exc, "Failed to mark workout as completed.") from exc
    logger.info("workout_completed aluno_email=%s treino_id=%s", aluno_email, treino_id)

    await notify.run_best_effort(
        "completion_professor",
        lambda: _notify_professor(store, aluno_email, treino_id, row),
    )
    return inserted


def _merge_dados(r: Row) -> dict[str, Any]:
    dados = r.get("dados") if isinstance(r.get("dados"), dict) else {}
    return {
        **dados,
        "peso_corporal": r.get("peso_corporal") or dados.get("peso_corporal") or None,
        "loads": r.get("loads") or dados.get("loads") or None,
    }


def _sort_key(item: Row) -> datetime:
    return parse_datetime(item.get("criado_em")) or _EPOCH


async def progress_timeline(store: Store, raw_email: str) -> list[Row]:
    """
    Completed workouts and consultations for one student, newest first.

    Each item is `{criado_em, treino_id?, dados}`. Both sources are optional
    tables; a missing one contributes nothing.
    """
    email = normalize_email(raw_email)
    if not email:
        raise bad_request("email is required")

    with store_errors("Failed to fetch progress."):
        user = await repository.get_user_link(store, email)
        progress_rows = await repository.progress_for(store, email)
        consultation_rows: list[Row] = []
        if user and user.get("id"):
            consultation_rows = await repository.consultations_for(store, user["id"])

    items: list[Row] = [
        {
            "criado_em": r.get("criado_em") or r.get("created_at") or r.get("data"),
            "treino_id": r.get("treino_id"),
            "dados": _merge_dados(r),
        }
        for r in progress_rows
    ]
    items.extend(
        {"criado_em": r.get("data") or r.get("criado_em"), "dados": r.get("dados") or {}}
        for r in consultation_rows
    )
    items.sort(key=_sort_key, reverse=True)
    return items
