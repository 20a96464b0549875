"""
Workout and progress endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from coach_api.core.dependencies import get_store
from coach_api.core.normalize import utc_now_iso
from coach_api.core.store import Store

from . import schemas, service

router = APIRouter()


@router.get("/treinos")
async def list_workouts(store: Store = Depends(get_store)) -> list[dict]:
    return await service.list_workouts(store)


@router.get("/treinos-debug")
async def workouts_ping() -> dict:
    # Liveness check used by the frontend; no store access.
    return {"ok": True, "time": utc_now_iso()}


@router.get("/treinos/{aluno_email}")
async def list_workouts_for(aluno_email: str, store: Store = Depends(get_store)) -> list[dict]:
    return await service.list_workouts_for(store, aluno_email)


@router.post("/treinos")
async def create_workout(request: schemas.WorkoutCreateRequest, store: Store = Depends(get_store)) -> list[dict]:
    return await service.create_workout(store, request)


@router.post("/treinos/{treino_id}/concluir")
async def complete_workout(
    treino_id: str,
    request: schemas.WorkoutCompletionRequest,
    store: Store = Depends(get_store),
) -> list[dict]:
    return await service.complete_workout(store, treino_id, request)


@router.get("/progresso/{email}")
async def progress_timeline(email: str, store: Store = Depends(get_store)) -> list[dict]:
    return await service.progress_timeline(store, email)
