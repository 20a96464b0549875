"""
Workout and progress schemas.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class WorkoutCreateRequest(BaseModel):
    aluno_email: str = Field(..., min_length=1, max_length=320)
    # Either pre-serialized JSON text or the structured plan itself.
    treino: Any = Field(...)
    data: str | None = None


class WorkoutCompletionRequest(BaseModel):
    aluno_email: str = Field(..., min_length=1, max_length=320)
    peso_corporal: float | str | None = None
    loads: Any = None
    dados: dict[str, Any] | None = None
