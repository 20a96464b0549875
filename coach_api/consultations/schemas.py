"""
Consultation schemas.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field


class ConsultationRequest(BaseModel):
    client_id: int | str | None = Field(
        default=None,
        validation_alias=AliasChoices("aluno_id", "client_id"),
    )
    tipo: str | None = None
    dados: dict[str, Any] | None = None
    criado_por: str | None = None
