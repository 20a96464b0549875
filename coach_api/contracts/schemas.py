"""
Contract schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ContractSettingsRequest(BaseModel):
    professor_email: str = Field(..., min_length=1, max_length=320)
    aluno_email: str = Field(..., min_length=1, max_length=320)
    professor_name: str | None = None
    professor_cref: str | None = None
    option1_value: float | str | None = None
    option2_value: float | str | None = None
