"""
Student profile schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProfileRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    nome: str = Field(..., min_length=1)
    data_aniversario: str | None = None
    bio: str | None = None
    foto_url: str | None = None


class VerifyOrCreateRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    nome: str | None = None
