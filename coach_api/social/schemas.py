"""
Social feed schemas.
"""

from __future__ import annotations

from pydantic import BaseModel


class LikeRequest(BaseModel):
    usuario_email: str | None = None


class CommentRequest(BaseModel):
    texto: str | None = None
    usuario_email: str | None = None
    usuario_nome: str | None = None
