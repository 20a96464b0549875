"""
Store product schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ExtractRequest(BaseModel):
    url: str = Field(..., min_length=1)


class ProductCreateRequest(BaseModel):
    titulo: str = Field(..., min_length=1)
    imagem_url: str = Field(..., min_length=1)
    link_mercadolivre: str = Field(..., min_length=1)


class ProductUpdateRequest(BaseModel):
    titulo: str | None = None
    imagem_url: str | None = None
    link_mercadolivre: str | None = None
    ordem: int | None = None
