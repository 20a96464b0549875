"""
Message schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class MessageRequest(BaseModel):
    de: str = Field(..., min_length=1)
    para: str = Field(..., min_length=1)
    mensagem: str = Field(..., min_length=1)
