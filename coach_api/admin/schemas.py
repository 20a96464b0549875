"""
Admin schemas.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RenewContractRequest(BaseModel):
    professor_email: str = Field(..., min_length=1, max_length=320)
    contract_end: str = Field(..., min_length=1)


class SettingRequest(BaseModel):
    valor: Any = Field(...)
