"""
Users API schemas (request models).
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from coach_api.core.security import check_password_length


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    senha: str = Field(..., min_length=1, max_length=128)


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nome: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1, max_length=320)
    senha: str = Field(..., min_length=1, max_length=128)
    tipo: str | None = None
    # Older frontends send the creator under different names.
    criado_por: str | None = Field(
        default=None,
        validation_alias=AliasChoices("criado_por", "criadoPor", "criado_by"),
    )
    contract_end: str | None = Field(
        default=None,
        validation_alias=AliasChoices("contract_end", "contractEnd"),
    )

    @field_validator("senha")
    @classmethod
    def _senha_fits_bcrypt(cls, value: str) -> str:
        return check_password_length(value)


class ContractUpdateRequest(BaseModel):
    contract_end: str | int = Field(...)
    professor_email: str | None = None


class PhotoUpdateRequest(BaseModel):
    foto: str = Field(..., min_length=1)
