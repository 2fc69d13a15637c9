"""
Vistoria Naval API — Authentication and User Schemas
======================================================

What:  Request/response models for login, registration, password management
       and administrator user maintenance.

Passwords only ever travel inbound; no response model carries senha_hash.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NivelAcessoResponse(BaseModel):
    id: int
    nome: str
    descricao: Optional[str] = None

    model_config = {"from_attributes": True}


class UsuarioResponse(BaseModel):
    id: int
    nome: str
    email: str
    nivel_acesso_id: int
    nivel_acesso: Optional[NivelAcessoResponse] = None
    ativo: bool
    deve_atualizar_senha: bool = False
    cpf: Optional[str] = None
    telefone_e164: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UsuarioResumo(BaseModel):
    """Compact user reference embedded in other resources."""
    id: int
    nome: str
    email: str

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """
    Returned by POST /api/auth/login and /register.

    deve_atualizar_senha duplicates the user flag at top level so the client
    can route to the password screen before rendering anything else.
    """
    message: str
    token: str
    token_type: str = "bearer"
    usuario: UsuarioResponse
    deve_atualizar_senha: bool = False


class PasswordStatusResponse(BaseModel):
    deve_atualizar_senha: bool
    usuario_id: int
    message: str


class TempPasswordResponse(BaseModel):
    message: str
    senha_temporaria: str


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    senha: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    nome: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    senha: str = Field(min_length=6)


class ChangePasswordRequest(BaseModel):
    senha_atual: str = Field(min_length=1)
    nova_senha: str = Field(min_length=6)


class ForcePasswordUpdateRequest(BaseModel):
    nova_senha: str = Field(min_length=1)


class RoleUpdateRequest(BaseModel):
    nivel_acesso_id: int


class AdminPasswordRequest(BaseModel):
    nova_senha: str = Field(min_length=1)


class TempPasswordRequest(BaseModel):
    """When senha_temporaria is omitted a random one is generated."""
    senha_temporaria: Optional[str] = Field(default=None, min_length=6)


class UsuarioCreate(BaseModel):
    nome: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    nivel_acesso_id: int
    cpf: Optional[str] = None
    telefone: Optional[str] = None


class UsuarioUpdate(BaseModel):
    nome: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    nivel_acesso_id: Optional[int] = None
    ativo: Optional[bool] = None
    cpf: Optional[str] = None
    telefone: Optional[str] = None


class UsuarioListResponse(BaseModel):
    usuarios: List[UsuarioResponse]
    total: int
