"""
Vistoria Naval API — Registry Schemas
=======================================

What:  Request/response models for clientes, embarcacoes, locais,
       seguradoras and tipos de foto.

Shape validation happens here; document check digits, state codes and
uniqueness are verified by the services so they surface as 400 responses
with a field name.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

TipoPessoa = Literal["FISICA", "JURIDICA"]
TipoEmbarcacao = Literal["LANCHA", "JET_SKI", "EMBARCACAO_COMERCIAL"]
TipoLocal = Literal["MARINA", "RESIDENCIA"]


# ══════════════════════════════════════════════════════════════════════════
# Clientes
# ══════════════════════════════════════════════════════════════════════════


class ClienteBase(BaseModel):
    tipo_pessoa: TipoPessoa = "FISICA"
    nome: str = Field(min_length=1, max_length=255)
    cpf: Optional[str] = None
    cnpj: Optional[str] = None
    telefone: Optional[str] = Field(default=None, description="Any format; stored as E.164")
    email: Optional[str] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None
    observacoes: Optional[str] = None


class ClienteCreate(ClienteBase):
    pass


class ClienteUpdate(BaseModel):
    tipo_pessoa: Optional[TipoPessoa] = None
    nome: Optional[str] = Field(default=None, min_length=1, max_length=255)
    cpf: Optional[str] = None
    cnpj: Optional[str] = None
    telefone: Optional[str] = None
    email: Optional[str] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None
    observacoes: Optional[str] = None
    ativo: Optional[bool] = None


class ClienteResponse(BaseModel):
    id: int
    tipo_pessoa: str
    nome: str
    cpf: Optional[str] = None
    cnpj: Optional[str] = None
    telefone_e164: Optional[str] = None
    email: Optional[str] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None
    observacoes: Optional[str] = None
    ativo: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Embarcações
# ══════════════════════════════════════════════════════════════════════════


class EmbarcacaoBase(BaseModel):
    nome: str = Field(min_length=1, max_length=255)
    numero_casco: str = Field(min_length=1, max_length=100)
    nr_inscricao_barco: Optional[str] = None
    tipo_embarcacao: Optional[TipoEmbarcacao] = None
    porte: Optional[str] = None
    valor_embarcacao: Optional[float] = None
    ano_fabricacao: Optional[int] = Field(default=None, ge=1900, le=2100)
    proprietario_nome: Optional[str] = None
    proprietario_email: Optional[str] = None
    proprietario_cpf: Optional[str] = None
    proprietario_telefone: Optional[str] = None
    cliente_id: Optional[int] = None


class EmbarcacaoCreate(EmbarcacaoBase):
    pass


class EmbarcacaoUpdate(BaseModel):
    nome: Optional[str] = Field(default=None, min_length=1, max_length=255)
    numero_casco: Optional[str] = Field(default=None, min_length=1, max_length=100)
    nr_inscricao_barco: Optional[str] = None
    tipo_embarcacao: Optional[TipoEmbarcacao] = None
    porte: Optional[str] = None
    valor_embarcacao: Optional[float] = None
    ano_fabricacao: Optional[int] = Field(default=None, ge=1900, le=2100)
    proprietario_nome: Optional[str] = None
    proprietario_email: Optional[str] = None
    proprietario_cpf: Optional[str] = None
    proprietario_telefone: Optional[str] = None
    cliente_id: Optional[int] = None


class ClienteResumo(BaseModel):
    id: int
    nome: str
    tipo_pessoa: str
    cpf: Optional[str] = None
    cnpj: Optional[str] = None

    model_config = {"from_attributes": True}


class EmbarcacaoResponse(BaseModel):
    id: int
    nome: str
    numero_casco: str
    nr_inscricao_barco: Optional[str] = None
    tipo_embarcacao: Optional[str] = None
    porte: Optional[str] = None
    valor_embarcacao: Optional[float] = None
    ano_fabricacao: Optional[int] = None
    proprietario_nome: Optional[str] = None
    proprietario_email: Optional[str] = None
    proprietario_cpf: Optional[str] = None
    proprietario_telefone_e164: Optional[str] = None
    cliente_id: Optional[int] = None
    cliente: Optional[ClienteResumo] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Locais
# ══════════════════════════════════════════════════════════════════════════


class LocalBase(BaseModel):
    tipo: TipoLocal
    nome_local: Optional[str] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None


class LocalCreate(LocalBase):
    pass


class LocalUpdate(BaseModel):
    tipo: Optional[TipoLocal] = None
    nome_local: Optional[str] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None


class LocalResponse(LocalBase):
    id: int
    tipo: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Seguradoras
# ══════════════════════════════════════════════════════════════════════════


class SeguradoraCreate(BaseModel):
    nome: str = Field(min_length=1, max_length=100)
    ativo: bool = True
    tipos_permitidos: List[TipoEmbarcacao] = Field(default_factory=list)


class SeguradoraUpdate(BaseModel):
    nome: Optional[str] = Field(default=None, min_length=1, max_length=100)
    ativo: Optional[bool] = None
    tipos_permitidos: Optional[List[TipoEmbarcacao]] = None


class SeguradoraResponse(BaseModel):
    id: int
    nome: str
    ativo: bool
    tipos_permitidos: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, seguradora) -> "SeguradoraResponse":
        return cls(
            id=seguradora.id,
            nome=seguradora.nome,
            ativo=seguradora.ativo,
            tipos_permitidos=[t.tipo_embarcacao for t in seguradora.tipos_permitidos],
            created_at=seguradora.created_at,
        )


# ══════════════════════════════════════════════════════════════════════════
# Tipos de foto do checklist
# ══════════════════════════════════════════════════════════════════════════


class TipoFotoCreate(BaseModel):
    codigo: str = Field(min_length=1, max_length=50)
    nome_exibicao: str = Field(min_length=1, max_length=255)
    descricao: Optional[str] = None
    obrigatorio: bool = True


class TipoFotoUpdate(BaseModel):
    codigo: Optional[str] = Field(default=None, min_length=1, max_length=50)
    nome_exibicao: Optional[str] = Field(default=None, min_length=1, max_length=255)
    descricao: Optional[str] = None
    obrigatorio: Optional[bool] = None


class TipoFotoResponse(BaseModel):
    id: int
    codigo: str
    nome_exibicao: str
    descricao: Optional[str] = None
    obrigatorio: bool

    model_config = {"from_attributes": True}
