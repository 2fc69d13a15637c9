"""
Vistoria Naval API — Inspection Schemas
=========================================

What:  Request/response models for inspections, their photos and the
       inspector's photo checklist status.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.schemas.auth import UsuarioResumo
from app.schemas.cadastro import EmbarcacaoResponse, LocalResponse, TipoEmbarcacao, TipoLocal


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class EmbarcacaoVistoriaInput(BaseModel):
    """
    Vessel data typed into the inspection wizard.

    The vessel is looked up by numero_casco; nome is only required when no
    vessel with that hull number exists yet.
    """
    numero_casco: str = Field(min_length=1, max_length=100)
    nome: Optional[str] = None
    nr_inscricao_barco: Optional[str] = None
    tipo_embarcacao: Optional[TipoEmbarcacao] = None
    proprietario_nome: Optional[str] = None
    proprietario_email: Optional[str] = None
    cliente_id: Optional[int] = None


class LocalVistoriaInput(BaseModel):
    tipo: TipoLocal
    nome_local: Optional[str] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None


class ContatoAcompanhante(BaseModel):
    tipo: Optional[str] = None
    nome: Optional[str] = None
    telefone: Optional[str] = None
    email: Optional[str] = None


class VistoriaCreate(BaseModel):
    embarcacao: EmbarcacaoVistoriaInput
    local: LocalVistoriaInput
    vistoriador_id: int
    valor_embarcacao: Optional[float] = None
    valor_vistoria: Optional[float] = None
    valor_vistoriador: Optional[float] = None
    contato_acompanhante: Optional[ContatoAcompanhante] = None


class VistoriaUpdate(BaseModel):
    """Partial update; only the fields sent are applied."""
    status_id: Optional[int] = None
    vistoriador_id: Optional[int] = None
    dados_rascunho: Optional[Dict[str, Any]] = None
    valor_embarcacao: Optional[float] = None
    valor_vistoria: Optional[float] = None
    valor_vistoriador: Optional[float] = None
    contato_acompanhante: Optional[ContatoAcompanhante] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class StatusVistoriaResponse(BaseModel):
    id: int
    nome: str
    descricao: Optional[str] = None

    model_config = {"from_attributes": True}


class TipoFotoResumo(BaseModel):
    id: int
    codigo: str
    nome_exibicao: str

    model_config = {"from_attributes": True}


class FotoResponse(BaseModel):
    id: int
    url_arquivo: str
    url: Optional[str] = Field(default=None, description="Public URL of the stored object")
    observacao: Optional[str] = None
    vistoria_id: int
    tipo_foto_id: int
    tipo_foto: Optional[TipoFotoResumo] = None
    checklist_item_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VistoriaResponse(BaseModel):
    id: int
    embarcacao_id: int
    local_id: int
    vistoriador_id: int
    administrador_id: Optional[int] = None
    status_id: int
    dados_rascunho: Optional[Dict[str, Any]] = None
    valor_embarcacao: Optional[float] = None
    valor_vistoria: Optional[float] = None
    valor_vistoriador: Optional[float] = None
    contato_acompanhante_tipo: Optional[str] = None
    contato_acompanhante_nome: Optional[str] = None
    contato_acompanhante_telefone_e164: Optional[str] = None
    contato_acompanhante_email: Optional[str] = None
    data_inicio: Optional[datetime] = None
    data_conclusao: Optional[datetime] = None
    data_aprovacao: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    embarcacao: Optional[EmbarcacaoResponse] = None
    local: Optional[LocalResponse] = None
    status: Optional[StatusVistoriaResponse] = None
    vistoriador: Optional[UsuarioResumo] = None
    administrador: Optional[UsuarioResumo] = None

    model_config = {"from_attributes": True}


class VistoriaDetalheResponse(VistoriaResponse):
    fotos: List[FotoResponse] = Field(default_factory=list)


# ── Photo checklist status (inspector app) ───────────────────────────────


class ChecklistFotoItem(BaseModel):
    id: int
    codigo: str
    nome_exibicao: str
    descricao: Optional[str] = None
    obrigatorio: bool
    foto_tirada: bool
    foto_url: Optional[str] = None
    foto_observacao: Optional[str] = None


class ChecklistFotoResumo(BaseModel):
    total: int
    tiradas: int
    completo: bool
    progresso: int


class ChecklistStatusResponse(BaseModel):
    checklist: List[ChecklistFotoItem]
    resumo: ChecklistFotoResumo


class IniciarVistoriaResponse(BaseModel):
    message: str
    vistoria: VistoriaResponse
    data_inicio: datetime


class FotoUrlResponse(BaseModel):
    id: int
    chave: str
    url: str
    content_type: str
