"""
Vistoria Naval API — Checklist Schemas
========================================

What:  Request/response models for checklist templates and the checklist
       items copied into an inspection.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.cadastro import TipoEmbarcacao

StatusItem = Literal["PENDENTE", "CONCLUIDO", "NAO_APLICAVEL"]


# ══════════════════════════════════════════════════════════════════════════
# Templates
# ══════════════════════════════════════════════════════════════════════════


class TemplateItemCreate(BaseModel):
    ordem: Optional[int] = Field(default=None, ge=0)
    nome: str = Field(min_length=1, max_length=255)
    descricao: Optional[str] = None
    obrigatorio: bool = True
    permite_video: bool = False


class TemplateItemUpdate(BaseModel):
    ordem: Optional[int] = Field(default=None, ge=0)
    nome: Optional[str] = Field(default=None, min_length=1, max_length=255)
    descricao: Optional[str] = None
    obrigatorio: Optional[bool] = None
    permite_video: Optional[bool] = None
    ativo: Optional[bool] = None


class TemplateItemResponse(BaseModel):
    id: int
    checklist_template_id: int
    ordem: int
    nome: str
    descricao: Optional[str] = None
    obrigatorio: bool
    permite_video: bool
    ativo: bool

    model_config = {"from_attributes": True}


class TemplateCreate(BaseModel):
    tipo_embarcacao: TipoEmbarcacao
    nome: str = Field(min_length=1, max_length=255)
    descricao: Optional[str] = None
    itens: List[TemplateItemCreate] = Field(default_factory=list)


class TemplateUpdate(BaseModel):
    nome: Optional[str] = Field(default=None, min_length=1, max_length=255)
    descricao: Optional[str] = None
    ativo: Optional[bool] = None


class TemplateResponse(BaseModel):
    id: int
    tipo_embarcacao: str
    nome: str
    descricao: Optional[str] = None
    ativo: bool
    itens: List[TemplateItemResponse] = Field(default_factory=list)

    @classmethod
    def from_model(cls, template) -> "TemplateResponse":
        """Only active items, ordered by ordem."""
        return cls(
            id=template.id,
            tipo_embarcacao=template.tipo_embarcacao,
            nome=template.nome,
            descricao=template.descricao,
            ativo=template.ativo,
            itens=[TemplateItemResponse.model_validate(i) for i in template.itens_ativos],
        )


# ══════════════════════════════════════════════════════════════════════════
# Inspection checklist
# ══════════════════════════════════════════════════════════════════════════


class ChecklistItemCreate(BaseModel):
    nome: str = Field(min_length=1, max_length=255)
    descricao: Optional[str] = None
    obrigatorio: bool = True
    permite_video: bool = False


class ChecklistItemStatusUpdate(BaseModel):
    status: StatusItem
    foto_id: Optional[int] = None
    observacao: Optional[str] = None


class ChecklistItemFoto(BaseModel):
    id: int
    url_arquivo: str
    url: Optional[str] = None
    created_at: Optional[datetime] = None


class ChecklistItemResponse(BaseModel):
    id: int
    vistoria_id: int
    template_item_id: Optional[int] = None
    ordem: int
    nome: str
    descricao: Optional[str] = None
    obrigatorio: bool
    permite_video: bool
    status: str
    foto_id: Optional[int] = None
    observacao: Optional[str] = None
    concluido_em: Optional[datetime] = None
    foto: Optional[ChecklistItemFoto] = None

    model_config = {"from_attributes": True}


class CopiarTemplateResponse(BaseModel):
    message: str
    itens: List[ChecklistItemResponse]


class ProgressoResponse(BaseModel):
    total: int
    concluidos: int
    pendentes: int
    nao_aplicaveis: int
    obrigatorios_pendentes: int
    percentual: int
    pode_aprovar: bool
