"""Audit trail response models."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from app.schemas.common import PaginationMeta


class AuditoriaLogResponse(BaseModel):
    id: int
    usuario_id: Optional[int] = None
    usuario_email: str
    usuario_nome: str
    acao: str
    entidade: str
    entidade_id: Optional[int] = None
    dados_anteriores: Optional[str] = None
    dados_novos: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    nivel_critico: bool
    detalhes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditoriaListResponse(BaseModel):
    logs: List[AuditoriaLogResponse]
    pagination: PaginationMeta


class AuditoriaEstatisticasResponse(BaseModel):
    total: int
    criticos: int
    por_acao: Dict[str, int]
