"""
Vistoria Naval API — Payment Batch Schemas
============================================
"""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.auth import UsuarioResumo
from app.schemas.vistoria import VistoriaResponse

PeriodoTipo = Literal["DIARIO", "SEMANAL", "MENSAL"]


class GerarLoteRequest(BaseModel):
    vistoriador_id: int
    periodo_tipo: PeriodoTipo = "MENSAL"
    data_inicio: date
    data_fim: date


class PagarLoteRequest(BaseModel):
    forma_pagamento: Optional[str] = Field(default=None, max_length=50)
    comprovante_url: Optional[str] = Field(default=None, max_length=500)
    observacoes: Optional[str] = None


class CancelarLoteRequest(BaseModel):
    observacoes: Optional[str] = None


class VistoriaLoteResponse(BaseModel):
    id: int
    vistoria_id: int
    valor_vistoriador: float
    vistoria: Optional[VistoriaResponse] = None

    model_config = {"from_attributes": True}


class LoteResponse(BaseModel):
    id: int
    vistoriador_id: int
    periodo_tipo: str
    data_inicio: date
    data_fim: date
    quantidade_vistorias: int
    valor_total: float
    status: str
    data_pagamento: Optional[datetime] = None
    forma_pagamento: Optional[str] = None
    comprovante_url: Optional[str] = None
    observacoes: Optional[str] = None
    pago_por_id: Optional[int] = None
    vistoriador: Optional[UsuarioResumo] = None
    pago_por: Optional[UsuarioResumo] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoteDetalheResponse(LoteResponse):
    vistorias: List[VistoriaLoteResponse] = Field(default_factory=list)


class VistoriasDisponiveisResponse(BaseModel):
    vistorias: List[VistoriaResponse]
    quantidade: int
    valor_total: float


class ResumoStatus(BaseModel):
    quantidade: int
    valor_total: float


class ResumoGeralResponse(BaseModel):
    pendente: ResumoStatus
    pago: ResumoStatus
