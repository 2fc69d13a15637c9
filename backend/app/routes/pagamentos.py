"""
Vistoria Naval API — Payment Batch Routes
===========================================

What:  /api/pagamentos: administrators group concluded inspections into
       payment batches per inspector and settle them.
Rules: A PAGO batch is final; cancelling a PENDENTE batch releases its
       inspections for a new batch.
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_admin
from app.models.usuario import Usuario
from app.schemas.common import ErrorResponse
from app.schemas.pagamento import (
    CancelarLoteRequest,
    GerarLoteRequest,
    LoteDetalheResponse,
    LoteResponse,
    PagarLoteRequest,
    PeriodoTipo,
    ResumoGeralResponse,
    VistoriasDisponiveisResponse,
)
from app.services.audit_service import audit_service
from app.services.pagamento_service import pagamento_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pagamentos", tags=["Pagamentos"])


@router.get("", response_model=List[LoteResponse])
async def list_lotes(
    periodo_tipo: Optional[PeriodoTipo] = Query(default=None),
    status: Optional[str] = Query(default=None, description="PENDENTE, PAGO or CANCELADO"),
    vistoriador_id: Optional[int] = Query(default=None),
    data_inicio: Optional[date] = Query(default=None, description="Batches starting on or after"),
    data_fim: Optional[date] = Query(default=None, description="Batches ending on or before"),
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[LoteResponse]:
    lotes = await pagamento_service.listar(
        db, periodo_tipo, status, vistoriador_id, data_inicio, data_fim
    )
    return [LoteResponse.model_validate(l) for l in lotes]


@router.post(
    "/gerar",
    response_model=LoteDetalheResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Create a payment batch from the eligible inspections",
)
async def gerar_lote(
    dados: GerarLoteRequest,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> LoteDetalheResponse:
    lote = await pagamento_service.gerar(db, dados)
    await audit_service.registrar(
        db, acao="CREATE", entidade="LotePagamento", entidade_id=lote.id, usuario=admin,
        dados_novos={
            "vistoriador_id": lote.vistoriador_id,
            "quantidade_vistorias": lote.quantidade_vistorias,
            "valor_total": float(lote.valor_total),
        },
        request=request,
    )
    return LoteDetalheResponse.model_validate(lote)


@router.get(
    "/vistoriador/{vistoriador_id}/disponiveis",
    response_model=VistoriasDisponiveisResponse,
)
async def vistorias_disponiveis(
    vistoriador_id: int,
    data_inicio: Optional[date] = Query(default=None),
    data_fim: Optional[date] = Query(default=None),
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> VistoriasDisponiveisResponse:
    return await pagamento_service.disponiveis(db, vistoriador_id, data_inicio, data_fim)


@router.get("/resumo/geral", response_model=ResumoGeralResponse)
async def resumo_geral(
    periodo_inicio: Optional[date] = Query(default=None),
    periodo_fim: Optional[date] = Query(default=None),
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ResumoGeralResponse:
    return await pagamento_service.resumo(db, periodo_inicio, periodo_fim)


@router.get(
    "/{lote_id}",
    response_model=LoteDetalheResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_lote(
    lote_id: int,
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> LoteDetalheResponse:
    return LoteDetalheResponse.model_validate(await pagamento_service.obter(db, lote_id))


@router.put(
    "/{lote_id}/pagar",
    response_model=LoteDetalheResponse,
    responses={400: {"model": ErrorResponse}},
)
async def pagar_lote(
    lote_id: int,
    dados: PagarLoteRequest,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> LoteDetalheResponse:
    lote = await pagamento_service.pagar(db, lote_id, dados, admin)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="LotePagamento", entidade_id=lote_id, usuario=admin,
        dados_anteriores={"status": "PENDENTE"},
        dados_novos={"status": lote.status, "forma_pagamento": lote.forma_pagamento},
        request=request, nivel_critico=True,
    )
    return LoteDetalheResponse.model_validate(lote)


@router.put(
    "/{lote_id}/cancelar",
    response_model=LoteDetalheResponse,
    responses={400: {"model": ErrorResponse}},
)
async def cancelar_lote(
    lote_id: int,
    request: Request,
    dados: CancelarLoteRequest = CancelarLoteRequest(),
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> LoteDetalheResponse:
    lote = await pagamento_service.cancelar(db, lote_id, dados.observacoes)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="LotePagamento", entidade_id=lote_id, usuario=admin,
        dados_novos={"status": lote.status}, request=request,
    )
    return LoteDetalheResponse.model_validate(lote)


@router.delete("/{lote_id}", status_code=204, responses={400: {"model": ErrorResponse}})
async def delete_lote(
    lote_id: int,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    lote = await pagamento_service.deletar(db, lote_id)
    await audit_service.registrar(
        db, acao="DELETE", entidade="LotePagamento", entidade_id=lote_id, usuario=admin,
        dados_anteriores={"status": lote.status, "vistoriador_id": lote.vistoriador_id},
        request=request, nivel_critico=True,
    )
    return Response(status_code=204)
