"""
Vistoria Naval API — Inspector App Routes
===========================================

What:  /api/vistoriador: the inspector's own inspections, starting one,
       saving progress and the mandatory photo checklist.
Who:   Users with the VISTORIADOR (or ADMINISTRADOR) level; every
       inspection route is restricted to the assigned inspector.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_vistoriador
from app.models.usuario import Usuario
from app.schemas.cadastro import TipoFotoResponse
from app.schemas.common import ErrorResponse
from app.schemas.vistoria import (
    ChecklistStatusResponse,
    IniciarVistoriaResponse,
    VistoriaDetalheResponse,
    VistoriaResponse,
    VistoriaUpdate,
)
from app.services.audit_service import audit_service
from app.services.foto_service import foto_para_resposta
from app.services.tipo_foto_service import tipo_foto_service
from app.services.vistoria_service import vistoria_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vistoriador", tags=["Vistoriador"])


@router.get("/vistorias", response_model=List[VistoriaResponse])
async def list_vistorias(
    usuario: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> List[VistoriaResponse]:
    vistorias = await vistoria_service.listar_do_vistoriador(db, usuario.id)
    return [VistoriaResponse.model_validate(v) for v in vistorias]


@router.get(
    "/vistorias/{vistoria_id}",
    response_model=VistoriaDetalheResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_vistoria(
    vistoria_id: int,
    usuario: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> VistoriaDetalheResponse:
    vistoria = await vistoria_service.obter_do_vistoriador(db, vistoria_id, usuario)
    resposta = VistoriaDetalheResponse.model_validate(vistoria)
    resposta.fotos = [foto_para_resposta(f) for f in vistoria.fotos]
    return resposta


@router.get("/tipos-foto-checklist", response_model=List[TipoFotoResponse])
async def list_tipos_foto(
    _: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> List[TipoFotoResponse]:
    return [TipoFotoResponse.model_validate(t) for t in await tipo_foto_service.listar(db)]


@router.put(
    "/vistorias/{vistoria_id}/iniciar",
    response_model=IniciarVistoriaResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def iniciar_vistoria(
    vistoria_id: int,
    request: Request,
    usuario: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> IniciarVistoriaResponse:
    vistoria = await vistoria_service.iniciar(db, vistoria_id, usuario)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Vistoria", entidade_id=vistoria_id, usuario=usuario,
        dados_novos={"status": "EM_ANDAMENTO"}, request=request, detalhes="Vistoria iniciada",
    )
    return IniciarVistoriaResponse(
        message="Vistoria iniciada com sucesso",
        vistoria=VistoriaResponse.model_validate(vistoria),
        data_inicio=vistoria.data_inicio,
    )


@router.put(
    "/vistorias/{vistoria_id}/status",
    response_model=VistoriaResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def update_status(
    vistoria_id: int,
    dados: VistoriaUpdate,
    request: Request,
    usuario: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> VistoriaResponse:
    vistoria = await vistoria_service.atualizar_status(db, vistoria_id, dados, usuario)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Vistoria", entidade_id=vistoria_id, usuario=usuario,
        dados_novos=dados.model_dump(mode="json", exclude_unset=True), request=request,
    )
    return VistoriaResponse.model_validate(vistoria)


@router.get(
    "/vistorias/{vistoria_id}/checklist-status",
    response_model=ChecklistStatusResponse,
)
async def checklist_status(
    vistoria_id: int,
    usuario: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> ChecklistStatusResponse:
    return await vistoria_service.checklist_status(db, vistoria_id, usuario)
