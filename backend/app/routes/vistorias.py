"""
Vistoria Naval API — Inspection Routes
========================================

What:  /api/vistorias: administrators create, list and delete inspections;
       the assigned inspector may read and update their own.
How:   Creation finds or creates the vessel by numero_casco, creates the
       location and assigns the inspector with status PENDENTE.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, require_admin
from app.models.usuario import Usuario
from app.schemas.common import ErrorResponse
from app.schemas.vistoria import VistoriaCreate, VistoriaResponse, VistoriaUpdate
from app.services.audit_service import audit_service
from app.services.vistoria_service import vistoria_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vistorias", tags=["Vistorias"])

_SNAPSHOT_EXCLUDE = {"embarcacao", "local", "status", "vistoriador", "administrador"}


def _snapshot(vistoria) -> dict:
    return VistoriaResponse.model_validate(vistoria).model_dump(
        mode="json", exclude=_SNAPSHOT_EXCLUDE
    )


@router.post(
    "",
    response_model=VistoriaResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Create an inspection (admin)",
)
async def create_vistoria(
    dados: VistoriaCreate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> VistoriaResponse:
    vistoria = await vistoria_service.criar(db, dados, admin)
    await audit_service.registrar(
        db, acao="CREATE", entidade="Vistoria", entidade_id=vistoria.id, usuario=admin,
        dados_novos=_snapshot(vistoria), request=request,
    )
    return VistoriaResponse.model_validate(vistoria)


@router.get("", response_model=List[VistoriaResponse], summary="List all inspections (admin)")
async def list_vistorias(
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[VistoriaResponse]:
    return [VistoriaResponse.model_validate(v) for v in await vistoria_service.listar(db)]


@router.get(
    "/vistoriador",
    response_model=List[VistoriaResponse],
    summary="Inspections assigned to the current user",
)
async def list_minhas_vistorias(
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[VistoriaResponse]:
    vistorias = await vistoria_service.listar_do_vistoriador(db, usuario.id)
    return [VistoriaResponse.model_validate(v) for v in vistorias]


@router.get(
    "/{vistoria_id}",
    response_model=VistoriaResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_vistoria(
    vistoria_id: int,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VistoriaResponse:
    return VistoriaResponse.model_validate(
        await vistoria_service.obter_autorizada(db, vistoria_id, usuario)
    )


@router.put(
    "/{vistoria_id}",
    response_model=VistoriaResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def update_vistoria(
    vistoria_id: int,
    dados: VistoriaUpdate,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VistoriaResponse:
    anterior = _snapshot(await vistoria_service.obter_autorizada(db, vistoria_id, usuario))
    vistoria = await vistoria_service.atualizar(db, vistoria_id, dados, usuario)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Vistoria", entidade_id=vistoria_id, usuario=usuario,
        dados_anteriores=anterior, dados_novos=_snapshot(vistoria), request=request,
    )
    return VistoriaResponse.model_validate(vistoria)


@router.delete(
    "/{vistoria_id}",
    status_code=204,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_vistoria(
    vistoria_id: int,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    anterior = _snapshot(await vistoria_service.obter(db, vistoria_id))
    await vistoria_service.deletar(db, vistoria_id)
    await audit_service.registrar(
        db, acao="DELETE", entidade="Vistoria", entidade_id=vistoria_id, usuario=admin,
        dados_anteriores=anterior, request=request, nivel_critico=True,
    )
    return Response(status_code=204)
