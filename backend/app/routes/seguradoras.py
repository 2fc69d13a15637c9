"""
Vistoria Naval API — Insurer Routes
=====================================

What:  /api/seguradoras: insurers and the vessel types each one covers.
Who:   Any authenticated user reads; administrators maintain the registry.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, require_admin
from app.models.usuario import Usuario
from app.schemas.cadastro import SeguradoraCreate, SeguradoraResponse, SeguradoraUpdate
from app.schemas.common import ErrorResponse
from app.services.audit_service import audit_service
from app.services.seguradora_service import seguradora_service

router = APIRouter(prefix="/api/seguradoras", tags=["Seguradoras"])


@router.get("", response_model=List[SeguradoraResponse])
async def list_seguradoras(
    ativo: Optional[bool] = Query(default=None),
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[SeguradoraResponse]:
    seguradoras = await seguradora_service.listar(db, ativo)
    return [SeguradoraResponse.from_model(s) for s in seguradoras]


@router.get("/{seguradora_id}", response_model=SeguradoraResponse)
async def get_seguradora(
    seguradora_id: int,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SeguradoraResponse:
    return SeguradoraResponse.from_model(await seguradora_service.obter(db, seguradora_id))


@router.get("/{seguradora_id}/tipos-permitidos", response_model=List[str])
async def get_tipos_permitidos(
    seguradora_id: int,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[str]:
    return await seguradora_service.tipos_permitidos(db, seguradora_id)


@router.post(
    "",
    response_model=SeguradoraResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
async def create_seguradora(
    dados: SeguradoraCreate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> SeguradoraResponse:
    resposta = SeguradoraResponse.from_model(await seguradora_service.criar(db, dados))
    await audit_service.registrar(
        db, acao="CREATE", entidade="Seguradora", entidade_id=resposta.id, usuario=admin,
        dados_novos=resposta.model_dump(mode="json"), request=request,
    )
    return resposta


@router.put("/{seguradora_id}", response_model=SeguradoraResponse)
async def update_seguradora(
    seguradora_id: int,
    dados: SeguradoraUpdate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> SeguradoraResponse:
    anterior = SeguradoraResponse.from_model(
        await seguradora_service.obter(db, seguradora_id)
    ).model_dump(mode="json")
    resposta = SeguradoraResponse.from_model(
        await seguradora_service.atualizar(db, seguradora_id, dados)
    )
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Seguradora", entidade_id=seguradora_id, usuario=admin,
        dados_anteriores=anterior, dados_novos=resposta.model_dump(mode="json"),
        request=request,
    )
    return resposta


@router.delete("/{seguradora_id}", status_code=204)
async def delete_seguradora(
    seguradora_id: int,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    seguradora = await seguradora_service.deletar(db, seguradora_id)
    await audit_service.registrar(
        db, acao="DELETE", entidade="Seguradora", entidade_id=seguradora_id, usuario=admin,
        dados_anteriores={"nome": seguradora.nome}, request=request,
    )
    return Response(status_code=204)


@router.patch("/{seguradora_id}/toggle-status", response_model=SeguradoraResponse)
async def toggle_status(
    seguradora_id: int,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> SeguradoraResponse:
    resposta = SeguradoraResponse.from_model(
        await seguradora_service.alternar_status(db, seguradora_id)
    )
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Seguradora", entidade_id=seguradora_id, usuario=admin,
        dados_novos={"ativo": resposta.ativo}, request=request,
    )
    return resposta
