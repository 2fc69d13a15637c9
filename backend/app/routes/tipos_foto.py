"""Vistoria Naval API — /api/tipos-foto-checklist: photo types an inspection must cover."""

from typing import List

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, require_admin
from app.models.usuario import Usuario
from app.schemas.cadastro import TipoFotoCreate, TipoFotoResponse, TipoFotoUpdate
from app.schemas.common import ErrorResponse
from app.services.audit_service import audit_service
from app.services.tipo_foto_service import tipo_foto_service

router = APIRouter(prefix="/api/tipos-foto-checklist", tags=["Tipos de Foto"])


@router.get("", response_model=List[TipoFotoResponse])
async def list_tipos(
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TipoFotoResponse]:
    return [TipoFotoResponse.model_validate(t) for t in await tipo_foto_service.listar(db)]


@router.get("/{tipo_id}", response_model=TipoFotoResponse)
async def get_tipo(
    tipo_id: int,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TipoFotoResponse:
    return TipoFotoResponse.model_validate(await tipo_foto_service.obter(db, tipo_id))


@router.post(
    "",
    response_model=TipoFotoResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
async def create_tipo(
    dados: TipoFotoCreate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> TipoFotoResponse:
    resposta = TipoFotoResponse.model_validate(await tipo_foto_service.criar(db, dados))
    await audit_service.registrar(
        db, acao="CREATE", entidade="TipoFotoChecklist", entidade_id=resposta.id,
        usuario=admin, dados_novos=resposta.model_dump(mode="json"), request=request,
    )
    return resposta


@router.put("/{tipo_id}", response_model=TipoFotoResponse)
async def update_tipo(
    tipo_id: int,
    dados: TipoFotoUpdate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> TipoFotoResponse:
    resposta = TipoFotoResponse.model_validate(await tipo_foto_service.atualizar(db, tipo_id, dados))
    await audit_service.registrar(
        db, acao="UPDATE", entidade="TipoFotoChecklist", entidade_id=tipo_id,
        usuario=admin, dados_novos=resposta.model_dump(mode="json"), request=request,
    )
    return resposta


@router.delete("/{tipo_id}", status_code=204)
async def delete_tipo(
    tipo_id: int,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    tipo = await tipo_foto_service.deletar(db, tipo_id)
    await audit_service.registrar(
        db, acao="DELETE", entidade="TipoFotoChecklist", entidade_id=tipo_id,
        usuario=admin, dados_anteriores={"codigo": tipo.codigo}, request=request,
    )
    return Response(status_code=204)
