"""Vistoria Naval API — /api/locais: inspection locations (marina or residence)."""

from typing import List

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.usuario import Usuario
from app.schemas.cadastro import LocalCreate, LocalResponse, LocalUpdate
from app.services.audit_service import audit_service
from app.services.local_service import local_service

router = APIRouter(prefix="/api/locais", tags=["Locais"])


@router.get("", response_model=List[LocalResponse])
async def list_locais(
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[LocalResponse]:
    return [LocalResponse.model_validate(l) for l in await local_service.listar(db)]


@router.get("/{local_id}", response_model=LocalResponse)
async def get_local(
    local_id: int,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LocalResponse:
    return LocalResponse.model_validate(await local_service.obter(db, local_id))


@router.post("", response_model=LocalResponse, status_code=201)
async def create_local(
    dados: LocalCreate,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LocalResponse:
    local = await local_service.criar(db, dados)
    resposta = LocalResponse.model_validate(local)
    await audit_service.registrar(
        db, acao="CREATE", entidade="Local", entidade_id=local.id, usuario=usuario,
        dados_novos=resposta.model_dump(mode="json"), request=request,
    )
    return resposta


@router.put("/{local_id}", response_model=LocalResponse)
async def update_local(
    local_id: int,
    dados: LocalUpdate,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LocalResponse:
    local = await local_service.atualizar(db, local_id, dados)
    resposta = LocalResponse.model_validate(local)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Local", entidade_id=local_id, usuario=usuario,
        dados_novos=resposta.model_dump(mode="json"), request=request,
    )
    return resposta


@router.delete("/{local_id}", status_code=204)
async def delete_local(
    local_id: int,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await local_service.deletar(db, local_id)
    await audit_service.registrar(
        db, acao="DELETE", entidade="Local", entidade_id=local_id, usuario=usuario,
        request=request,
    )
    return Response(status_code=204)
