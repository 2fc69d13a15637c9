"""
Vistoria Naval API — Client Routes
====================================

What:  /api/clientes: the client registry (pessoa física or jurídica).
Rules: Document check digits, duplicate documents and address fields are
       validated by the service; a client that still owns vessels cannot be
       deleted.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.usuario import Usuario
from app.schemas.cadastro import ClienteCreate, ClienteResponse, ClienteUpdate, TipoPessoa
from app.schemas.common import ErrorResponse
from app.services.audit_service import audit_service
from app.services.cliente_service import cliente_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clientes", tags=["Clientes"])


def _snapshot(cliente) -> dict:
    return ClienteResponse.model_validate(cliente).model_dump(mode="json")


@router.get("", response_model=List[ClienteResponse], summary="List clients")
async def list_clientes(
    ativo: Optional[bool] = Query(default=None),
    tipo_pessoa: Optional[TipoPessoa] = Query(default=None),
    cpf: Optional[str] = Query(default=None),
    cnpj: Optional[str] = Query(default=None),
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ClienteResponse]:
    clientes = await cliente_service.listar(db, ativo, tipo_pessoa, cpf, cnpj)
    return [ClienteResponse.model_validate(c) for c in clientes]


@router.get(
    "/buscar/{documento}",
    response_model=ClienteResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Find a client by CPF or CNPJ",
)
async def buscar_por_documento(
    documento: str,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ClienteResponse:
    return ClienteResponse.model_validate(
        await cliente_service.buscar_por_documento(db, documento)
    )


@router.get("/{cliente_id}", response_model=ClienteResponse)
async def get_cliente(
    cliente_id: int,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ClienteResponse:
    return ClienteResponse.model_validate(await cliente_service.obter(db, cliente_id))


@router.post(
    "",
    response_model=ClienteResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
async def create_cliente(
    dados: ClienteCreate,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ClienteResponse:
    cliente = await cliente_service.criar(db, dados)
    await audit_service.registrar(
        db, acao="CREATE", entidade="Cliente", entidade_id=cliente.id, usuario=usuario,
        dados_novos=_snapshot(cliente), request=request,
    )
    return ClienteResponse.model_validate(cliente)


@router.put("/{cliente_id}", response_model=ClienteResponse)
async def update_cliente(
    cliente_id: int,
    dados: ClienteUpdate,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ClienteResponse:
    anterior = _snapshot(await cliente_service.obter(db, cliente_id))
    cliente = await cliente_service.atualizar(db, cliente_id, dados)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Cliente", entidade_id=cliente_id, usuario=usuario,
        dados_anteriores=anterior, dados_novos=_snapshot(cliente), request=request,
    )
    return ClienteResponse.model_validate(cliente)


@router.delete("/{cliente_id}", status_code=204, responses={400: {"model": ErrorResponse}})
async def delete_cliente(
    cliente_id: int,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    cliente = await cliente_service.deletar(db, cliente_id)
    await audit_service.registrar(
        db, acao="DELETE", entidade="Cliente", entidade_id=cliente_id, usuario=usuario,
        dados_anteriores={"nome": cliente.nome, "cpf": cliente.cpf, "cnpj": cliente.cnpj},
        request=request,
    )
    return Response(status_code=204)


@router.patch("/{cliente_id}/toggle-status", response_model=ClienteResponse)
async def toggle_status(
    cliente_id: int,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ClienteResponse:
    cliente = await cliente_service.alternar_status(db, cliente_id)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Cliente", entidade_id=cliente_id, usuario=usuario,
        dados_novos={"ativo": cliente.ativo}, request=request,
    )
    return ClienteResponse.model_validate(cliente)
