"""
Vistoria Naval API — User Administration Routes
=================================================

What:  /api/usuarios: administrator CRUD over user accounts.
Why:   Inspectors are created by an administrator with the default
       password; the account is flagged for a password change.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_admin
from app.models.usuario import Usuario
from app.schemas.auth import AdminPasswordRequest, UsuarioCreate, UsuarioResponse, UsuarioUpdate
from app.schemas.common import MessageResponse
from app.services.audit_service import audit_service
from app.services.usuario_service import usuario_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/usuarios", tags=["Usuários"])


def _snapshot(usuario: Usuario) -> dict:
    return UsuarioResponse.model_validate(usuario).model_dump(mode="json")


@router.get("", response_model=List[UsuarioResponse])
async def list_usuarios(
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[UsuarioResponse]:
    return [UsuarioResponse.model_validate(u) for u in await usuario_service.listar(db)]


@router.get("/{usuario_id}", response_model=UsuarioResponse)
async def get_usuario(
    usuario_id: int,
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UsuarioResponse:
    return UsuarioResponse.model_validate(await usuario_service.obter(db, usuario_id))


@router.post("", response_model=UsuarioResponse, status_code=201)
async def create_usuario(
    dados: UsuarioCreate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UsuarioResponse:
    usuario = await usuario_service.criar(db, dados)
    await audit_service.registrar(
        db, acao="CREATE", entidade="Usuario", entidade_id=usuario.id, usuario=admin,
        dados_novos=_snapshot(usuario), request=request,
    )
    return UsuarioResponse.model_validate(usuario)


@router.put("/{usuario_id}", response_model=UsuarioResponse)
async def update_usuario(
    usuario_id: int,
    dados: UsuarioUpdate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UsuarioResponse:
    anterior = _snapshot(await usuario_service.obter(db, usuario_id))
    usuario = await usuario_service.atualizar(db, usuario_id, dados)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Usuario", entidade_id=usuario_id, usuario=admin,
        dados_anteriores=anterior, dados_novos=_snapshot(usuario), request=request,
    )
    return UsuarioResponse.model_validate(usuario)


@router.delete("/{usuario_id}", status_code=204)
async def delete_usuario(
    usuario_id: int,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    usuario = await usuario_service.deletar(db, usuario_id)
    await audit_service.registrar(
        db, acao="DELETE", entidade="Usuario", entidade_id=usuario_id, usuario=admin,
        dados_anteriores={"nome": usuario.nome, "email": usuario.email},
        request=request, nivel_critico=True,
    )
    return Response(status_code=204)


@router.post("/{usuario_id}/reset-password", response_model=MessageResponse)
async def reset_password(
    usuario_id: int,
    dados: AdminPasswordRequest,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await usuario_service.resetar_senha(db, usuario_id, dados.nova_senha)
    await audit_service.registrar(
        db, acao="PASSWORD_CHANGE", entidade="Usuario", entidade_id=usuario_id,
        usuario=admin, request=request, nivel_critico=True, detalhes="Senha redefinida",
    )
    return MessageResponse(message="Senha redefinida com sucesso")


@router.patch("/{usuario_id}/toggle-status", response_model=UsuarioResponse)
async def toggle_status(
    usuario_id: int,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UsuarioResponse:
    usuario = await usuario_service.alternar_status(db, usuario_id)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Usuario", entidade_id=usuario_id, usuario=admin,
        dados_novos={"ativo": usuario.ativo}, request=request,
    )
    return UsuarioResponse.model_validate(usuario)
