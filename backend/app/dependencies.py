"""
Vistoria Naval API — Authorization Dependencies
=================================================

What:  FastAPI dependencies resolving the caller from the Bearer token and
       enforcing access levels.
How:   HTTPBearer(auto_error=False) extracts the token so a missing header
       raises our AuthenticationError (JSON body in the standard format)
       instead of FastAPI's default 403.

    get_current_user                        any active user, password up to date
    get_current_user_allow_password_update  same, but flagged accounts pass
    require_admin                           nivel 1
    require_vistoriador                     nivel 1 or 2
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from app.models.usuario import Usuario
from app.services.auth_service import auth_service, decodificar_token

bearer_scheme = HTTPBearer(auto_error=False)


async def _usuario_do_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: AsyncSession,
) -> Usuario:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    payload = decodificar_token(credentials.credentials)
    try:
        usuario_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError(message="Token inválido ou expirado")

    try:
        usuario = await auth_service.get_usuario(db, usuario_id)
    except NotFoundError:
        raise AuthenticationError(message="Usuário não encontrado")

    if not usuario.ativo:
        raise PermissionDeniedError(message="Usuário inativo", code="USER_INACTIVE")
    return usuario


async def get_current_user_allow_password_update(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Usuario:
    return await _usuario_do_token(credentials, db)


async def get_current_user(
    usuario: Usuario = Depends(get_current_user_allow_password_update),
) -> Usuario:
    if usuario.deve_atualizar_senha:
        raise PermissionDeniedError(
            message="Você deve atualizar sua senha antes de continuar",
            code="PASSWORD_UPDATE_REQUIRED",
        )
    return usuario


async def require_admin(usuario: Usuario = Depends(get_current_user)) -> Usuario:
    if not usuario.is_admin:
        raise PermissionDeniedError(
            message="Acesso negado. Permissão de administrador necessária."
        )
    return usuario


async def require_vistoriador(usuario: Usuario = Depends(get_current_user)) -> Usuario:
    if not usuario.is_vistoriador:
        raise PermissionDeniedError(
            message="Acesso negado. Permissão de vistoriador necessária."
        )
    return usuario


def exigir_admin_ou_dono(usuario: Usuario, vistoriador_id: Optional[int]) -> None:
    """Admins see everything; inspectors only their own inspections."""
    if usuario.is_admin or usuario.id == vistoriador_id:
        return
    raise PermissionDeniedError(message="Acesso negado a esta vistoria")
