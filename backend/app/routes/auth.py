"""
Vistoria Naval API — Authentication Routes
============================================

What:  /api/auth: registration, login, current user, password changes and
       the administrator's user-level maintenance.
Who:   Called by the login screen, the forced password-change screen and
       the admin users page.

Password Flags:
    An administrator-set or temporary password sets deve_atualizar_senha.
    While it is set, every route except /force-password-update,
    /password-status and /me answers 403 PASSWORD_UPDATE_REQUIRED.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import (
    get_current_user,
    get_current_user_allow_password_update,
    require_admin,
)
from app.exceptions import AuthenticationError, PermissionDeniedError
from app.models.usuario import Usuario
from app.schemas.auth import (
    AdminPasswordRequest,
    ChangePasswordRequest,
    ForcePasswordUpdateRequest,
    LoginRequest,
    PasswordStatusResponse,
    RegisterRequest,
    RoleUpdateRequest,
    TempPasswordRequest,
    TempPasswordResponse,
    TokenResponse,
    UsuarioResponse,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.audit_service import audit_service
from app.services.auth_service import auth_service, criar_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _token_response(usuario: Usuario, message: str) -> TokenResponse:
    return TokenResponse(
        message=message,
        token=criar_token(usuario),
        usuario=UsuarioResponse.model_validate(usuario),
        deve_atualizar_senha=usuario.deve_atualizar_senha,
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    summary="Register a new user",
)
async def register(
    dados: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    usuario = await auth_service.registrar(
        db, dados.nome, dados.email, dados.senha
    )
    await audit_service.registrar(
        db,
        acao="CREATE",
        entidade="Usuario",
        entidade_id=usuario.id,
        usuario=usuario,
        dados_novos={"nome": usuario.nome, "email": usuario.email},
        request=request,
        detalhes="Auto-registro",
    )
    return _token_response(usuario, "Usuário criado com sucesso")


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Exchange email and password for a JWT",
)
async def login(
    dados: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    """
    Failed attempts are audited too. The session rolls back when the
    request raises, so the LOGIN_FAILED entry is committed before the
    error propagates.
    """
    try:
        usuario = await auth_service.login(db, dados.email, dados.senha)
    except (AuthenticationError, PermissionDeniedError) as e:
        await audit_service.registrar(
            db,
            acao="LOGIN_FAILED",
            entidade="Usuario",
            request=request,
            nivel_critico=True,
            detalhes=e.message,
            usuario_email=dados.email.strip().lower(),
        )
        await db.commit()
        raise

    await audit_service.registrar(
        db, acao="LOGIN", entidade="Usuario", entidade_id=usuario.id, usuario=usuario,
        request=request,
    )
    logger.info("User %s logged in", usuario.id)
    return _token_response(usuario, "Login realizado com sucesso")


@router.get("/me", response_model=UsuarioResponse, summary="Current user")
async def me(
    usuario: Usuario = Depends(get_current_user_allow_password_update),
) -> UsuarioResponse:
    return UsuarioResponse.model_validate(usuario)


@router.post("/logout", response_model=MessageResponse, summary="Logout")
async def logout(
    request: Request,
    usuario: Usuario = Depends(get_current_user_allow_password_update),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    # Tokens are stateless; the client discards its copy
    await audit_service.registrar(
        db, acao="LOGOUT", entidade="Usuario", entidade_id=usuario.id, usuario=usuario,
        request=request,
    )
    return MessageResponse(message="Logout realizado com sucesso")


@router.put("/change-password", response_model=MessageResponse, summary="Change own password")
async def change_password(
    dados: ChangePasswordRequest,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.alterar_senha(db, usuario, dados.senha_atual, dados.nova_senha)
    await audit_service.registrar(
        db, acao="PASSWORD_CHANGE", entidade="Usuario", entidade_id=usuario.id,
        usuario=usuario, request=request,
    )
    return MessageResponse(message="Senha alterada com sucesso")


@router.post(
    "/force-password-update",
    response_model=MessageResponse,
    summary="Complete a mandatory password change",
)
async def force_password_update(
    dados: ForcePasswordUpdateRequest,
    request: Request,
    usuario: Usuario = Depends(get_current_user_allow_password_update),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.forcar_atualizacao_senha(db, usuario, dados.nova_senha)
    await audit_service.registrar(
        db, acao="PASSWORD_CHANGE", entidade="Usuario", entidade_id=usuario.id,
        usuario=usuario, request=request, detalhes="Atualização obrigatória de senha",
    )
    return MessageResponse(message="Senha atualizada com sucesso")


@router.get("/password-status", response_model=PasswordStatusResponse)
async def password_status(
    usuario: Usuario = Depends(get_current_user_allow_password_update),
) -> PasswordStatusResponse:
    return PasswordStatusResponse(
        deve_atualizar_senha=usuario.deve_atualizar_senha,
        usuario_id=usuario.id,
        message=(
            "Você deve atualizar sua senha antes de continuar"
            if usuario.deve_atualizar_senha
            else "Senha está atualizada"
        ),
    )


# ── Administrator user maintenance ───────────────────────────────────────


@router.get("/users", response_model=List[UsuarioResponse], summary="List users (admin)")
async def list_users(
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[UsuarioResponse]:
    usuarios = await auth_service.listar_usuarios(db)
    return [UsuarioResponse.model_validate(u) for u in usuarios]


@router.put("/users/{usuario_id}/role", response_model=UsuarioResponse)
async def update_role(
    usuario_id: int,
    dados: RoleUpdateRequest,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UsuarioResponse:
    alvo = await auth_service.get_usuario(db, usuario_id)
    nivel_anterior = alvo.nivel_acesso_id
    usuario = await auth_service.atualizar_nivel(db, usuario_id, dados.nivel_acesso_id)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Usuario", entidade_id=usuario_id, usuario=admin,
        dados_anteriores={"nivel_acesso_id": nivel_anterior},
        dados_novos={"nivel_acesso_id": dados.nivel_acesso_id},
        request=request, nivel_critico=True,
    )
    return UsuarioResponse.model_validate(usuario)


@router.put("/users/{usuario_id}/password", response_model=MessageResponse)
async def set_user_password(
    usuario_id: int,
    dados: AdminPasswordRequest,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.definir_senha(db, usuario_id, dados.nova_senha)
    await audit_service.registrar(
        db, acao="PASSWORD_CHANGE", entidade="Usuario", entidade_id=usuario_id,
        usuario=admin, request=request, nivel_critico=True,
        detalhes="Senha definida pelo administrador",
    )
    return MessageResponse(message="Senha atualizada. O usuário deverá alterá-la no próximo login")


@router.post("/users/{usuario_id}/temp-password", response_model=TempPasswordResponse)
async def set_temp_password(
    usuario_id: int,
    request: Request,
    dados: TempPasswordRequest = TempPasswordRequest(),
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> TempPasswordResponse:
    senha = await auth_service.definir_senha_temporaria(
        db, usuario_id, dados.senha_temporaria
    )
    await audit_service.registrar(
        db, acao="PASSWORD_CHANGE", entidade="Usuario", entidade_id=usuario_id,
        usuario=admin, request=request, nivel_critico=True,
        detalhes="Senha temporária gerada",
    )
    return TempPasswordResponse(
        message="Senha temporária definida. Informe-a ao usuário.",
        senha_temporaria=senha,
    )
