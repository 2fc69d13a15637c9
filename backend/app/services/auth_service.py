"""
Vistoria Naval API — Authentication Service
=============================================

What:  Password hashing, JWT issuing/verification and the account flows
       behind /api/auth (register, login, password changes, roles).
How:   passlib CryptContext (pbkdf2_sha256) for hashes, python-jose for
       HS256 tokens. The service never touches HTTP; routes translate its
       results into responses and audit entries.

Token payload:
    {
        "sub": "42",                 # user id, as a string
        "email": "ana@example.com",
        "nome": "Ana",
        "nivel_acesso": "VISTORIADOR",
        "nivel_acesso_id": 2,
        "exp": 1700086400
    }
"""

import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    AuthenticationError,
    BusinessRuleError,
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.models.usuario import NIVEL_VISTORIADOR, NivelAcesso, Usuario
from app.utils.validators import validar_email, validar_senha_forte

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_ALFABETO_SENHA = string.ascii_letters + string.digits


# ══════════════════════════════════════════════════════════════════════════
# Hashing & Tokens
# ══════════════════════════════════════════════════════════════════════════


def hash_senha(senha: str) -> str:
    return pwd_context.hash(senha)


def verificar_senha(senha: str, senha_hash: str) -> bool:
    try:
        return pwd_context.verify(senha, senha_hash)
    except ValueError:
        # Unrecognized hash format
        return False


def gerar_senha_temporaria(tamanho: int = 10) -> str:
    return "".join(secrets.choice(_ALFABETO_SENHA) for _ in range(tamanho))


def criar_token(usuario: Usuario, expira_em: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expira_em or timedelta(hours=settings.jwt_expiration_hours)
    )
    payload = {
        "sub": str(usuario.id),
        "email": usuario.email,
        "nome": usuario.nome,
        "nivel_acesso": usuario.nivel_acesso.nome if usuario.nivel_acesso else None,
        "nivel_acesso_id": usuario.nivel_acesso_id,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decodificar_token(token: str) -> Dict[str, Any]:
    """
    Verifies signature and expiry.

    Raises:
        AuthenticationError: bad signature, expired, or no subject
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info("Rejected token: %s", str(e))
        raise AuthenticationError(message="Token inválido ou expirado")
    if not payload.get("sub"):
        raise AuthenticationError(message="Token inválido ou expirado")
    return payload


def exigir_senha_forte(senha: str) -> None:
    erros = validar_senha_forte(senha)
    if erros:
        raise ValidationError(
            message="Senha não atende aos critérios",
            field="nova_senha",
            context={"criterios": erros},
        )


# ══════════════════════════════════════════════════════════════════════════
# Account Flows
# ══════════════════════════════════════════════════════════════════════════


class AuthService:
    """Account operations. Every method takes the request's AsyncSession."""

    async def get_usuario(self, db: AsyncSession, usuario_id: int) -> Usuario:
        try:
            result = await db.execute(select(Usuario).where(Usuario.id == usuario_id))
            usuario = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Failed to load user %s: %s", usuario_id, str(e))
            raise DatabaseError(context={"usuario_id": usuario_id})
        if usuario is None:
            raise NotFoundError(resource="Usuário", resource_id=str(usuario_id))
        return usuario

    async def get_usuario_por_email(self, db: AsyncSession, email: str) -> Optional[Usuario]:
        try:
            result = await db.execute(
                select(Usuario).where(Usuario.email == email.strip().lower())
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Failed to look up user by email: %s", str(e))
            raise DatabaseError(context={"operation": "get_usuario_por_email"})

    async def _exigir_nivel(self, db: AsyncSession, nivel_acesso_id: int) -> NivelAcesso:
        nivel = await db.get(NivelAcesso, nivel_acesso_id)
        if nivel is None:
            raise ValidationError(
                message="Nível de acesso não encontrado", field="nivel_acesso_id"
            )
        return nivel

    async def registrar(
        self,
        db: AsyncSession,
        nome: str,
        email: str,
        senha: str,
    ) -> Usuario:
        """Public self-registration: the account is always a VISTORIADOR."""
        email = email.strip().lower()
        if not nome.strip():
            raise ValidationError(message="Nome, email e senha são obrigatórios", field="nome")
        if not validar_email(email):
            raise ValidationError(message="Email inválido", field="email")
        if await self.get_usuario_por_email(db, email) is not None:
            raise ValidationError(message="Email já cadastrado", field="email")

        nivel_id = NIVEL_VISTORIADOR
        await self._exigir_nivel(db, nivel_id)

        usuario = Usuario(
            nome=nome.strip(),
            email=email,
            senha_hash=hash_senha(senha),
            nivel_acesso_id=nivel_id,
            ativo=True,
            deve_atualizar_senha=False,
        )
        try:
            db.add(usuario)
            await db.flush()
            await db.refresh(usuario)
        except SQLAlchemyError as e:
            logger.error("Failed to register user %s: %s", email, str(e))
            raise DatabaseError(context={"operation": "registrar"})

        logger.info("User registered: id=%s nivel=%s", usuario.id, nivel_id)
        return usuario

    async def login(self, db: AsyncSession, email: str, senha: str) -> Usuario:
        """
        Returns the authenticated user.

        Raises:
            AuthenticationError: unknown email or wrong password
            PermissionDeniedError: account deactivated
        """
        usuario = await self.get_usuario_por_email(db, email)
        if usuario is None:
            raise AuthenticationError(message="Email não cadastrado no sistema")
        if not verificar_senha(senha, usuario.senha_hash):
            raise AuthenticationError(message="Senha incorreta")
        if not usuario.ativo:
            raise PermissionDeniedError(message="Usuário inativo", code="USER_INACTIVE")
        return usuario

    async def alterar_senha(
        self, db: AsyncSession, usuario: Usuario, senha_atual: str, nova_senha: str
    ) -> None:
        if len(nova_senha) < 6:
            raise ValidationError(
                message="Nova senha deve ter pelo menos 6 caracteres", field="nova_senha"
            )
        if not verificar_senha(senha_atual, usuario.senha_hash):
            raise AuthenticationError(message="Senha atual incorreta")
        usuario.senha_hash = hash_senha(nova_senha)
        usuario.deve_atualizar_senha = False
        await db.flush()

    async def forcar_atualizacao_senha(
        self, db: AsyncSession, usuario: Usuario, nova_senha: str
    ) -> Usuario:
        """Completes the mandatory password change of a flagged account."""
        exigir_senha_forte(nova_senha)
        if not usuario.deve_atualizar_senha:
            raise BusinessRuleError(message="Usuário não precisa atualizar senha")
        usuario.senha_hash = hash_senha(nova_senha)
        usuario.deve_atualizar_senha = False
        await db.flush()
        return usuario

    async def listar_usuarios(self, db: AsyncSession) -> List[Usuario]:
        try:
            result = await db.execute(select(Usuario).order_by(Usuario.nome))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list users: %s", str(e))
            raise DatabaseError(context={"operation": "listar_usuarios"})

    async def atualizar_nivel(
        self, db: AsyncSession, usuario_id: int, nivel_acesso_id: int
    ) -> Usuario:
        await self._exigir_nivel(db, nivel_acesso_id)
        usuario = await self.get_usuario(db, usuario_id)
        usuario.nivel_acesso_id = nivel_acesso_id
        await db.flush()
        await db.refresh(usuario)
        return usuario

    async def definir_senha(
        self, db: AsyncSession, usuario_id: int, nova_senha: str
    ) -> Usuario:
        """Administrator sets a password; the user must change it at next login."""
        exigir_senha_forte(nova_senha)
        usuario = await self.get_usuario(db, usuario_id)
        usuario.senha_hash = hash_senha(nova_senha)
        usuario.deve_atualizar_senha = True
        await db.flush()
        return usuario

    async def definir_senha_temporaria(
        self, db: AsyncSession, usuario_id: int, senha_temporaria: Optional[str] = None
    ) -> str:
        """Returns the temporary password; it is not retrievable afterwards."""
        usuario = await self.get_usuario(db, usuario_id)
        senha = senha_temporaria or gerar_senha_temporaria()
        usuario.senha_hash = hash_senha(senha)
        usuario.deve_atualizar_senha = True
        await db.flush()
        logger.info("Temporary password set for user %s", usuario_id)
        return senha


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
