"""
Vistoria Naval API — User Administration Service
==================================================

What:  Administrator maintenance of user accounts (/api/usuarios).
Why:   Inspectors do not self-register in production; an administrator
       creates them with the default password and the account is flagged
       so the first login forces a password change.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import BusinessRuleError, DatabaseError, ValidationError
from app.models.usuario import NivelAcesso, Usuario
from app.models.vistoria import Vistoria
from app.schemas.auth import UsuarioCreate, UsuarioUpdate
from app.services.auth_service import auth_service, hash_senha
from app.utils.validators import (
    converter_para_e164,
    limpar_cpf,
    validar_cpf,
    validar_email,
    validar_telefone_e164,
)

logger = logging.getLogger(__name__)


def _normalizar_cpf(cpf: Optional[str]) -> Optional[str]:
    if not cpf:
        return None
    if not validar_cpf(cpf):
        raise ValidationError(message="CPF inválido", field="cpf")
    return limpar_cpf(cpf)


def _normalizar_telefone(telefone: Optional[str]) -> Optional[str]:
    if not telefone:
        return None
    e164 = converter_para_e164(telefone)
    if not validar_telefone_e164(e164):
        raise ValidationError(message="Telefone inválido", field="telefone")
    return e164


class UsuarioService:

    async def listar(self, db: AsyncSession) -> List[Usuario]:
        return await auth_service.listar_usuarios(db)

    async def obter(self, db: AsyncSession, usuario_id: int) -> Usuario:
        return await auth_service.get_usuario(db, usuario_id)

    async def _email_em_uso(
        self, db: AsyncSession, email: str, exceto_id: Optional[int] = None
    ) -> bool:
        query = select(Usuario.id).where(Usuario.email == email)
        if exceto_id is not None:
            query = query.where(Usuario.id != exceto_id)
        return (await db.execute(query)).scalar_one_or_none() is not None

    async def _exigir_nivel(self, db: AsyncSession, nivel_acesso_id: int) -> None:
        if await db.get(NivelAcesso, nivel_acesso_id) is None:
            raise ValidationError(message="Nível de acesso não encontrado", field="nivel_acesso_id")

    async def criar(self, db: AsyncSession, dados: UsuarioCreate) -> Usuario:
        email = dados.email.strip().lower()
        if not validar_email(email):
            raise ValidationError(message="Formato de email inválido", field="email")
        if await self._email_em_uso(db, email):
            raise ValidationError(message="Email já cadastrado", field="email")
        await self._exigir_nivel(db, dados.nivel_acesso_id)

        usuario = Usuario(
            nome=dados.nome.strip(),
            email=email,
            senha_hash=hash_senha(settings.senha_padrao_usuario),
            nivel_acesso_id=dados.nivel_acesso_id,
            ativo=True,
            deve_atualizar_senha=True,
            cpf=_normalizar_cpf(dados.cpf),
            telefone_e164=_normalizar_telefone(dados.telefone),
        )
        try:
            db.add(usuario)
            await db.flush()
            await db.refresh(usuario)
        except SQLAlchemyError as e:
            logger.error("Failed to create user %s: %s", email, str(e))
            raise DatabaseError(context={"operation": "criar_usuario"})
        logger.info("User %s created by administrator", usuario.id)
        return usuario

    async def atualizar(self, db: AsyncSession, usuario_id: int, dados: UsuarioUpdate) -> Usuario:
        usuario = await self.obter(db, usuario_id)
        campos = dados.model_dump(exclude_unset=True)

        if "email" in campos and campos["email"] is not None:
            email = campos["email"].strip().lower()
            if not validar_email(email):
                raise ValidationError(message="Formato de email inválido", field="email")
            if await self._email_em_uso(db, email, exceto_id=usuario_id):
                raise ValidationError(message="Email já cadastrado", field="email")
            usuario.email = email
        if campos.get("nivel_acesso_id") is not None:
            await self._exigir_nivel(db, campos["nivel_acesso_id"])
            usuario.nivel_acesso_id = campos["nivel_acesso_id"]
        if campos.get("nome"):
            usuario.nome = campos["nome"].strip()
        if campos.get("ativo") is not None:
            usuario.ativo = campos["ativo"]
        if "cpf" in campos:
            usuario.cpf = _normalizar_cpf(campos["cpf"])
        if "telefone" in campos:
            usuario.telefone_e164 = _normalizar_telefone(campos["telefone"])

        try:
            await db.flush()
            await db.refresh(usuario)
        except SQLAlchemyError as e:
            logger.error("Failed to update user %s: %s", usuario_id, str(e))
            raise DatabaseError(context={"usuario_id": usuario_id})
        return usuario

    async def deletar(self, db: AsyncSession, usuario_id: int) -> Usuario:
        usuario = await self.obter(db, usuario_id)
        vinculadas = (
            await db.execute(
                select(func.count(Vistoria.id)).where(
                    (Vistoria.vistoriador_id == usuario_id)
                    | (Vistoria.administrador_id == usuario_id)
                )
            )
        ).scalar() or 0
        if vinculadas:
            raise BusinessRuleError(
                message="Usuário possui vistorias vinculadas. Desative-o em vez de excluir.",
                context={"vistorias": vinculadas},
            )
        await db.delete(usuario)
        await db.flush()
        logger.info("User %s deleted", usuario_id)
        return usuario

    async def resetar_senha(self, db: AsyncSession, usuario_id: int, nova_senha: str) -> Usuario:
        return await auth_service.definir_senha(db, usuario_id, nova_senha)

    async def alternar_status(self, db: AsyncSession, usuario_id: int) -> Usuario:
        usuario = await self.obter(db, usuario_id)
        usuario.ativo = not usuario.ativo
        await db.flush()
        return usuario


# ── Singleton Instance ────────────────────────────────────────────────────
usuario_service = UsuarioService()
