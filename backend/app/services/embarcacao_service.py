"""
Vistoria Naval API — Vessel Registry Service
==============================================

What:  CRUD for embarcacoes, plus the find-or-create by hull number used by
       the inspection wizard.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.cadastro import Cliente, Embarcacao
from app.schemas.cadastro import EmbarcacaoCreate, EmbarcacaoUpdate
from app.utils.validators import (
    converter_para_e164,
    limpar_cpf,
    limpar_valor_monetario,
    validar_cpf,
    validar_email,
    validar_telefone_e164,
    validar_valor_monetario,
)

logger = logging.getLogger(__name__)


async def _normalizar(db: AsyncSession, campos: Dict[str, Any]) -> Dict[str, Any]:
    if "valor_embarcacao" in campos and campos["valor_embarcacao"] is not None:
        valor = limpar_valor_monetario(campos["valor_embarcacao"])
        if not validar_valor_monetario(valor):
            raise ValidationError(message="Valor da embarcação inválido", field="valor_embarcacao")
        campos["valor_embarcacao"] = valor
    if campos.get("proprietario_cpf"):
        if not validar_cpf(campos["proprietario_cpf"]):
            raise ValidationError(message="CPF do proprietário inválido", field="proprietario_cpf")
        campos["proprietario_cpf"] = limpar_cpf(campos["proprietario_cpf"])
    if campos.get("proprietario_email") and not validar_email(campos["proprietario_email"]):
        raise ValidationError(message="Email do proprietário inválido", field="proprietario_email")
    if "proprietario_telefone" in campos:
        telefone = campos.pop("proprietario_telefone")
        if telefone:
            e164 = converter_para_e164(telefone)
            if not validar_telefone_e164(e164):
                raise ValidationError(
                    message="Telefone do proprietário inválido", field="proprietario_telefone"
                )
            campos["proprietario_telefone_e164"] = e164
        else:
            campos["proprietario_telefone_e164"] = None
    if campos.get("cliente_id") is not None and await db.get(Cliente, campos["cliente_id"]) is None:
        raise ValidationError(message="Cliente não encontrado", field="cliente_id")
    return campos


class EmbarcacaoService:

    async def listar(self, db: AsyncSession, cliente_id: Optional[int] = None) -> List[Embarcacao]:
        query = select(Embarcacao)
        if cliente_id is not None:
            query = query.where(Embarcacao.cliente_id == cliente_id)
        try:
            result = await db.execute(query.order_by(Embarcacao.nome))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list vessels: %s", str(e))
            raise DatabaseError(context={"operation": "listar_embarcacoes"})

    async def obter(self, db: AsyncSession, embarcacao_id: int) -> Embarcacao:
        embarcacao = await db.get(Embarcacao, embarcacao_id)
        if embarcacao is None:
            raise NotFoundError(resource="Embarcação", resource_id=str(embarcacao_id))
        return embarcacao

    async def buscar_por_casco(self, db: AsyncSession, numero_casco: str) -> Optional[Embarcacao]:
        result = await db.execute(
            select(Embarcacao).where(Embarcacao.numero_casco == numero_casco.strip())
        )
        return result.scalar_one_or_none()

    async def _exigir_casco_livre(
        self, db: AsyncSession, numero_casco: str, exceto_id: Optional[int] = None
    ) -> None:
        existente = await self.buscar_por_casco(db, numero_casco)
        if existente is not None and existente.id != exceto_id:
            raise ValidationError(
                message="Já existe uma embarcação com este número de casco",
                field="numero_casco",
            )

    async def criar(self, db: AsyncSession, dados: EmbarcacaoCreate) -> Embarcacao:
        campos = dados.model_dump()
        campos["nome"] = campos["nome"].strip()
        campos["numero_casco"] = campos["numero_casco"].strip()
        if not campos["nome"] or not campos["numero_casco"]:
            raise ValidationError(message="Campos obrigatórios: nome, numero_casco")
        await self._exigir_casco_livre(db, campos["numero_casco"])
        campos = await _normalizar(db, campos)

        embarcacao = Embarcacao(**campos)
        try:
            db.add(embarcacao)
            await db.flush()
            await db.refresh(embarcacao)
        except SQLAlchemyError as e:
            logger.error("Failed to create vessel: %s", str(e))
            raise DatabaseError(context={"operation": "criar_embarcacao"})
        logger.info("Vessel %s created (casco=%s)", embarcacao.id, embarcacao.numero_casco)
        return embarcacao

    async def atualizar(
        self, db: AsyncSession, embarcacao_id: int, dados: EmbarcacaoUpdate
    ) -> Embarcacao:
        embarcacao = await self.obter(db, embarcacao_id)
        campos = dados.model_dump(exclude_unset=True)
        if campos.get("numero_casco"):
            campos["numero_casco"] = campos["numero_casco"].strip()
            await self._exigir_casco_livre(db, campos["numero_casco"], exceto_id=embarcacao_id)
        campos = await _normalizar(db, campos)

        for chave, valor in campos.items():
            setattr(embarcacao, chave, valor)
        try:
            await db.flush()
            await db.refresh(embarcacao)
        except SQLAlchemyError as e:
            logger.error("Failed to update vessel %s: %s", embarcacao_id, str(e))
            raise DatabaseError(context={"embarcacao_id": embarcacao_id})
        return embarcacao

    async def deletar(self, db: AsyncSession, embarcacao_id: int) -> Embarcacao:
        embarcacao = await self.obter(db, embarcacao_id)
        try:
            await db.delete(embarcacao)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete vessel %s: %s", embarcacao_id, str(e))
            raise DatabaseError(
                message="Não foi possível excluir a embarcação. Verifique se há vistorias vinculadas.",
                context={"embarcacao_id": embarcacao_id},
            )
        return embarcacao

    async def obter_ou_criar(
        self,
        db: AsyncSession,
        numero_casco: str,
        nome: Optional[str] = None,
        **extras: Any,
    ) -> Embarcacao:
        """
        Returns the vessel with this hull number, creating it when missing.

        Existing vessels are returned untouched; nome is required only for
        a new one.
        """
        existente = await self.buscar_por_casco(db, numero_casco)
        if existente is not None:
            return existente
        if not nome or not nome.strip():
            raise ValidationError(
                message="Nome da embarcação é obrigatório para cadastrar uma nova embarcação",
                field="embarcacao.nome",
            )
        campos = {k: v for k, v in extras.items() if v is not None}
        campos = await _normalizar(db, campos)
        embarcacao = Embarcacao(nome=nome.strip(), numero_casco=numero_casco.strip(), **campos)
        db.add(embarcacao)
        await db.flush()
        logger.info("Vessel %s created from inspection wizard", embarcacao.id)
        return embarcacao


# ── Singleton Instance ────────────────────────────────────────────────────
embarcacao_service = EmbarcacaoService()
