"""
Vistoria Naval API — Insurer Registry Service
===============================================

What:  CRUD for seguradoras and the vessel types each one accepts.
How:   tipos_permitidos is replaced wholesale on create/update; the
       delete-orphan cascade removes the link rows that were dropped.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.cadastro import Seguradora, SeguradoraTipoEmbarcacao
from app.schemas.cadastro import SeguradoraCreate, SeguradoraUpdate

logger = logging.getLogger(__name__)


class SeguradoraService:

    async def listar(self, db: AsyncSession, ativo: Optional[bool] = None) -> List[Seguradora]:
        query = select(Seguradora)
        if ativo is not None:
            query = query.where(Seguradora.ativo == ativo)
        try:
            result = await db.execute(query.order_by(Seguradora.nome))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list insurers: %s", str(e))
            raise DatabaseError(context={"operation": "listar_seguradoras"})

    async def obter(self, db: AsyncSession, seguradora_id: int) -> Seguradora:
        seguradora = await db.get(Seguradora, seguradora_id)
        if seguradora is None:
            raise NotFoundError(resource="Seguradora", resource_id=str(seguradora_id))
        return seguradora

    async def _exigir_nome_livre(
        self, db: AsyncSession, nome: str, exceto_id: Optional[int] = None
    ) -> None:
        query = select(Seguradora.id).where(Seguradora.nome == nome)
        if exceto_id is not None:
            query = query.where(Seguradora.id != exceto_id)
        if (await db.execute(query)).first() is not None:
            raise ValidationError(message="Já existe uma seguradora com este nome", field="nome")

    @staticmethod
    def _substituir_tipos(seguradora: Seguradora, tipos: List[str]) -> None:
        # Rows for types that stay are reused so the unique (seguradora, tipo)
        # pair is never inserted while the old row still exists
        atuais = {t.tipo_embarcacao: t for t in seguradora.tipos_permitidos}
        seguradora.tipos_permitidos = [
            atuais.get(tipo) or SeguradoraTipoEmbarcacao(tipo_embarcacao=tipo)
            for tipo in dict.fromkeys(tipos)
        ]

    async def criar(self, db: AsyncSession, dados: SeguradoraCreate) -> Seguradora:
        nome = dados.nome.strip()
        if not nome:
            raise ValidationError(message="Nome é obrigatório", field="nome")
        await self._exigir_nome_livre(db, nome)

        seguradora = Seguradora(nome=nome, ativo=dados.ativo)
        self._substituir_tipos(seguradora, list(dados.tipos_permitidos))
        try:
            db.add(seguradora)
            await db.flush()
            await db.refresh(seguradora)
        except SQLAlchemyError as e:
            logger.error("Failed to create insurer: %s", str(e))
            raise DatabaseError(context={"operation": "criar_seguradora"})
        return seguradora

    async def atualizar(
        self, db: AsyncSession, seguradora_id: int, dados: SeguradoraUpdate
    ) -> Seguradora:
        seguradora = await self.obter(db, seguradora_id)
        if dados.nome is not None:
            nome = dados.nome.strip()
            await self._exigir_nome_livre(db, nome, exceto_id=seguradora_id)
            seguradora.nome = nome
        if dados.ativo is not None:
            seguradora.ativo = dados.ativo
        if dados.tipos_permitidos is not None:
            self._substituir_tipos(seguradora, list(dados.tipos_permitidos))
        try:
            await db.flush()
            await db.refresh(seguradora)
        except SQLAlchemyError as e:
            logger.error("Failed to update insurer %s: %s", seguradora_id, str(e))
            raise DatabaseError(context={"seguradora_id": seguradora_id})
        return seguradora

    async def tipos_permitidos(self, db: AsyncSession, seguradora_id: int) -> List[str]:
        seguradora = await self.obter(db, seguradora_id)
        return [t.tipo_embarcacao for t in seguradora.tipos_permitidos]

    async def deletar(self, db: AsyncSession, seguradora_id: int) -> Seguradora:
        seguradora = await self.obter(db, seguradora_id)
        await db.delete(seguradora)
        await db.flush()
        return seguradora

    async def alternar_status(self, db: AsyncSession, seguradora_id: int) -> Seguradora:
        seguradora = await self.obter(db, seguradora_id)
        seguradora.ativo = not seguradora.ativo
        await db.flush()
        return seguradora


seguradora_service = SeguradoraService()
