"""Inspection site registry (marinas and residences)."""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError
from app.models.cadastro import Local
from app.schemas.cadastro import LocalCreate, LocalUpdate
from app.services.cliente_service import normalizar_endereco

logger = logging.getLogger(__name__)


class LocalService:

    async def listar(self, db: AsyncSession) -> List[Local]:
        try:
            result = await db.execute(select(Local).order_by(Local.nome_local))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list locations: %s", str(e))
            raise DatabaseError(context={"operation": "listar_locais"})

    async def obter(self, db: AsyncSession, local_id: int) -> Local:
        local = await db.get(Local, local_id)
        if local is None:
            raise NotFoundError(resource="Local", resource_id=str(local_id))
        return local

    async def criar(self, db: AsyncSession, dados: LocalCreate) -> Local:
        campos = normalizar_endereco(dados.model_dump())
        local = Local(**campos)
        db.add(local)
        await db.flush()
        await db.refresh(local)
        return local

    async def atualizar(self, db: AsyncSession, local_id: int, dados: LocalUpdate) -> Local:
        local = await self.obter(db, local_id)
        campos = normalizar_endereco(dados.model_dump(exclude_unset=True))
        for chave, valor in campos.items():
            setattr(local, chave, valor)
        await db.flush()
        await db.refresh(local)
        return local

    async def deletar(self, db: AsyncSession, local_id: int) -> Local:
        local = await self.obter(db, local_id)
        try:
            await db.delete(local)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete location %s: %s", local_id, str(e))
            raise DatabaseError(
                message="Não foi possível excluir o local. Verifique se há vistorias vinculadas.",
                context={"local_id": local_id},
            )
        return local


local_service = LocalService()
