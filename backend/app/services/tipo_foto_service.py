"""Photo type registry (CASCO, MOTOR, PROA, ...)."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, ValidationError
from app.models.vistoria import TipoFotoChecklist
from app.schemas.cadastro import TipoFotoCreate, TipoFotoUpdate

logger = logging.getLogger(__name__)


class TipoFotoService:

    async def listar(self, db: AsyncSession) -> List[TipoFotoChecklist]:
        result = await db.execute(select(TipoFotoChecklist).order_by(TipoFotoChecklist.codigo))
        return list(result.scalars().all())

    async def listar_obrigatorios(self, db: AsyncSession) -> List[TipoFotoChecklist]:
        result = await db.execute(
            select(TipoFotoChecklist)
            .where(TipoFotoChecklist.obrigatorio.is_(True))
            .order_by(TipoFotoChecklist.codigo)
        )
        return list(result.scalars().all())

    async def obter(self, db: AsyncSession, tipo_id: int) -> TipoFotoChecklist:
        tipo = await db.get(TipoFotoChecklist, tipo_id)
        if tipo is None:
            raise NotFoundError(resource="Tipo de foto", resource_id=str(tipo_id))
        return tipo

    async def _exigir_codigo_livre(
        self, db: AsyncSession, codigo: str, exceto_id: Optional[int] = None
    ) -> None:
        query = select(TipoFotoChecklist.id).where(TipoFotoChecklist.codigo == codigo)
        if exceto_id is not None:
            query = query.where(TipoFotoChecklist.id != exceto_id)
        if (await db.execute(query)).first() is not None:
            raise ValidationError(message="Código já existe", field="codigo")

    async def criar(self, db: AsyncSession, dados: TipoFotoCreate) -> TipoFotoChecklist:
        codigo = dados.codigo.strip().upper()
        if not codigo or not dados.nome_exibicao.strip():
            raise ValidationError(message="Código e nome de exibição são obrigatórios")
        await self._exigir_codigo_livre(db, codigo)
        tipo = TipoFotoChecklist(
            codigo=codigo,
            nome_exibicao=dados.nome_exibicao.strip(),
            descricao=dados.descricao,
            obrigatorio=dados.obrigatorio,
        )
        db.add(tipo)
        await db.flush()
        await db.refresh(tipo)
        logger.info("Photo type %s created", codigo)
        return tipo

    async def atualizar(
        self, db: AsyncSession, tipo_id: int, dados: TipoFotoUpdate
    ) -> TipoFotoChecklist:
        tipo = await self.obter(db, tipo_id)
        campos = dados.model_dump(exclude_unset=True)
        if campos.get("codigo"):
            campos["codigo"] = campos["codigo"].strip().upper()
            await self._exigir_codigo_livre(db, campos["codigo"], exceto_id=tipo_id)
        for chave, valor in campos.items():
            if valor is not None:
                setattr(tipo, chave, valor)
        await db.flush()
        await db.refresh(tipo)
        return tipo

    async def deletar(self, db: AsyncSession, tipo_id: int) -> TipoFotoChecklist:
        tipo = await self.obter(db, tipo_id)
        await db.delete(tipo)
        await db.flush()
        return tipo


tipo_foto_service = TipoFotoService()
