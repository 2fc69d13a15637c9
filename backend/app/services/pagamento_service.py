"""
Vistoria Naval API — Payment Batch Service
============================================

What:  Generation and settlement of inspector payment batches (lotes).
Why:   Inspectors are paid for concluded inspections in periodic batches;
       an inspection must never be paid twice.

Batch Lifecycle:
    gerar ──▶ PENDENTE ──pagar──▶ PAGO        (final; cannot cancel/delete)
                 │
                 └──cancelar──▶ CANCELADO     (inspections become available again)

Eligibility:
    vistoriador matches, data_conclusao inside [data_inicio, data_fim]
    (whole days), valor_vistoriador > 0, and not linked to a PENDENTE or
    PAGO batch.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import BusinessRuleError, DatabaseError, NotFoundError, ValidationError
from app.models.mixins import utcnow
from app.models.pagamento import (
    LOTE_CANCELADO,
    LOTE_PAGO,
    LOTE_PENDENTE,
    LotePagamento,
    VistoriaLotePagamento,
)
from app.models.usuario import Usuario
from app.models.vistoria import Vistoria
from app.schemas.pagamento import (
    GerarLoteRequest,
    PagarLoteRequest,
    ResumoGeralResponse,
    ResumoStatus,
    VistoriasDisponiveisResponse,
)
from app.schemas.vistoria import VistoriaResponse

logger = logging.getLogger(__name__)


def inicio_do_dia(dia: date) -> datetime:
    return datetime.combine(dia, time.min, tzinfo=timezone.utc)


def somar_valores(vistorias: Iterable[Vistoria]) -> Decimal:
    return sum((Decimal(v.valor_vistoriador or 0) for v in vistorias), Decimal("0.00"))


def _ids_em_lote_ativo():
    """Subquery: inspection ids already in a PENDENTE or PAGO batch."""
    return (
        select(VistoriaLotePagamento.vistoria_id)
        .join(LotePagamento, LotePagamento.id == VistoriaLotePagamento.lote_pagamento_id)
        .where(LotePagamento.status.in_((LOTE_PENDENTE, LOTE_PAGO)))
    )


class PagamentoService:

    async def listar(
        self,
        db: AsyncSession,
        periodo_tipo: Optional[str] = None,
        status: Optional[str] = None,
        vistoriador_id: Optional[int] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
    ) -> List[LotePagamento]:
        query = select(LotePagamento)
        if periodo_tipo:
            query = query.where(LotePagamento.periodo_tipo == periodo_tipo)
        if status:
            query = query.where(LotePagamento.status == status)
        if vistoriador_id:
            query = query.where(LotePagamento.vistoriador_id == vistoriador_id)
        if data_inicio:
            query = query.where(LotePagamento.data_inicio >= data_inicio)
        if data_fim:
            query = query.where(LotePagamento.data_fim <= data_fim)
        try:
            result = await db.execute(query.order_by(LotePagamento.created_at.desc()))
            return list(result.unique().scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list payment batches: %s", str(e))
            raise DatabaseError(context={"operation": "listar_lotes"})

    async def obter(self, db: AsyncSession, lote_id: int) -> LotePagamento:
        lote = await db.get(LotePagamento, lote_id)
        if lote is None:
            raise NotFoundError(resource="Lote de pagamento", resource_id=str(lote_id))
        return lote

    async def vistorias_elegiveis(
        self,
        db: AsyncSession,
        vistoriador_id: int,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
    ) -> List[Vistoria]:
        """Concluded, priced inspections of the inspector not yet in an active batch."""
        query = select(Vistoria).where(
            Vistoria.vistoriador_id == vistoriador_id,
            Vistoria.data_conclusao.is_not(None),
            Vistoria.valor_vistoriador.is_not(None),
            Vistoria.valor_vistoriador > 0,
            Vistoria.id.not_in(_ids_em_lote_ativo()),
        )
        if data_inicio:
            query = query.where(Vistoria.data_conclusao >= inicio_do_dia(data_inicio))
        if data_fim:
            query = query.where(
                Vistoria.data_conclusao < inicio_do_dia(data_fim + timedelta(days=1))
            )
        result = await db.execute(query.order_by(Vistoria.data_conclusao.desc()))
        return list(result.unique().scalars().all())

    async def disponiveis(
        self,
        db: AsyncSession,
        vistoriador_id: int,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
    ) -> VistoriasDisponiveisResponse:
        vistorias = await self.vistorias_elegiveis(db, vistoriador_id, data_inicio, data_fim)
        return VistoriasDisponiveisResponse(
            vistorias=[VistoriaResponse.model_validate(v) for v in vistorias],
            quantidade=len(vistorias),
            valor_total=float(somar_valores(vistorias)),
        )

    async def gerar(self, db: AsyncSession, dados: GerarLoteRequest) -> LotePagamento:
        if dados.data_fim < dados.data_inicio:
            raise ValidationError(
                message="data_fim deve ser igual ou posterior a data_inicio", field="data_fim"
            )
        if await db.get(Usuario, dados.vistoriador_id) is None:
            raise NotFoundError(resource="Vistoriador", resource_id=str(dados.vistoriador_id))

        vistorias = await self.vistorias_elegiveis(
            db, dados.vistoriador_id, dados.data_inicio, dados.data_fim
        )
        if not vistorias:
            raise BusinessRuleError(
                message="Não há vistorias disponíveis para pagamento neste período",
                context={"vistoriador_id": dados.vistoriador_id},
            )

        lote = LotePagamento(
            vistoriador_id=dados.vistoriador_id,
            periodo_tipo=dados.periodo_tipo,
            data_inicio=dados.data_inicio,
            data_fim=dados.data_fim,
            quantidade_vistorias=len(vistorias),
            valor_total=somar_valores(vistorias),
            status=LOTE_PENDENTE,
            vistorias=[
                VistoriaLotePagamento(vistoria_id=v.id, valor_vistoriador=v.valor_vistoriador)
                for v in vistorias
            ],
        )
        try:
            db.add(lote)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create payment batch: %s", str(e))
            raise DatabaseError(context={"vistoriador_id": dados.vistoriador_id})

        logger.info(
            "Payment batch %s created for inspector %s: %d inspections, total %s",
            lote.id,
            lote.vistoriador_id,
            lote.quantidade_vistorias,
            lote.valor_total,
        )
        return await self._recarregar(db, lote.id)

    async def pagar(
        self, db: AsyncSession, lote_id: int, dados: PagarLoteRequest, usuario: Usuario
    ) -> LotePagamento:
        lote = await self.obter(db, lote_id)
        if lote.status == LOTE_PAGO:
            raise BusinessRuleError(message="Este lote já foi pago")
        if lote.status == LOTE_CANCELADO:
            raise BusinessRuleError(message="Este lote foi cancelado")

        lote.status = LOTE_PAGO
        lote.data_pagamento = utcnow()
        lote.forma_pagamento = dados.forma_pagamento or None
        lote.comprovante_url = dados.comprovante_url or None
        lote.observacoes = dados.observacoes or None
        lote.pago_por_id = usuario.id
        await db.flush()
        logger.info("Payment batch %s paid by user %s", lote_id, usuario.id)
        return await self._recarregar(db, lote_id)

    async def cancelar(
        self, db: AsyncSession, lote_id: int, observacoes: Optional[str] = None
    ) -> LotePagamento:
        lote = await self.obter(db, lote_id)
        if lote.status == LOTE_PAGO:
            raise BusinessRuleError(message="Não é possível cancelar um lote já pago")
        lote.status = LOTE_CANCELADO
        if observacoes:
            lote.observacoes = observacoes
        await db.flush()
        logger.info("Payment batch %s cancelled", lote_id)
        return await self._recarregar(db, lote_id)

    async def deletar(self, db: AsyncSession, lote_id: int) -> LotePagamento:
        lote = await self.obter(db, lote_id)
        if lote.status == LOTE_PAGO:
            raise BusinessRuleError(
                message="Não é possível excluir um lote já pago",
                context={"lote_id": lote_id},
            )
        try:
            await db.delete(lote)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete payment batch %s: %s", lote_id, str(e))
            raise DatabaseError(context={"lote_id": lote_id})
        return lote

    async def resumo(
        self,
        db: AsyncSession,
        periodo_inicio: Optional[date] = None,
        periodo_fim: Optional[date] = None,
    ) -> ResumoGeralResponse:
        query = select(
            LotePagamento.status,
            func.count(LotePagamento.id),
            func.coalesce(func.sum(LotePagamento.valor_total), 0),
        ).where(LotePagamento.status.in_((LOTE_PENDENTE, LOTE_PAGO)))
        if periodo_inicio and periodo_fim:
            query = query.where(LotePagamento.data_inicio.between(periodo_inicio, periodo_fim))
        result = await db.execute(query.group_by(LotePagamento.status))

        por_status = {
            status: ResumoStatus(quantidade=quantidade, valor_total=float(total))
            for status, quantidade, total in result.all()
        }
        vazio = ResumoStatus(quantidade=0, valor_total=0.0)
        return ResumoGeralResponse(
            pendente=por_status.get(LOTE_PENDENTE, vazio),
            pago=por_status.get(LOTE_PAGO, vazio),
        )

    async def _recarregar(self, db: AsyncSession, lote_id: int) -> LotePagamento:
        result = await db.execute(
            select(LotePagamento)
            .where(LotePagamento.id == lote_id)
            .execution_options(populate_existing=True)
        )
        return result.unique().scalar_one()


# ── Singleton Instance ────────────────────────────────────────────────────
pagamento_service = PagamentoService()
