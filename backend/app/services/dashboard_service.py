"""
Vistoria Naval API — Dashboard Statistics
===========================================

What:  Month-over-month inspection counts, revenue / inspector cost / profit,
       payment batch totals and the inspector ranking for the admin
       dashboard.
How:   Aggregate queries over half-open UTC month windows
       [first day 00:00, first day of next month 00:00).
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.cadastro import Embarcacao
from app.models.pagamento import LOTE_PAGO, LOTE_PENDENTE, LotePagamento
from app.models.usuario import NIVEL_VISTORIADOR, Usuario
from app.models.vistoria import StatusVistoria, Vistoria
from app.schemas.dashboard import (
    Comparacao,
    ComparacaoMensal,
    ContagemVistorias,
    EstatisticasResponse,
    Financeiro,
    PeriodoEstatisticas,
    RankingVistoriador,
    TotaisGerais,
    VistoriasPorStatus,
)

logger = logging.getLogger(__name__)

Janela = Tuple[datetime, datetime]

MESES = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def janela_mensal(ano: int, mes: int) -> Janela:
    inicio = datetime(ano, mes, 1, tzinfo=timezone.utc)
    if mes == 12:
        fim = datetime(ano + 1, 1, 1, tzinfo=timezone.utc)
    else:
        fim = datetime(ano, mes + 1, 1, tzinfo=timezone.utc)
    return inicio, fim


def mes_anterior(ano: int, mes: int) -> Tuple[int, int]:
    return (ano - 1, 12) if mes == 1 else (ano, mes - 1)


def nome_do_mes(ano: int, mes: int) -> str:
    return f"{MESES[mes - 1]} de {ano}"


def calcular_comparacao(atual: float, anterior: float) -> Comparacao:
    """
    Absolute and percentage change, one decimal.

    With no previous value the change reads 100% when something happened
    this month and 0% otherwise. A previous loss (negative value) is
    treated the same way.
    """
    variacao = round(atual - anterior, 2)
    if anterior > 0:
        percentual = round((atual - anterior) / anterior * 100, 1)
    else:
        percentual = 100.0 if atual > 0 else 0.0
    return Comparacao(variacao=variacao, percentual=percentual)


def _entre(coluna, janela: Janela):
    return (coluna >= janela[0]) & (coluna < janela[1])


class DashboardService:

    async def _soma(self, db: AsyncSession, coluna, *condicoes) -> float:
        result = await db.execute(select(func.coalesce(func.sum(coluna), 0)).where(*condicoes))
        return float(result.scalar_one() or Decimal("0"))

    async def _contagem(self, db: AsyncSession, coluna, *condicoes) -> int:
        result = await db.execute(select(func.count(coluna)).where(*condicoes))
        return int(result.scalar_one() or 0)

    async def _periodo(self, db: AsyncSession, ano: int, mes: int) -> PeriodoEstatisticas:
        janela = janela_mensal(ano, mes)
        total = await self._contagem(db, Vistoria.id, _entre(Vistoria.created_at, janela))
        concluidas = await self._contagem(
            db, Vistoria.id, _entre(Vistoria.data_conclusao, janela)
        )
        receita = await self._soma(
            db, Vistoria.valor_vistoria, _entre(Vistoria.data_conclusao, janela)
        )
        despesa = await self._soma(
            db, Vistoria.valor_vistoriador, _entre(Vistoria.data_conclusao, janela)
        )
        return PeriodoEstatisticas(
            mes=mes,
            ano=ano,
            nome_mes=nome_do_mes(ano, mes),
            vistorias=ContagemVistorias(
                total=total,
                concluidas=concluidas,
                em_andamento=max(0, total - concluidas),
            ),
            financeiro=Financeiro(
                receita=receita,
                despesa=despesa,
                lucro=round(receita - despesa, 2),
            ),
        )

    async def estatisticas(
        self, db: AsyncSession, agora: Optional[datetime] = None
    ) -> EstatisticasResponse:
        agora = agora or datetime.now(timezone.utc)
        atual = await self._periodo(db, agora.year, agora.month)
        anterior = await self._periodo(db, *mes_anterior(agora.year, agora.month))
        janela = janela_mensal(agora.year, agora.month)

        pendentes = await self._soma(
            db,
            LotePagamento.valor_total,
            LotePagamento.status == LOTE_PENDENTE,
            LotePagamento.data_inicio >= janela[0].date(),
            LotePagamento.data_inicio < janela[1].date(),
        )
        pagos = await self._soma(
            db,
            LotePagamento.valor_total,
            LotePagamento.status == LOTE_PAGO,
            _entre(LotePagamento.data_pagamento, janela),
        )

        atual.financeiro.pagamentos_pendentes = pendentes
        atual.financeiro.pagamentos_pagos = pagos

        por_status = await db.execute(
            select(StatusVistoria.nome, func.count(Vistoria.id))
            .select_from(Vistoria)
            .join(StatusVistoria, Vistoria.status_id == StatusVistoria.id)
            .group_by(StatusVistoria.id, StatusVistoria.nome)
            .order_by(StatusVistoria.id)
        )

        contagem = func.count(Vistoria.id)
        ranking = await db.execute(
            select(
                Usuario.id,
                Usuario.nome,
                Usuario.email,
                contagem,
                func.coalesce(func.sum(Vistoria.valor_vistoriador), 0),
            )
            .join(Vistoria, Vistoria.vistoriador_id == Usuario.id)
            .where(_entre(Vistoria.data_conclusao, janela))
            .group_by(Usuario.id, Usuario.nome, Usuario.email)
            .order_by(contagem.desc())
            .limit(5)
        )

        totais = TotaisGerais(
            total_vistorias=await self._contagem(db, Vistoria.id),
            total_embarcacoes=await self._contagem(db, Embarcacao.id),
            total_vistoriadores=await self._contagem(
                db, Usuario.id, Usuario.nivel_acesso_id == NIVEL_VISTORIADOR
            ),
        )

        logger.debug("Dashboard statistics computed for %d-%02d", agora.year, agora.month)
        return EstatisticasResponse(
            mes_atual=atual,
            mes_anterior=anterior,
            comparacao=ComparacaoMensal(
                vistorias=calcular_comparacao(
                    atual.vistorias.total, anterior.vistorias.total
                ),
                receita=calcular_comparacao(
                    atual.financeiro.receita, anterior.financeiro.receita
                ),
                despesa=calcular_comparacao(
                    atual.financeiro.despesa, anterior.financeiro.despesa
                ),
                lucro=calcular_comparacao(atual.financeiro.lucro, anterior.financeiro.lucro),
            ),
            vistorias_por_status=[
                VistoriasPorStatus(status=nome, quantidade=int(qtd))
                for nome, qtd in por_status.all()
            ],
            ranking_vistoriadores=[
                RankingVistoriador(
                    id=uid,
                    nome=nome,
                    email=email,
                    total_vistorias=int(total),
                    total_ganho=float(ganho),
                )
                for uid, nome, email, total, ganho in ranking.all()
            ],
            totais_gerais=totais,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
dashboard_service = DashboardService()
