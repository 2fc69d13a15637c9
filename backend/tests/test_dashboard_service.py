"""
Vistoria Naval API — Dashboard Unit Tests

Month windows, month-over-month comparison and the response layout.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.schemas.dashboard import ContagemVistorias, Financeiro, PeriodoEstatisticas
from app.services.dashboard_service import (
    DashboardService,
    calcular_comparacao,
    janela_mensal,
    mes_anterior,
    nome_do_mes,
)


class TestJanelas:

    def test_janela_mensal(self):
        inicio, fim = janela_mensal(2024, 2)
        assert inicio == datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert fim == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_janela_de_dezembro(self):
        _, fim = janela_mensal(2023, 12)
        assert fim == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_mes_anterior(self):
        assert mes_anterior(2024, 5) == (2024, 4)
        assert mes_anterior(2024, 1) == (2023, 12)

    def test_nome_do_mes(self):
        assert nome_do_mes(2024, 3) == "março de 2024"


class TestComparacao:

    def test_aumento(self):
        comparacao = calcular_comparacao(150, 100)
        assert comparacao.variacao == 50
        assert comparacao.percentual == 50.0

    def test_queda(self):
        assert calcular_comparacao(75, 100).percentual == -25.0

    def test_um_decimal(self):
        assert calcular_comparacao(1, 3).percentual == -66.7

    def test_sem_valor_anterior(self):
        assert calcular_comparacao(10, 0).percentual == 100.0
        assert calcular_comparacao(0, 0).percentual == 0.0

    def test_anterior_negativo(self):
        comparacao = calcular_comparacao(50, -100)
        assert comparacao.variacao == 150
        assert comparacao.percentual == 100.0
        assert calcular_comparacao(-20, -100).percentual == 0.0


def _periodo(mes, total, concluidas, receita, despesa):
    return PeriodoEstatisticas(
        mes=mes,
        ano=2024,
        nome_mes=nome_do_mes(2024, mes),
        vistorias=ContagemVistorias(
            total=total, concluidas=concluidas, em_andamento=total - concluidas
        ),
        financeiro=Financeiro(receita=receita, despesa=despesa, lucro=receita - despesa),
    )


class TestEstatisticas:

    def setup_method(self):
        self.service = DashboardService()

    @pytest.mark.asyncio
    async def test_formato_da_resposta(self, mock_db_session):
        por_status = MagicMock()
        por_status.all.return_value = [("PENDENTE", 4), ("CONCLUIDA", 6)]
        ranking = MagicMock()
        ranking.all.return_value = [(2, "Carlos", "carlos@x.com", 3, 450)]
        mock_db_session.execute.side_effect = [por_status, ranking]

        periodos = [_periodo(5, 10, 6, 3000.0, 1200.0), _periodo(4, 8, 8, 2000.0, 1000.0)]
        with patch.object(self.service, "_periodo", AsyncMock(side_effect=periodos)), \
             patch.object(self.service, "_soma", AsyncMock(side_effect=[500.0, 900.0])), \
             patch.object(self.service, "_contagem", AsyncMock(side_effect=[18, 7, 3])):
            resposta = await self.service.estatisticas(
                mock_db_session, agora=datetime(2024, 5, 20, tzinfo=timezone.utc)
            )

        assert resposta.mes_atual.nome_mes == "maio de 2024"
        assert resposta.mes_atual.financeiro.pagamentos_pendentes == 500.0
        assert resposta.mes_atual.financeiro.pagamentos_pagos == 900.0
        assert resposta.mes_anterior.financeiro.pagamentos_pendentes is None
        assert resposta.comparacao.vistorias.percentual == 25.0
        assert resposta.comparacao.lucro.variacao == 800.0
        assert [s.model_dump() for s in resposta.vistorias_por_status] == [
            {"status": "PENDENTE", "quantidade": 4},
            {"status": "CONCLUIDA", "quantidade": 6},
        ]
        primeiro = resposta.ranking_vistoriadores[0]
        assert primeiro.total_vistorias == 3
        assert primeiro.total_ganho == 450.0
        assert resposta.totais_gerais.model_dump() == {
            "total_vistorias": 18,
            "total_embarcacoes": 7,
            "total_vistoriadores": 3,
        }
