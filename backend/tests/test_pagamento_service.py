"""
Vistoria Naval API — Payment Batch Unit Tests
===============================================

What we test:
    ✅ Batch total is the sum of the inspector fees
    ✅ gerar() rejects inverted periods, unknown inspectors, empty periods
    ✅ Paid batches cannot be paid again, cancelled or deleted
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.exceptions import BusinessRuleError, NotFoundError, ValidationError
from app.models.pagamento import LOTE_CANCELADO, LOTE_PAGO, LOTE_PENDENTE
from app.schemas.pagamento import GerarLoteRequest, PagarLoteRequest
from app.services.pagamento_service import PagamentoService, inicio_do_dia, somar_valores


class TestFuncoesAuxiliares:

    def test_somar_valores(self):
        vistorias = [
            SimpleNamespace(valor_vistoriador=Decimal("150.00")),
            SimpleNamespace(valor_vistoriador=Decimal("99.90")),
            SimpleNamespace(valor_vistoriador=None),
        ]
        assert somar_valores(vistorias) == Decimal("249.90")

    def test_somar_lista_vazia(self):
        assert somar_valores([]) == Decimal("0.00")

    def test_inicio_do_dia(self):
        assert inicio_do_dia(date(2024, 3, 5)) == datetime(2024, 3, 5, tzinfo=timezone.utc)


class TestGerar:

    def setup_method(self):
        self.service = PagamentoService()

    @pytest.mark.asyncio
    async def test_periodo_invertido(self, mock_db_session):
        dados = GerarLoteRequest(
            vistoriador_id=2, data_inicio=date(2024, 3, 31), data_fim=date(2024, 3, 1)
        )
        with pytest.raises(ValidationError, match="data_fim"):
            await self.service.gerar(mock_db_session, dados)

    @pytest.mark.asyncio
    async def test_vistoriador_inexistente(self, mock_db_session):
        mock_db_session.get.return_value = None
        dados = GerarLoteRequest(
            vistoriador_id=99, data_inicio=date(2024, 3, 1), data_fim=date(2024, 3, 31)
        )
        with pytest.raises(NotFoundError):
            await self.service.gerar(mock_db_session, dados)

    @pytest.mark.asyncio
    async def test_sem_vistorias_no_periodo(self, mock_db_session, vistoriador):
        mock_db_session.get.return_value = vistoriador
        dados = GerarLoteRequest(
            vistoriador_id=2, data_inicio=date(2024, 3, 1), data_fim=date(2024, 3, 31)
        )
        with patch.object(self.service, "vistorias_elegiveis", AsyncMock(return_value=[])):
            with pytest.raises(BusinessRuleError, match="Não há vistorias"):
                await self.service.gerar(mock_db_session, dados)

    @pytest.mark.asyncio
    async def test_cria_lote_com_total(self, mock_db_session, vistoriador):
        mock_db_session.get.return_value = vistoriador
        criados = []
        mock_db_session.add = MagicMock(side_effect=criados.append)
        vistorias = [
            SimpleNamespace(id=1, valor_vistoriador=Decimal("100.00")),
            SimpleNamespace(id=2, valor_vistoriador=Decimal("50.00")),
        ]
        dados = GerarLoteRequest(
            vistoriador_id=2, data_inicio=date(2024, 3, 1), data_fim=date(2024, 3, 31)
        )
        with patch.object(self.service, "vistorias_elegiveis", AsyncMock(return_value=vistorias)), \
             patch.object(self.service, "_recarregar", AsyncMock()):
            await self.service.gerar(mock_db_session, dados)

        (lote,) = criados
        assert lote.quantidade_vistorias == 2
        assert lote.valor_total == Decimal("150.00")
        assert lote.status == LOTE_PENDENTE
        assert [v.vistoria_id for v in lote.vistorias] == [1, 2]


class TestTransicoes:

    def setup_method(self):
        self.service = PagamentoService()

    @pytest.mark.asyncio
    async def test_pagar_lote_pago(self, mock_db_session, admin):
        lote = SimpleNamespace(id=1, status=LOTE_PAGO)
        with patch.object(self.service, "obter", AsyncMock(return_value=lote)):
            with pytest.raises(BusinessRuleError, match="já foi pago"):
                await self.service.pagar(mock_db_session, 1, PagarLoteRequest(), admin)

    @pytest.mark.asyncio
    async def test_pagar_lote_cancelado(self, mock_db_session, admin):
        lote = SimpleNamespace(id=1, status=LOTE_CANCELADO)
        with patch.object(self.service, "obter", AsyncMock(return_value=lote)):
            with pytest.raises(BusinessRuleError, match="cancelado"):
                await self.service.pagar(mock_db_session, 1, PagarLoteRequest(), admin)

    @pytest.mark.asyncio
    async def test_pagar_registra_pagamento(self, mock_db_session, admin):
        lote = SimpleNamespace(id=1, status=LOTE_PENDENTE)
        with patch.object(self.service, "obter", AsyncMock(return_value=lote)), \
             patch.object(self.service, "_recarregar", AsyncMock(return_value=lote)):
            await self.service.pagar(
                mock_db_session, 1, PagarLoteRequest(forma_pagamento="PIX"), admin
            )
        assert lote.status == LOTE_PAGO
        assert lote.forma_pagamento == "PIX"
        assert lote.pago_por_id == admin.id
        assert lote.data_pagamento is not None

    @pytest.mark.asyncio
    async def test_cancelar_lote_pago(self, mock_db_session):
        lote = SimpleNamespace(id=1, status=LOTE_PAGO)
        with patch.object(self.service, "obter", AsyncMock(return_value=lote)):
            with pytest.raises(BusinessRuleError):
                await self.service.cancelar(mock_db_session, 1)

    @pytest.mark.asyncio
    async def test_excluir_lote_pago(self, mock_db_session):
        lote = SimpleNamespace(id=1, status=LOTE_PAGO)
        with patch.object(self.service, "obter", AsyncMock(return_value=lote)):
            with pytest.raises(BusinessRuleError, match="excluir"):
                await self.service.deletar(mock_db_session, 1)

    @pytest.mark.asyncio
    async def test_excluir_lote_cancelado(self, mock_db_session):
        lote = SimpleNamespace(id=1, status=LOTE_CANCELADO)
        with patch.object(self.service, "obter", AsyncMock(return_value=lote)):
            assert await self.service.deletar(mock_db_session, 1) is lote
        mock_db_session.delete.assert_awaited_once_with(lote)
