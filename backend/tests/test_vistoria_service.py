"""
Vistoria Naval API — Vistoria Service Unit Tests
==================================================

What we test:
    ✅ Photo summary (tiradas / total, completo, progress)
    ✅ Starting an inspection: only once, only from PENDENTE
    ✅ Inspector routes reject inspections assigned to someone else
    ✅ Creation finds or creates the vessel by hull number
    ✅ Moving to CONCLUIDA stamps data_conclusao
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from app.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.models.cadastro import Embarcacao, Local
from app.models.vistoria import Vistoria
from app.schemas.vistoria import VistoriaCreate, VistoriaUpdate
from app.services.embarcacao_service import EmbarcacaoService
from app.services.vistoria_service import VistoriaService, calcular_resumo_fotos

PENDENTE = SimpleNamespace(id=1, nome="PENDENTE")
EM_ANDAMENTO = SimpleNamespace(id=2, nome="EM_ANDAMENTO")


def _status_por_nome(db, nome):
    return {"PENDENTE": PENDENTE, "EM_ANDAMENTO": EM_ANDAMENTO}[nome]


class TestResumoFotos:

    def test_sem_tipos(self):
        resumo = calcular_resumo_fotos(0, 0)
        assert resumo.progresso == 0
        assert resumo.completo is True

    def test_parcial(self):
        resumo = calcular_resumo_fotos(3, 2)
        assert resumo.tiradas == 2
        assert resumo.completo is False
        assert resumo.progresso == 67

    def test_completo(self):
        assert calcular_resumo_fotos(4, 4).progresso == 100


class TestIniciar:

    def setup_method(self):
        self.service = VistoriaService()

    @pytest.mark.asyncio
    async def test_inicia_vistoria_pendente(self, mock_db_session, vistoriador):
        vistoria = SimpleNamespace(id=10, vistoriador_id=2, data_inicio=None, status_id=1)
        with patch.object(self.service, "obter_do_vistoriador", AsyncMock(return_value=vistoria)), \
             patch.object(self.service, "status_por_nome", AsyncMock(side_effect=_status_por_nome)), \
             patch.object(self.service, "obter", AsyncMock(return_value=vistoria)):

            resultado = await self.service.iniciar(mock_db_session, 10, vistoriador)

        assert resultado.status_id == EM_ANDAMENTO.id
        assert resultado.data_inicio is not None
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ja_iniciada(self, mock_db_session, vistoriador):
        vistoria = SimpleNamespace(id=10, vistoriador_id=2, data_inicio="2024-01-01", status_id=2)
        with patch.object(self.service, "obter_do_vistoriador", AsyncMock(return_value=vistoria)):
            with pytest.raises(BusinessRuleError, match="já foi iniciada"):
                await self.service.iniciar(mock_db_session, 10, vistoriador)

    @pytest.mark.asyncio
    async def test_status_diferente_de_pendente(self, mock_db_session, vistoriador):
        vistoria = SimpleNamespace(id=10, vistoriador_id=2, data_inicio=None, status_id=5)
        with patch.object(self.service, "obter_do_vistoriador", AsyncMock(return_value=vistoria)), \
             patch.object(self.service, "status_por_nome", AsyncMock(side_effect=_status_por_nome)):
            with pytest.raises(BusinessRuleError, match="não pode ser iniciada"):
                await self.service.iniciar(mock_db_session, 10, vistoriador)


class TestAcesso:

    def setup_method(self):
        self.service = VistoriaService()

    @pytest.mark.asyncio
    async def test_vistoria_de_outro_vistoriador(self, mock_db_session, vistoriador):
        vistoria = SimpleNamespace(id=10, vistoriador_id=99)
        with patch.object(self.service, "obter", AsyncMock(return_value=vistoria)):
            with pytest.raises(PermissionDeniedError):
                await self.service.obter_do_vistoriador(mock_db_session, 10, vistoriador)

    @pytest.mark.asyncio
    async def test_admin_acessa_qualquer_vistoria(self, mock_db_session, admin):
        vistoria = SimpleNamespace(id=10, vistoriador_id=99)
        with patch.object(self.service, "obter", AsyncMock(return_value=vistoria)):
            assert await self.service.obter_autorizada(mock_db_session, 10, admin) is vistoria

    @pytest.mark.asyncio
    async def test_vistoria_inexistente(self, mock_db_session, vistoriador):
        with patch.object(
            self.service, "obter", AsyncMock(side_effect=NotFoundError(resource="Vistoria"))
        ):
            with pytest.raises(NotFoundError):
                await self.service.obter_autorizada(mock_db_session, 10, vistoriador)


def _dados_criacao(**embarcacao):
    return VistoriaCreate(
        embarcacao={"numero_casco": "CASCO-1", "nome": "Veleiro Sol", "tipo_embarcacao": "LANCHA", **embarcacao},
        local={"tipo": "MARINA", "nome_local": "Marina Santos", "cidade": "Santos", "estado": "sp"},
        vistoriador_id=2,
        valor_vistoria=1500,
    )


class TestCriar:

    def setup_method(self):
        self.service = VistoriaService()

    @pytest.mark.asyncio
    async def test_cria_com_embarcacao_encontrada_ou_criada(
        self, mock_db_session, admin, vistoriador
    ):
        mock_db_session.get.return_value = vistoriador
        criada = object()
        with patch("app.services.vistoria_service.embarcacao_service") as mock_embarcacoes, \
             patch.object(self.service, "status_por_nome", AsyncMock(side_effect=_status_por_nome)), \
             patch.object(self.service, "obter", AsyncMock(return_value=criada)):
            mock_embarcacoes.obter_ou_criar = AsyncMock(return_value=SimpleNamespace(id=20))
            resultado = await self.service.criar(mock_db_session, _dados_criacao(), admin)

        assert resultado is criada
        args, kwargs = mock_embarcacoes.obter_ou_criar.call_args
        assert args[1:] == ("CASCO-1", "Veleiro Sol")
        assert kwargs["tipo_embarcacao"] == "LANCHA"

        local, vistoria = [c.args[0] for c in mock_db_session.add.call_args_list]
        assert isinstance(local, Local)
        assert local.estado == "SP"
        assert isinstance(vistoria, Vistoria)
        assert vistoria.embarcacao_id == 20
        assert vistoria.vistoriador_id == vistoriador.id
        assert vistoria.administrador_id == admin.id
        assert vistoria.status_id == PENDENTE.id

    @pytest.mark.asyncio
    async def test_vistoriador_inexistente(self, mock_db_session, admin):
        mock_db_session.get.return_value = None
        with pytest.raises(ValidationError, match="Vistoriador não encontrado"):
            await self.service.criar(mock_db_session, _dados_criacao(), admin)
        mock_db_session.add.assert_not_called()


class TestObterOuCriarEmbarcacao:

    def setup_method(self):
        self.service = EmbarcacaoService()

    @pytest.mark.asyncio
    async def test_embarcacao_existente_reaproveitada(self, mock_db_session):
        existente = SimpleNamespace(id=5, nome="Antigo Nome")
        with patch.object(self.service, "buscar_por_casco", AsyncMock(return_value=existente)):
            resultado = await self.service.obter_ou_criar(mock_db_session, "CASCO-1", "Novo Nome")
        assert resultado is existente
        assert existente.nome == "Antigo Nome"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_nova_embarcacao_exige_nome(self, mock_db_session):
        with patch.object(self.service, "buscar_por_casco", AsyncMock(return_value=None)):
            with pytest.raises(ValidationError, match="Nome da embarcação"):
                await self.service.obter_ou_criar(mock_db_session, "CASCO-1", "  ")

    @pytest.mark.asyncio
    async def test_cria_nova_embarcacao(self, mock_db_session):
        with patch.object(self.service, "buscar_por_casco", AsyncMock(return_value=None)):
            embarcacao = await self.service.obter_ou_criar(
                mock_db_session, " CASCO-1 ", " Veleiro Sol ",
                tipo_embarcacao="LANCHA", proprietario_nome=None,
            )
        assert isinstance(embarcacao, Embarcacao)
        assert embarcacao.numero_casco == "CASCO-1"
        assert embarcacao.nome == "Veleiro Sol"
        assert embarcacao.tipo_embarcacao == "LANCHA"
        mock_db_session.add.assert_called_once_with(embarcacao)


class TestAtualizarStatus:

    def setup_method(self):
        self.service = VistoriaService()

    @pytest.mark.asyncio
    async def test_concluida_registra_data_conclusao(self, mock_db_session, vistoriador):
        vistoria = SimpleNamespace(
            id=10, vistoriador_id=2, status_id=2, data_inicio="2024-05-01", data_conclusao=None,
        )
        mock_db_session.get.return_value = SimpleNamespace(id=3, nome="CONCLUIDA")
        with patch.object(self.service, "obter_do_vistoriador", AsyncMock(return_value=vistoria)), \
             patch.object(self.service, "obter", AsyncMock(return_value=vistoria)):
            await self.service.atualizar_status(
                mock_db_session, 10, VistoriaUpdate(status_id=3, vistoriador_id=99), vistoriador
            )

        assert vistoria.status_id == 3
        assert vistoria.data_conclusao is not None
        # the inspector app cannot reassign
        assert vistoria.vistoriador_id == 2

    @pytest.mark.asyncio
    async def test_status_inexistente(self, mock_db_session, vistoriador):
        vistoria = SimpleNamespace(id=10, vistoriador_id=2, status_id=2, data_conclusao=None)
        mock_db_session.get.return_value = None
        with patch.object(self.service, "obter_do_vistoriador", AsyncMock(return_value=vistoria)):
            with pytest.raises(ValidationError, match="Status de vistoria inválido"):
                await self.service.atualizar_status(
                    mock_db_session, 10, VistoriaUpdate(status_id=42), vistoriador
                )
