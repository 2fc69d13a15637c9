"""
Vistoria Naval API — Registry Services Unit Tests
===================================================

What we test:
    ✅ Clients: CPF for FISICA, CNPJ for JURIDICA, digits-only storage
    ✅ Clients: duplicate document, delete blocked by vessels
    ✅ Clients: lookup by document (11 → CPF, 14 → CNPJ, other → 400)
    ✅ Vessels, insurers and photo types reject duplicates
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.exceptions import BusinessRuleError, NotFoundError, ValidationError
from app.models.cadastro import Cliente, Seguradora
from app.models.vistoria import TipoFotoChecklist
from app.schemas.cadastro import (
    ClienteCreate,
    EmbarcacaoCreate,
    SeguradoraCreate,
    TipoFotoCreate,
)
from app.services.cliente_service import ClienteService
from app.services.embarcacao_service import EmbarcacaoService
from app.services.seguradora_service import SeguradoraService
from app.services.tipo_foto_service import TipoFotoService

CPF_VALIDO = "529.982.247-25"
CNPJ_VALIDO = "11.222.333/0001-81"


def _resultado(primeiro=None, escalar=None):
    result = MagicMock()
    result.first.return_value = primeiro
    result.scalar.return_value = escalar
    result.scalar_one_or_none.return_value = escalar
    return result


class TestClienteDocumentos:

    def setup_method(self):
        self.service = ClienteService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("dados, mensagem", [
        ({"tipo_pessoa": "FISICA"}, "CPF é obrigatório"),
        ({"tipo_pessoa": "FISICA", "cpf": "111.111.111-11"}, "CPF inválido"),
        ({"tipo_pessoa": "JURIDICA", "cpf": CPF_VALIDO}, "CNPJ é obrigatório"),
        ({"tipo_pessoa": "JURIDICA", "cnpj": "11.222.333/0001-00"}, "CNPJ inválido"),
    ])
    async def test_documento_por_tipo_de_pessoa(self, mock_db_session, dados, mensagem):
        with pytest.raises(ValidationError, match=mensagem):
            await self.service.criar(mock_db_session, ClienteCreate(nome="Marina Azul", **dados))
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_pessoa_fisica_guarda_somente_digitos(self, mock_db_session):
        with patch.object(self.service, "_documento_em_uso", AsyncMock(return_value=False)):
            cliente = await self.service.criar(
                mock_db_session,
                ClienteCreate(
                    nome="João", tipo_pessoa="FISICA", cpf=CPF_VALIDO, cnpj=CNPJ_VALIDO,
                    cep="11010-000", estado="sp",
                ),
            )
        assert isinstance(cliente, Cliente)
        assert cliente.cpf == "52998224725"
        assert cliente.cnpj is None
        assert cliente.cep == "11010000"
        assert cliente.estado == "SP"

    @pytest.mark.asyncio
    async def test_pessoa_juridica(self, mock_db_session):
        with patch.object(self.service, "_documento_em_uso", AsyncMock(return_value=False)):
            cliente = await self.service.criar(
                mock_db_session,
                ClienteCreate(nome="Marina Azul Ltda", tipo_pessoa="JURIDICA", cnpj=CNPJ_VALIDO),
            )
        assert cliente.cnpj == "11222333000181"
        assert cliente.cpf is None

    @pytest.mark.asyncio
    async def test_documento_duplicado(self, mock_db_session):
        with patch.object(self.service, "_documento_em_uso", AsyncMock(return_value=True)):
            with pytest.raises(ValidationError, match="já cadastrado"):
                await self.service.criar(
                    mock_db_session, ClienteCreate(nome="João", cpf=CPF_VALIDO)
                )
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_documento_em_uso_consulta_banco(self, mock_db_session):
        mock_db_session.execute.return_value = _resultado(primeiro=(3,))
        assert await self.service._documento_em_uso(mock_db_session, "52998224725", None) is True
        assert await self.service._documento_em_uso(mock_db_session, None, None) is False


class TestClienteExclusao:

    def setup_method(self):
        self.service = ClienteService()

    @pytest.mark.asyncio
    async def test_bloqueada_por_embarcacoes(self, mock_db_session):
        mock_db_session.execute.return_value = _resultado(escalar=2)
        with patch.object(self.service, "obter", AsyncMock(return_value=SimpleNamespace(id=4))):
            with pytest.raises(BusinessRuleError, match="2 embarcação"):
                await self.service.deletar(mock_db_session, 4)
        mock_db_session.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_sem_embarcacoes(self, mock_db_session):
        cliente = SimpleNamespace(id=4)
        mock_db_session.execute.return_value = _resultado(escalar=0)
        with patch.object(self.service, "obter", AsyncMock(return_value=cliente)):
            assert await self.service.deletar(mock_db_session, 4) is cliente
        mock_db_session.delete.assert_awaited_once_with(cliente)


class TestClientePorDocumento:

    def setup_method(self):
        self.service = ClienteService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("documento, coluna", [
        (CPF_VALIDO, "clientes.cpf"),
        (CNPJ_VALIDO, "clientes.cnpj"),
    ])
    async def test_coluna_pelo_tamanho(self, mock_db_session, documento, coluna):
        cliente = SimpleNamespace(id=4)
        mock_db_session.execute.return_value = _resultado(escalar=cliente)

        assert await self.service.buscar_por_documento(mock_db_session, documento) is cliente
        consulta = str(mock_db_session.execute.call_args[0][0])
        assert f"{coluna} =" in consulta

    @pytest.mark.asyncio
    async def test_tamanho_invalido(self, mock_db_session):
        with pytest.raises(ValidationError, match="11 dígitos"):
            await self.service.buscar_por_documento(mock_db_session, "12345")
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_nao_encontrado(self, mock_db_session):
        mock_db_session.execute.return_value = _resultado(escalar=None)
        with pytest.raises(NotFoundError):
            await self.service.buscar_por_documento(mock_db_session, CPF_VALIDO)


class TestEmbarcacao:

    def setup_method(self):
        self.service = EmbarcacaoService()

    @pytest.mark.asyncio
    async def test_casco_duplicado(self, mock_db_session):
        existente = SimpleNamespace(id=5)
        with patch.object(self.service, "buscar_por_casco", AsyncMock(return_value=existente)):
            with pytest.raises(ValidationError, match="número de casco"):
                await self.service.criar(
                    mock_db_session, EmbarcacaoCreate(nome="Veleiro", numero_casco="CASCO-1")
                )
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_casco_da_propria_embarcacao_na_atualizacao(self, mock_db_session):
        with patch.object(
            self.service, "buscar_por_casco", AsyncMock(return_value=SimpleNamespace(id=5))
        ):
            await self.service._exigir_casco_livre(mock_db_session, "CASCO-1", exceto_id=5)


class TestSeguradora:

    def setup_method(self):
        self.service = SeguradoraService()

    @pytest.mark.asyncio
    async def test_nome_duplicado(self, mock_db_session):
        mock_db_session.execute.return_value = _resultado(primeiro=(1,))
        with pytest.raises(ValidationError, match="seguradora com este nome"):
            await self.service.criar(mock_db_session, SeguradoraCreate(nome="Porto Seguro"))
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_tipos_sem_repeticao(self, mock_db_session):
        mock_db_session.execute.return_value = _resultado(primeiro=None)
        seguradora = await self.service.criar(
            mock_db_session,
            SeguradoraCreate(
                nome=" Porto Seguro ", tipos_permitidos=["LANCHA", "LANCHA", "JET_SKI"]
            ),
        )
        assert isinstance(seguradora, Seguradora)
        assert seguradora.nome == "Porto Seguro"
        assert [t.tipo_embarcacao for t in seguradora.tipos_permitidos] == ["LANCHA", "JET_SKI"]


class TestTipoFoto:

    def setup_method(self):
        self.service = TipoFotoService()

    @pytest.mark.asyncio
    async def test_codigo_duplicado(self, mock_db_session):
        mock_db_session.execute.return_value = _resultado(primeiro=(1,))
        with pytest.raises(ValidationError, match="Código já existe"):
            await self.service.criar(
                mock_db_session, TipoFotoCreate(codigo="casco", nome_exibicao="Casco")
            )

    @pytest.mark.asyncio
    async def test_codigo_em_maiusculas(self, mock_db_session):
        mock_db_session.execute.return_value = _resultado(primeiro=None)
        tipo = await self.service.criar(
            mock_db_session, TipoFotoCreate(codigo=" casco ", nome_exibicao=" Casco ")
        )
        assert isinstance(tipo, TipoFotoChecklist)
        assert tipo.codigo == "CASCO"
        assert tipo.nome_exibicao == "Casco"
