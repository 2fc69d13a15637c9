"""
Vistoria Naval API — Laudo Service Unit Tests
===============================================

What we test:
    ✅ Report number and PDF key formats
    ✅ Address formatting from client / location rows
    ✅ Autofill only fills empty fields
    ✅ A laudo requires a CONCLUIDA inspection
    ✅ PDF generation stores the document and records its key
"""

import re
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from app.config import settings
from app.exceptions import BusinessRuleError, NotFoundError
from app.schemas.laudo import LaudoCreate
from app.services.laudo_pdf import FotoLaudo
from app.services.laudo_service import (
    LaudoService,
    chave_pdf,
    formatar_endereco,
    gerar_numero_laudo,
    preencher_automaticamente,
)
from app.services.storage_service import StorageService


def _vistoria(status="CONCLUIDA"):
    cliente = SimpleNamespace(
        nome="Marina Azul Ltda", cpf=None, cnpj="11222333000181",
        logradouro="Av. Beira Mar", numero="100", complemento=None, bairro="Centro",
        cidade="Santos", estado="SP", cep="11010000",
    )
    embarcacao = SimpleNamespace(
        nome="Veleiro Sol", proprietario_nome=None, proprietario_cpf=None, cliente=cliente,
        nr_inscricao_barco="123-ABC", tipo_embarcacao="VELEIRO", ano_fabricacao=2019,
        valor_embarcacao=Decimal("250000.00"),
    )
    local = SimpleNamespace(
        nome_local="Marina Santos", logradouro="Rua do Porto", numero="5", complemento=None,
        bairro=None, cidade="Santos", estado="SP", cep=None,
    )
    return SimpleNamespace(
        id=7,
        status=SimpleNamespace(nome=status),
        embarcacao=embarcacao,
        local=local,
        vistoriador=SimpleNamespace(nome="Carlos Vistoriador"),
        valor_embarcacao=None,
        data_conclusao=datetime(2024, 5, 17, 15, 30, tzinfo=timezone.utc),
    )


class TestFormatos:

    def test_numero_laudo(self):
        numero = gerar_numero_laudo(datetime(2024, 5, 17))
        assert re.fullmatch(r"240517[A-Z]", numero)

    def test_chave_pdf(self):
        assert chave_pdf(3, datetime(2024, 5, 17)) == "laudos/2024/05/laudo-3.pdf"

    def test_endereco_completo(self):
        cliente = _vistoria().embarcacao.cliente
        assert formatar_endereco(cliente) == (
            "Av. Beira Mar, 100, Centro, Santos/SP, CEP: 11010000"
        )

    def test_endereco_vazio(self):
        assert formatar_endereco(SimpleNamespace()) is None
        assert formatar_endereco(None) is None

    def test_endereco_so_cep(self):
        assert formatar_endereco(SimpleNamespace(cep="01310100")) == "CEP: 01310100"


class TestPreenchimentoAutomatico:

    def test_preenche_campos_vazios(self):
        dados = preencher_automaticamente({}, _vistoria())
        assert dados["nome_moto_aquatica"] == "Veleiro Sol"
        assert dados["proprietario"] == "Marina Azul Ltda"
        assert dados["cpf_cnpj"] == "11222333000181"
        assert dados["data_inspecao"] == date(2024, 5, 17)
        assert dados["local_vistoria"] == "Marina Santos - Rua do Porto, 5, Santos/SP"
        assert dados["valor_risco"] == Decimal("250000.00")
        assert dados["responsavel_inspecao"] == "Carlos Vistoriador"
        assert dados["empresa_prestadora"] == settings.laudo_empresa_padrao
        assert dados["versao"] == settings.laudo_versao_padrao

    def test_nao_sobrescreve_valores_informados(self):
        dados = preencher_automaticamente({"proprietario": "João", "versao": ""}, _vistoria())
        assert dados["proprietario"] == "João"
        assert dados["versao"] == settings.laudo_versao_padrao

    def test_empresa_da_configuracao(self):
        config = SimpleNamespace(empresa_prestadora="Naval Peritos")
        dados = preencher_automaticamente({}, _vistoria(), config)
        assert dados["empresa_prestadora"] == "Naval Peritos"


class TestCriar:

    def setup_method(self):
        self.service = LaudoService()

    @pytest.mark.asyncio
    async def test_exige_vistoria_concluida(self, mock_db_session):
        with patch("app.services.laudo_service.vistoria_service") as mock_vistorias:
            mock_vistorias.obter = AsyncMock(return_value=_vistoria("EM_ANDAMENTO"))
            with pytest.raises(BusinessRuleError, match="conclusão da vistoria"):
                await self.service.criar_ou_atualizar(mock_db_session, 7, LaudoCreate())


class TestGerarPdf:

    def setup_method(self):
        self.service = LaudoService()

    @pytest.mark.asyncio
    async def test_gera_e_armazena(self, mock_db_session, temp_storage, sample_image_bytes):
        storage = StorageService(storage_root=temp_storage)
        laudo = SimpleNamespace(
            id=3, vistoria_id=7, numero_laudo="240517K", url_pdf=None, data_geracao=None,
            nome_moto_aquatica="Veleiro Sol", valor_risco=Decimal("1500"),
            checklist_eletrica={"chave_geral": "Sim"},
        )
        fotos = [FotoLaudo(conteudo=sample_image_bytes, legenda="Casco")]

        with patch("app.services.laudo_service.storage_service", storage), \
             patch.object(self.service, "obter", AsyncMock(return_value=laudo)), \
             patch.object(self.service, "_fotos_do_laudo", AsyncMock(return_value=fotos)), \
             patch.object(self.service, "_configuracao_atual", AsyncMock(return_value=None)):
            await self.service.gerar_pdf(mock_db_session, 3)

        assert re.fullmatch(r"laudos/\d{4}/\d{2}/laudo-3\.pdf", laudo.url_pdf)
        assert laudo.data_geracao is not None
        assert (await storage.read(laudo.url_pdf)).startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_download_sem_pdf(self, mock_db_session):
        laudo = SimpleNamespace(id=3, numero_laudo="240517K", url_pdf=None)
        with patch.object(self.service, "obter", AsyncMock(return_value=laudo)):
            with pytest.raises(NotFoundError):
                await self.service.download(mock_db_session, 3)
