"""
Vistoria Naval API — Laudo PDF Renderer Tests

Formatting helpers and a full render of a sparse and a populated laudo.
"""

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services.laudo_pdf import (
    FotoLaudo,
    formatar_moeda,
    formatar_valor,
    opcao_marcada,
    renderizar_laudo,
)


class TestFormatacao:

    @pytest.mark.parametrize("valor, esperado", [
        (1234.5, "R$ 1.234,50"),
        (Decimal("250000"), "R$ 250.000,00"),
        (0.1, "R$ 0,10"),
    ])
    def test_moeda(self, valor, esperado):
        assert formatar_moeda(valor) == esperado

    def test_valor_vazio(self):
        assert formatar_valor(None) == "---"
        assert formatar_valor("") == "---"

    def test_datas(self):
        assert formatar_valor(date(2024, 5, 17)) == "17/05/2024"
        assert formatar_valor(datetime(2024, 5, 17, 10, 0)) == "17/05/2024"

    def test_opcoes(self):
        assert opcao_marcada("Não possui", "Não possui")
        assert not opcao_marcada("Não possui", "Não")
        assert opcao_marcada(True, "Sim")
        assert opcao_marcada(False, "Não")
        assert not opcao_marcada(None, "Sim")


class TestRenderizacao:

    def test_laudo_minimo(self):
        pdf = renderizar_laudo(SimpleNamespace(numero_laudo="240517K"))
        assert pdf.startswith(b"%PDF")
        assert pdf.rstrip().endswith(b"%%EOF")

    def test_laudo_com_fotos_e_checklists(self, sample_image_bytes):
        laudo = SimpleNamespace(
            numero_laudo="240517K",
            versao="BS 2021-01",
            nome_moto_aquatica="Veleiro Sol",
            proprietario="Marina Azul Ltda",
            data_inspecao=date(2024, 5, 17),
            valor_risco=Decimal("250000"),
            observacoes_vistoria="Casco em bom estado. " * 20,
            checklist_eletrica={"terminais_estanhados": "Sim", "chave_geral": False},
            checklist_geral={"carreta_condicoes": "Não possui"},
        )
        fotos = [
            FotoLaudo(conteudo=sample_image_bytes, legenda=f"Foto {i}", observacao="ok")
            for i in range(1, 6)
        ]
        # bytes that are not an image are skipped, not fatal
        fotos.append(FotoLaudo(conteudo=b"not an image", legenda="Quebrada"))
        fotos.append(FotoLaudo(conteudo=None, legenda="Ausente"))

        pdf = renderizar_laudo(
            laudo, fotos, nome_empresa="Naval Peritos", nota_rodape="Documento confidencial."
        )
        assert pdf.startswith(b"%PDF")
        assert len(pdf) > len(renderizar_laudo(SimpleNamespace(numero_laudo="240517K")))
