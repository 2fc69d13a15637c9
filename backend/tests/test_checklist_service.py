"""
Vistoria Naval API — Checklist Unit Tests
===========================================

What we test:
    ✅ Progress counts and half-up percentage
    ✅ pode_aprovar only once every mandatory item left PENDENTE
    ✅ Photo-to-item matching by exact name and by keyword family
    ✅ Copying a template into an inspection and its guard rails
    ✅ Item status changes (PENDENTE resets the completion)
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from app.exceptions import BusinessRuleError, NotFoundError, ValidationError
from app.models.checklist import (
    ITEM_CONCLUIDO,
    ITEM_NAO_APLICAVEL,
    ITEM_PENDENTE,
    VistoriaChecklistItem,
)
from app.schemas.checklist import ChecklistItemStatusUpdate
from app.services.checklist_service import ChecklistService, calcular_progresso
from app.services.foto_service import encontrar_item_por_palavra_chave, normalizar_nome


def _item(nome="Item", status=ITEM_PENDENTE, obrigatorio=True, id=None):
    return SimpleNamespace(id=id, nome=nome, status=status, obrigatorio=obrigatorio)


class TestProgresso:

    def test_checklist_vazio(self):
        progresso = calcular_progresso([])
        assert progresso.total == 0
        assert progresso.percentual == 0
        assert progresso.pode_aprovar is True

    def test_contagens(self):
        itens = [
            _item(status=ITEM_CONCLUIDO),
            _item(status=ITEM_CONCLUIDO),
            _item(status=ITEM_NAO_APLICAVEL),
            _item(status=ITEM_PENDENTE, obrigatorio=False),
        ]
        progresso = calcular_progresso(itens)
        assert progresso.total == 4
        assert progresso.concluidos == 2
        assert progresso.nao_aplicaveis == 1
        assert progresso.pendentes == 1
        assert progresso.obrigatorios_pendentes == 0
        assert progresso.percentual == 50
        assert progresso.pode_aprovar is True

    def test_obrigatorio_pendente_bloqueia_aprovacao(self):
        progresso = calcular_progresso([_item(status=ITEM_CONCLUIDO), _item()])
        assert progresso.obrigatorios_pendentes == 1
        assert progresso.pode_aprovar is False

    def test_arredondamento_para_cima_na_metade(self):
        # 1/8 = 12.5% → 13
        itens = [_item(status=ITEM_CONCLUIDO)] + [_item(obrigatorio=False) for _ in range(7)]
        assert calcular_progresso(itens).percentual == 13

    def test_nao_aplicavel_nao_conta_como_concluido(self):
        itens = [_item(status=ITEM_NAO_APLICAVEL), _item(status=ITEM_CONCLUIDO)]
        assert calcular_progresso(itens).percentual == 50


class TestCorrespondenciaDeFotos:

    def test_normalizar_nome(self):
        assert normalizar_nome("Foto do Casco") == "casco"
        assert normalizar_nome("PLAQUETA_MOTOR") == "plaqueta motor"
        assert normalizar_nome(None) == ""

    def test_nome_exato(self):
        itens = [_item("Casco", id=1), _item("MOTOR", id=2)]
        item = encontrar_item_por_palavra_chave(itens, "MOTOR", "Motor")
        assert item.id == 2

    def test_familia_de_palavras(self):
        itens = [_item("Motor de popa", id=1), _item("Casco lateral", id=2)]
        item = encontrar_item_por_palavra_chave(itens, "HULL", "Foto do Chassi")
        assert item.id == 2

    def test_palavra_curta_exige_palavra_inteira(self):
        itens = [_item("Documentação TIE", id=1)]
        assert encontrar_item_por_palavra_chave(itens, None, "Documento TIE").id == 1
        # "tie" inside another word does not count
        assert encontrar_item_por_palavra_chave([_item("Entiene", id=2)], None, "TIE") is None

    def test_ignora_itens_concluidos(self):
        itens = [_item("Casco", status=ITEM_CONCLUIDO, id=1)]
        assert encontrar_item_por_palavra_chave(itens, "CASCO", "Casco") is None

    def test_sem_correspondencia(self):
        itens = [_item("Interior", id=1)]
        assert encontrar_item_por_palavra_chave(itens, "PROA", "Proa") is None


def _vistoria(tipo="LANCHA"):
    embarcacao = SimpleNamespace(tipo_embarcacao=tipo) if tipo else None
    return SimpleNamespace(id=7, vistoriador_id=2, embarcacao=embarcacao)


def _item_template(id, nome, ordem):
    return SimpleNamespace(
        id=id, nome=nome, ordem=ordem, descricao=None, obrigatorio=True, permite_video=False,
    )


class TestCopiarTemplate:

    def setup_method(self):
        self.service = ChecklistService()

    @pytest.mark.asyncio
    async def test_sem_tipo_de_embarcacao(self, mock_db_session, admin):
        with patch.object(self.service, "_vistoria_autorizada", AsyncMock(return_value=_vistoria(None))):
            with pytest.raises(ValidationError, match="Tipo de embarcação"):
                await self.service.copiar_template(mock_db_session, 7, admin)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("template", [None, SimpleNamespace(id=1, itens_ativos=[])])
    async def test_sem_template_ou_sem_itens(self, mock_db_session, admin, template):
        with patch.object(self.service, "_vistoria_autorizada", AsyncMock(return_value=_vistoria())), \
             patch.object(self.service, "template_por_tipo", AsyncMock(return_value=template)):
            with pytest.raises(NotFoundError):
                await self.service.copiar_template(mock_db_session, 7, admin)

    @pytest.mark.asyncio
    async def test_itens_ja_existem(self, mock_db_session, admin):
        template = SimpleNamespace(id=1, itens_ativos=[_item_template(1, "Casco", 1)])
        with patch.object(self.service, "_vistoria_autorizada", AsyncMock(return_value=_vistoria())), \
             patch.object(self.service, "template_por_tipo", AsyncMock(return_value=template)), \
             patch.object(self.service, "itens_da_vistoria", AsyncMock(return_value=[object()])):
            with pytest.raises(BusinessRuleError, match="já possui itens"):
                await self.service.copiar_template(mock_db_session, 7, admin)
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_copia_itens_ativos(self, mock_db_session, admin):
        template = SimpleNamespace(
            id=1, itens_ativos=[_item_template(1, "Casco", 1), _item_template(2, "Motor", 2)],
        )
        copiados = [object(), object()]
        with patch.object(self.service, "_vistoria_autorizada", AsyncMock(return_value=_vistoria())), \
             patch.object(self.service, "template_por_tipo", AsyncMock(return_value=template)) as mock_template, \
             patch.object(self.service, "itens_da_vistoria", AsyncMock(side_effect=[[], copiados])):
            itens = await self.service.copiar_template(mock_db_session, 7, admin)

        assert itens == copiados
        mock_template.assert_awaited_once_with(mock_db_session, "LANCHA")
        adicionados = [c.args[0] for c in mock_db_session.add.call_args_list]
        assert all(isinstance(i, VistoriaChecklistItem) for i in adicionados)
        assert [(i.nome, i.ordem, i.status, i.vistoria_id) for i in adicionados] == [
            ("Casco", 1, ITEM_PENDENTE, 7),
            ("Motor", 2, ITEM_PENDENTE, 7),
        ]
        assert adicionados[1].template_item_id == 2


class TestStatusItem:

    def setup_method(self):
        self.service = ChecklistService()

    def _concluido(self):
        return SimpleNamespace(
            id=4, vistoria_id=7, status=ITEM_CONCLUIDO, foto_id=12, observacao=None,
            concluido_em=datetime(2024, 5, 17, tzinfo=timezone.utc),
        )

    @pytest.mark.asyncio
    async def test_pendente_limpa_conclusao_e_foto(self, mock_db_session, vistoriador):
        item = self._concluido()
        mock_db_session.get.return_value = item
        with patch.object(self.service, "_vistoria_autorizada", AsyncMock(return_value=_vistoria())):
            await self.service.atualizar_status_item(
                mock_db_session, 4, ChecklistItemStatusUpdate(status="PENDENTE"), vistoriador
            )
        assert item.status == ITEM_PENDENTE
        assert item.concluido_em is None
        assert item.foto_id is None

    @pytest.mark.asyncio
    async def test_concluido_registra_data(self, mock_db_session, vistoriador):
        item = SimpleNamespace(
            id=4, vistoria_id=7, status=ITEM_PENDENTE, foto_id=None,
            observacao=None, concluido_em=None,
        )
        mock_db_session.get.return_value = item
        with patch.object(self.service, "_vistoria_autorizada", AsyncMock(return_value=_vistoria())):
            await self.service.atualizar_status_item(
                mock_db_session, 4,
                ChecklistItemStatusUpdate(status="CONCLUIDO", observacao="ok"),
                vistoriador,
            )
        assert item.concluido_em is not None
        assert item.observacao == "ok"

    @pytest.mark.asyncio
    async def test_foto_de_outra_vistoria(self, mock_db_session, vistoriador):
        item = self._concluido()
        mock_db_session.get.side_effect = [item, SimpleNamespace(id=30, vistoria_id=99)]
        with patch.object(self.service, "_vistoria_autorizada", AsyncMock(return_value=_vistoria())):
            with pytest.raises(ValidationError, match="Foto não pertence"):
                await self.service.atualizar_status_item(
                    mock_db_session, 4,
                    ChecklistItemStatusUpdate(status="CONCLUIDO", foto_id=30),
                    vistoriador,
                )

    @pytest.mark.asyncio
    async def test_item_inexistente(self, mock_db_session, vistoriador):
        mock_db_session.get.return_value = None
        with pytest.raises(NotFoundError):
            await self.service.atualizar_status_item(
                mock_db_session, 4, ChecklistItemStatusUpdate(status="PENDENTE"), vistoriador
            )
