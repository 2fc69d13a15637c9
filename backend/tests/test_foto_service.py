"""
Vistoria Naval API — Photo Service Unit Tests
===============================================

What:  The upload pipeline around the object store and the checklist link.
How:   A real StorageService on a temp root; vistoria / tipo lookups are
       patched on the foto_service module.

What we test:
    ✅ Failed authorization removes the staged object
    ✅ A checklist item from another inspection is rejected (400)
    ✅ An explicit checklist item wins over keyword matching
    ✅ Keyword matching links the PENDENTE item for the photo type
    ✅ A failing checklist link never fails the upload
"""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.exceptions import PermissionDeniedError, ValidationError
from app.models.checklist import ITEM_CONCLUIDO, ITEM_PENDENTE
from app.services.foto_service import FotoService
from app.services.storage_service import StorageService

VISTORIA = SimpleNamespace(id=7, vistoriador_id=2)
TIPO_CASCO = SimpleNamespace(id=3, codigo="CASCO", nome_exibicao="Foto do Casco")


def _arquivos(raiz: str):
    return sorted(str(p.relative_to(raiz)) for p in Path(raiz).rglob("*") if p.is_file())


def _savepoint():
    savepoint = MagicMock()
    savepoint.__aenter__.return_value = None
    savepoint.__aexit__.return_value = False
    return MagicMock(return_value=savepoint)


def _item(id, nome, vistoria_id=7, status=ITEM_PENDENTE):
    return SimpleNamespace(
        id=id, nome=nome, vistoria_id=vistoria_id, status=status,
        foto_id=None, concluido_em=None,
    )


class TestUpload:

    @pytest.fixture(autouse=True)
    def _dependencias(self, temp_storage):
        self.raiz = temp_storage
        self.service = FotoService()
        storage = StorageService(storage_root=temp_storage)
        with patch("app.services.foto_service.storage_service", storage), \
             patch("app.services.foto_service.vistoria_service") as mock_vistorias, \
             patch("app.services.foto_service.tipo_foto_service") as mock_tipos:
            mock_vistorias.obter_autorizada = AsyncMock(return_value=VISTORIA)
            mock_tipos.obter = AsyncMock(return_value=TIPO_CASCO)
            self.mock_vistorias = mock_vistorias
            yield

    @pytest.mark.asyncio
    async def test_acesso_negado_remove_temporario(
        self, mock_db_session, vistoriador, sample_image_bytes
    ):
        self.mock_vistorias.obter_autorizada.side_effect = PermissionDeniedError()

        with pytest.raises(PermissionDeniedError):
            await self.service.upload(
                mock_db_session, vistoriador, "casco.jpg", sample_image_bytes,
                vistoria_id=7, tipo_foto_id=3,
            )

        assert _arquivos(self.raiz) == []
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_item_de_outra_vistoria(self, mock_db_session, admin, sample_image_bytes):
        mock_db_session.get.return_value = _item(5, "Casco", vistoria_id=99)

        with pytest.raises(ValidationError, match="não pertence a esta vistoria"):
            await self.service.upload(
                mock_db_session, admin, "casco.jpg", sample_image_bytes,
                vistoria_id=7, tipo_foto_id=3, checklist_item_id=5,
            )

        assert _arquivos(self.raiz) == []

    @pytest.mark.asyncio
    async def test_item_explicito_tem_prioridade(self, mock_db_session, admin, sample_image_bytes):
        explicito = _item(5, "Plaqueta do motor")
        mock_db_session.get.return_value = explicito
        mock_db_session.begin_nested = _savepoint()

        foto = await self.service.upload(
            mock_db_session, admin, "casco.jpg", sample_image_bytes,
            vistoria_id=7, tipo_foto_id=3, checklist_item_id=5,
        )

        assert explicito.status == ITEM_CONCLUIDO
        assert explicito.concluido_em is not None
        assert foto.checklist_item_id == 5
        # no keyword lookup when the item was given
        mock_db_session.execute.assert_not_called()
        arquivos = _arquivos(self.raiz)
        assert len(arquivos) == 1
        assert arquivos[0].startswith("vistorias/id-7/foto-checklist-5-")

    @pytest.mark.asyncio
    async def test_vincula_por_palavra_chave(self, mock_db_session, admin, sample_image_bytes):
        motor = _item(10, "Motor")
        casco = _item(11, "Casco - vista lateral")
        result = MagicMock()
        result.unique.return_value.scalars.return_value.all.return_value = [motor, casco]
        mock_db_session.execute.return_value = result
        mock_db_session.begin_nested = _savepoint()

        foto = await self.service.upload(
            mock_db_session, admin, "casco.jpg", sample_image_bytes,
            vistoria_id=7, tipo_foto_id=3,
        )

        assert foto.checklist_item_id == 11
        assert casco.status == ITEM_CONCLUIDO
        assert motor.status == ITEM_PENDENTE

    @pytest.mark.asyncio
    async def test_falha_no_vinculo_nao_falha_upload(
        self, mock_db_session, admin, sample_image_bytes
    ):
        mock_db_session.begin_nested = MagicMock(side_effect=RuntimeError("savepoint"))

        foto = await self.service.upload(
            mock_db_session, admin, "casco.jpg", sample_image_bytes,
            vistoria_id=7, tipo_foto_id=3, observacao="Casco lateral",
        )

        assert foto.checklist_item_id is None
        assert foto.observacao == "Casco lateral"
        assert foto.url_arquivo.startswith("vistorias/id-7/")
        mock_db_session.add.assert_called_once_with(foto)
        mock_db_session.refresh.assert_awaited_once_with(foto)
        assert _arquivos(self.raiz) == [foto.url_arquivo]
