"""
Vistoria Naval API — Storage Service Unit Tests
=================================================

What:  Tests for upload validation, image compression and the local object
       store (put / read / move / delete).
Why:   Upload validation is a security boundary and the key layout is what
       the photo and laudo rows point at.
How:   Each test gets its own storage root under tmp_path; images are real
       Pillow output.

Test Strategy:
    ✅ Allowed and rejected extensions
    ✅ Size limits (declared and actual), empty files
    ✅ Content must decode and match the extension
    ✅ Compression re-encodes to JPEG and never enlarges
    ✅ Keys cannot escape the storage root
"""

import io
from unittest.mock import patch

import pytest
from PIL import Image

from app.config import settings
from app.exceptions import FileStorageError, ValidationError
from app.services.storage_service import (
    StorageService,
    chave_temporaria,
    chave_vistoria,
    construir_chave,
    content_type_para,
    gerar_nome_foto,
)


class TestChaves:

    def test_nome_foto_de_checklist(self):
        nome = gerar_nome_foto(7)
        assert nome.startswith("foto-checklist-7-")
        assert nome.endswith(".jpg")

    def test_nome_foto_avulsa(self):
        assert gerar_nome_foto().startswith("foto-")
        assert "checklist" not in gerar_nome_foto()

    def test_prefixos(self):
        assert chave_vistoria(42, "a.jpg") == "vistorias/id-42/a.jpg"
        assert chave_temporaria("a.jpg") == "vistorias/temp/a.jpg"

    def test_construir_chave_nome_legado(self):
        assert construir_chave("foto-1.jpg", 3) == "vistorias/id-3/foto-1.jpg"

    def test_construir_chave_completa_inalterada(self):
        assert construir_chave("vistorias/id-9/foto-1.jpg", 3) == "vistorias/id-9/foto-1.jpg"

    def test_construir_chave_sem_vistoria(self):
        with pytest.raises(ValidationError):
            construir_chave("foto-1.jpg", None)

    def test_content_type(self):
        assert content_type_para("laudos/2024/05/laudo-1.pdf") == "application/pdf"
        assert content_type_para("a.PNG") == "image/png"
        assert content_type_para("sem-extensao") == "image/jpeg"


class TestValidacao:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = StorageService(storage_root=temp_storage)

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("nome", ["a.jpg", "a.JPEG", "a.png", "a.gif"])
    def test_extensoes_permitidas(self, nome):
        self.service.validar_extensao(nome)

    @pytest.mark.parametrize("nome", ["a.pdf", "a.exe", "sem_extensao", ""])
    def test_extensoes_rejeitadas(self, nome):
        with pytest.raises(ValidationError, match="não suportado"):
            self.service.validar_extensao(nome)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_tamanho_declarado_excedido(self):
        with pytest.raises(ValidationError, match="excede"):
            self.service.validar_tamanho(settings.max_file_size + 1, 100)

    def test_tamanho_real_excedido(self):
        with pytest.raises(ValidationError, match="excede"):
            self.service.validar_tamanho(None, settings.max_file_size + 1)

    def test_arquivo_vazio(self):
        with pytest.raises(ValidationError, match="vazio"):
            self.service.validar_tamanho(None, 0)

    # ── Content Validation ────────────────────────────────────────────────

    def test_conteudo_valido(self, sample_image_bytes):
        assert self.service.validar_conteudo(sample_image_bytes, ".jpg") == "JPEG"

    def test_conteudo_que_nao_e_imagem(self):
        with pytest.raises(ValidationError, match="não é uma imagem válida"):
            self.service.validar_conteudo(b"%PDF-1.4 not an image", ".jpg")

    def test_conteudo_diferente_da_extensao(self, sample_png_bytes):
        with pytest.raises(ValidationError, match="não corresponde"):
            self.service.validar_conteudo(sample_png_bytes, ".jpg")

    def test_bomba_de_descompressao(self, sample_png_bytes):
        # 64x48 is over twice this limit, so Image.open itself refuses it
        with patch.object(Image, "MAX_IMAGE_PIXELS", 1000):
            with pytest.raises(ValidationError, match="dimensões excessivas"):
                self.service.validar_conteudo(sample_png_bytes, ".png")

    def test_pixels_acima_do_limite(self, sample_png_bytes):
        with patch.object(settings, "image_max_pixels", 64 * 48 - 1):
            with pytest.raises(ValidationError, match="dimensões excessivas") as exc:
                self.service.validar_conteudo(sample_png_bytes, ".png")
        assert exc.value.context["width"] == 64
        assert exc.value.context["height"] == 48


class TestCompressao:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = StorageService(storage_root=temp_storage)

    @pytest.mark.asyncio
    async def test_reduz_dimensao(self, large_image_bytes):
        comprimido = await self.service.comprimir_imagem(large_image_bytes)
        with Image.open(io.BytesIO(comprimido)) as img:
            assert img.format == "JPEG"
            assert max(img.size) == settings.image_max_dimension
            # aspect ratio kept
            assert img.size[0] == 2 * img.size[1]

    @pytest.mark.asyncio
    async def test_nao_amplia(self, sample_png_bytes):
        comprimido = await self.service.comprimir_imagem(sample_png_bytes)
        with Image.open(io.BytesIO(comprimido)) as img:
            assert img.size == (64, 48)

    @pytest.mark.asyncio
    async def test_pipeline_completo(self, sample_png_bytes):
        resultado = await self.service.validar_e_preparar("foto.png", sample_png_bytes)
        assert resultado[:2] == b"\xff\xd8"

    @pytest.mark.asyncio
    async def test_bomba_na_compressao(self, sample_png_bytes):
        with patch.object(Image, "MAX_IMAGE_PIXELS", 1000):
            with pytest.raises(ValidationError, match="dimensões excessivas"):
                await self.service.comprimir_imagem(sample_png_bytes)


class TestObjetos:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = StorageService(storage_root=temp_storage)

    @pytest.mark.asyncio
    async def test_put_e_read(self):
        await self.service.put("vistorias/id-1/a.jpg", b"abc")
        assert self.service.exists("vistorias/id-1/a.jpg")
        assert await self.service.read("vistorias/id-1/a.jpg") == b"abc"

    @pytest.mark.asyncio
    async def test_read_inexistente(self):
        with pytest.raises(FileStorageError, match="não encontrado"):
            await self.service.read("vistorias/id-1/nada.jpg")

    @pytest.mark.asyncio
    async def test_move(self):
        await self.service.put("vistorias/temp/a.jpg", b"abc")
        await self.service.move("vistorias/temp/a.jpg", "vistorias/id-5/a.jpg")
        assert not self.service.exists("vistorias/temp/a.jpg")
        assert await self.service.read("vistorias/id-5/a.jpg") == b"abc"

    @pytest.mark.asyncio
    async def test_delete(self):
        await self.service.put("laudos/2024/05/laudo-1.pdf", b"%PDF")
        assert await self.service.delete("laudos/2024/05/laudo-1.pdf") is True
        assert await self.service.delete("laudos/2024/05/laudo-1.pdf") is False

    @pytest.mark.asyncio
    async def test_stream(self):
        await self.service.put("a/b.jpg", b"x" * 10)
        partes = [p async for p in self.service.stream("a/b.jpg", chunk_size=4)]
        assert partes == [b"xxxx", b"xxxx", b"xx"]

    def test_chave_fora_da_raiz(self):
        with pytest.raises(ValidationError, match="Chave de arquivo inválida"):
            self.service.caminho("../../etc/passwd")

    def test_health_check_e_info(self, temp_storage):
        assert self.service.health_check() is True
        info = self.service.info()
        assert info["estrategia"] == "local"
        assert "image/jpeg" in info["tipos_permitidos"]
