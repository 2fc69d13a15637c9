"""
Vistoria Naval API — Object Storage Service
=============================================

What:  Validates, compresses and stores inspection photos and laudo PDFs in
       a local object store addressed by S3-style keys.
Why:   Routes and services deal in keys ("vistorias/id-42/foto-...jpg"),
       never in file-system paths, so every object lives under one root and
       nothing outside it can be reached.
Who:   Called by FotoService (upload / move / delete / stream) and
       LaudoService (PDF write / read / delete).

Key Layout:
    vistorias/temp/<name>                                  staged upload
    vistorias/id-<vistoria>/foto-checklist-<item>-<ts>-<rand>.jpg
    vistorias/id-<vistoria>/foto-<ts>-<rand>.jpg
    laudos/<YYYY>/<MM>/laudo-<id>.pdf

Upload Validation (cheapest first):
    1. Extension:  .jpg / .jpeg / .png / .gif
    2. Size:       Content-Length header, then actual byte count
    3. Content:    Pillow decodes the header; the detected format must be
                   allowed and match the extension
    4. Compress:   fit inside image_max_dimension² without enlarging,
                   re-encode as progressive JPEG at image_jpeg_quality
"""

import asyncio
import io
import logging
import os
import random
import time
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

import aiofiles
from PIL import Image, ImageOps, UnidentifiedImageError

from app.config import settings
from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Extension → Pillow format name
ALLOWED_EXTENSIONS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".gif": "GIF",
}

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".pdf": "application/pdf",
}

PREFIXO_TEMP = "vistorias/temp"


def content_type_para(chave: str) -> str:
    """Content type by extension; unknown extensions are served as JPEG."""
    return CONTENT_TYPES.get(Path(chave).suffix.lower(), "image/jpeg")


def gerar_nome_foto(checklist_item_id: Optional[int] = None) -> str:
    timestamp = int(time.time() * 1000)
    sufixo = random.randint(0, 999_999_999)
    if checklist_item_id is not None:
        return f"foto-checklist-{checklist_item_id}-{timestamp}-{sufixo}.jpg"
    return f"foto-{timestamp}-{sufixo}.jpg"


def chave_vistoria(vistoria_id: int, nome_arquivo: str) -> str:
    return f"vistorias/id-{vistoria_id}/{nome_arquivo}"


def chave_temporaria(nome_arquivo: str) -> str:
    return f"{PREFIXO_TEMP}/{nome_arquivo}"


def construir_chave(url_arquivo: str, vistoria_id: Optional[int]) -> str:
    """
    Full object key for a stored photo.

    Rows written by older clients hold only the file name; those are placed
    under the inspection prefix. A key that already contains a '/' is kept.
    """
    if not url_arquivo:
        raise ValidationError(message="Arquivo da foto não informado", field="url_arquivo")
    if "/" in url_arquivo:
        return url_arquivo
    if vistoria_id is None:
        raise ValidationError(
            message="vistoria_id é obrigatório para montar a chave da foto",
            field="vistoria_id",
        )
    return chave_vistoria(vistoria_id, url_arquivo)


class StorageService:
    """
    Local object store rooted at settings.storage_root.

    Directory Structure:
        uploads/
        ├── vistorias/
        │   ├── temp/
        │   └── id-42/
        │       ├── foto-checklist-7-1700000000000-123456789.jpg
        │       └── foto-1700000000500-987654321.jpg
        └── laudos/
            └── 2024/
                └── 05/
                    └── laudo-3.pdf
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("StorageService initialized with storage_root=%s", self.storage_root)

    # ── Keys & paths ──────────────────────────────────────────────────────

    def caminho(self, chave: str) -> Path:
        """Absolute path of a key. Keys escaping the root are rejected."""
        caminho = (self.storage_root / chave.lstrip("/")).resolve()
        if caminho != self.storage_root and self.storage_root not in caminho.parents:
            raise ValidationError(message="Chave de arquivo inválida", field="chave")
        return caminho

    def url_publica(self, caminho_api: str) -> str:
        """Absolute URL for an API path such as /api/fotos/3/imagem."""
        return f"{settings.public_base_url.rstrip('/')}/{caminho_api.lstrip('/')}"

    def health_check(self) -> bool:
        """True when the storage root exists and accepts writes."""
        return self.storage_root.is_dir() and os.access(self.storage_root, os.W_OK)

    def info(self) -> Dict[str, Any]:
        return {
            "estrategia": "local",
            "tamanho_maximo": settings.max_file_size,
            "tamanho_maximo_mb": round(settings.max_file_size / (1024 * 1024), 1),
            "tipos_permitidos": sorted(set(CONTENT_TYPES[e] for e in ALLOWED_EXTENSIONS)),
            "localizacao": str(self.storage_root),
            "compressao": {
                "dimensao_maxima": settings.image_max_dimension,
                "qualidade_jpeg": settings.image_jpeg_quality,
            },
        }

    # ── Validation ────────────────────────────────────────────────────────

    def validar_extensao(self, filename: str) -> str:
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"Tipo de arquivo '{ext or filename}' não suportado. "
                    f"Tipos permitidos: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="foto",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validar_tamanho(self, content_length: Optional[int], actual_size: int) -> None:
        max_mb = settings.max_file_size / (1024 * 1024)
        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"Arquivo excede o tamanho máximo de {max_mb:.0f}MB",
                field="foto",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )
        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=(
                    f"Arquivo ({actual_size / (1024 * 1024):.1f}MB) excede o tamanho "
                    f"máximo de {max_mb:.0f}MB"
                ),
                field="foto",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )
        if actual_size == 0:
            raise ValidationError(message="Arquivo vazio", field="foto")

    def validar_conteudo(self, content: bytes, extensao: str) -> str:
        """Decodes the image header; returns the Pillow format name."""
        try:
            with Image.open(io.BytesIO(content)) as img:
                formato = img.format
                largura, altura = img.size
                img.verify()
        except Image.DecompressionBombError as e:
            raise ValidationError(
                message="Imagem com dimensões excessivas",
                field="foto",
                context={"error": str(e)},
            )
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationError(
                message="O arquivo enviado não é uma imagem válida",
                field="foto",
                context={"error": str(e)},
            )

        if formato not in set(ALLOWED_EXTENSIONS.values()):
            raise ValidationError(
                message=f"Formato de imagem '{formato}' não suportado",
                field="foto",
                context={"detected_format": formato},
            )
        if ALLOWED_EXTENSIONS[extensao] != formato:
            raise ValidationError(
                message="O conteúdo do arquivo não corresponde à extensão informada",
                field="foto",
                context={"extension": extensao, "detected_format": formato},
            )
        if largura * altura > settings.image_max_pixels:
            raise ValidationError(
                message="Imagem com dimensões excessivas",
                field="foto",
                context={
                    "width": largura,
                    "height": altura,
                    "max_pixels": settings.image_max_pixels,
                },
            )
        return formato

    # ── Compression ───────────────────────────────────────────────────────

    def _comprimir_sync(self, content: bytes) -> bytes:
        limite = settings.image_max_dimension
        with Image.open(io.BytesIO(content)) as img:
            # Phones store orientation in EXIF; bake it in before dropping metadata
            img = ImageOps.exif_transpose(img)
            if img.mode != "RGB":
                img = img.convert("RGB")
            # thumbnail() keeps aspect ratio and never enlarges
            img.thumbnail((limite, limite), Image.Resampling.LANCZOS)
            buffer = io.BytesIO()
            img.save(
                buffer,
                format="JPEG",
                quality=settings.image_jpeg_quality,
                optimize=True,
                progressive=True,
            )
        return buffer.getvalue()

    async def comprimir_imagem(self, content: bytes) -> bytes:
        try:
            comprimido = await asyncio.to_thread(self._comprimir_sync, content)
        except Image.DecompressionBombError as e:
            raise ValidationError(
                message="Imagem com dimensões excessivas",
                field="foto",
                context={"error": str(e)},
            )
        except (UnidentifiedImageError, OSError) as e:
            logger.error("Image compression failed: %s", str(e))
            raise FileStorageError(
                message="Não foi possível processar a imagem enviada",
                context={"error": str(e)},
            )
        logger.info("Image compressed: %d → %d bytes", len(content), len(comprimido))
        return comprimido

    # ── Object operations ─────────────────────────────────────────────────

    async def put(self, chave: str, content: bytes) -> str:
        destino = self.caminho(chave)
        try:
            destino.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(destino, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store object %s: %s", chave, str(e))
            raise FileStorageError(
                message="Falha ao salvar o arquivo. Tente novamente.",
                context={"key": chave, "os_error": str(e)},
            )
        logger.info("Object stored: %s (%d bytes)", chave, len(content))
        return chave

    async def read(self, chave: str) -> bytes:
        origem = self.caminho(chave)
        try:
            async with aiofiles.open(origem, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise FileStorageError(
                message="Arquivo não encontrado no armazenamento",
                context={"key": chave},
            )
        except OSError as e:
            logger.error("Failed to read object %s: %s", chave, str(e))
            raise FileStorageError(context={"key": chave, "os_error": str(e)})

    def exists(self, chave: str) -> bool:
        return self.caminho(chave).is_file()

    async def stream(self, chave: str, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
        async with aiofiles.open(self.caminho(chave), "rb") as f:
            while True:
                chunk = await f.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    async def delete(self, chave: str) -> bool:
        """Best effort: missing objects and I/O errors are logged, never raised."""
        try:
            caminho = self.caminho(chave)
            if caminho.exists():
                os.remove(caminho)
                logger.info("Object deleted: %s", chave)
                return True
            logger.debug("Delete: object already gone: %s", chave)
        except Exception as e:
            logger.warning("Failed to delete object %s: %s", chave, str(e))
        return False

    async def move(self, origem: str, destino: str) -> str:
        """Copy then delete, the same contract an S3 rename has."""
        content = await self.read(origem)
        await self.put(destino, content)
        await self.delete(origem)
        logger.info("Object moved: %s → %s", origem, destino)
        return destino

    # ── Upload pipeline ───────────────────────────────────────────────────

    async def validar_e_preparar(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> bytes:
        """Runs every upload check and returns the compressed JPEG bytes."""
        ext = self.validar_extensao(filename)
        self.validar_tamanho(content_length, len(content))
        self.validar_conteudo(content, ext)
        return await self.comprimir_imagem(content)


# ── Singleton Instance ────────────────────────────────────────────────────
storage_service = StorageService()
