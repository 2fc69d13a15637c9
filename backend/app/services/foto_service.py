"""
Vistoria Naval API — Photo Service
====================================

What:  Upload, listing, streaming and deletion of inspection photos, plus the
       automatic linking of an uploaded photo to a checklist item.
Why:   The inspector app uploads one photo per checklist step; linking the
       photo completes the step without a second request.

Upload Flow:
    1. Validate + compress       (StorageService.validar_e_preparar)
    2. Stage under vistorias/temp/<name>
    3. Authorize (admin or assigned inspector), check tipo / checklist item
       → on failure the staged object is deleted
    4. Move into vistorias/id-<vistoria>/<name>  (copy + delete)
    5. Insert the fotos row
    6. Link a checklist item inside a savepoint; a failure here is logged
       and never fails the upload

Checklist Linking:
    explicit checklist_item_id (must belong to the inspection) wins;
    otherwise the PENDENTE item whose name matches the photo type, first by
    exact name and then by keyword family (casco, motor, proa, ...).
"""

import logging
import re
from typing import AsyncIterator, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import exigir_admin_ou_dono
from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.checklist import ITEM_CONCLUIDO, ITEM_PENDENTE, VistoriaChecklistItem
from app.models.mixins import utcnow
from app.models.usuario import Usuario
from app.models.vistoria import Foto, TipoFotoChecklist
from app.schemas.vistoria import FotoResponse, FotoUrlResponse
from app.services.storage_service import (
    chave_temporaria,
    chave_vistoria,
    construir_chave,
    content_type_para,
    gerar_nome_foto,
    storage_service,
)
from app.services.tipo_foto_service import tipo_foto_service
from app.services.vistoria_service import vistoria_service

logger = logging.getLogger(__name__)

# Keyword family → spellings that identify it in a photo type or item name
MAPA_PALAVRAS_CHAVE: Dict[str, Tuple[str, ...]] = {
    "casco": ("casco", "chassi", "hull"),
    "motor": ("motor", "engine", "máquina", "maquina"),
    "interior": ("interior", "inside", "interno"),
    "documento": ("documento", "tie", "inscrição", "inscricao"),
    "proa": ("proa", "bow", "frente"),
    "popa": ("popa", "stern", "traseira"),
}

_PREFIXO_FOTO_RE = re.compile(r"^foto\s+(do|da|dos|das)\s+")


def normalizar_nome(nome: Optional[str]) -> str:
    """'Foto do Casco' → 'casco'; 'PLAQUETA_MOTOR' → 'plaqueta motor'."""
    texto = (nome or "").replace("_", " ").lower().strip()
    return _PREFIXO_FOTO_RE.sub("", texto).strip()


def _contem_palavra(texto: str, palavra: str) -> bool:
    # Short spellings ("tie", "bow") must match a whole word
    if len(palavra) <= 4:
        return re.search(rf"\b{re.escape(palavra)}\b", texto) is not None
    return palavra in texto


def encontrar_item_por_palavra_chave(
    itens: Iterable[VistoriaChecklistItem],
    tipo_codigo: Optional[str],
    tipo_nome: Optional[str],
) -> Optional[VistoriaChecklistItem]:
    """
    Best PENDENTE checklist item for a photo of the given type, or None.

    Exact (normalized) name match first; then the first keyword family that
    appears in the type and also in an item name.
    """
    pendentes = [i for i in itens if i.status == ITEM_PENDENTE]
    if not pendentes:
        return None

    alvos = {n for n in (normalizar_nome(tipo_nome), normalizar_nome(tipo_codigo)) if n}
    for item in pendentes:
        if normalizar_nome(item.nome) in alvos:
            return item

    texto_tipo = " ".join(sorted(alvos))
    for variacoes in MAPA_PALAVRAS_CHAVE.values():
        if not any(_contem_palavra(texto_tipo, v) for v in variacoes):
            continue
        for item in pendentes:
            nome_item = normalizar_nome(item.nome)
            if any(_contem_palavra(nome_item, v) for v in variacoes):
                return item
    return None


def foto_para_resposta(foto: Foto) -> FotoResponse:
    resposta = FotoResponse.model_validate(foto)
    resposta.url = storage_service.url_publica(f"/api/fotos/{foto.id}/imagem")
    return resposta


class FotoService:

    async def obter(self, db: AsyncSession, foto_id: int) -> Foto:
        foto = await db.get(Foto, foto_id)
        if foto is None:
            raise NotFoundError(resource="Foto", resource_id=str(foto_id))
        return foto

    async def _obter_autorizada(self, db: AsyncSession, foto_id: int, usuario: Usuario) -> Foto:
        foto = await self.obter(db, foto_id)
        await vistoria_service.obter_autorizada(db, foto.vistoria_id, usuario)
        return foto

    async def listar(self, db: AsyncSession, vistoria_id: int, usuario: Usuario) -> List[Foto]:
        await vistoria_service.obter_autorizada(db, vistoria_id, usuario)
        result = await db.execute(
            select(Foto).where(Foto.vistoria_id == vistoria_id).order_by(Foto.created_at)
        )
        return list(result.unique().scalars().all())

    # ── Upload ────────────────────────────────────────────────────────────

    async def upload(
        self,
        db: AsyncSession,
        usuario: Usuario,
        filename: str,
        content: bytes,
        vistoria_id: int,
        tipo_foto_id: int,
        checklist_item_id: Optional[int] = None,
        observacao: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> Foto:
        comprimido = await storage_service.validar_e_preparar(filename, content, content_length)

        nome_arquivo = gerar_nome_foto(checklist_item_id)
        chave_temp = chave_temporaria(nome_arquivo)
        await storage_service.put(chave_temp, comprimido)

        try:
            vistoria = await vistoria_service.obter_autorizada(db, vistoria_id, usuario)
            tipo = await tipo_foto_service.obter(db, tipo_foto_id)
            item_explicito = None
            if checklist_item_id is not None:
                item_explicito = await db.get(VistoriaChecklistItem, checklist_item_id)
                if item_explicito is None or item_explicito.vistoria_id != vistoria.id:
                    raise ValidationError(
                        message="Item de checklist não pertence a esta vistoria",
                        field="checklist_item_id",
                    )
        except Exception:
            await storage_service.delete(chave_temp)
            raise

        chave_final = await storage_service.move(
            chave_temp, chave_vistoria(vistoria.id, nome_arquivo)
        )

        foto = Foto(
            url_arquivo=chave_final,
            observacao=observacao,
            vistoria_id=vistoria.id,
            tipo_foto_id=tipo.id,
            checklist_item_id=checklist_item_id,
        )
        try:
            db.add(foto)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to save photo row for %s: %s", chave_final, str(e))
            await storage_service.delete(chave_final)
            raise DatabaseError(context={"vistoria_id": vistoria.id})

        await self._vincular_checklist(db, foto, tipo, item_explicito)
        await db.refresh(foto)
        logger.info(
            "Photo %s uploaded to inspection %s (tipo=%s, item=%s)",
            foto.id,
            vistoria.id,
            tipo.codigo,
            foto.checklist_item_id,
        )
        return foto

    async def _vincular_checklist(
        self,
        db: AsyncSession,
        foto: Foto,
        tipo: TipoFotoChecklist,
        item_explicito: Optional[VistoriaChecklistItem],
    ) -> Optional[VistoriaChecklistItem]:
        try:
            async with db.begin_nested():
                item = item_explicito
                if item is None:
                    result = await db.execute(
                        select(VistoriaChecklistItem)
                        .where(
                            VistoriaChecklistItem.vistoria_id == foto.vistoria_id,
                            VistoriaChecklistItem.status == ITEM_PENDENTE,
                        )
                        .order_by(VistoriaChecklistItem.ordem)
                    )
                    item = encontrar_item_por_palavra_chave(
                        result.unique().scalars().all(), tipo.codigo, tipo.nome_exibicao
                    )
                if item is None:
                    logger.debug("No checklist item matched photo %s", foto.id)
                    return None
                item.status = ITEM_CONCLUIDO
                item.foto_id = foto.id
                item.concluido_em = utcnow()
                foto.checklist_item_id = item.id
            logger.info("Photo %s linked to checklist item %s", foto.id, item.id)
            return item
        except Exception as e:
            logger.warning("Checklist linking failed for photo %s: %s", foto.id, str(e))
            return None

    # ── Read ──────────────────────────────────────────────────────────────

    async def imagem(
        self, db: AsyncSession, foto_id: int, usuario: Usuario
    ) -> Tuple[AsyncIterator[bytes], str]:
        """Chunk iterator over the stored object and its content type."""
        foto = await self._obter_autorizada(db, foto_id, usuario)
        chave = construir_chave(foto.url_arquivo, foto.vistoria_id)
        if not storage_service.exists(chave):
            raise NotFoundError(resource="Arquivo da foto", resource_id=str(foto_id))
        return storage_service.stream(chave), content_type_para(chave)

    async def url(self, db: AsyncSession, foto_id: int, usuario: Usuario) -> FotoUrlResponse:
        foto = await self._obter_autorizada(db, foto_id, usuario)
        chave = construir_chave(foto.url_arquivo, foto.vistoria_id)
        return FotoUrlResponse(
            id=foto.id,
            chave=chave,
            url=storage_service.url_publica(f"/api/fotos/{foto.id}/imagem"),
            content_type=content_type_para(chave),
        )

    # ── Delete ────────────────────────────────────────────────────────────

    async def deletar(self, db: AsyncSession, foto_id: int, usuario: Usuario) -> Foto:
        foto = await self._obter_autorizada(db, foto_id, usuario)
        chave = construir_chave(foto.url_arquivo, foto.vistoria_id)
        try:
            await db.execute(
                update(VistoriaChecklistItem)
                .where(VistoriaChecklistItem.foto_id == foto.id)
                .values(foto_id=None)
            )
            await db.delete(foto)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete photo %s: %s", foto_id, str(e))
            raise DatabaseError(context={"foto_id": foto_id})
        await storage_service.delete(chave)
        return foto


# ── Singleton Instance ────────────────────────────────────────────────────
foto_service = FotoService()
