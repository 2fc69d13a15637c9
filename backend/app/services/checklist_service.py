"""
Vistoria Naval API — Checklist Service
========================================

What:  Checklist templates (one per vessel type) and the checklist items of
       each inspection.
Why:   The inspector app drives photo capture from the inspection's
       checklist; the administrator maintains the templates it is copied
       from.

How:
    Template ──copiar_template──▶ VistoriaChecklistItem rows (PENDENTE)
    Each copied item is a snapshot: editing the template later never
    touches inspections that already have items.

Item Status:
    PENDENTE ──▶ CONCLUIDO      concluido_em stamped
    PENDENTE ──▶ NAO_APLICAVEL
    any      ──▶ PENDENTE       concluido_em and the linked photo cleared
"""

import logging
import math
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import exigir_admin_ou_dono
from app.exceptions import BusinessRuleError, DatabaseError, NotFoundError, ValidationError
from app.models.checklist import (
    ITEM_CONCLUIDO,
    ITEM_NAO_APLICAVEL,
    ITEM_PENDENTE,
    ChecklistTemplate,
    ChecklistTemplateItem,
    VistoriaChecklistItem,
)
from app.models.mixins import utcnow
from app.models.usuario import Usuario
from app.models.vistoria import Foto, Vistoria
from app.schemas.checklist import (
    ChecklistItemCreate,
    ChecklistItemFoto,
    ChecklistItemResponse,
    ChecklistItemStatusUpdate,
    ProgressoResponse,
    TemplateCreate,
    TemplateItemCreate,
    TemplateItemUpdate,
    TemplateUpdate,
)
from app.services.storage_service import storage_service

logger = logging.getLogger(__name__)


def calcular_progresso(itens: Iterable[VistoriaChecklistItem]) -> ProgressoResponse:
    """
    Progress of an inspection checklist.

    percentual counts only CONCLUIDO items and rounds half up; pode_aprovar
    is true once no mandatory item is still PENDENTE.
    """
    itens = list(itens)
    total = len(itens)
    concluidos = sum(1 for i in itens if i.status == ITEM_CONCLUIDO)
    pendentes = sum(1 for i in itens if i.status == ITEM_PENDENTE)
    nao_aplicaveis = sum(1 for i in itens if i.status == ITEM_NAO_APLICAVEL)
    obrigatorios_pendentes = sum(
        1 for i in itens if i.obrigatorio and i.status == ITEM_PENDENTE
    )
    percentual = math.floor(concluidos / total * 100 + 0.5) if total else 0
    return ProgressoResponse(
        total=total,
        concluidos=concluidos,
        pendentes=pendentes,
        nao_aplicaveis=nao_aplicaveis,
        obrigatorios_pendentes=obrigatorios_pendentes,
        percentual=percentual,
        pode_aprovar=obrigatorios_pendentes == 0,
    )


def item_para_resposta(item: VistoriaChecklistItem) -> ChecklistItemResponse:
    resposta = ChecklistItemResponse.model_validate(item)
    if item.foto is not None:
        resposta.foto = ChecklistItemFoto(
            id=item.foto.id,
            url_arquivo=item.foto.url_arquivo,
            url=storage_service.url_publica(f"/api/fotos/{item.foto.id}/imagem"),
            created_at=item.foto.created_at,
        )
    return resposta


class ChecklistService:

    # ══════════════════════════════════════════════════════════════════════
    # Templates
    # ══════════════════════════════════════════════════════════════════════

    async def listar_templates(self, db: AsyncSession) -> List[ChecklistTemplate]:
        try:
            result = await db.execute(
                select(ChecklistTemplate)
                .where(ChecklistTemplate.ativo.is_(True))
                .order_by(ChecklistTemplate.tipo_embarcacao)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list checklist templates: %s", str(e))
            raise DatabaseError(context={"operation": "listar_templates"})

    async def obter_template(self, db: AsyncSession, template_id: int) -> ChecklistTemplate:
        result = await db.execute(
            select(ChecklistTemplate)
            .where(ChecklistTemplate.id == template_id)
            .execution_options(populate_existing=True)
        )
        template = result.scalar_one_or_none()
        if template is None:
            raise NotFoundError(resource="Template", resource_id=str(template_id))
        return template

    async def template_por_tipo(
        self, db: AsyncSession, tipo_embarcacao: str
    ) -> Optional[ChecklistTemplate]:
        result = await db.execute(
            select(ChecklistTemplate).where(
                ChecklistTemplate.tipo_embarcacao == tipo_embarcacao,
                ChecklistTemplate.ativo.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def criar_template(self, db: AsyncSession, dados: TemplateCreate) -> ChecklistTemplate:
        existente = await db.execute(
            select(ChecklistTemplate.id).where(
                ChecklistTemplate.tipo_embarcacao == dados.tipo_embarcacao
            )
        )
        if existente.first() is not None:
            raise ValidationError(
                message="Já existe um template para este tipo de embarcação",
                field="tipo_embarcacao",
            )

        template = ChecklistTemplate(
            tipo_embarcacao=dados.tipo_embarcacao,
            nome=dados.nome.strip(),
            descricao=dados.descricao,
        )
        template.itens = [
            ChecklistTemplateItem(
                ordem=item.ordem if item.ordem is not None else posicao,
                nome=item.nome.strip(),
                descricao=item.descricao,
                obrigatorio=item.obrigatorio,
                permite_video=item.permite_video,
            )
            for posicao, item in enumerate(dados.itens, start=1)
        ]
        try:
            db.add(template)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create checklist template: %s", str(e))
            raise DatabaseError(context={"operation": "criar_template"})
        logger.info(
            "Checklist template %s created for %s with %d items",
            template.id,
            template.tipo_embarcacao,
            len(template.itens),
        )
        return await self.obter_template(db, template.id)

    async def atualizar_template(
        self, db: AsyncSession, template_id: int, dados: TemplateUpdate
    ) -> ChecklistTemplate:
        template = await self.obter_template(db, template_id)
        for chave, valor in dados.model_dump(exclude_unset=True).items():
            if valor is not None:
                setattr(template, chave, valor)
        await db.flush()
        return await self.obter_template(db, template_id)

    async def adicionar_item_template(
        self, db: AsyncSession, template_id: int, dados: TemplateItemCreate
    ) -> ChecklistTemplateItem:
        template = await self.obter_template(db, template_id)
        ordem = dados.ordem
        if ordem is None:
            ordem = max((i.ordem for i in template.itens), default=0) + 1
        item = ChecklistTemplateItem(
            checklist_template_id=template.id,
            ordem=ordem,
            nome=dados.nome.strip(),
            descricao=dados.descricao,
            obrigatorio=dados.obrigatorio,
            permite_video=dados.permite_video,
        )
        db.add(item)
        await db.flush()
        await db.refresh(item)
        return item

    async def _obter_item_template(self, db: AsyncSession, item_id: int) -> ChecklistTemplateItem:
        item = await db.get(ChecklistTemplateItem, item_id)
        if item is None:
            raise NotFoundError(resource="Item", resource_id=str(item_id))
        return item

    async def atualizar_item_template(
        self, db: AsyncSession, item_id: int, dados: TemplateItemUpdate
    ) -> ChecklistTemplateItem:
        item = await self._obter_item_template(db, item_id)
        for chave, valor in dados.model_dump(exclude_unset=True).items():
            if valor is not None:
                setattr(item, chave, valor)
        await db.flush()
        await db.refresh(item)
        return item

    async def deletar_item_template(self, db: AsyncSession, item_id: int) -> ChecklistTemplateItem:
        item = await self._obter_item_template(db, item_id)
        await db.delete(item)
        await db.flush()
        return item

    # ══════════════════════════════════════════════════════════════════════
    # Inspection checklist
    # ══════════════════════════════════════════════════════════════════════

    async def _vistoria_autorizada(
        self, db: AsyncSession, vistoria_id: int, usuario: Usuario
    ) -> Vistoria:
        vistoria = await db.get(Vistoria, vistoria_id)
        if vistoria is None:
            raise NotFoundError(resource="Vistoria", resource_id=str(vistoria_id))
        exigir_admin_ou_dono(usuario, vistoria.vistoriador_id)
        return vistoria

    async def itens_da_vistoria(
        self, db: AsyncSession, vistoria_id: int
    ) -> List[VistoriaChecklistItem]:
        result = await db.execute(
            select(VistoriaChecklistItem)
            .where(VistoriaChecklistItem.vistoria_id == vistoria_id)
            .order_by(VistoriaChecklistItem.ordem, VistoriaChecklistItem.id)
            .execution_options(populate_existing=True)
        )
        return list(result.unique().scalars().all())

    async def copiar_template(
        self, db: AsyncSession, vistoria_id: int, usuario: Usuario
    ) -> List[VistoriaChecklistItem]:
        vistoria = await self._vistoria_autorizada(db, vistoria_id, usuario)
        tipo = vistoria.embarcacao.tipo_embarcacao if vistoria.embarcacao else None
        if not tipo:
            raise ValidationError(message="Tipo de embarcação não definido", field="tipo_embarcacao")

        template = await self.template_por_tipo(db, tipo)
        if template is None or not template.itens_ativos:
            raise NotFoundError(
                resource="Template de checklist",
                context={"tipo_embarcacao": tipo},
            )

        if await self.itens_da_vistoria(db, vistoria_id):
            raise BusinessRuleError(message="Esta vistoria já possui itens de checklist")

        for item_template in template.itens_ativos:
            db.add(
                VistoriaChecklistItem(
                    vistoria_id=vistoria_id,
                    template_item_id=item_template.id,
                    ordem=item_template.ordem,
                    nome=item_template.nome,
                    descricao=item_template.descricao,
                    obrigatorio=item_template.obrigatorio,
                    permite_video=item_template.permite_video,
                    status=ITEM_PENDENTE,
                )
            )
        await db.flush()
        itens = await self.itens_da_vistoria(db, vistoria_id)
        logger.info(
            "Copied %d checklist items from template %s into inspection %s",
            len(itens),
            template.id,
            vistoria_id,
        )
        return itens

    async def listar_itens(
        self, db: AsyncSession, vistoria_id: int, usuario: Usuario
    ) -> List[VistoriaChecklistItem]:
        await self._vistoria_autorizada(db, vistoria_id, usuario)
        return await self.itens_da_vistoria(db, vistoria_id)

    async def atualizar_status_item(
        self,
        db: AsyncSession,
        item_id: int,
        dados: ChecklistItemStatusUpdate,
        usuario: Usuario,
    ) -> VistoriaChecklistItem:
        item = await db.get(VistoriaChecklistItem, item_id)
        if item is None:
            raise NotFoundError(resource="Item", resource_id=str(item_id))
        await self._vistoria_autorizada(db, item.vistoria_id, usuario)

        campos = dados.model_dump(exclude_unset=True)
        if dados.foto_id is not None:
            foto = await db.get(Foto, dados.foto_id)
            if foto is None or foto.vistoria_id != item.vistoria_id:
                raise ValidationError(
                    message="Foto não pertence a esta vistoria", field="foto_id"
                )
            item.foto_id = foto.id

        item.status = dados.status
        if dados.status == ITEM_CONCLUIDO:
            item.concluido_em = utcnow()
        elif dados.status == ITEM_PENDENTE:
            item.concluido_em = None
            item.foto_id = None
        if "observacao" in campos:
            item.observacao = dados.observacao

        await db.flush()
        await db.refresh(item)
        logger.info("Checklist item %s set to %s by user %s", item_id, item.status, usuario.id)
        return item

    async def adicionar_item(
        self,
        db: AsyncSession,
        vistoria_id: int,
        dados: ChecklistItemCreate,
        usuario: Usuario,
    ) -> VistoriaChecklistItem:
        """Custom item appended after the last one."""
        await self._vistoria_autorizada(db, vistoria_id, usuario)
        ultima = await db.execute(
            select(func.max(VistoriaChecklistItem.ordem)).where(
                VistoriaChecklistItem.vistoria_id == vistoria_id
            )
        )
        ordem = (ultima.scalar() or 0) + 1
        item = VistoriaChecklistItem(
            vistoria_id=vistoria_id,
            ordem=ordem,
            nome=dados.nome.strip(),
            descricao=dados.descricao,
            obrigatorio=dados.obrigatorio,
            permite_video=dados.permite_video,
            status=ITEM_PENDENTE,
        )
        db.add(item)
        await db.flush()
        await db.refresh(item)
        return item

    async def progresso(
        self, db: AsyncSession, vistoria_id: int, usuario: Usuario
    ) -> ProgressoResponse:
        await self._vistoria_autorizada(db, vistoria_id, usuario)
        return calcular_progresso(await self.itens_da_vistoria(db, vistoria_id))


# ── Singleton Instance ────────────────────────────────────────────────────
checklist_service = ChecklistService()
