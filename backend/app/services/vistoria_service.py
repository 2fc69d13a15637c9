"""
Vistoria Naval API — Inspection Service
=========================================

What:  Business logic for the inspection lifecycle: creation by an
       administrator, listing, partial updates, the inspector's
       start/status transitions and the mandatory photo checklist summary.
Why:   Keeps routes thin; both /api/vistorias (admin) and /api/vistoriador
       (inspector app) share these operations.

Status Flow:
    PENDENTE ──iniciar──▶ EM_ANDAMENTO ──status──▶ CONCLUIDA ──▶ APROVADA
    (data_inicio stamped on start, data_conclusao stamped on CONCLUIDA)
"""

import logging
import math
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import exigir_admin_ou_dono
from app.exceptions import (
    BusinessRuleError,
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.models.cadastro import Local
from app.models.laudo import Laudo
from app.models.mixins import utcnow
from app.models.pagamento import LOTE_PAGO, LOTE_PENDENTE, LotePagamento, VistoriaLotePagamento
from app.models.usuario import Usuario
from app.models.vistoria import (
    STATUS_CONCLUIDA,
    STATUS_EM_ANDAMENTO,
    STATUS_PENDENTE,
    Foto,
    StatusVistoria,
    Vistoria,
)
from app.schemas.vistoria import (
    ChecklistFotoItem,
    ChecklistFotoResumo,
    ChecklistStatusResponse,
    ContatoAcompanhante,
    VistoriaCreate,
    VistoriaUpdate,
)
from app.services.cliente_service import normalizar_endereco
from app.services.embarcacao_service import embarcacao_service
from app.services.storage_service import construir_chave, storage_service
from app.services.tipo_foto_service import tipo_foto_service
from app.utils.validators import (
    converter_para_e164,
    limpar_valor_monetario,
    validar_email,
    validar_telefone_e164,
    validar_valor_monetario,
)

logger = logging.getLogger(__name__)

CAMPOS_VALOR = ("valor_embarcacao", "valor_vistoria", "valor_vistoriador")


def _normalizar_valores(campos: Dict[str, Any]) -> Dict[str, Any]:
    valores = {}
    for campo in CAMPOS_VALOR:
        if campo not in campos:
            continue
        valor = limpar_valor_monetario(campos[campo])
        if not validar_valor_monetario(valor):
            raise ValidationError(message=f"Valor inválido em {campo}", field=campo)
        valores[campo] = valor
    return valores


def _campos_contato(contato: Optional[ContatoAcompanhante]) -> Dict[str, Any]:
    """Flattens the companion contact into the contato_acompanhante_* columns."""
    if contato is None:
        return {}
    campos: Dict[str, Any] = {
        "contato_acompanhante_tipo": contato.tipo,
        "contato_acompanhante_nome": contato.nome,
        "contato_acompanhante_email": contato.email,
        "contato_acompanhante_telefone_e164": None,
    }
    if contato.email and not validar_email(contato.email):
        raise ValidationError(
            message="Email do contato acompanhante inválido",
            field="contato_acompanhante.email",
        )
    if contato.telefone:
        e164 = converter_para_e164(contato.telefone)
        if not validar_telefone_e164(e164):
            raise ValidationError(
                message="Telefone do contato acompanhante inválido",
                field="contato_acompanhante.telefone",
            )
        campos["contato_acompanhante_telefone_e164"] = e164
    return campos


def calcular_resumo_fotos(total: int, tiradas: int) -> ChecklistFotoResumo:
    progresso = math.floor(tiradas / total * 100 + 0.5) if total else 0
    return ChecklistFotoResumo(
        total=total,
        tiradas=tiradas,
        completo=tiradas >= total,
        progresso=progresso,
    )


class VistoriaService:

    # ── Lookups ───────────────────────────────────────────────────────────

    async def status_por_nome(self, db: AsyncSession, nome: str) -> StatusVistoria:
        result = await db.execute(select(StatusVistoria).where(StatusVistoria.nome == nome))
        status = result.scalar_one_or_none()
        if status is None:
            logger.error("Inspection status %s is missing from status_vistoria", nome)
            raise DatabaseError(
                message="Status de vistoria não encontrados no sistema",
                context={"status": nome},
            )
        return status

    async def listar(self, db: AsyncSession) -> List[Vistoria]:
        try:
            result = await db.execute(select(Vistoria).order_by(Vistoria.created_at.desc()))
            return list(result.unique().scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list inspections: %s", str(e))
            raise DatabaseError(context={"operation": "listar_vistorias"})

    async def listar_do_vistoriador(self, db: AsyncSession, vistoriador_id: int) -> List[Vistoria]:
        try:
            result = await db.execute(
                select(Vistoria)
                .where(Vistoria.vistoriador_id == vistoriador_id)
                .order_by(Vistoria.created_at.desc())
            )
            return list(result.unique().scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list inspections of inspector %s: %s", vistoriador_id, str(e))
            raise DatabaseError(context={"vistoriador_id": vistoriador_id})

    async def obter(self, db: AsyncSession, vistoria_id: int) -> Vistoria:
        # populate_existing refreshes relations already in the identity map
        result = await db.execute(
            select(Vistoria)
            .where(Vistoria.id == vistoria_id)
            .execution_options(populate_existing=True)
        )
        vistoria = result.unique().scalar_one_or_none()
        if vistoria is None:
            raise NotFoundError(resource="Vistoria", resource_id=str(vistoria_id))
        return vistoria

    async def obter_autorizada(
        self, db: AsyncSession, vistoria_id: int, usuario: Usuario
    ) -> Vistoria:
        """Admin or the assigned inspector."""
        vistoria = await self.obter(db, vistoria_id)
        exigir_admin_ou_dono(usuario, vistoria.vistoriador_id)
        return vistoria

    async def obter_do_vistoriador(
        self, db: AsyncSession, vistoria_id: int, usuario: Usuario
    ) -> Vistoria:
        """The assigned inspector only; used by the inspector app routes."""
        vistoria = await self.obter(db, vistoria_id)
        if vistoria.vistoriador_id != usuario.id:
            raise PermissionDeniedError(message="Acesso negado")
        return vistoria

    # ── Mutations ─────────────────────────────────────────────────────────

    async def criar(
        self, db: AsyncSession, dados: VistoriaCreate, administrador: Usuario
    ) -> Vistoria:
        vistoriador = await db.get(Usuario, dados.vistoriador_id)
        if vistoriador is None:
            raise ValidationError(message="Vistoriador não encontrado", field="vistoriador_id")

        valores = _normalizar_valores(dados.model_dump(include=set(CAMPOS_VALOR)))
        contato = _campos_contato(dados.contato_acompanhante)

        emb = dados.embarcacao
        embarcacao = await embarcacao_service.obter_ou_criar(
            db,
            emb.numero_casco,
            emb.nome,
            nr_inscricao_barco=emb.nr_inscricao_barco,
            tipo_embarcacao=emb.tipo_embarcacao,
            proprietario_nome=emb.proprietario_nome,
            proprietario_email=emb.proprietario_email,
            cliente_id=emb.cliente_id,
            valor_embarcacao=valores.get("valor_embarcacao"),
        )

        local = Local(**normalizar_endereco(dados.local.model_dump()))
        status = await self.status_por_nome(db, STATUS_PENDENTE)
        try:
            db.add(local)
            await db.flush()
            vistoria = Vistoria(
                embarcacao_id=embarcacao.id,
                local_id=local.id,
                vistoriador_id=vistoriador.id,
                administrador_id=administrador.id,
                status_id=status.id,
                **valores,
                **contato,
            )
            db.add(vistoria)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create inspection: %s", str(e))
            raise DatabaseError(context={"operation": "criar_vistoria"})

        logger.info(
            "Inspection %s created for vessel %s, assigned to inspector %s",
            vistoria.id,
            embarcacao.id,
            vistoriador.id,
        )
        return await self.obter(db, vistoria.id)

    async def _aplicar_atualizacao(
        self, db: AsyncSession, vistoria: Vistoria, dados: VistoriaUpdate
    ) -> None:
        campos = dados.model_dump(exclude_unset=True)

        if campos.get("status_id") is not None:
            novo_status = await db.get(StatusVistoria, campos["status_id"])
            if novo_status is None:
                raise ValidationError(message="Status de vistoria inválido", field="status_id")
            if novo_status.id != vistoria.status_id:
                if novo_status.nome == STATUS_CONCLUIDA:
                    vistoria.data_conclusao = utcnow()
                elif novo_status.nome == STATUS_EM_ANDAMENTO and vistoria.data_inicio is None:
                    vistoria.data_inicio = utcnow()
            vistoria.status_id = novo_status.id

        if campos.get("vistoriador_id") is not None:
            if await db.get(Usuario, campos["vistoriador_id"]) is None:
                raise ValidationError(message="Vistoriador não encontrado", field="vistoriador_id")
            vistoria.vistoriador_id = campos["vistoriador_id"]

        if "dados_rascunho" in campos:
            vistoria.dados_rascunho = campos["dados_rascunho"]

        for campo, valor in _normalizar_valores(campos).items():
            setattr(vistoria, campo, valor)

        if "contato_acompanhante" in campos:
            for campo, valor in _campos_contato(dados.contato_acompanhante).items():
                setattr(vistoria, campo, valor)

    async def atualizar(
        self, db: AsyncSession, vistoria_id: int, dados: VistoriaUpdate, usuario: Usuario
    ) -> Vistoria:
        vistoria = await self.obter_autorizada(db, vistoria_id, usuario)
        if dados.vistoriador_id is not None and not usuario.is_admin:
            raise PermissionDeniedError(
                message="Apenas administradores podem reatribuir a vistoria"
            )
        await self._aplicar_atualizacao(db, vistoria, dados)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to update inspection %s: %s", vistoria_id, str(e))
            raise DatabaseError(context={"vistoria_id": vistoria_id})
        return await self.obter(db, vistoria_id)

    async def atualizar_status(
        self, db: AsyncSession, vistoria_id: int, dados: VistoriaUpdate, usuario: Usuario
    ) -> Vistoria:
        """Inspector app update: owner only, reassignment ignored."""
        vistoria = await self.obter_do_vistoriador(db, vistoria_id, usuario)
        dados = dados.model_copy(update={"vistoriador_id": None})
        await self._aplicar_atualizacao(db, vistoria, dados)
        await db.flush()
        return await self.obter(db, vistoria_id)

    async def iniciar(self, db: AsyncSession, vistoria_id: int, usuario: Usuario) -> Vistoria:
        vistoria = await self.obter_do_vistoriador(db, vistoria_id, usuario)
        if vistoria.data_inicio is not None:
            raise BusinessRuleError(message="Esta vistoria já foi iniciada")

        pendente = await self.status_por_nome(db, STATUS_PENDENTE)
        em_andamento = await self.status_por_nome(db, STATUS_EM_ANDAMENTO)
        if vistoria.status_id != pendente.id:
            raise BusinessRuleError(message="Esta vistoria não pode ser iniciada no status atual")

        vistoria.data_inicio = utcnow()
        vistoria.status_id = em_andamento.id
        await db.flush()
        logger.info("Inspection %s started by inspector %s", vistoria_id, usuario.id)
        return await self.obter(db, vistoria_id)

    async def deletar(self, db: AsyncSession, vistoria_id: int) -> Vistoria:
        """Deletes the inspection; its photo objects and laudo PDF go with it."""
        vistoria = await self.obter(db, vistoria_id)
        em_lote = await db.execute(
            select(VistoriaLotePagamento.id)
            .join(LotePagamento, LotePagamento.id == VistoriaLotePagamento.lote_pagamento_id)
            .where(
                VistoriaLotePagamento.vistoria_id == vistoria_id,
                LotePagamento.status.in_((LOTE_PENDENTE, LOTE_PAGO)),
            )
        )
        if em_lote.first() is not None:
            raise BusinessRuleError(
                message="Vistoria vinculada a um lote de pagamento não pode ser excluída"
            )

        chaves = [construir_chave(f.url_arquivo, vistoria.id) for f in vistoria.fotos]

        laudo = (
            await db.execute(select(Laudo).where(Laudo.vistoria_id == vistoria_id))
        ).scalar_one_or_none()
        if laudo is not None and laudo.url_pdf:
            chaves.append(laudo.url_pdf)

        try:
            if laudo is not None:
                await db.delete(laudo)
            await db.delete(vistoria)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete inspection %s: %s", vistoria_id, str(e))
            raise DatabaseError(
                message="Não foi possível excluir a vistoria.",
                context={"vistoria_id": vistoria_id},
            )

        # Objects go only after the rows are gone
        for chave in chaves:
            await storage_service.delete(chave)
        logger.info("Inspection %s deleted with %d stored objects", vistoria_id, len(chaves))
        return vistoria

    # ── Inspector photo checklist ─────────────────────────────────────────

    async def checklist_status(
        self, db: AsyncSession, vistoria_id: int, usuario: Usuario
    ) -> ChecklistStatusResponse:
        await self.obter_do_vistoriador(db, vistoria_id, usuario)
        tipos = await tipo_foto_service.listar_obrigatorios(db)
        result = await db.execute(
            select(Foto).where(Foto.vistoria_id == vistoria_id).order_by(Foto.created_at)
        )
        fotos = list(result.unique().scalars().all())

        # First photo per type is the one shown
        primeira_por_tipo: Dict[int, Foto] = {}
        for foto in fotos:
            primeira_por_tipo.setdefault(foto.tipo_foto_id, foto)

        itens = []
        for tipo in tipos:
            foto = primeira_por_tipo.get(tipo.id)
            itens.append(
                ChecklistFotoItem(
                    id=tipo.id,
                    codigo=tipo.codigo,
                    nome_exibicao=tipo.nome_exibicao,
                    descricao=tipo.descricao,
                    obrigatorio=tipo.obrigatorio,
                    foto_tirada=foto is not None,
                    foto_url=(
                        storage_service.url_publica(f"/api/fotos/{foto.id}/imagem")
                        if foto is not None
                        else None
                    ),
                    foto_observacao=foto.observacao if foto is not None else None,
                )
            )

        tiradas = sum(1 for item in itens if item.foto_tirada)
        return ChecklistStatusResponse(
            checklist=itens,
            resumo=calcular_resumo_fotos(len(itens), tiradas),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
vistoria_service = VistoriaService()
