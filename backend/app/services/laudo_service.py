"""
Vistoria Naval API — Laudo Service
====================================

What:  Creation, autofill, update and deletion of laudos, PDF generation and
       download, and the company branding (configuração de laudo).
Why:   A concluded inspection becomes a laudo; most of its header is already
       known from the inspection, the vessel and the client, so the
       administrator only fills what the inspection did not capture.

Autofill Precedence (applied when a laudo is created):
    explicit request value  >  vistoria / embarcação / cliente data  >  defaults

PDF Flow:
    1. Load the photos of the inspection (upload order) and their bytes
    2. Render off the event loop (asyncio.to_thread → renderizar_laudo)
    3. Store at laudos/<YYYY>/<MM>/laudo-<id>.pdf, drop the previous PDF
    4. Stamp url_pdf + data_geracao
"""

import asyncio
import logging
import random
import string
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    BusinessRuleError,
    DatabaseError,
    FileStorageError,
    NotFoundError,
)
from app.models.laudo import ConfiguracaoLaudo, Laudo
from app.models.mixins import utcnow
from app.models.usuario import Usuario
from app.models.vistoria import STATUS_CONCLUIDA, Foto, Vistoria
from app.schemas.laudo import ConfiguracaoLaudoUpdate, LaudoCreate, LaudoUpdate
from app.services.laudo_pdf import FotoLaudo, renderizar_laudo
from app.services.storage_service import construir_chave, storage_service
from app.services.vistoria_service import vistoria_service

logger = logging.getLogger(__name__)


def gerar_numero_laudo(agora: Optional[datetime] = None) -> str:
    """YYMMDD followed by a random capital letter, e.g. '240517K'."""
    agora = agora or datetime.now()
    return f"{agora:%y%m%d}{random.choice(string.ascii_uppercase)}"


def chave_pdf(laudo_id: int, agora: Optional[datetime] = None) -> str:
    agora = agora or utcnow()
    return f"laudos/{agora:%Y}/{agora:%m}/laudo-{laudo_id}.pdf"


def formatar_endereco(origem: Any) -> Optional[str]:
    """
    'Rua A, 10, Apto 2, Centro, Santos/SP, CEP: 11000000' from any object
    with the usual address columns. None when every part is empty.
    """
    if origem is None:
        return None
    partes = [
        getattr(origem, "logradouro", None),
        getattr(origem, "numero", None),
        getattr(origem, "complemento", None),
        getattr(origem, "bairro", None),
    ]
    cidade = getattr(origem, "cidade", None)
    estado = getattr(origem, "estado", None)
    if cidade and estado:
        partes.append(f"{cidade}/{estado}")
    else:
        partes.append(cidade or estado)
    texto = ", ".join(p for p in partes if p)
    cep = getattr(origem, "cep", None)
    if cep:
        texto = f"{texto}, CEP: {cep}" if texto else f"CEP: {cep}"
    return texto or None


def _local_descricao(local: Any) -> Optional[str]:
    if local is None:
        return None
    endereco = formatar_endereco(local)
    nome = getattr(local, "nome_local", None)
    if nome and endereco:
        return f"{nome} - {endereco}"
    return nome or endereco


def preencher_automaticamente(
    dados: Dict[str, Any],
    vistoria: Vistoria,
    config: Optional[ConfiguracaoLaudo] = None,
) -> Dict[str, Any]:
    """Returns a copy of `dados` with every empty field filled from the inspection."""
    embarcacao = vistoria.embarcacao
    cliente = embarcacao.cliente if embarcacao is not None else None
    local = _local_descricao(vistoria.local)
    data_conclusao = vistoria.data_conclusao

    sugestoes: Dict[str, Any] = {
        "nome_moto_aquatica": embarcacao.nome if embarcacao else None,
        "proprietario": (
            (embarcacao.proprietario_nome if embarcacao else None)
            or (cliente.nome if cliente else None)
        ),
        "cpf_cnpj": (
            (embarcacao.proprietario_cpf if embarcacao else None)
            or (cliente.cpf or cliente.cnpj if cliente else None)
        ),
        "endereco_proprietario": formatar_endereco(cliente),
        "data_inspecao": (
            data_conclusao.date() if isinstance(data_conclusao, datetime) else data_conclusao
        ),
        "local_vistoria": local,
        "local_guarda": local,
        "inscricao_capitania": embarcacao.nr_inscricao_barco if embarcacao else None,
        "tipo_embarcacao": embarcacao.tipo_embarcacao if embarcacao else None,
        "ano_fabricacao": embarcacao.ano_fabricacao if embarcacao else None,
        "valor_risco": vistoria.valor_embarcacao
        or (embarcacao.valor_embarcacao if embarcacao else None),
        "empresa_prestadora": (
            (config.empresa_prestadora if config else None) or settings.laudo_empresa_padrao
        ),
        "responsavel_inspecao": vistoria.vistoriador.nome if vistoria.vistoriador else None,
        "versao": settings.laudo_versao_padrao,
    }

    resultado = dict(dados)
    for campo, valor in sugestoes.items():
        if resultado.get(campo) in (None, "") and valor not in (None, ""):
            resultado[campo] = valor
    return resultado


class LaudoService:

    # ── Configuração ──────────────────────────────────────────────────────

    async def obter_configuracao(self, db: AsyncSession, usuario: Usuario) -> ConfiguracaoLaudo:
        """The default configuration; created empty on first access."""
        config = await self._configuracao_atual(db)
        if config is None:
            config = ConfiguracaoLaudo(padrao=True, usuario_id=usuario.id)
            db.add(config)
            await db.flush()
            await db.refresh(config)
            logger.info("Default laudo configuration created by user %s", usuario.id)
        return config

    async def atualizar_configuracao(
        self, db: AsyncSession, dados: ConfiguracaoLaudoUpdate, usuario: Usuario
    ) -> ConfiguracaoLaudo:
        """Only non-empty fields replace the stored ones."""
        config = await self.obter_configuracao(db, usuario)
        for campo, valor in dados.model_dump().items():
            if valor:
                setattr(config, campo, valor)
        config.usuario_id = usuario.id
        await db.flush()
        await db.refresh(config)
        return config

    async def _configuracao_atual(self, db: AsyncSession) -> Optional[ConfiguracaoLaudo]:
        result = await db.execute(
            select(ConfiguracaoLaudo)
            .where(ConfiguracaoLaudo.padrao.is_(True))
            .order_by(ConfiguracaoLaudo.updated_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def listar(self, db: AsyncSession) -> List[Laudo]:
        try:
            result = await db.execute(select(Laudo).order_by(Laudo.created_at.desc()))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list laudos: %s", str(e))
            raise DatabaseError(context={"operation": "listar_laudos"})

    async def obter(self, db: AsyncSession, laudo_id: int) -> Laudo:
        laudo = await db.get(Laudo, laudo_id)
        if laudo is None:
            raise NotFoundError(resource="Laudo", resource_id=str(laudo_id))
        return laudo

    async def por_vistoria(self, db: AsyncSession, vistoria_id: int) -> Laudo:
        result = await db.execute(select(Laudo).where(Laudo.vistoria_id == vistoria_id))
        laudo = result.scalar_one_or_none()
        if laudo is None:
            raise NotFoundError(resource="Laudo da vistoria", resource_id=str(vistoria_id))
        return laudo

    async def criar_ou_atualizar(
        self, db: AsyncSession, vistoria_id: int, dados: LaudoCreate
    ) -> Tuple[Laudo, bool]:
        """
        Upsert of the inspection's laudo.

        Returns:
            (laudo, criado) where criado is False when an existing laudo was updated.

        Raises:
            NotFoundError:     Unknown inspection.
            BusinessRuleError: Inspection not CONCLUIDA.
        """
        vistoria = await vistoria_service.obter(db, vistoria_id)
        if vistoria.status is None or vistoria.status.nome != STATUS_CONCLUIDA:
            raise BusinessRuleError(
                message="O laudo só pode ser criado após a conclusão da vistoria.",
                context={"status": vistoria.status.nome if vistoria.status else None},
            )

        campos = dados.model_dump(exclude_unset=True)
        existente = (
            await db.execute(select(Laudo).where(Laudo.vistoria_id == vistoria_id))
        ).scalar_one_or_none()

        try:
            if existente is not None:
                for campo, valor in campos.items():
                    setattr(existente, campo, valor)
                laudo, criado = existente, False
            else:
                config = await self._configuracao_atual(db)
                campos = preencher_automaticamente(campos, vistoria, config)
                laudo = Laudo(
                    vistoria_id=vistoria_id,
                    numero_laudo=gerar_numero_laudo(),
                    **campos,
                )
                db.add(laudo)
                criado = True
            await db.flush()
            await db.refresh(laudo)
        except SQLAlchemyError as e:
            logger.error("Failed to save laudo for inspection %s: %s", vistoria_id, str(e))
            raise DatabaseError(context={"vistoria_id": vistoria_id})

        logger.info(
            "Laudo %s %s for inspection %s",
            laudo.numero_laudo,
            "created" if criado else "updated",
            vistoria_id,
        )
        return laudo, criado

    async def atualizar(self, db: AsyncSession, laudo_id: int, dados: LaudoUpdate) -> Laudo:
        laudo = await self.obter(db, laudo_id)
        for campo, valor in dados.model_dump(exclude_unset=True).items():
            setattr(laudo, campo, valor)
        try:
            await db.flush()
            await db.refresh(laudo)
        except SQLAlchemyError as e:
            logger.error("Failed to update laudo %s: %s", laudo_id, str(e))
            raise DatabaseError(context={"laudo_id": laudo_id})
        return laudo

    async def deletar(self, db: AsyncSession, laudo_id: int) -> Laudo:
        laudo = await self.obter(db, laudo_id)
        url_pdf = laudo.url_pdf
        try:
            await db.delete(laudo)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete laudo %s: %s", laudo_id, str(e))
            raise DatabaseError(context={"laudo_id": laudo_id})
        if url_pdf:
            await storage_service.delete(url_pdf)
        return laudo

    # ── PDF ───────────────────────────────────────────────────────────────

    async def _fotos_do_laudo(self, db: AsyncSession, vistoria_id: int) -> List[FotoLaudo]:
        result = await db.execute(
            select(Foto).where(Foto.vistoria_id == vistoria_id).order_by(Foto.created_at)
        )
        fotos = []
        for indice, foto in enumerate(result.unique().scalars().all(), start=1):
            conteudo = None
            chave = construir_chave(foto.url_arquivo, foto.vistoria_id)
            if storage_service.exists(chave):
                try:
                    conteudo = await storage_service.read(chave)
                except FileStorageError as e:
                    logger.warning("Photo %s unreadable for laudo: %s", foto.id, e.message)
            else:
                logger.warning("Photo %s missing from storage (%s)", foto.id, chave)
            legenda = (
                foto.tipo_foto.nome_exibicao
                if foto.tipo_foto is not None and foto.tipo_foto.nome_exibicao
                else f"Foto {indice}"
            )
            fotos.append(FotoLaudo(conteudo=conteudo, legenda=legenda, observacao=foto.observacao))
        return fotos

    async def gerar_pdf(self, db: AsyncSession, laudo_id: int) -> Laudo:
        laudo = await self.obter(db, laudo_id)
        fotos = await self._fotos_do_laudo(db, laudo.vistoria_id)
        config = await self._configuracao_atual(db)

        try:
            conteudo = await asyncio.to_thread(
                renderizar_laudo,
                laudo,
                fotos,
                config.nome_empresa if config else None,
                config.nota_rodape if config else None,
            )
        except Exception as e:
            logger.error("Laudo %s rendering failed: %s", laudo_id, str(e), exc_info=True)
            raise FileStorageError(
                message="Erro ao gerar PDF do laudo",
                context={"laudo_id": laudo_id, "error": str(e)},
            )

        anterior = laudo.url_pdf
        chave = await storage_service.put(chave_pdf(laudo.id), conteudo)
        if anterior and anterior != chave:
            await storage_service.delete(anterior)

        laudo.url_pdf = chave
        laudo.data_geracao = utcnow()
        await db.flush()
        await db.refresh(laudo)
        logger.info("Laudo %s PDF stored at %s (%d bytes)", laudo.numero_laudo, chave, len(conteudo))
        return laudo

    async def download(
        self, db: AsyncSession, laudo_id: int
    ) -> Tuple[AsyncIterator[bytes], str]:
        """Chunk iterator over the PDF and the attachment file name."""
        laudo = await self.obter(db, laudo_id)
        if not laudo.url_pdf:
            raise NotFoundError(resource="PDF do laudo", resource_id=str(laudo_id))
        if not storage_service.exists(laudo.url_pdf):
            raise NotFoundError(resource="Arquivo PDF", resource_id=laudo.url_pdf)
        return storage_service.stream(laudo.url_pdf), f"laudo-{laudo.numero_laudo}.pdf"


# ── Singleton Instance ────────────────────────────────────────────────────
laudo_service = LaudoService()
