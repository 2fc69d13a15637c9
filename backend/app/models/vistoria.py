"""
Vistoria Naval API — Inspection Models
========================================

What:  ORM models for `vistorias`, `status_vistoria`, `fotos` and
       `tipos_foto_checklist`.
Why:   The inspection is the central workflow entity; every other module
       (checklist, photos, laudo, payments, dashboard) hangs off it.

Lifecycle:
    1. Created by an administrator (status PENDENTE)
    2. Started by the assigned inspector (data_inicio, EM_ANDAMENTO)
    3. Photos uploaded / checklist items completed
    4. Concluded by the inspector (data_conclusao, CONCLUIDA)
    5. Laudo generated, inspector paid through a lote de pagamento
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.cadastro import Embarcacao, Local
from app.models.mixins import TimestampMixin, utcnow
from app.models.usuario import Usuario

STATUS_PENDENTE = "PENDENTE"
STATUS_EM_ANDAMENTO = "EM_ANDAMENTO"
STATUS_CONCLUIDA = "CONCLUIDA"
STATUS_APROVADA = "APROVADA"


class StatusVistoria(Base):
    __tablename__ = "status_vistoria"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nome: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    descricao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class TipoFotoChecklist(TimestampMixin, Base):
    """A kind of photo the inspector must (or may) take: CASCO, MOTOR, ..."""

    __tablename__ = "tipos_foto_checklist"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    codigo: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    nome_exibicao: Mapped[str] = mapped_column(String(255), nullable=False)
    descricao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    obrigatorio: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )


class Foto(Base):
    """
    A stored inspection photo.

    url_arquivo holds the object key (vistorias/id-{vistoria}/...). Rows
    written by older clients may hold only the file name; the storage layer
    rebuilds the full key from vistoria_id in that case.
    """

    __tablename__ = "fotos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url_arquivo: Mapped[str] = mapped_column(String(512), nullable=False)
    observacao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    vistoria_id: Mapped[int] = mapped_column(
        ForeignKey("vistorias.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tipo_foto_id: Mapped[int] = mapped_column(
        ForeignKey("tipos_foto_checklist.id"), nullable=False
    )
    checklist_item_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    tipo_foto: Mapped[TipoFotoChecklist] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<Foto(id={self.id}, vistoria={self.vistoria_id}, key='{self.url_arquivo}')>"


class Vistoria(Base):
    __tablename__ = "vistorias"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # ── Relations ─────────────────────────────────────────────────────────
    embarcacao_id: Mapped[int] = mapped_column(ForeignKey("embarcacoes.id"), nullable=False)
    local_id: Mapped[int] = mapped_column(ForeignKey("locais.id"), nullable=False)
    vistoriador_id: Mapped[int] = mapped_column(
        ForeignKey("usuarios.id"), nullable=False, index=True
    )
    administrador_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("usuarios.id"), nullable=True
    )
    status_id: Mapped[int] = mapped_column(ForeignKey("status_vistoria.id"), nullable=False)

    # Free-form wizard state saved by the inspector app between sessions
    dados_rascunho: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # ── Valores ───────────────────────────────────────────────────────────
    valor_embarcacao: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    valor_vistoria: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    valor_vistoriador: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    # ── Contato acompanhante ──────────────────────────────────────────────
    contato_acompanhante_tipo: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    contato_acompanhante_nome: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contato_acompanhante_telefone_e164: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True
    )
    contato_acompanhante_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Datas ─────────────────────────────────────────────────────────────
    data_inicio: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    data_conclusao: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    data_aprovacao: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    embarcacao: Mapped[Embarcacao] = relationship(lazy="joined")
    local: Mapped[Local] = relationship(lazy="joined")
    status: Mapped[StatusVistoria] = relationship(lazy="joined")
    vistoriador: Mapped[Usuario] = relationship(foreign_keys=[vistoriador_id], lazy="joined")
    administrador: Mapped[Optional[Usuario]] = relationship(
        foreign_keys=[administrador_id], lazy="joined"
    )
    fotos: Mapped[List[Foto]] = relationship(
        lazy="selectin",
        order_by=Foto.created_at,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_vistorias_created_at", created_at.desc()),
        Index("idx_vistorias_data_conclusao", data_conclusao),
    )

    def __repr__(self) -> str:
        return f"<Vistoria(id={self.id}, status_id={self.status_id})>"
