"""
Vistoria Naval API — Checklist Models
=======================================

What:  Checklist templates per vessel type and the per-inspection copies of
       their items.
How:   A template holds ordered items. Copying a template into an inspection
       snapshots each active item into `vistoria_checklist_itens`, so later
       template edits never change an inspection already in progress.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin
from app.models.vistoria import Foto

ITEM_PENDENTE = "PENDENTE"
ITEM_CONCLUIDO = "CONCLUIDO"
ITEM_NAO_APLICAVEL = "NAO_APLICAVEL"
STATUS_ITEM = (ITEM_PENDENTE, ITEM_CONCLUIDO, ITEM_NAO_APLICAVEL)


class ChecklistTemplateItem(TimestampMixin, Base):
    __tablename__ = "checklist_template_itens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    checklist_template_id: Mapped[int] = mapped_column(
        ForeignKey("checklist_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ordem: Mapped[int] = mapped_column(Integer, nullable=False)
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    descricao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    obrigatorio: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    permite_video: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    ativo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )


class ChecklistTemplate(TimestampMixin, Base):
    """One template per vessel type (tipo_embarcacao is unique)."""

    __tablename__ = "checklist_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tipo_embarcacao: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    descricao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ativo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    itens: Mapped[List[ChecklistTemplateItem]] = relationship(
        lazy="selectin",
        order_by=ChecklistTemplateItem.ordem,
        cascade="all, delete-orphan",
    )

    @property
    def itens_ativos(self) -> List[ChecklistTemplateItem]:
        return [item for item in self.itens if item.ativo]


class VistoriaChecklistItem(TimestampMixin, Base):
    __tablename__ = "vistoria_checklist_itens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    vistoria_id: Mapped[int] = mapped_column(
        ForeignKey("vistorias.id", ondelete="CASCADE"), nullable=False, index=True
    )
    template_item_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("checklist_template_itens.id", ondelete="SET NULL"), nullable=True
    )
    ordem: Mapped[int] = mapped_column(Integer, nullable=False)
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    descricao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    obrigatorio: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    permite_video: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ITEM_PENDENTE, server_default=text("'PENDENTE'")
    )
    foto_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("fotos.id", ondelete="SET NULL"), nullable=True
    )
    observacao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    concluido_em: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    foto: Mapped[Optional[Foto]] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<VistoriaChecklistItem(id={self.id}, nome='{self.nome}', status='{self.status}')>"
