"""
Vistoria Naval API — Audit Log Model
======================================

What:  ORM model for `auditoria_logs`: who did what to which entity, when.
Why:   Administrators review sensitive actions (deletions, password resets,
       role changes, failed logins).

usuario_email / usuario_nome are denormalized so the trail survives user
deletion; system actions are recorded as 'sistema' / 'Sistema'.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.mixins import utcnow


class AuditoriaLog(Base):
    __tablename__ = "auditoria_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    usuario_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    usuario_email: Mapped[str] = mapped_column(String(255), nullable=False)
    usuario_nome: Mapped[str] = mapped_column(String(255), nullable=False)
    acao: Mapped[str] = mapped_column(String(100), nullable=False)
    entidade: Mapped[str] = mapped_column(String(100), nullable=False)
    entidade_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # JSON text with secrets stripped
    dados_anteriores: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    dados_novos: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    nivel_critico: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    detalhes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_auditoria_created_at", created_at.desc()),
        Index("idx_auditoria_entidade", entidade, entidade_id),
    )

    def __repr__(self) -> str:
        return f"<AuditoriaLog(id={self.id}, acao='{self.acao}', entidade='{self.entidade}')>"
