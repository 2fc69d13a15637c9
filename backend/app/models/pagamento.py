"""
Vistoria Naval API — Payment Batch Models
===========================================

What:  ORM models for `lotes_pagamento` and the link table
       `vistorias_lote_pagamento`.
Why:   Inspectors are paid per concluded inspection, grouped into batches
       covering a period (daily, weekly, monthly).

An inspection may appear in at most one PENDENTE or PAGO batch; a CANCELADO
batch releases its inspections for a new one. valor_vistoriador is copied
into the link row so later edits to the inspection do not change a batch.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin
from app.models.usuario import Usuario
from app.models.vistoria import Vistoria

LOTE_PENDENTE = "PENDENTE"
LOTE_PAGO = "PAGO"
LOTE_CANCELADO = "CANCELADO"
PERIODOS = ("DIARIO", "SEMANAL", "MENSAL")


class VistoriaLotePagamento(TimestampMixin, Base):
    __tablename__ = "vistorias_lote_pagamento"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lote_pagamento_id: Mapped[int] = mapped_column(
        ForeignKey("lotes_pagamento.id", ondelete="CASCADE"), nullable=False, index=True
    )
    vistoria_id: Mapped[int] = mapped_column(
        ForeignKey("vistorias.id", ondelete="CASCADE"), nullable=False, index=True
    )
    valor_vistoriador: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    vistoria: Mapped[Vistoria] = relationship(lazy="joined")


class LotePagamento(TimestampMixin, Base):
    __tablename__ = "lotes_pagamento"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    vistoriador_id: Mapped[int] = mapped_column(
        ForeignKey("usuarios.id"), nullable=False, index=True
    )
    periodo_tipo: Mapped[str] = mapped_column(
        String(10), nullable=False, default="MENSAL", server_default=text("'MENSAL'")
    )
    data_inicio: Mapped[date] = mapped_column(Date, nullable=False)
    data_fim: Mapped[date] = mapped_column(Date, nullable=False)
    quantidade_vistorias: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    valor_total: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00"), server_default=text("0")
    )
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=LOTE_PENDENTE, server_default=text("'PENDENTE'")
    )
    data_pagamento: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    forma_pagamento: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    comprovante_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pago_por_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("usuarios.id"), nullable=True
    )

    vistoriador: Mapped[Usuario] = relationship(foreign_keys=[vistoriador_id], lazy="joined")
    pago_por: Mapped[Optional[Usuario]] = relationship(foreign_keys=[pago_por_id], lazy="joined")
    vistorias: Mapped[List[VistoriaLotePagamento]] = relationship(
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<LotePagamento(id={self.id}, status='{self.status}', total={self.valor_total})>"
