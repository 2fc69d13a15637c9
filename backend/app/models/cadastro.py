"""
Vistoria Naval API — Registry Models
======================================

What:  ORM models for the registries an inspection is built from:
       clientes, embarcacoes, locais, seguradoras and the vessel types each
       insurer accepts.
Why:   Inspections reference these rows; laudos copy their data.

Documents are stored as digits only (cpf CHAR(11), cnpj CHAR(14), cep
CHAR(8)); phone numbers in E.164. Formatting is a presentation concern.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin

TIPOS_PESSOA = ("FISICA", "JURIDICA")
TIPOS_EMBARCACAO = ("LANCHA", "JET_SKI", "EMBARCACAO_COMERCIAL")
TIPOS_LOCAL = ("MARINA", "RESIDENCIA")


class Cliente(TimestampMixin, Base):
    __tablename__ = "clientes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tipo_pessoa: Mapped[str] = mapped_column(String(10), nullable=False, default="FISICA")
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    cpf: Mapped[Optional[str]] = mapped_column(String(11), nullable=True, unique=True)
    cnpj: Mapped[Optional[str]] = mapped_column(String(14), nullable=True, unique=True)
    telefone_e164: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Endereço ──────────────────────────────────────────────────────────
    cep: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    logradouro: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    numero: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    complemento: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bairro: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cidade: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    estado: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)

    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ativo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    @property
    def documento(self) -> Optional[str]:
        return self.cpf if self.tipo_pessoa == "FISICA" else self.cnpj

    def __repr__(self) -> str:
        return f"<Cliente(id={self.id}, nome='{self.nome}', tipo='{self.tipo_pessoa}')>"


class Embarcacao(TimestampMixin, Base):
    """
    A vessel. numero_casco (hull number) is the natural key used by the
    inspection wizard to find-or-create the vessel.
    """

    __tablename__ = "embarcacoes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    numero_casco: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    nr_inscricao_barco: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    tipo_embarcacao: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    porte: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    valor_embarcacao: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    ano_fabricacao: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Legacy owner fields, kept for vessels registered without a cliente
    proprietario_nome: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    proprietario_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    proprietario_cpf: Mapped[Optional[str]] = mapped_column(String(11), nullable=True)
    proprietario_telefone_e164: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    cliente_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clientes.id", ondelete="SET NULL"), nullable=True, index=True
    )
    cliente: Mapped[Optional[Cliente]] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<Embarcacao(id={self.id}, casco='{self.numero_casco}')>"


class Local(TimestampMixin, Base):
    __tablename__ = "locais"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tipo: Mapped[str] = mapped_column(String(20), nullable=False)
    nome_local: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cep: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    logradouro: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    numero: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    complemento: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bairro: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cidade: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    estado: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)

    def __repr__(self) -> str:
        return f"<Local(id={self.id}, tipo='{self.tipo}', nome='{self.nome_local}')>"


class SeguradoraTipoEmbarcacao(Base):
    __tablename__ = "seguradora_tipo_embarcacao"
    __table_args__ = (
        UniqueConstraint("seguradora_id", "tipo_embarcacao", name="uq_seguradora_tipo"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seguradora_id: Mapped[int] = mapped_column(
        ForeignKey("seguradoras.id", ondelete="CASCADE"), nullable=False
    )
    tipo_embarcacao: Mapped[str] = mapped_column(String(30), nullable=False)


class Seguradora(TimestampMixin, Base):
    __tablename__ = "seguradoras"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nome: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    ativo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    tipos_permitidos: Mapped[List[SeguradoraTipoEmbarcacao]] = relationship(
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=SeguradoraTipoEmbarcacao.tipo_embarcacao,
    )

    def __repr__(self) -> str:
        return f"<Seguradora(id={self.id}, nome='{self.nome}')>"
