"""
Vistoria Naval API — User and Access Level Models
===================================================

What:  ORM models for `usuarios` and `niveis_acesso`.
Why:   Every request is authorized against a user row; access levels decide
       which routes a user may reach.
How:   Access levels are a seeded lookup table. Level ids are stable
       (1 = ADMINISTRADOR, 2 = VISTORIADOR) and referenced by constant.
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin

# Seeded by the initial migration; never renumbered
NIVEL_ADMINISTRADOR = 1
NIVEL_VISTORIADOR = 2


class NivelAcesso(Base):
    __tablename__ = "niveis_acesso"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nome: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    descricao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<NivelAcesso(id={self.id}, nome='{self.nome}')>"


class Usuario(TimestampMixin, Base):
    """
    A person who logs into the system: an administrator or an inspector.

    deve_atualizar_senha:
        Set when an administrator creates the account or resets its password.
        While true, only the password-update endpoints accept the user's token.
    """

    __tablename__ = "usuarios"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    senha_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    nivel_acesso_id: Mapped[int] = mapped_column(
        ForeignKey("niveis_acesso.id"),
        nullable=False,
        default=NIVEL_VISTORIADOR,
    )
    ativo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    deve_atualizar_senha: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    cpf: Mapped[Optional[str]] = mapped_column(String(11), nullable=True)
    telefone_e164: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Access level is needed on every authorized request
    nivel_acesso: Mapped[NivelAcesso] = relationship(lazy="joined")

    @property
    def is_admin(self) -> bool:
        return self.nivel_acesso_id == NIVEL_ADMINISTRADOR

    @property
    def is_vistoriador(self) -> bool:
        return self.nivel_acesso_id in (NIVEL_ADMINISTRADOR, NIVEL_VISTORIADOR)

    def __repr__(self) -> str:
        return f"<Usuario(id={self.id}, email='{self.email}', nivel={self.nivel_acesso_id})>"
