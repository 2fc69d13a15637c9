"""Initial schema and lookup data

Revision ID: 001
Revises: None
Create Date: 2025-01-10 00:00:00.000000+00:00

What:  Creates every table of the inspection system and seeds the lookup
       rows the code references by id or by name.
How:   Tables come from the ORM metadata as of this revision; later schema
       changes get their own explicit revisions.

Seeded:
    niveis_acesso    1 ADMINISTRADOR, 2 VISTORIADOR (ids referenced by constant)
    status_vistoria  PENDENTE, EM_ANDAMENTO, CONCLUIDA, APROVADA, REPROVADA

Rollback: downgrade() drops every table (destructive, all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

import app.models  # noqa: F401  registers every table on Base.metadata
from app.database import Base

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NIVEIS = [
    {"id": 1, "nome": "ADMINISTRADOR", "descricao": "Acesso completo ao sistema"},
    {"id": 2, "nome": "VISTORIADOR", "descricao": "Acesso às vistorias atribuídas"},
]

STATUS = [
    {"nome": "PENDENTE", "descricao": "Vistoria aguardando início"},
    {"nome": "EM_ANDAMENTO", "descricao": "Vistoria em execução"},
    {"nome": "CONCLUIDA", "descricao": "Vistoria concluída pelo vistoriador"},
    {"nome": "APROVADA", "descricao": "Vistoria aprovada"},
    {"nome": "REPROVADA", "descricao": "Vistoria reprovada"},
]


def upgrade() -> None:
    bind = op.get_bind()
    Base.metadata.create_all(bind=bind)

    niveis = sa.table(
        "niveis_acesso",
        sa.column("id", sa.Integer),
        sa.column("nome", sa.String),
        sa.column("descricao", sa.Text),
    )
    op.bulk_insert(niveis, NIVEIS)

    status = sa.table(
        "status_vistoria",
        sa.column("nome", sa.String),
        sa.column("descricao", sa.Text),
    )
    op.bulk_insert(status, STATUS)

    if bind.dialect.name == "postgresql":
        # Explicit ids above leave the sequence behind
        op.execute(
            "SELECT setval(pg_get_serial_sequence('niveis_acesso', 'id'), "
            "(SELECT MAX(id) FROM niveis_acesso))"
        )


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
