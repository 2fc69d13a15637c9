"""
ORM models package.

Importing this package registers every table on Base.metadata, which is what
Alembic's env.py relies on.
"""

from app.models.usuario import NivelAcesso, Usuario
from app.models.cadastro import (
    Cliente,
    Embarcacao,
    Local,
    Seguradora,
    SeguradoraTipoEmbarcacao,
)
from app.models.vistoria import Foto, StatusVistoria, TipoFotoChecklist, Vistoria
from app.models.checklist import (
    ChecklistTemplate,
    ChecklistTemplateItem,
    VistoriaChecklistItem,
)
from app.models.laudo import ConfiguracaoLaudo, Laudo
from app.models.pagamento import LotePagamento, VistoriaLotePagamento
from app.models.auditoria import AuditoriaLog

__all__ = [
    "AuditoriaLog",
    "ChecklistTemplate",
    "ChecklistTemplateItem",
    "Cliente",
    "ConfiguracaoLaudo",
    "Embarcacao",
    "Foto",
    "Laudo",
    "Local",
    "LotePagamento",
    "NivelAcesso",
    "Seguradora",
    "SeguradoraTipoEmbarcacao",
    "StatusVistoria",
    "TipoFotoChecklist",
    "Usuario",
    "Vistoria",
    "VistoriaChecklistItem",
    "VistoriaLotePagamento",
]
