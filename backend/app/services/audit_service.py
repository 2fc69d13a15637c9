"""
Vistoria Naval API — Audit Trail Service
==========================================

What:  Records who did what to which entity, and serves the audit log to
       administrators.
Who:   Called by routes after a mutating operation succeeds (CREATE, UPDATE,
       DELETE, LOGIN, LOGIN_FAILED, PASSWORD_CHANGE, ...).

Failure policy:
    Writing the trail must never break the operation being audited. Each
    entry is written inside a SAVEPOINT; if it fails the savepoint is rolled
    back, the failure is logged and the caller's transaction carries on.
"""

import json
import logging
import math
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError
from app.models.auditoria import AuditoriaLog
from app.models.usuario import Usuario
from app.schemas.auditoria import (
    AuditoriaEstatisticasResponse,
    AuditoriaListResponse,
    AuditoriaLogResponse,
)
from app.schemas.common import PaginationMeta

logger = logging.getLogger(__name__)

# Keys never written to the trail, matched case-insensitively as substrings
CHAVES_SENSIVEIS = ("senha", "password", "token", "hash")


def remover_dados_sensiveis(dados: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not dados:
        return dados
    limpo = {}
    for chave, valor in dados.items():
        if any(s in chave.lower() for s in CHAVES_SENSIVEIS):
            continue
        if isinstance(valor, dict):
            valor = remover_dados_sensiveis(valor)
        limpo[chave] = valor
    return limpo


def _serializar(dados: Optional[Dict[str, Any]]) -> Optional[str]:
    if dados is None:
        return None
    return json.dumps(remover_dados_sensiveis(dados), default=str, ensure_ascii=False)


def ip_do_request(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class AuditService:
    """Writes and queries `auditoria_logs`."""

    async def registrar(
        self,
        db: AsyncSession,
        acao: str,
        entidade: str,
        entidade_id: Optional[int] = None,
        usuario: Optional[Usuario] = None,
        dados_anteriores: Optional[Dict[str, Any]] = None,
        dados_novos: Optional[Dict[str, Any]] = None,
        request: Optional[Request] = None,
        nivel_critico: bool = False,
        detalhes: Optional[str] = None,
        usuario_email: Optional[str] = None,
    ) -> Optional[AuditoriaLog]:
        """
        Stores one audit entry. Returns it, or None when writing failed.

        usuario_email lets LOGIN_FAILED attempts record the address that was
        tried when there is no authenticated user.
        """
        log = AuditoriaLog(
            usuario_id=usuario.id if usuario else None,
            usuario_email=usuario.email if usuario else (usuario_email or "sistema"),
            usuario_nome=usuario.nome if usuario else "Sistema",
            acao=acao,
            entidade=entidade,
            entidade_id=entidade_id,
            dados_anteriores=_serializar(dados_anteriores),
            dados_novos=_serializar(dados_novos),
            ip_address=ip_do_request(request),
            user_agent=request.headers.get("User-Agent") if request is not None else None,
            nivel_critico=nivel_critico,
            detalhes=detalhes,
        )
        try:
            async with db.begin_nested():
                db.add(log)
            logger.info(
                "Audit: %s %s#%s by %s", acao, entidade, entidade_id, log.usuario_email
            )
            return log
        except Exception as e:
            logger.warning(
                "Failed to write audit entry %s %s#%s: %s", acao, entidade, entidade_id, str(e)
            )
            return None

    async def listar(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 50,
        acao: Optional[str] = None,
        entidade: Optional[str] = None,
        nivel_critico: Optional[bool] = None,
    ) -> AuditoriaListResponse:
        filtros = []
        if acao:
            filtros.append(AuditoriaLog.acao == acao)
        if entidade:
            filtros.append(AuditoriaLog.entidade == entidade)
        if nivel_critico is not None:
            filtros.append(AuditoriaLog.nivel_critico == nivel_critico)

        try:
            total = (
                await db.execute(select(func.count(AuditoriaLog.id)).where(*filtros))
            ).scalar() or 0
            result = await db.execute(
                select(AuditoriaLog)
                .where(*filtros)
                .order_by(AuditoriaLog.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            logs = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Failed to list audit logs: %s", str(e))
            raise DatabaseError(context={"operation": "listar_auditoria"})

        return AuditoriaListResponse(
            logs=[AuditoriaLogResponse.model_validate(log) for log in logs],
            pagination=PaginationMeta(
                total=total,
                page=page,
                limit=limit,
                total_pages=math.ceil(total / limit) if limit else 0,
            ),
        )

    async def estatisticas(self, db: AsyncSession) -> AuditoriaEstatisticasResponse:
        try:
            total = (await db.execute(select(func.count(AuditoriaLog.id)))).scalar() or 0
            criticos = (
                await db.execute(
                    select(func.count(AuditoriaLog.id)).where(AuditoriaLog.nivel_critico.is_(True))
                )
            ).scalar() or 0
            rows = (
                await db.execute(
                    select(AuditoriaLog.acao, func.count(AuditoriaLog.id)).group_by(AuditoriaLog.acao)
                )
            ).all()
        except SQLAlchemyError as e:
            logger.error("Failed to compute audit statistics: %s", str(e))
            raise DatabaseError(context={"operation": "estatisticas_auditoria"})

        return AuditoriaEstatisticasResponse(
            total=total,
            criticos=criticos,
            por_acao={acao: quantidade for acao, quantidade in rows},
        )


# ── Singleton Instance ────────────────────────────────────────────────────
audit_service = AuditService()
