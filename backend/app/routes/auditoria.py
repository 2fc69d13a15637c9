"""Vistoria Naval API — /api/auditoria: the audit trail, administrators only."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_admin
from app.models.usuario import Usuario
from app.schemas.auditoria import AuditoriaEstatisticasResponse, AuditoriaListResponse
from app.services.audit_service import audit_service

router = APIRouter(prefix="/api/auditoria", tags=["Auditoria"])


@router.get("", response_model=AuditoriaListResponse, summary="Paginated audit log")
async def list_logs(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    acao: Optional[str] = Query(default=None),
    entidade: Optional[str] = Query(default=None),
    nivel_critico: Optional[bool] = Query(default=None),
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AuditoriaListResponse:
    return await audit_service.listar(db, page, limit, acao, entidade, nivel_critico)


@router.get("/estatisticas", response_model=AuditoriaEstatisticasResponse)
async def estatisticas(
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AuditoriaEstatisticasResponse:
    return await audit_service.estatisticas(db)
