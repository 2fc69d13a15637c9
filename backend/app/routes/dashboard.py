"""Vistoria Naval API — /api/dashboard: month-over-month statistics for administrators."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_admin
from app.models.usuario import Usuario
from app.schemas.dashboard import EstatisticasResponse
from app.services.dashboard_service import dashboard_service

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get(
    "/estatisticas",
    response_model=EstatisticasResponse,
    summary="Current vs previous month statistics",
)
async def estatisticas(
    _: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> EstatisticasResponse:
    return await dashboard_service.estatisticas(db)
