"""
Vistoria Naval API — Inspection Report Routes
===============================================

What:  /api/laudos: the report (laudo) of a concluded inspection and its
       PDF; /api/configuracoes-laudo: company data printed on every PDF.

PDF Flow:
    POST /vistoria/{id}  ──▶ laudo row (autofilled from the inspection)
    POST /{id}/gerar-pdf ──▶ reportlab render ──▶ laudos/YYYY/MM/laudo-{id}.pdf
    GET  /{id}/download  ──▶ streamed attachment laudo-{numero}.pdf
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, require_admin
from app.models.usuario import Usuario
from app.schemas.common import ErrorResponse
from app.schemas.laudo import (
    ConfiguracaoLaudoResponse,
    ConfiguracaoLaudoUpdate,
    GerarPdfResponse,
    LaudoCreate,
    LaudoResponse,
    LaudoUpdate,
)
from app.services.audit_service import audit_service
from app.services.laudo_service import laudo_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/laudos", tags=["Laudos"])
configuracao_router = APIRouter(prefix="/api/configuracoes-laudo", tags=["Laudos"])


@router.get("", response_model=List[LaudoResponse])
async def list_laudos(
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[LaudoResponse]:
    return [LaudoResponse.model_validate(l) for l in await laudo_service.listar(db)]


@router.get(
    "/vistoria/{vistoria_id}",
    response_model=LaudoResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_laudo_da_vistoria(
    vistoria_id: int,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LaudoResponse:
    return LaudoResponse.model_validate(await laudo_service.por_vistoria(db, vistoria_id))


@router.post(
    "/vistoria/{vistoria_id}",
    response_model=LaudoResponse,
    responses={
        200: {"description": "Existing laudo updated", "model": LaudoResponse},
        400: {"description": "Inspection not concluded", "model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    status_code=201,
    summary="Create or update the laudo of a concluded inspection (admin)",
)
async def criar_laudo(
    vistoria_id: int,
    dados: LaudoCreate,
    request: Request,
    response: Response,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> LaudoResponse:
    laudo, criado = await laudo_service.criar_ou_atualizar(db, vistoria_id, dados)
    if not criado:
        response.status_code = 200
    await audit_service.registrar(
        db,
        acao="CREATE" if criado else "UPDATE",
        entidade="Laudo",
        entidade_id=laudo.id,
        usuario=admin,
        dados_novos={"vistoria_id": vistoria_id, "numero_laudo": laudo.numero_laudo},
        request=request,
    )
    return LaudoResponse.model_validate(laudo)


@router.get("/{laudo_id}", response_model=LaudoResponse, responses={404: {"model": ErrorResponse}})
async def get_laudo(
    laudo_id: int,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LaudoResponse:
    return LaudoResponse.model_validate(await laudo_service.obter(db, laudo_id))


@router.put("/{laudo_id}", response_model=LaudoResponse)
async def update_laudo(
    laudo_id: int,
    dados: LaudoUpdate,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LaudoResponse:
    laudo = await laudo_service.atualizar(db, laudo_id, dados)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Laudo", entidade_id=laudo_id, usuario=usuario,
        dados_novos=dados.model_dump(mode="json", exclude_unset=True), request=request,
    )
    return LaudoResponse.model_validate(laudo)


@router.delete("/{laudo_id}", status_code=204)
async def delete_laudo(
    laudo_id: int,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    laudo = await laudo_service.deletar(db, laudo_id)
    await audit_service.registrar(
        db, acao="DELETE", entidade="Laudo", entidade_id=laudo_id, usuario=admin,
        dados_anteriores={"numero_laudo": laudo.numero_laudo, "vistoria_id": laudo.vistoria_id},
        request=request, nivel_critico=True,
    )
    return Response(status_code=204)


@router.post(
    "/{laudo_id}/gerar-pdf",
    response_model=GerarPdfResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Render and store the laudo PDF",
)
async def gerar_pdf(
    laudo_id: int,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GerarPdfResponse:
    laudo = await laudo_service.gerar_pdf(db, laudo_id)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Laudo", entidade_id=laudo_id, usuario=usuario,
        dados_novos={"url_pdf": laudo.url_pdf}, request=request, detalhes="PDF gerado",
    )
    return GerarPdfResponse(
        message="Laudo gerado com sucesso",
        laudo=LaudoResponse.model_validate(laudo),
        download_url=f"/api/laudos/{laudo_id}/download",
    )


@router.get(
    "/{laudo_id}/download",
    response_class=StreamingResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Download the laudo PDF",
)
async def download_pdf(
    laudo_id: int,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> StreamingResponse:
    chunks, filename = await laudo_service.download(db, laudo_id)
    return StreamingResponse(
        chunks,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── Configuração ──────────────────────────────────────────────────────────


@configuracao_router.get("", response_model=ConfiguracaoLaudoResponse)
async def get_configuracao(
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConfiguracaoLaudoResponse:
    return ConfiguracaoLaudoResponse.model_validate(
        await laudo_service.obter_configuracao(db, usuario)
    )


@configuracao_router.put("", response_model=ConfiguracaoLaudoResponse)
async def update_configuracao(
    dados: ConfiguracaoLaudoUpdate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ConfiguracaoLaudoResponse:
    config = await laudo_service.atualizar_configuracao(db, dados, admin)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="ConfiguracaoLaudo", entidade_id=config.id, usuario=admin,
        dados_novos=dados.model_dump(exclude_none=True), request=request,
    )
    return ConfiguracaoLaudoResponse.model_validate(config)
