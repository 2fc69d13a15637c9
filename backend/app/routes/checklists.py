"""
Vistoria Naval API — Checklist Routes
=======================================

What:  /api/checklists: templates per vessel type (admin maintained) and
       the checklist of each inspection (admin or assigned inspector).
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, require_admin
from app.exceptions import NotFoundError
from app.models.usuario import Usuario
from app.schemas.cadastro import TipoEmbarcacao
from app.schemas.checklist import (
    ChecklistItemCreate,
    ChecklistItemResponse,
    ChecklistItemStatusUpdate,
    CopiarTemplateResponse,
    ProgressoResponse,
    TemplateCreate,
    TemplateItemCreate,
    TemplateItemResponse,
    TemplateItemUpdate,
    TemplateResponse,
    TemplateUpdate,
)
from app.schemas.common import ErrorResponse
from app.services.audit_service import audit_service
from app.services.checklist_service import checklist_service, item_para_resposta

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checklists", tags=["Checklists"])


# ── Templates ─────────────────────────────────────────────────────────────


@router.get("/templates", response_model=List[TemplateResponse])
async def list_templates(
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TemplateResponse]:
    return [TemplateResponse.from_model(t) for t in await checklist_service.listar_templates(db)]


@router.get(
    "/templates/{tipo_embarcacao}",
    response_model=TemplateResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_template_por_tipo(
    tipo_embarcacao: TipoEmbarcacao,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TemplateResponse:
    template = await checklist_service.template_por_tipo(db, tipo_embarcacao)
    if template is None:
        raise NotFoundError(resource="Template", resource_id=tipo_embarcacao)
    return TemplateResponse.from_model(template)


@router.post(
    "/templates",
    response_model=TemplateResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
async def create_template(
    dados: TemplateCreate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> TemplateResponse:
    resposta = TemplateResponse.from_model(await checklist_service.criar_template(db, dados))
    await audit_service.registrar(
        db, acao="CREATE", entidade="ChecklistTemplate", entidade_id=resposta.id,
        usuario=admin, dados_novos={"tipo_embarcacao": resposta.tipo_embarcacao,
                                    "nome": resposta.nome, "itens": len(resposta.itens)},
        request=request,
    )
    return resposta


@router.put("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: int,
    dados: TemplateUpdate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> TemplateResponse:
    template = await checklist_service.atualizar_template(db, template_id, dados)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="ChecklistTemplate", entidade_id=template_id,
        usuario=admin, dados_novos=dados.model_dump(exclude_unset=True), request=request,
    )
    return TemplateResponse.from_model(template)


@router.post(
    "/templates/{template_id}/itens",
    response_model=TemplateItemResponse,
    status_code=201,
)
async def add_template_item(
    template_id: int,
    dados: TemplateItemCreate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> TemplateItemResponse:
    item = await checklist_service.adicionar_item_template(db, template_id, dados)
    await audit_service.registrar(
        db, acao="CREATE", entidade="ChecklistTemplateItem", entidade_id=item.id,
        usuario=admin, dados_novos={"template_id": template_id, "nome": item.nome},
        request=request,
    )
    return TemplateItemResponse.model_validate(item)


@router.put("/templates/itens/{item_id}", response_model=TemplateItemResponse)
async def update_template_item(
    item_id: int,
    dados: TemplateItemUpdate,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> TemplateItemResponse:
    item = await checklist_service.atualizar_item_template(db, item_id, dados)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="ChecklistTemplateItem", entidade_id=item_id,
        usuario=admin, dados_novos=dados.model_dump(exclude_unset=True), request=request,
    )
    return TemplateItemResponse.model_validate(item)


@router.delete("/templates/itens/{item_id}", status_code=204)
async def delete_template_item(
    item_id: int,
    request: Request,
    admin: Usuario = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    item = await checklist_service.deletar_item_template(db, item_id)
    await audit_service.registrar(
        db, acao="DELETE", entidade="ChecklistTemplateItem", entidade_id=item_id,
        usuario=admin, dados_anteriores={"nome": item.nome}, request=request,
    )
    return Response(status_code=204)


# ── Inspection checklist ──────────────────────────────────────────────────


@router.post(
    "/vistoria/{vistoria_id}/copiar-template",
    response_model=CopiarTemplateResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def copiar_template(
    vistoria_id: int,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CopiarTemplateResponse:
    itens = await checklist_service.copiar_template(db, vistoria_id, usuario)
    await audit_service.registrar(
        db, acao="CREATE", entidade="VistoriaChecklistItem", entidade_id=vistoria_id,
        usuario=usuario, detalhes=f"{len(itens)} itens copiados do template",
        request=request,
    )
    return CopiarTemplateResponse(
        message=f"{len(itens)} itens copiados para a vistoria",
        itens=[item_para_resposta(i) for i in itens],
    )


@router.get("/vistoria/{vistoria_id}", response_model=List[ChecklistItemResponse])
async def list_itens(
    vistoria_id: int,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ChecklistItemResponse]:
    itens = await checklist_service.listar_itens(db, vistoria_id, usuario)
    return [item_para_resposta(i) for i in itens]


@router.patch(
    "/vistoria/item/{item_id}/status",
    response_model=ChecklistItemResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def update_item_status(
    item_id: int,
    dados: ChecklistItemStatusUpdate,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ChecklistItemResponse:
    item = await checklist_service.atualizar_status_item(db, item_id, dados, usuario)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="VistoriaChecklistItem", entidade_id=item_id,
        usuario=usuario, dados_novos=dados.model_dump(exclude_unset=True), request=request,
    )
    return item_para_resposta(item)


@router.post(
    "/vistoria/{vistoria_id}/itens",
    response_model=ChecklistItemResponse,
    status_code=201,
)
async def add_item(
    vistoria_id: int,
    dados: ChecklistItemCreate,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ChecklistItemResponse:
    item = await checklist_service.adicionar_item(db, vistoria_id, dados, usuario)
    await audit_service.registrar(
        db, acao="CREATE", entidade="VistoriaChecklistItem", entidade_id=item.id,
        usuario=usuario, dados_novos={"vistoria_id": vistoria_id, "nome": item.nome},
        request=request,
    )
    return item_para_resposta(item)


@router.get("/vistoria/{vistoria_id}/progresso", response_model=ProgressoResponse)
async def progresso(
    vistoria_id: int,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProgressoResponse:
    return await checklist_service.progresso(db, vistoria_id, usuario)
