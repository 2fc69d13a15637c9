"""
Vistoria Naval API — Vessel Routes
====================================

What:  /api/embarcacoes: vessel registry. numero_casco is unique; the
       optional client link is returned as a summary.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.usuario import Usuario
from app.schemas.cadastro import EmbarcacaoCreate, EmbarcacaoResponse, EmbarcacaoUpdate
from app.schemas.common import ErrorResponse
from app.services.audit_service import audit_service
from app.services.embarcacao_service import embarcacao_service

router = APIRouter(prefix="/api/embarcacoes", tags=["Embarcações"])


def _snapshot(embarcacao) -> dict:
    return EmbarcacaoResponse.model_validate(embarcacao).model_dump(
        mode="json", exclude={"cliente"}
    )


@router.get("", response_model=List[EmbarcacaoResponse])
async def list_embarcacoes(
    cliente_id: Optional[int] = Query(default=None),
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[EmbarcacaoResponse]:
    embarcacoes = await embarcacao_service.listar(db, cliente_id)
    return [EmbarcacaoResponse.model_validate(e) for e in embarcacoes]


@router.get("/{embarcacao_id}", response_model=EmbarcacaoResponse)
async def get_embarcacao(
    embarcacao_id: int,
    _: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EmbarcacaoResponse:
    return EmbarcacaoResponse.model_validate(await embarcacao_service.obter(db, embarcacao_id))


@router.post(
    "",
    response_model=EmbarcacaoResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
async def create_embarcacao(
    dados: EmbarcacaoCreate,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EmbarcacaoResponse:
    embarcacao = await embarcacao_service.criar(db, dados)
    await audit_service.registrar(
        db, acao="CREATE", entidade="Embarcacao", entidade_id=embarcacao.id, usuario=usuario,
        dados_novos=_snapshot(embarcacao), request=request,
    )
    return EmbarcacaoResponse.model_validate(embarcacao)


@router.put("/{embarcacao_id}", response_model=EmbarcacaoResponse)
async def update_embarcacao(
    embarcacao_id: int,
    dados: EmbarcacaoUpdate,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EmbarcacaoResponse:
    anterior = _snapshot(await embarcacao_service.obter(db, embarcacao_id))
    embarcacao = await embarcacao_service.atualizar(db, embarcacao_id, dados)
    await audit_service.registrar(
        db, acao="UPDATE", entidade="Embarcacao", entidade_id=embarcacao_id, usuario=usuario,
        dados_anteriores=anterior, dados_novos=_snapshot(embarcacao), request=request,
    )
    return EmbarcacaoResponse.model_validate(embarcacao)


@router.delete("/{embarcacao_id}", status_code=204)
async def delete_embarcacao(
    embarcacao_id: int,
    request: Request,
    usuario: Usuario = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    embarcacao = await embarcacao_service.deletar(db, embarcacao_id)
    await audit_service.registrar(
        db, acao="DELETE", entidade="Embarcacao", entidade_id=embarcacao_id, usuario=usuario,
        dados_anteriores={"nome": embarcacao.nome, "numero_casco": embarcacao.numero_casco},
        request=request,
    )
    return Response(status_code=204)
