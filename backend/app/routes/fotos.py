"""
Vistoria Naval API — Photo Routes
===================================

What:  /api/fotos: upload, list, stream and delete inspection photos.
Who:   The inspector app during an inspection and the admin panel.

Upload Flow:
    1. multipart/form-data: foto (file), vistoria_id, tipo_foto_id,
       optional checklist_item_id and observacao
    2. FotoService validates and compresses the image, stages it under
       vistorias/temp/, checks authorization, then moves it into the
       inspection prefix
    3. The photo is linked to a checklist item (explicit or by keyword)
    4. 201 with the photo and its URL
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_vistoriador
from app.models.usuario import Usuario
from app.schemas.common import ErrorResponse
from app.schemas.vistoria import FotoResponse, FotoUrlResponse
from app.services.audit_service import audit_service
from app.services.foto_service import foto_para_resposta, foto_service
from app.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/fotos", tags=["Fotos"])


@router.get("/storage-info", summary="Photo storage configuration")
async def storage_info(_: Usuario = Depends(require_vistoriador)) -> dict:
    return storage_service.info()


@router.get("/vistoria/{vistoria_id}", response_model=List[FotoResponse])
async def list_fotos(
    vistoria_id: int,
    usuario: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> List[FotoResponse]:
    fotos = await foto_service.listar(db, vistoria_id, usuario)
    return [foto_para_resposta(f) for f in fotos]


@router.post(
    "/upload",
    status_code=201,
    response_model=FotoResponse,
    responses={
        400: {"description": "Invalid file type, size or content", "model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Upload an inspection photo",
)
async def upload_foto(
    request: Request,
    foto: UploadFile = File(..., description="JPG, PNG or GIF image, max 10MB"),
    vistoria_id: int = Form(...),
    tipo_foto_id: int = Form(...),
    checklist_item_id: Optional[int] = Form(default=None),
    observacao: Optional[str] = Form(default=None),
    usuario: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> FotoResponse:
    content = await foto.read()
    logger.info(
        "Received photo upload: filename=%s, size=%d bytes, vistoria=%s",
        foto.filename or "unknown",
        len(content),
        vistoria_id,
    )
    try:
        registro = await foto_service.upload(
            db,
            usuario,
            filename=foto.filename or "foto.jpg",
            content=content,
            vistoria_id=vistoria_id,
            tipo_foto_id=tipo_foto_id,
            checklist_item_id=checklist_item_id,
            observacao=observacao or None,
            content_length=foto.size,
        )
    finally:
        await foto.close()

    await audit_service.registrar(
        db, acao="CREATE", entidade="Foto", entidade_id=registro.id, usuario=usuario,
        dados_novos={"vistoria_id": vistoria_id, "tipo_foto_id": tipo_foto_id,
                     "url_arquivo": registro.url_arquivo},
        request=request,
    )
    return foto_para_resposta(registro)


@router.get(
    "/{foto_id}/imagem",
    response_class=StreamingResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Stream the stored image",
)
async def get_imagem(
    foto_id: int,
    usuario: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> StreamingResponse:
    chunks, content_type = await foto_service.imagem(db, foto_id, usuario)
    return StreamingResponse(
        chunks,
        media_type=content_type,
        headers={"Cache-Control": "private, max-age=3600"},
    )


@router.get("/{foto_id}/imagem-url", response_model=FotoUrlResponse)
async def get_imagem_url(
    foto_id: int,
    usuario: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> FotoUrlResponse:
    return await foto_service.url(db, foto_id, usuario)


@router.delete("/{foto_id}", status_code=204, responses={403: {"model": ErrorResponse}})
async def delete_foto(
    foto_id: int,
    request: Request,
    usuario: Usuario = Depends(require_vistoriador),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    foto = await foto_service.deletar(db, foto_id, usuario)
    await audit_service.registrar(
        db, acao="DELETE", entidade="Foto", entidade_id=foto_id, usuario=usuario,
        dados_anteriores={"vistoria_id": foto.vistoria_id, "url_arquivo": foto.url_arquivo},
        request=request,
    )
    return Response(status_code=204)
