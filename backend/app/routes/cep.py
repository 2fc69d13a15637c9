"""
Vistoria Naval API — CEP Lookup Routes
========================================

What:  /api/cep: address lookup through ViaCEP, used to prefill client and
       location forms.
Errors: invalid input answers 400; ViaCEP outages answer 503 with
        Retry-After while the circuit breaker is open.
"""

from fastapi import APIRouter

from app.schemas.cep import BuscaEnderecoResponse, CepResponse
from app.schemas.common import ErrorResponse
from app.services.cep_service import cep_service

router = APIRouter(prefix="/api/cep", tags=["CEP"])

_ERROS = {
    400: {"description": "Invalid input or nothing found", "model": ErrorResponse},
    503: {"description": "CEP service unavailable", "model": ErrorResponse},
}


@router.get(
    "/buscar/{uf}/{cidade}/{logradouro}",
    response_model=BuscaEnderecoResponse,
    responses=_ERROS,
    summary="Find CEPs by state, city and street",
)
async def buscar_por_endereco(uf: str, cidade: str, logradouro: str) -> BuscaEnderecoResponse:
    enderecos = await cep_service.buscar_por_endereco(uf, cidade, logradouro)
    return BuscaEnderecoResponse(data=enderecos, count=len(enderecos))


@router.get("/{cep}", response_model=CepResponse, responses=_ERROS, summary="Look up a CEP")
async def buscar_cep(cep: str) -> CepResponse:
    return CepResponse(data=await cep_service.buscar_por_cep(cep))
