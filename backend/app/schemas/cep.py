"""CEP lookup response models."""

from typing import List, Optional

from pydantic import BaseModel


class Endereco(BaseModel):
    cep: str
    logradouro: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    uf: Optional[str] = None
    ibge: Optional[str] = None
    gia: Optional[str] = None
    ddd: Optional[str] = None
    siafi: Optional[str] = None


class CepResponse(BaseModel):
    success: bool = True
    data: Endereco


class BuscaEnderecoResponse(BaseModel):
    success: bool = True
    data: List[Endereco]
    count: int
