"""
Vistoria Naval API — Dashboard Schemas
========================================
"""

from typing import List, Optional

from pydantic import BaseModel


class Comparacao(BaseModel):
    variacao: float
    percentual: float


class ContagemVistorias(BaseModel):
    total: int
    concluidas: int
    em_andamento: int


class Financeiro(BaseModel):
    """Payment batch totals are only reported for the current month."""
    receita: float
    despesa: float
    lucro: float
    pagamentos_pendentes: Optional[float] = None
    pagamentos_pagos: Optional[float] = None


class PeriodoEstatisticas(BaseModel):
    mes: int
    ano: int
    nome_mes: str
    vistorias: ContagemVistorias
    financeiro: Financeiro


class ComparacaoMensal(BaseModel):
    vistorias: Comparacao
    receita: Comparacao
    despesa: Comparacao
    lucro: Comparacao


class VistoriasPorStatus(BaseModel):
    status: str
    quantidade: int


class RankingVistoriador(BaseModel):
    id: int
    nome: str
    email: Optional[str] = None
    total_vistorias: int
    total_ganho: float = 0.0


class TotaisGerais(BaseModel):
    total_vistorias: int
    total_embarcacoes: int
    total_vistoriadores: int


class EstatisticasResponse(BaseModel):
    mes_atual: PeriodoEstatisticas
    mes_anterior: PeriodoEstatisticas
    comparacao: ComparacaoMensal
    vistorias_por_status: List[VistoriasPorStatus]
    ranking_vistoriadores: List[RankingVistoriador]
    totais_gerais: TotaisGerais
