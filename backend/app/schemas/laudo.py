"""
Vistoria Naval API — Laudo Schemas
====================================

What:  Request/response models for laudos and the laudo configuration.

Every report field is optional on input: fields left out are filled from
the inspection, vessel and client when the laudo is created.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class LaudoCampos(BaseModel):
    """The printable fields of a laudo, grouped by report section."""

    versao: Optional[str] = Field(default=None, max_length=50)

    # ── Dados gerais ──────────────────────────────────────────────────────
    nome_moto_aquatica: Optional[str] = None
    local_guarda: Optional[str] = None
    proprietario: Optional[str] = None
    cpf_cnpj: Optional[str] = None
    endereco_proprietario: Optional[str] = None
    responsavel: Optional[str] = None
    data_inspecao: Optional[date] = None
    local_vistoria: Optional[str] = None
    empresa_prestadora: Optional[str] = None
    responsavel_inspecao: Optional[str] = None
    participantes_inspecao: Optional[str] = None

    # ── 1. Dados da moto aquática ─────────────────────────────────────────
    inscricao_capitania: Optional[str] = None
    estaleiro_construtor: Optional[str] = None
    tipo_embarcacao: Optional[str] = None
    modelo_embarcacao: Optional[str] = None
    ano_fabricacao: Optional[int] = None
    capacidade: Optional[str] = None
    classificacao_embarcacao: Optional[str] = None
    area_navegacao: Optional[str] = None
    situacao_capitania: Optional[str] = None
    valor_risco: Optional[float] = None

    # ── 2. Casco ──────────────────────────────────────────────────────────
    material_casco: Optional[str] = None
    observacoes_casco: Optional[str] = None

    # ── 3. Propulsão ──────────────────────────────────────────────────────
    quantidade_motores: Optional[int] = None
    tipo_motor: Optional[str] = None
    fabricante_motor: Optional[str] = None
    modelo_motor: Optional[str] = None
    numero_serie_motor: Optional[str] = None
    potencia_motor: Optional[str] = None
    combustivel_utilizado: Optional[str] = None
    capacidade_tanque: Optional[str] = None
    ano_fabricacao_motor: Optional[int] = None
    numero_helices: Optional[str] = None
    rabeta_reversora: Optional[str] = None
    blower: Optional[str] = None

    # ── 4. Sistemas elétricos e de suporte ────────────────────────────────
    quantidade_baterias: Optional[int] = None
    marca_baterias: Optional[str] = None
    capacidade_baterias: Optional[str] = None
    carregador_bateria: Optional[str] = None
    transformador: Optional[str] = None
    quantidade_geradores: Optional[int] = None
    fabricante_geradores: Optional[str] = None
    tipo_modelo_geradores: Optional[str] = None
    capacidade_geracao: Optional[str] = None
    quantidade_bombas_porao: Optional[int] = None
    fabricante_bombas_porao: Optional[str] = None
    modelo_bombas_porao: Optional[str] = None
    quantidade_bombas_agua_doce: Optional[int] = None
    fabricante_bombas_agua_doce: Optional[str] = None
    modelo_bombas_agua_doce: Optional[str] = None
    observacoes_eletricos: Optional[str] = None

    # ── 5. Materiais de fundeio ───────────────────────────────────────────
    guincho_eletrico: Optional[str] = None
    ancora: Optional[str] = None
    cabos: Optional[str] = None

    # ── 6. Equipamentos de navegação ──────────────────────────────────────
    agulha_giroscopica: Optional[str] = None
    agulha_magnetica: Optional[str] = None
    antena: Optional[str] = None
    bidata: Optional[str] = None
    barometro: Optional[str] = None
    buzina: Optional[str] = None
    conta_giros: Optional[str] = None
    farol_milha: Optional[str] = None
    gps: Optional[str] = None
    higrometro: Optional[str] = None
    horimetro: Optional[str] = None
    limpador_parabrisa: Optional[str] = None
    manometros: Optional[str] = None
    odometro_fundo: Optional[str] = None
    passarela_embarque: Optional[str] = None
    piloto_automatico: Optional[str] = None
    psi: Optional[str] = None
    radar: Optional[str] = None
    radio_ssb: Optional[str] = None
    radio_vhf: Optional[str] = None
    radiogoniometro: Optional[str] = None
    sonda: Optional[str] = None
    speed_log: Optional[str] = None
    strobow: Optional[str] = None
    termometro: Optional[str] = None
    voltimetro: Optional[str] = None
    outros_equipamentos: Optional[str] = None

    # ── 7. Sistemas de combate a incêndio ─────────────────────────────────
    extintores_automaticos: Optional[str] = None
    extintores_portateis: Optional[str] = None
    outros_incendio: Optional[str] = None
    atendimento_normas: Optional[str] = None

    # ── 8. Vistoria ───────────────────────────────────────────────────────
    acumulo_agua: Optional[str] = None
    avarias_casco: Optional[str] = None
    estado_geral_limpeza: Optional[str] = None
    teste_funcionamento_motor: Optional[str] = None
    funcionamento_bombas_porao: Optional[str] = None
    manutencao: Optional[str] = None
    observacoes_vistoria: Optional[str] = None

    # ── 9-11. Itens a serem verificados ───────────────────────────────────
    checklist_eletrica: Optional[Dict[str, Any]] = None
    checklist_hidraulica: Optional[Dict[str, Any]] = None
    checklist_geral: Optional[Dict[str, Any]] = None


class LaudoCreate(LaudoCampos):
    pass


class LaudoUpdate(LaudoCampos):
    pass


class LaudoResponse(LaudoCampos):
    id: int
    vistoria_id: int
    numero_laudo: str
    url_pdf: Optional[str] = None
    data_geracao: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class GerarPdfResponse(BaseModel):
    message: str
    laudo: LaudoResponse
    download_url: str


# ── Configuração ─────────────────────────────────────────────────────────


class ConfiguracaoLaudoUpdate(BaseModel):
    nome_empresa: Optional[str] = None
    logo_empresa_url: Optional[str] = None
    nota_rodape: Optional[str] = None
    empresa_prestadora: Optional[str] = None


class ConfiguracaoLaudoResponse(BaseModel):
    id: int
    nome_empresa: Optional[str] = None
    logo_empresa_url: Optional[str] = None
    nota_rodape: Optional[str] = None
    empresa_prestadora: Optional[str] = None
    padrao: bool
    usuario_id: Optional[int] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
