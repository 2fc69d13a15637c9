"""
Vistoria Naval API — Laudo (Inspection Report) Models
=======================================================

What:  ORM models for `laudos` and `configuracoes_laudo`.
Why:   A laudo is the deliverable of a concluded inspection: a fixed-template
       risk report ("RELATÓRIO DE INSPEÇÃO DE RISCO - CASCOS") rendered to PDF.
How:   One laudo per inspection (vistoria_id unique). Most columns mirror a
       numbered field of the printed report; the three checklist_* JSON
       columns hold the Sim / Não / Não possui answers of sections 9-11.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.mixins import TimestampMixin


def _texto(length: int = 255):
    return mapped_column(String(length), nullable=True)


def _texto_longo():
    return mapped_column(Text, nullable=True)


def _inteiro():
    return mapped_column(Integer, nullable=True)


class Laudo(TimestampMixin, Base):
    __tablename__ = "laudos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    vistoria_id: Mapped[int] = mapped_column(
        ForeignKey("vistorias.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    numero_laudo: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    versao: Mapped[str] = mapped_column(
        String(50), nullable=False, default="BS 2021-01", server_default=text("'BS 2021-01'")
    )
    url_pdf: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    data_geracao: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # ── Dados gerais ──────────────────────────────────────────────────────
    nome_moto_aquatica: Mapped[Optional[str]] = _texto()
    local_guarda: Mapped[Optional[str]] = _texto_longo()
    proprietario: Mapped[Optional[str]] = _texto()
    cpf_cnpj: Mapped[Optional[str]] = _texto(20)
    endereco_proprietario: Mapped[Optional[str]] = _texto_longo()
    responsavel: Mapped[Optional[str]] = _texto()
    data_inspecao: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    local_vistoria: Mapped[Optional[str]] = _texto_longo()
    empresa_prestadora: Mapped[Optional[str]] = _texto()
    responsavel_inspecao: Mapped[Optional[str]] = _texto()
    participantes_inspecao: Mapped[Optional[str]] = _texto_longo()

    # ── 1. Dados da moto aquática ─────────────────────────────────────────
    inscricao_capitania: Mapped[Optional[str]] = _texto(100)
    estaleiro_construtor: Mapped[Optional[str]] = _texto()
    tipo_embarcacao: Mapped[Optional[str]] = _texto(50)
    modelo_embarcacao: Mapped[Optional[str]] = _texto()
    ano_fabricacao: Mapped[Optional[int]] = _inteiro()
    capacidade: Mapped[Optional[str]] = _texto(100)
    classificacao_embarcacao: Mapped[Optional[str]] = _texto(100)
    area_navegacao: Mapped[Optional[str]] = _texto(100)
    situacao_capitania: Mapped[Optional[str]] = _texto()
    valor_risco: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    # ── 2. Casco ──────────────────────────────────────────────────────────
    material_casco: Mapped[Optional[str]] = _texto(100)
    observacoes_casco: Mapped[Optional[str]] = _texto_longo()

    # ── 3. Propulsão ──────────────────────────────────────────────────────
    quantidade_motores: Mapped[Optional[int]] = _inteiro()
    tipo_motor: Mapped[Optional[str]] = _texto(100)
    fabricante_motor: Mapped[Optional[str]] = _texto()
    modelo_motor: Mapped[Optional[str]] = _texto()
    numero_serie_motor: Mapped[Optional[str]] = _texto()
    potencia_motor: Mapped[Optional[str]] = _texto(100)
    combustivel_utilizado: Mapped[Optional[str]] = _texto(100)
    capacidade_tanque: Mapped[Optional[str]] = _texto(100)
    ano_fabricacao_motor: Mapped[Optional[int]] = _inteiro()
    numero_helices: Mapped[Optional[str]] = _texto(100)
    rabeta_reversora: Mapped[Optional[str]] = _texto(100)
    blower: Mapped[Optional[str]] = _texto(100)

    # ── 4. Sistemas elétricos e de suporte ────────────────────────────────
    quantidade_baterias: Mapped[Optional[int]] = _inteiro()
    marca_baterias: Mapped[Optional[str]] = _texto(100)
    capacidade_baterias: Mapped[Optional[str]] = _texto(100)
    carregador_bateria: Mapped[Optional[str]] = _texto(100)
    transformador: Mapped[Optional[str]] = _texto(100)
    quantidade_geradores: Mapped[Optional[int]] = _inteiro()
    fabricante_geradores: Mapped[Optional[str]] = _texto()
    tipo_modelo_geradores: Mapped[Optional[str]] = _texto()
    capacidade_geracao: Mapped[Optional[str]] = _texto(100)
    quantidade_bombas_porao: Mapped[Optional[int]] = _inteiro()
    fabricante_bombas_porao: Mapped[Optional[str]] = _texto()
    modelo_bombas_porao: Mapped[Optional[str]] = _texto()
    quantidade_bombas_agua_doce: Mapped[Optional[int]] = _inteiro()
    fabricante_bombas_agua_doce: Mapped[Optional[str]] = _texto()
    modelo_bombas_agua_doce: Mapped[Optional[str]] = _texto()
    observacoes_eletricos: Mapped[Optional[str]] = _texto_longo()

    # ── 5. Materiais de fundeio ───────────────────────────────────────────
    guincho_eletrico: Mapped[Optional[str]] = _texto(100)
    ancora: Mapped[Optional[str]] = _texto(100)
    cabos: Mapped[Optional[str]] = _texto(100)

    # ── 6. Equipamentos de navegação ──────────────────────────────────────
    agulha_giroscopica: Mapped[Optional[str]] = _texto(100)
    agulha_magnetica: Mapped[Optional[str]] = _texto(100)
    antena: Mapped[Optional[str]] = _texto(100)
    bidata: Mapped[Optional[str]] = _texto(100)
    barometro: Mapped[Optional[str]] = _texto(100)
    buzina: Mapped[Optional[str]] = _texto(100)
    conta_giros: Mapped[Optional[str]] = _texto(100)
    farol_milha: Mapped[Optional[str]] = _texto(100)
    gps: Mapped[Optional[str]] = _texto(100)
    higrometro: Mapped[Optional[str]] = _texto(100)
    horimetro: Mapped[Optional[str]] = _texto(100)
    limpador_parabrisa: Mapped[Optional[str]] = _texto(100)
    manometros: Mapped[Optional[str]] = _texto(100)
    odometro_fundo: Mapped[Optional[str]] = _texto(100)
    passarela_embarque: Mapped[Optional[str]] = _texto(100)
    piloto_automatico: Mapped[Optional[str]] = _texto(100)
    psi: Mapped[Optional[str]] = _texto(100)
    radar: Mapped[Optional[str]] = _texto(100)
    radio_ssb: Mapped[Optional[str]] = _texto(100)
    radio_vhf: Mapped[Optional[str]] = _texto(100)
    radiogoniometro: Mapped[Optional[str]] = _texto(100)
    sonda: Mapped[Optional[str]] = _texto(100)
    speed_log: Mapped[Optional[str]] = _texto(100)
    strobow: Mapped[Optional[str]] = _texto(100)
    termometro: Mapped[Optional[str]] = _texto(100)
    voltimetro: Mapped[Optional[str]] = _texto(100)
    outros_equipamentos: Mapped[Optional[str]] = _texto_longo()

    # ── 7. Sistemas de combate a incêndio ─────────────────────────────────
    extintores_automaticos: Mapped[Optional[str]] = _texto(100)
    extintores_portateis: Mapped[Optional[str]] = _texto(100)
    outros_incendio: Mapped[Optional[str]] = _texto_longo()
    atendimento_normas: Mapped[Optional[str]] = _texto()

    # ── 8. Vistoria ───────────────────────────────────────────────────────
    acumulo_agua: Mapped[Optional[str]] = _texto()
    avarias_casco: Mapped[Optional[str]] = _texto()
    estado_geral_limpeza: Mapped[Optional[str]] = _texto()
    teste_funcionamento_motor: Mapped[Optional[str]] = _texto()
    funcionamento_bombas_porao: Mapped[Optional[str]] = _texto()
    manutencao: Mapped[Optional[str]] = _texto()
    observacoes_vistoria: Mapped[Optional[str]] = _texto_longo()

    # ── 9-11. Itens a serem verificados ───────────────────────────────────
    # {"terminais_estanhados": "Sim", "chave_geral": "Não possui", ...}
    checklist_eletrica: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    checklist_hidraulica: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    checklist_geral: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Laudo(id={self.id}, numero='{self.numero_laudo}', vistoria={self.vistoria_id})>"


class ConfiguracaoLaudo(TimestampMixin, Base):
    """
    Company branding printed on every laudo. The row flagged `padrao` is the
    one used for PDF generation; it is created on first read when missing.
    """

    __tablename__ = "configuracoes_laudo"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nome_empresa: Mapped[Optional[str]] = _texto()
    logo_empresa_url: Mapped[Optional[str]] = _texto(512)
    nota_rodape: Mapped[Optional[str]] = _texto_longo()
    empresa_prestadora: Mapped[Optional[str]] = _texto()
    padrao: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    usuario_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True
    )
