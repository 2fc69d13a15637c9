"""
Vistoria Naval API — Laudo PDF Renderer
=========================================

What:  Lays out the fixed "RELATÓRIO DE INSPEÇÃO DE RISCO - CASCOS" template
       on an A4 reportlab canvas and returns the PDF bytes.
Why:   The report is the deliverable handed to the insurer; its numbering
       and section order are fixed by the insurer's form.
How:   Pure and synchronous: LaudoService collects the laudo, the photo
       bytes and the company branding, then runs `renderizar_laudo` in a
       worker thread and stores the result.

Page Layout (A4, 50pt margins, coordinates measured from the top):
    page 1     header (versão, title, CASCOS, laudo number, company)
    pages 1-n  DADOS GERAIS, sections 1-8 as "label ........ value" rows,
               then the Sim / Não / Não possui checkboxes of sections 9-11
    photos     "REGISTRO FOTOGRÁFICO", 2×2 grid of 200×150 per page
    last       signature block
    every page footer note + "Página N"
"""

import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from app.config import settings

logger = logging.getLogger(__name__)

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"

MARGEM = 50
COLUNA_VALOR = 250
ALTURA_LINHA = 18
# Rows below this line would collide with the footer
LIMITE_INFERIOR = A4[1] - 90

FOTOS_POR_PAGINA = 4
FOTO_LARGURA = 200
FOTO_ALTURA = 150
FOTO_PASSO_X = 250
FOTO_PASSO_Y = 200

OPCOES_CHECKBOX = ("Sim", "Não", "Não possui")

# (title, [(label, attribute, printed only when filled)])
SECOES: Sequence[Tuple[str, Sequence[Tuple[str, str, bool]]]] = (
    ("DADOS GERAIS", (
        ("Nome da moto aquática:", "nome_moto_aquatica", False),
        ("Local de Guarda:", "local_guarda", False),
        ("Proprietário:", "proprietario", False),
        ("CPF / CNPJ:", "cpf_cnpj", False),
        ("Endereço do Proprietário:", "endereco_proprietario", False),
        ("Responsável:", "responsavel", False),
        ("Data da Inspeção:", "data_inspecao", False),
        ("Local da Vistoria:", "local_vistoria", False),
        ("Empresa Prestadora:", "empresa_prestadora", False),
        ("Responsável pela Inspeção:", "responsavel_inspecao", False),
        ("Participantes na Inspeção:", "participantes_inspecao", False),
    )),
    ("1. DADOS DA MOTO AQUÁTICA", (
        ("1.1. Inscrição na Capitania dos Portos:", "inscricao_capitania", False),
        ("1.2. Estaleiro Construtor:", "estaleiro_construtor", False),
        ("1.3. Tipo de Embarcação:", "tipo_embarcacao", False),
        ("1.4. Modelo:", "modelo_embarcacao", False),
        ("1.5. Ano de Fabricação:", "ano_fabricacao", False),
        ("1.6. Capacidade:", "capacidade", False),
        ("1.7. Classificação da Embarcação:", "classificacao_embarcacao", False),
        ("1.8. Área de Navegação:", "area_navegacao", False),
        ("1.9. Situação perante a Capitania dos Portos:", "situacao_capitania", False),
        ("1.10. Valor em Risco:", "valor_risco", False),
    )),
    ("2. CASCO", (
        ("2.1. Material do Casco:", "material_casco", False),
        ("2.2. Observações:", "observacoes_casco", False),
    )),
    ("3. PROPULSÃO", (
        ("3.1. Quantidade de Motores:", "quantidade_motores", False),
        ("3.2. Tipo:", "tipo_motor", False),
        ("3.3. Fabricante do(s) Motor(es):", "fabricante_motor", False),
        ("3.4. Modelo do(s) Motor(es):", "modelo_motor", False),
        ("3.5. Número(s) de Série:", "numero_serie_motor", False),
        ("3.6. Potência do(s) Motor(es):", "potencia_motor", False),
        ("3.7. Combustível Utilizado:", "combustivel_utilizado", False),
        ("3.8. Capacidade do Tanque de Combustível:", "capacidade_tanque", False),
        ("3.9. Ano de Fabricação:", "ano_fabricacao_motor", False),
        ("3.10. Número de Hélices e Material:", "numero_helices", False),
        ("3.11. Rabeta / Reversora:", "rabeta_reversora", False),
        ("3.12. Blower:", "blower", False),
    )),
    ("4. SISTEMAS ELÉTRICOS E DE SUPORTE", (
        ("4.1. Quantidade de Baterias:", "quantidade_baterias", False),
        ("4.2. Marca das Baterias:", "marca_baterias", False),
        ("4.3. Capacidade das Baterias (Ah):", "capacidade_baterias", False),
        ("4.4. Carregador de Bateria:", "carregador_bateria", False),
        ("4.5. Transformador:", "transformador", False),
        ("4.6. Quantidade de Geradores:", "quantidade_geradores", False),
        ("4.7. Fabricante do(s) Gerador(es):", "fabricante_geradores", False),
        ("4.8. Tipo e Modelo do(s) Gerador(es):", "tipo_modelo_geradores", False),
        ("4.9. Capacidade de Geração:", "capacidade_geracao", False),
        ("4.10. Quantidade de Bombas de Porão:", "quantidade_bombas_porao", False),
        ("4.11. Fabricante da(s) Bomba(s) de Porão:", "fabricante_bombas_porao", False),
        ("4.12. Modelo da(s) Bomba(s) de Porão:", "modelo_bombas_porao", False),
        ("4.13. Quantidade de Bombas de Água Doce:", "quantidade_bombas_agua_doce", False),
        ("4.14. Fabricante da(s) Bomba(s) de Água Doce:", "fabricante_bombas_agua_doce", False),
        ("4.15. Modelo da(s) Bomba(s) de Água Doce:", "modelo_bombas_agua_doce", False),
        ("4.16. Observações:", "observacoes_eletricos", True),
    )),
    ("5. MATERIAIS DE FUNDEIO", (
        ("5.1. Guincho Elétrico:", "guincho_eletrico", False),
        ("5.2. Ancora:", "ancora", False),
        ("5.3. Cabos:", "cabos", False),
    )),
    ("6. EQUIPAMENTOS DE NAVEGAÇÃO", (
        ("6.1. Agulha Giroscópica:", "agulha_giroscopica", False),
        ("6.2. Agulha Magnética:", "agulha_magnetica", False),
        ("6.3. Antena:", "antena", False),
        ("6.4. Bidata:", "bidata", False),
        ("6.5. Barômetro:", "barometro", False),
        ("6.6. Buzina:", "buzina", False),
        ("6.7. Conta Giros:", "conta_giros", False),
        ("6.8. Farol de Milha:", "farol_milha", False),
        ("6.9. GPS:", "gps", False),
        ("6.10. Higrômetro:", "higrometro", False),
        ("6.11. Horímetro:", "horimetro", False),
        ("6.12. Limpador de Para-brisas:", "limpador_parabrisa", False),
        ("6.13. Manômetros:", "manometros", False),
        ("6.14. Odômetro de Fundo:", "odometro_fundo", False),
        ("6.15. Passarela de Embarque:", "passarela_embarque", False),
        ("6.16. Piloto Automático:", "piloto_automatico", False),
        ("6.17. PSI:", "psi", False),
        ("6.18. Radar:", "radar", False),
        ("6.19. Rádio SSB:", "radio_ssb", False),
        ("6.20. Rádio VHF:", "radio_vhf", False),
        ("6.21. Radiogoniometro:", "radiogoniometro", False),
        ("6.22. Sonda:", "sonda", False),
        ("6.23. Speed Log:", "speed_log", False),
        ("6.24. Strobow:", "strobow", False),
        ("6.25. Termômetro:", "termometro", False),
        ("6.26. Voltímetro:", "voltimetro", False),
        ("6.27. Outros:", "outros_equipamentos", True),
    )),
    ("7. SISTEMAS DE COMBATE A INCÊNDIO", (
        ("7.1. Extintores Automáticos:", "extintores_automaticos", False),
        ("7.2. Extintores Portáteis:", "extintores_portateis", False),
        ("7.3. Outros:", "outros_incendio", True),
        ("7.4. Atendimento às Normas de Segurança:", "atendimento_normas", False),
    )),
    ("8. VISTORIA", (
        ("8.1. Acúmulo de água no fundo da embarcação:", "acumulo_agua", False),
        ("8.2. Avarias no casco:", "avarias_casco", False),
        ("8.3. Estado Geral de Limpeza e Conservação:", "estado_geral_limpeza", False),
        ("8.4. Teste de Funcionamento do Motor Propulsor:", "teste_funcionamento_motor", False),
        ("8.5. Funcionamento de Bombas de Porão:", "funcionamento_bombas_porao", False),
        ("8.6. Manutenção:", "manutencao", False),
        ("8.7. Observações:", "observacoes_vistoria", True),
    )),
)

# (title, JSON column, [(answer key, question)])
SECOES_CHECKBOX: Sequence[Tuple[str, str, Sequence[Tuple[str, str]]]] = (
    ("9. INSTALAÇÕES ELÉTRICAS", "checklist_eletrica", (
        ("terminais_estanhados",
         "9.1. Os terminais de cabos elétricos estão devidamente estanhados?"),
        ("circuitos_protegidos",
         "9.2. Circuitos elétricos estão protegidos por disjuntores ou fusíveis?"),
        ("chave_geral",
         "9.3. A chave geral é de uso náutico, está em local de fácil acesso e "
         "protegido de respingos?"),
        ("terminais_baterias",
         "9.4. Os terminais de cabos de baterias estão devidamente prensados?"),
        ("baterias_fixadas",
         "9.5. As baterias estão devidamente fixadas, sem apresentar movimento?"),
        ("passagem_chicotes",
         "9.6. A passagem dos chicotes elétricos pelas anteparas estão protegidos com "
         "anéis de borracha para evitar danos às capas de fiação?"),
        ("cabo_arranque",
         "9.7. O cabo de alimentação do motor de arranque tem fusível próprio?"),
    )),
    ("10. INSTALAÇÃO HIDRÁULICA", "checklist_hidraulica", (
        ("material_tanques",
         "10.1. O material de fabricação dos tanques de combustível está de acordo com "
         "o combustível utilizado pela embarcação?"),
        ("abracadeiras_inox",
         "10.2. As abraçadeiras usadas a bordo são de aço inox?"),
    )),
    ("11. GERAL", "checklist_geral", (
        ("carreta_condicoes",
         "11.1. A carreta da embarcação se encontra em boas condições e com "
         "manutenção em dia?"),
    )),
)


@dataclass
class FotoLaudo:
    """One photo for the REGISTRO FOTOGRÁFICO pages."""
    conteudo: Optional[bytes]
    legenda: str
    observacao: Optional[str] = None


# ── Formatting ────────────────────────────────────────────────────────────

def formatar_moeda(valor: Any) -> str:
    """1234.5 → 'R$ 1.234,50'."""
    numero = Decimal(str(valor)).quantize(Decimal("0.01"))
    inteiro, _, centavos = f"{numero:,.2f}".partition(".")
    return f"R$ {inteiro.replace(',', '.')},{centavos}"


def formatar_valor(valor: Any) -> str:
    if valor is None or valor == "":
        return "---"
    if isinstance(valor, datetime):
        return valor.strftime("%d/%m/%Y")
    if isinstance(valor, date):
        return valor.strftime("%d/%m/%Y")
    return str(valor)


def opcao_marcada(resposta: Any, opcao: str) -> bool:
    """Stored answers are the option text; booleans map to Sim / Não."""
    if resposta is True:
        return opcao == "Sim"
    if resposta is False:
        return opcao == "Não"
    return resposta == opcao


# ── Renderer ──────────────────────────────────────────────────────────────

class _Pagina:
    """Top-down cursor over a reportlab canvas that handles page breaks."""

    def __init__(self, pdf: canvas.Canvas, nota_rodape: Optional[str]):
        self.pdf = pdf
        self.largura, self.altura = A4
        self.nota_rodape = nota_rodape
        self.numero = 1
        self.y = MARGEM
        self._rodape()

    def texto(self, x: float, y: float, conteudo: str, fonte: str = FONT_REGULAR,
              tamanho: int = 10) -> None:
        self.pdf.setFont(fonte, tamanho)
        self.pdf.drawString(x, self.altura - y - tamanho, conteudo)

    def centralizado(self, y: float, conteudo: str, fonte: str = FONT_BOLD,
                     tamanho: int = 12) -> None:
        self.pdf.setFont(fonte, tamanho)
        self.pdf.drawCentredString(self.largura / 2, self.altura - y - tamanho, conteudo)

    def nova_pagina(self) -> None:
        self.pdf.showPage()
        self.numero += 1
        self.y = MARGEM
        self._rodape()

    def garantir_espaco(self, altura: float) -> None:
        if self.y + altura > LIMITE_INFERIOR:
            self.nova_pagina()

    def _rodape(self) -> None:
        self.pdf.saveState()
        base = 30
        if self.nota_rodape:
            self.pdf.setFont(FONT_ITALIC, 8)
            linhas = simpleSplit(self.nota_rodape, FONT_ITALIC, 8, self.largura - 2 * MARGEM)
            for i, linha in enumerate(linhas[:2]):
                self.pdf.drawCentredString(self.largura / 2, base + 20 - i * 9, linha)
        self.pdf.setFont(FONT_REGULAR, 8)
        self.pdf.drawCentredString(self.largura / 2, base - 10, f"Página {self.numero}")
        self.pdf.restoreState()


def _cabecalho(pagina: _Pagina, laudo: Any, nome_empresa: Optional[str]) -> None:
    versao = getattr(laudo, "versao", None) or settings.laudo_versao_padrao
    pagina.texto(MARGEM, 50, f"Versão: {versao}")
    pagina.centralizado(80, "RELATÓRIO DE INSPEÇÃO DE RISCO", tamanho=16)
    pagina.centralizado(100, "CASCOS", tamanho=14)
    pagina.texto(MARGEM, 120, f"Laudo: {laudo.numero_laudo}")
    if nome_empresa:
        pagina.centralizado(140, nome_empresa, tamanho=12)
    pagina.y = 180


def _secao(pagina: _Pagina, titulo: str, linhas_previstas: int = 3) -> None:
    # Keep a title together with its first rows
    pagina.garantir_espaco(20 + ALTURA_LINHA * linhas_previstas)
    pagina.texto(MARGEM, pagina.y, titulo, FONT_BOLD, 12)
    pagina.y += 20


def _campo(pagina: _Pagina, rotulo: str, valor: str) -> None:
    largura_rotulo = COLUNA_VALOR - MARGEM - 10
    largura_valor = pagina.largura - MARGEM - COLUNA_VALOR
    linhas_rotulo = simpleSplit(rotulo, FONT_BOLD, 10, largura_rotulo)
    linhas_valor = simpleSplit(valor, FONT_REGULAR, 10, largura_valor) or ["---"]
    total = max(len(linhas_rotulo), len(linhas_valor))
    pagina.garantir_espaco(ALTURA_LINHA + 12 * (total - 1))

    for i, linha in enumerate(linhas_rotulo):
        pagina.texto(MARGEM, pagina.y + i * 12, linha, FONT_BOLD, 10)
    for i, linha in enumerate(linhas_valor):
        pagina.texto(COLUNA_VALOR, pagina.y + i * 12, linha, FONT_REGULAR, 10)
    pagina.y += ALTURA_LINHA + 12 * (total - 1)


def _checkbox(pagina: _Pagina, pergunta: str, resposta: Any) -> None:
    linhas = simpleSplit(pergunta, FONT_REGULAR, 10, 450)
    altura_pergunta = 12 * len(linhas)
    pagina.garantir_espaco(altura_pergunta + 23)

    for i, linha in enumerate(linhas):
        pagina.texto(70, pagina.y + i * 12, linha)

    topo_caixa = pagina.y + altura_pergunta + 3
    x = 70
    for opcao in OPCOES_CHECKBOX:
        pagina.pdf.rect(x, pagina.altura - topo_caixa - 8, 8, 8, stroke=1, fill=0)
        if opcao_marcada(resposta, opcao):
            pagina.texto(x + 1, topo_caixa - 1, "X", FONT_BOLD, 9)
        pagina.texto(x + 12, topo_caixa - 1, opcao)
        x += 80
    pagina.y = topo_caixa + 20


def _valor_campo(laudo: Any, atributo: str) -> str:
    valor = getattr(laudo, atributo, None)
    if atributo == "valor_risco" and valor not in (None, "", 0):
        return formatar_moeda(valor)
    return formatar_valor(valor)


def _fotos(pagina: _Pagina, fotos: List[FotoLaudo]) -> None:
    utilizaveis = [f for f in fotos if f.conteudo]
    if not utilizaveis:
        return

    pagina.nova_pagina()
    pagina.centralizado(pagina.y, "REGISTRO FOTOGRÁFICO", tamanho=14)
    inicio = pagina.y + 30
    posicao = 0

    for foto in utilizaveis:
        if posicao >= FOTOS_POR_PAGINA:
            pagina.nova_pagina()
            inicio = pagina.y
            posicao = 0

        x = MARGEM + (posicao % 2) * FOTO_PASSO_X
        topo = inicio + (posicao // 2) * FOTO_PASSO_Y
        try:
            imagem = ImageReader(io.BytesIO(foto.conteudo))
            pagina.pdf.drawImage(
                imagem,
                x,
                pagina.altura - topo - FOTO_ALTURA,
                width=FOTO_LARGURA,
                height=FOTO_ALTURA,
                preserveAspectRatio=True,
                anchor="c",
                mask="auto",
            )
        except Exception as e:
            logger.warning("Skipping unreadable photo '%s' in laudo: %s", foto.legenda, str(e))
            continue

        centro = x + FOTO_LARGURA / 2
        pagina.pdf.setFont(FONT_REGULAR, 8)
        pagina.pdf.drawCentredString(
            centro, pagina.altura - topo - FOTO_ALTURA - 13, foto.legenda
        )
        if foto.observacao:
            pagina.pdf.setFont(FONT_ITALIC, 7)
            linha = simpleSplit(foto.observacao, FONT_ITALIC, 7, FOTO_LARGURA)[:1]
            if linha:
                pagina.pdf.drawCentredString(
                    centro, pagina.altura - topo - FOTO_ALTURA - 25, linha[0]
                )
        posicao += 1


def _assinatura(pagina: _Pagina) -> None:
    pagina.nova_pagina()
    pagina.texto(MARGEM, pagina.y, "ASSINATURA", FONT_BOLD, 12)
    pagina.y += 40
    pagina.texto(MARGEM, pagina.y, "_" * 60)
    pagina.y += 20
    pagina.texto(MARGEM, pagina.y, "Responsável pela Inspeção")
    pagina.y += 40
    pagina.texto(MARGEM, pagina.y, "_" * 60)
    pagina.y += 20
    pagina.texto(MARGEM, pagina.y, "Data: ___/___/_____")


def renderizar_laudo(
    laudo: Any,
    fotos: Optional[List[FotoLaudo]] = None,
    nome_empresa: Optional[str] = None,
    nota_rodape: Optional[str] = None,
) -> bytes:
    """
    Renders the complete report.

    Args:
        laudo:        Laudo row (or any object exposing the same attributes).
        fotos:        Photos in upload order; entries without bytes are skipped.
        nome_empresa: Company name printed under the title.
        nota_rodape:  Footer note repeated on every page.

    Returns:
        The PDF document as bytes.
    """
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Laudo {laudo.numero_laudo}")
    pdf.setAuthor(nome_empresa or settings.laudo_empresa_padrao)

    pagina = _Pagina(pdf, nota_rodape)
    _cabecalho(pagina, laudo, nome_empresa)

    for titulo, campos in SECOES:
        _secao(pagina, titulo)
        for rotulo, atributo, opcional in campos:
            if opcional and not getattr(laudo, atributo, None):
                continue
            _campo(pagina, rotulo, _valor_campo(laudo, atributo))
        pagina.y += 20

    pagina.garantir_espaco(120)
    pagina.texto(MARGEM, pagina.y, "RELAÇÃO DE ITENS A SEREM VERIFICADOS", FONT_BOLD, 12)
    largura_titulo = pdf.stringWidth("RELAÇÃO DE ITENS A SEREM VERIFICADOS", FONT_BOLD, 12)
    base_titulo = pagina.altura - pagina.y - 14
    pdf.line(MARGEM, base_titulo, MARGEM + largura_titulo, base_titulo)
    pagina.y += 30

    for titulo, coluna, perguntas in SECOES_CHECKBOX:
        _secao(pagina, titulo, linhas_previstas=2)
        respostas = getattr(laudo, coluna, None) or {}
        for chave, pergunta in perguntas:
            if chave in respostas:
                _checkbox(pagina, pergunta, respostas[chave])
        pagina.y += 20

    _fotos(pagina, fotos or [])
    _assinatura(pagina)

    pdf.showPage()
    pdf.save()
    logger.info("Laudo %s rendered: %d pages", laudo.numero_laudo, pagina.numero)
    return buffer.getvalue()
