"""
Vistoria Naval API — Brazilian Document and Format Validators
===============================================================

What:  Pure functions validating, cleaning and formatting CPF, CNPJ, CEP,
       phone numbers, state codes, monetary values and passwords.
Who:   Called by pydantic schema validators and by services.

All functions are side-effect free and accept None where a field is optional.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union

UFS = frozenset({
    "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO", "MA", "MT", "MS", "MG",
    "PA", "PB", "PR", "PE", "PI", "RJ", "RN", "RS", "RO", "RR", "SC", "SP", "SE", "TO",
})

VALOR_MAXIMO = Decimal("100000000")

_E164_RE = re.compile(r"^\+[1-9]\d{1,14}$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NAO_DIGITOS_RE = re.compile(r"\D")
_CARACTERES_ESPECIAIS = '!@#$%^&*(),.?":{}|<>'


def somente_digitos(valor: Optional[str]) -> str:
    if not valor:
        return ""
    return _NAO_DIGITOS_RE.sub("", str(valor))


def validar_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return bool(_EMAIL_RE.match(email.strip()))


# ── CPF ───────────────────────────────────────────────────────────────────

def limpar_cpf(cpf: Optional[str]) -> str:
    return somente_digitos(cpf)


def validar_cpf(cpf: Optional[str]) -> bool:
    """
    Validates a CPF by its two mod-11 check digits.

    Sequences of a single repeated digit (111.111.111-11) pass the arithmetic
    but are not issued, so they are rejected.
    """
    digitos = limpar_cpf(cpf)
    if len(digitos) != 11 or digitos == digitos[0] * 11:
        return False

    for posicao in (9, 10):
        soma = sum(int(digitos[i]) * (posicao + 1 - i) for i in range(posicao))
        resto = (soma * 10) % 11
        if resto == 10:
            resto = 0
        if resto != int(digitos[posicao]):
            return False
    return True


def formatar_cpf(cpf: Optional[str]) -> str:
    digitos = limpar_cpf(cpf)
    if len(digitos) != 11:
        return cpf or ""
    return f"{digitos[:3]}.{digitos[3:6]}.{digitos[6:9]}-{digitos[9:]}"


# ── CNPJ ──────────────────────────────────────────────────────────────────

_PESOS_CNPJ_1 = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_PESOS_CNPJ_2 = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


def validar_cnpj(cnpj: Optional[str]) -> bool:
    digitos = somente_digitos(cnpj)
    if len(digitos) != 14 or digitos == digitos[0] * 14:
        return False

    for pesos in (_PESOS_CNPJ_1, _PESOS_CNPJ_2):
        tamanho = len(pesos)
        soma = sum(int(d) * p for d, p in zip(digitos[:tamanho], pesos))
        resto = soma % 11
        verificador = 0 if resto < 2 else 11 - resto
        if verificador != int(digitos[tamanho]):
            return False
    return True


def formatar_cnpj(cnpj: Optional[str]) -> str:
    d = somente_digitos(cnpj)
    if len(d) != 14:
        return cnpj or ""
    return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:]}"


# ── Telefone ──────────────────────────────────────────────────────────────

def validar_telefone_e164(telefone: Optional[str]) -> bool:
    if not telefone:
        return False
    return bool(_E164_RE.match(telefone))


def converter_para_e164(telefone: Optional[str]) -> Optional[str]:
    """
    Converts a Brazilian phone number to E.164.

    "(11) 99999-8888" → "+5511999998888"; numbers already carrying the 55
    country code keep it. Anything too short to be a full number is returned
    unchanged so the caller's validation can reject it.
    """
    if not telefone:
        return telefone
    digitos = somente_digitos(telefone)
    if digitos.startswith("55") and len(digitos) >= 12:
        return f"+{digitos}"
    if len(digitos) >= 10:
        return f"+55{digitos}"
    return telefone


def formatar_telefone(telefone: Optional[str]) -> str:
    """E.164 (or raw digits) → "(11) 99999-8888" / "(11) 9999-8888"."""
    if not telefone:
        return ""
    digitos = somente_digitos(telefone)
    if digitos.startswith("55") and len(digitos) in (12, 13):
        digitos = digitos[2:]
    if len(digitos) == 11:
        return f"({digitos[:2]}) {digitos[2:7]}-{digitos[7:]}"
    if len(digitos) == 10:
        return f"({digitos[:2]}) {digitos[2:6]}-{digitos[6:]}"
    return telefone


# ── Endereço ──────────────────────────────────────────────────────────────

def validar_estado(uf: Optional[str]) -> bool:
    if not uf:
        return False
    return uf.upper() in UFS


def limpar_cep(cep: Optional[str]) -> str:
    return somente_digitos(cep)


def validar_cep(cep: Optional[str]) -> bool:
    return len(limpar_cep(cep)) == 8


def formatar_cep(cep: Optional[str]) -> str:
    digitos = limpar_cep(cep)
    if len(digitos) != 8:
        return cep or ""
    return f"{digitos[:5]}-{digitos[5:]}"


# ── Valores monetários ────────────────────────────────────────────────────

def limpar_valor_monetario(valor: Union[str, int, float, Decimal, None]) -> Optional[Decimal]:
    """
    Parses "R$ 1.500,00", "1500,5" or 1500 into a Decimal.

    Returns None for empty input; raises ValueError for unparseable text.
    """
    if valor is None or valor == "":
        return None
    if isinstance(valor, (int, float, Decimal)):
        return Decimal(str(valor))

    texto = str(valor).replace("R$", "").strip()
    if "," in texto:
        texto = texto.replace(".", "").replace(",", ".")
    try:
        return Decimal(texto)
    except InvalidOperation:
        raise ValueError(f"Valor monetário inválido: '{valor}'")


def validar_valor_monetario(valor: Union[int, float, Decimal, None]) -> bool:
    if valor is None:
        return True
    try:
        numero = Decimal(str(valor))
    except InvalidOperation:
        return False
    return Decimal("0") <= numero < VALOR_MAXIMO


def formatar_valor_monetario(valor: Union[int, float, Decimal, None]) -> str:
    """1500 → "R$ 1.500,00"."""
    if valor is None:
        return ""
    numero = Decimal(str(valor)).quantize(Decimal("0.01"))
    inteiro_fmt = f"{numero:,.2f}"  # 1,500.00
    return "R$ " + inteiro_fmt.replace(",", "X").replace(".", ",").replace("X", ".")


# ── Senha ─────────────────────────────────────────────────────────────────

def validar_senha_forte(senha: Optional[str]) -> List[str]:
    """Returns the unmet password criteria; an empty list means the password is strong."""
    erros: List[str] = []
    senha = senha or ""
    if len(senha) < 8:
        erros.append("A senha deve ter pelo menos 8 caracteres")
    if not re.search(r"[A-Z]", senha):
        erros.append("A senha deve conter pelo menos uma letra maiúscula")
    if not re.search(r"[a-z]", senha):
        erros.append("A senha deve conter pelo menos uma letra minúscula")
    if not re.search(r"\d", senha):
        erros.append("A senha deve conter pelo menos um número")
    if not any(c in _CARACTERES_ESPECIAIS for c in senha):
        erros.append("A senha deve conter pelo menos um caractere especial")
    return erros
