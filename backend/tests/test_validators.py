"""
Vistoria Naval API — Validator Unit Tests
===========================================

What:  Tests for the Brazilian document and format helpers.
Why:   CPF/CNPJ/phone/money parsing feeds every registry and the audit trail;
       a wrong check digit silently corrupts client records.

What we test:
    ✅ CPF and CNPJ check digits, repeated-digit sequences
    ✅ Phone conversion to E.164 and display formatting
    ✅ CEP and UF validation
    ✅ Monetary parsing of "R$ 1.500,00" style input
    ✅ Strong-password criteria
"""

from decimal import Decimal

import pytest

from app.utils.validators import (
    converter_para_e164,
    formatar_cep,
    formatar_cnpj,
    formatar_cpf,
    formatar_telefone,
    formatar_valor_monetario,
    limpar_valor_monetario,
    validar_cep,
    validar_cnpj,
    validar_cpf,
    validar_email,
    validar_estado,
    validar_senha_forte,
    validar_telefone_e164,
    validar_valor_monetario,
)


class TestDocumentos:

    def test_cpf_valido_com_e_sem_mascara(self):
        assert validar_cpf("529.982.247-25")
        assert validar_cpf("52998224725")

    def test_cpf_digito_errado(self):
        assert not validar_cpf("529.982.247-26")

    def test_cpf_digitos_repetidos_rejeitados(self):
        assert not validar_cpf("111.111.111-11")

    def test_cpf_tamanho_errado(self):
        assert not validar_cpf("1234567890")
        assert not validar_cpf(None)

    def test_formatar_cpf(self):
        assert formatar_cpf("52998224725") == "529.982.247-25"

    def test_cnpj_valido(self):
        assert validar_cnpj("11.222.333/0001-81")
        assert validar_cnpj("11222333000181")

    def test_cnpj_invalido(self):
        assert not validar_cnpj("11.222.333/0001-82")
        assert not validar_cnpj("00000000000000")

    def test_formatar_cnpj(self):
        assert formatar_cnpj("11222333000181") == "11.222.333/0001-81"

    def test_email(self):
        assert validar_email("joao@marina.com.br")
        assert not validar_email("joao@marina")
        assert not validar_email("")


class TestTelefone:

    def test_converter_celular(self):
        assert converter_para_e164("(11) 99999-8888") == "+5511999998888"

    def test_converter_mantem_codigo_do_pais(self):
        assert converter_para_e164("55 11 3333-4444") == "+551133334444"

    def test_converter_numero_curto_inalterado(self):
        assert converter_para_e164("9999") == "9999"

    def test_validar_e164(self):
        assert validar_telefone_e164("+5511999998888")
        assert not validar_telefone_e164("11999998888")
        assert not validar_telefone_e164(None)

    def test_formatar_celular_e_fixo(self):
        assert formatar_telefone("+5511999998888") == "(11) 99999-8888"
        assert formatar_telefone("+551133334444") == "(11) 3333-4444"


class TestEndereco:

    def test_cep(self):
        assert validar_cep("01310-100")
        assert not validar_cep("0131010")
        assert formatar_cep("01310100") == "01310-100"

    def test_uf_case_insensitive(self):
        assert validar_estado("sp")
        assert not validar_estado("XX")


class TestValoresMonetarios:

    @pytest.mark.parametrize("entrada, esperado", [
        ("R$ 1.500,00", Decimal("1500.00")),
        ("1500,5", Decimal("1500.5")),
        ("1500.75", Decimal("1500.75")),
        (1500, Decimal("1500")),
    ])
    def test_limpar(self, entrada, esperado):
        assert limpar_valor_monetario(entrada) == esperado

    def test_limpar_vazio(self):
        assert limpar_valor_monetario("") is None
        assert limpar_valor_monetario(None) is None

    def test_limpar_texto_invalido(self):
        with pytest.raises(ValueError):
            limpar_valor_monetario("abc")

    def test_faixa(self):
        assert validar_valor_monetario(0)
        assert validar_valor_monetario(None)
        assert not validar_valor_monetario(-1)
        assert not validar_valor_monetario(Decimal("100000000"))

    def test_formatar(self):
        assert formatar_valor_monetario(1500) == "R$ 1.500,00"
        assert formatar_valor_monetario(Decimal("1234567.891")) == "R$ 1.234.567,89"


class TestSenhaForte:

    def test_senha_forte(self):
        assert validar_senha_forte("Vistoria@2024") == []

    def test_senha_fraca_lista_criterios(self):
        erros = validar_senha_forte("abc")
        assert "A senha deve ter pelo menos 8 caracteres" in erros
        assert "A senha deve conter pelo menos uma letra maiúscula" in erros
        assert "A senha deve conter pelo menos um número" in erros
        assert "A senha deve conter pelo menos um caractere especial" in erros
        assert "A senha deve conter pelo menos uma letra minúscula" not in erros
