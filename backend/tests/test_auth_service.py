"""
Vistoria Naval API — Auth Service Unit Tests
==============================================

What:  Password hashing, JWT round trip and the account flows of AuthService.
How:   Users are transient ORM objects; lookups are patched so no database
       is needed.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from app.exceptions import (
    AuthenticationError,
    BusinessRuleError,
    PermissionDeniedError,
    ValidationError,
)
from app.services.auth_service import (
    AuthService,
    criar_token,
    decodificar_token,
    gerar_senha_temporaria,
    hash_senha,
    verificar_senha,
)


class TestHashing:

    def test_hash_e_verificacao(self):
        senha_hash = hash_senha("Segredo@123")
        assert senha_hash != "Segredo@123"
        assert verificar_senha("Segredo@123", senha_hash)
        assert not verificar_senha("outra", senha_hash)

    def test_hash_em_formato_desconhecido(self):
        assert not verificar_senha("qualquer", "nao-e-um-hash")

    def test_senha_temporaria(self):
        senha = gerar_senha_temporaria()
        assert len(senha) == 10
        assert senha.isalnum()
        assert gerar_senha_temporaria(16) != gerar_senha_temporaria(16)


class TestTokens:

    def test_round_trip(self, admin):
        payload = decodificar_token(criar_token(admin))
        assert payload["sub"] == "1"
        assert payload["email"] == "admin@vistorias.com"
        assert payload["nivel_acesso_id"] == 1

    def test_token_expirado(self, admin):
        token = criar_token(admin, expira_em=timedelta(seconds=-5))
        with pytest.raises(AuthenticationError, match="Token inválido ou expirado"):
            decodificar_token(token)

    def test_token_adulterado(self, admin):
        token = criar_token(admin)
        with pytest.raises(AuthenticationError):
            decodificar_token(token[:-3] + "abc")


class TestLogin:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_login_sucesso(self, mock_db_session, admin):
        admin.senha_hash = hash_senha("Segredo@123")
        with patch.object(self.service, "get_usuario_por_email", AsyncMock(return_value=admin)):
            usuario = await self.service.login(mock_db_session, "admin@vistorias.com", "Segredo@123")
        assert usuario is admin

    @pytest.mark.asyncio
    async def test_login_email_desconhecido(self, mock_db_session):
        with patch.object(self.service, "get_usuario_por_email", AsyncMock(return_value=None)):
            with pytest.raises(AuthenticationError, match="Email não cadastrado"):
                await self.service.login(mock_db_session, "x@y.com", "abc")

    @pytest.mark.asyncio
    async def test_login_senha_incorreta(self, mock_db_session, admin):
        admin.senha_hash = hash_senha("Segredo@123")
        with patch.object(self.service, "get_usuario_por_email", AsyncMock(return_value=admin)):
            with pytest.raises(AuthenticationError, match="Senha incorreta"):
                await self.service.login(mock_db_session, "admin@vistorias.com", "errada")

    @pytest.mark.asyncio
    async def test_login_usuario_inativo(self, mock_db_session, admin):
        admin.senha_hash = hash_senha("Segredo@123")
        admin.ativo = False
        with patch.object(self.service, "get_usuario_por_email", AsyncMock(return_value=admin)):
            with pytest.raises(PermissionDeniedError) as exc_info:
                await self.service.login(mock_db_session, "admin@vistorias.com", "Segredo@123")
        assert exc_info.value.code == "USER_INACTIVE"


class TestSenhas:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_alterar_senha_curta(self, mock_db_session, vistoriador):
        with pytest.raises(ValidationError, match="pelo menos 6"):
            await self.service.alterar_senha(mock_db_session, vistoriador, "x", "123")

    @pytest.mark.asyncio
    async def test_alterar_senha_atual_incorreta(self, mock_db_session, vistoriador):
        vistoriador.senha_hash = hash_senha("antiga1")
        with pytest.raises(AuthenticationError, match="Senha atual incorreta"):
            await self.service.alterar_senha(mock_db_session, vistoriador, "errada", "nova123")

    @pytest.mark.asyncio
    async def test_alterar_senha_limpa_flag(self, mock_db_session, vistoriador):
        vistoriador.senha_hash = hash_senha("antiga1")
        vistoriador.deve_atualizar_senha = True
        await self.service.alterar_senha(mock_db_session, vistoriador, "antiga1", "nova123")
        assert verificar_senha("nova123", vistoriador.senha_hash)
        assert vistoriador.deve_atualizar_senha is False
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_forcar_atualizacao_exige_senha_forte(self, mock_db_session, vistoriador):
        vistoriador.deve_atualizar_senha = True
        with pytest.raises(ValidationError) as exc_info:
            await self.service.forcar_atualizacao_senha(mock_db_session, vistoriador, "fraca")
        assert exc_info.value.context["criterios"]

    @pytest.mark.asyncio
    async def test_forcar_atualizacao_sem_flag(self, mock_db_session, vistoriador):
        with pytest.raises(BusinessRuleError, match="não precisa atualizar"):
            await self.service.forcar_atualizacao_senha(
                mock_db_session, vistoriador, "Vistoria@2024"
            )
