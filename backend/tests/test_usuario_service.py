"""
Vistoria Naval API — User Administration Unit Tests

Accounts created by an administrator start with the default password and
must change it on first login.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.config import settings
from app.exceptions import ValidationError
from app.models.usuario import NIVEL_VISTORIADOR, NivelAcesso, Usuario
from app.schemas.auth import UsuarioCreate
from app.services.auth_service import verificar_senha
from app.services.usuario_service import UsuarioService


def _sem_usuario():
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    return result


class TestCriarUsuario:

    def setup_method(self):
        self.service = UsuarioService()

    @pytest.mark.asyncio
    async def test_padroes_de_criacao(self, mock_db_session):
        mock_db_session.execute.return_value = _sem_usuario()
        mock_db_session.get.return_value = NivelAcesso(id=NIVEL_VISTORIADOR, nome="VISTORIADOR")

        usuario = await self.service.criar(
            mock_db_session,
            UsuarioCreate(
                nome=" Carlos ", email="Carlos@Vistorias.com",
                nivel_acesso_id=NIVEL_VISTORIADOR, cpf="529.982.247-25",
            ),
        )

        assert isinstance(usuario, Usuario)
        assert settings.senha_padrao_usuario == "mudar123"
        assert verificar_senha("mudar123", usuario.senha_hash)
        assert usuario.deve_atualizar_senha is True
        assert usuario.ativo is True
        assert usuario.nome == "Carlos"
        assert usuario.email == "carlos@vistorias.com"
        assert usuario.cpf == "52998224725"
        mock_db_session.add.assert_called_once_with(usuario)

    @pytest.mark.asyncio
    async def test_email_duplicado(self, mock_db_session):
        with patch.object(self.service, "_email_em_uso", AsyncMock(return_value=True)):
            with pytest.raises(ValidationError, match="Email já cadastrado"):
                await self.service.criar(
                    mock_db_session,
                    UsuarioCreate(nome="Carlos", email="carlos@x.com", nivel_acesso_id=2),
                )

    @pytest.mark.asyncio
    async def test_nivel_inexistente(self, mock_db_session):
        mock_db_session.execute.return_value = _sem_usuario()
        mock_db_session.get.return_value = None
        with pytest.raises(ValidationError, match="Nível de acesso"):
            await self.service.criar(
                mock_db_session,
                UsuarioCreate(nome="Carlos", email="carlos@x.com", nivel_acesso_id=9),
            )
        mock_db_session.add.assert_not_called()
