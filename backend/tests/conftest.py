"""
Vistoria Naval API — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (mocked DB, API client, users,
       temp storage, real image bytes).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session:   Mock database session (no real DB needed)
    ├── temp_storage:      Temporary directory for object storage tests
    ├── sample_image_bytes: Real JPEG produced by Pillow
    ├── admin / vistoriador: Transient Usuario rows (never persisted)
    └── test_client:       HTTPX AsyncClient with the DB dependency overridden
"""

import io
import os
import tempfile

# Settings are read at import time: the environment must be ready before
# anything under app/ is imported
_TMP = tempfile.mkdtemp(prefix="vistorias_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP}/test.db"
os.environ["STORAGE_ROOT"] = os.path.join(_TMP, "uploads")
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-real-0123456789"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "1"
os.environ["RETRY_MAX_WAIT"] = "1"

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402

from app.models.usuario import NIVEL_ADMINISTRADOR, NIVEL_VISTORIADOR, Usuario  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_obter(mock_db_session):
            mock_db_session.get.return_value = None
            with pytest.raises(NotFoundError):
                await service.obter(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage root for each test (pytest cleans it up)."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


def _imagem(formato: str, tamanho=(64, 48), cor=(20, 90, 160)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", tamanho, cor).save(buffer, format=formato)
    return buffer.getvalue()


@pytest.fixture
def sample_image_bytes():
    """A small but real JPEG, decodable by Pillow."""
    return _imagem("JPEG")


@pytest.fixture
def sample_png_bytes():
    return _imagem("PNG")


@pytest.fixture
def large_image_bytes():
    """Wider than image_max_dimension, so compression must shrink it."""
    return _imagem("PNG", tamanho=(3000, 1500))


@pytest.fixture
def admin():
    return Usuario(
        id=1,
        nome="Admin",
        email="admin@vistorias.com",
        senha_hash="x",
        nivel_acesso_id=NIVEL_ADMINISTRADOR,
        ativo=True,
        deve_atualizar_senha=False,
    )


@pytest.fixture
def vistoriador():
    return Usuario(
        id=2,
        nome="Vistoriador",
        email="vistoriador@vistorias.com",
        senha_hash="x",
        nivel_acesso_id=NIVEL_VISTORIADOR,
        ativo=True,
        deve_atualizar_senha=False,
    )


@pytest_asyncio.fixture
async def test_client(mock_db_session):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    get_db_session is overridden with mock_db_session; tests override the
    auth dependencies themselves through `app.dependency_overrides`.
    """
    from app.database import get_db_session
    from app.main import app

    async def _session_override():
        yield mock_db_session

    app.dependency_overrides[get_db_session] = _session_override
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
