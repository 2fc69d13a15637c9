"""
Vistoria Naval API — CEP Service Unit Tests
=============================================

What:  ViaCEP client behavior and the circuit breaker state machine.
How:   httpx.MockTransport answers in place of ViaCEP; no network access.

What we test:
    ✅ CEP and address lookups map ViaCEP fields (localidade → cidade)
    ✅ Invalid input is rejected before any request is made
    ✅ {"erro": true} and empty lists read as "not found"
    ✅ 5xx answers are retried, then surface as ExternalServiceError
    ✅ CLOSED → OPEN → HALF_OPEN → CLOSED transitions
"""

import time

import httpx
import pytest

from app.exceptions import CircuitBreakerOpenError, ExternalServiceError, ValidationError
from app.services.cep_service import CepService, CircuitBreaker

VIACEP_PAULISTA = {
    "cep": "01310-100",
    "logradouro": "Avenida Paulista",
    "complemento": "de 612 a 1510 - lado par",
    "bairro": "Bela Vista",
    "localidade": "São Paulo",
    "uf": "SP",
    "ibge": "3550308",
    "ddd": "11",
}


def _service(handler) -> CepService:
    return CepService(base_url="https://viacep.test/ws", transport=httpx.MockTransport(handler))


class TestBuscarPorCep:

    @pytest.mark.asyncio
    async def test_cep_encontrado(self):
        chamadas = []

        def handler(request: httpx.Request) -> httpx.Response:
            chamadas.append(request.url.path)
            return httpx.Response(200, json=VIACEP_PAULISTA)

        endereco = await _service(handler).buscar_por_cep("01310-100")
        assert chamadas == ["/ws/01310100/json/"]
        assert endereco.cidade == "São Paulo"
        assert endereco.uf == "SP"
        assert endereco.logradouro == "Avenida Paulista"

    @pytest.mark.asyncio
    async def test_cep_invalido_nao_consulta(self):
        def handler(request):
            raise AssertionError("ViaCEP should not be called")

        with pytest.raises(ValidationError, match="8 dígitos"):
            await _service(handler).buscar_por_cep("123")

    @pytest.mark.asyncio
    async def test_cep_inexistente(self):
        service = _service(lambda request: httpx.Response(200, json={"erro": True}))
        with pytest.raises(ValidationError, match="CEP não encontrado"):
            await service.buscar_por_cep("99999999")
        # a "not found" answer still means the upstream is healthy
        assert service.circuit_breaker.state == CircuitBreaker.CLOSED

    @pytest.mark.asyncio
    async def test_erro_5xx_apos_retentativas(self):
        chamadas = []

        def handler(request):
            chamadas.append(1)
            return httpx.Response(503)

        service = _service(handler)
        with pytest.raises(ExternalServiceError):
            await service.buscar_por_cep("01310100")
        assert len(chamadas) == 2
        assert service.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_erro_4xx_nao_e_retentado(self):
        chamadas = []

        def handler(request):
            chamadas.append(1)
            return httpx.Response(400)

        with pytest.raises(ValidationError, match="rejeitada"):
            await _service(handler).buscar_por_cep("01310100")
        assert len(chamadas) == 1


class TestBuscarPorEndereco:

    @pytest.mark.asyncio
    async def test_lista_de_ceps(self):
        def handler(request):
            assert request.url.path == "/ws/SP/São Paulo/Paulista/json/"
            return httpx.Response(200, json=[VIACEP_PAULISTA, dict(VIACEP_PAULISTA, cep="01311-000")])

        enderecos = await _service(handler).buscar_por_endereco("sp", "São Paulo", "Paulista")
        assert [e.cep for e in enderecos] == ["01310-100", "01311-000"]

    @pytest.mark.asyncio
    async def test_nenhum_resultado(self):
        service = _service(lambda request: httpx.Response(200, json=[]))
        with pytest.raises(ValidationError, match="Nenhum CEP"):
            await service.buscar_por_endereco("SP", "São Paulo", "Inexistente")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("uf, cidade, logradouro, mensagem", [
        ("", "Santos", "Rua A", "obrigatórios"),
        ("XX", "Santos", "Rua A", "UF inválida"),
        ("SP", "Sa", "Rua A", "Cidade"),
        ("SP", "Santos", "Ru", "Logradouro"),
    ])
    async def test_validacao(self, uf, cidade, logradouro, mensagem):
        def handler(request):
            raise AssertionError("ViaCEP should not be called")

        with pytest.raises(ValidationError, match=mensagem):
            await _service(handler).buscar_por_endereco(uf, cidade, logradouro)


class TestCircuitBreaker:

    def test_abre_apos_limite(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        breaker.record_failure()
        assert breaker.state == CircuitBreaker.CLOSED
        breaker.record_failure()
        assert breaker.state == CircuitBreaker.OPEN
        with pytest.raises(CircuitBreakerOpenError):
            breaker.can_execute()

    def test_meio_aberto_apos_timeout(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        breaker.record_failure()
        breaker.record_failure()
        breaker.last_failure_time = time.time() - 61
        assert breaker.can_execute() is True
        assert breaker.state == CircuitBreaker.HALF_OPEN

    def test_meio_aberto_admite_uma_chamada(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        breaker.record_failure()
        breaker.record_failure()
        breaker.last_failure_time = time.time() - 61
        assert breaker.can_execute() is True
        with pytest.raises(CircuitBreakerOpenError):
            breaker.can_execute()
        breaker.record_success()
        assert breaker.can_execute() is True

    @pytest.mark.asyncio
    async def test_erro_inesperado_libera_meio_aberto(self):
        def handler(request):
            raise RuntimeError("boom")

        service = _service(handler)
        service.circuit_breaker.state = CircuitBreaker.HALF_OPEN
        with pytest.raises(RuntimeError):
            await service.buscar_por_cep("01310100")
        assert service.circuit_breaker.trial_in_flight is False
        assert service.circuit_breaker.can_execute() is True

    def test_meio_aberto_sucesso_fecha(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        breaker.state = CircuitBreaker.HALF_OPEN
        breaker.record_success()
        assert breaker.state == CircuitBreaker.CLOSED
        assert breaker.failure_count == 0

    def test_meio_aberto_falha_reabre(self):
        breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        breaker.state = CircuitBreaker.HALF_OPEN
        breaker.record_failure()
        assert breaker.state == CircuitBreaker.OPEN

    @pytest.mark.asyncio
    async def test_circuito_aberto_rejeita_sem_chamar(self):
        def handler(request):
            raise AssertionError("ViaCEP should not be called")

        service = _service(handler)
        service.circuit_breaker.state = CircuitBreaker.OPEN
        service.circuit_breaker.last_failure_time = time.time()
        with pytest.raises(CircuitBreakerOpenError):
            await service.buscar_por_cep("01310100")
        assert await service.health_check() == "open"
