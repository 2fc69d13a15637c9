"""
Vistoria Naval API — CEP Lookup Service (ViaCEP)
==================================================

What:  Address lookup by CEP and CEP lookup by address through the public
       ViaCEP API (https://viacep.com.br/).
Why:   The client, vessel-site and inspection forms autofill the address
       from the postal code.
How:   httpx.AsyncClient per call, wrapped with tenacity retries and a
       circuit breaker so a ViaCEP outage answers fast instead of piling up
       slow requests.

Resilience Strategy:
    1. Input validated locally first (8-digit CEP, valid UF, min lengths)
    2. Tenacity retry with exponential backoff + jitter, only for transport
       errors and 5xx responses
    3. 4xx responses and {"erro": true} payloads are answers, not failures:
       they become ValidationError and count as a healthy upstream
    4. Circuit breaker opens after cb_failure_threshold exhausted calls
"""

import logging
import time
import uuid
from typing import Any, List, Optional
from urllib.parse import quote

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import CircuitBreakerOpenError, ExternalServiceError, ValidationError
from app.schemas.cep import Endereco
from app.utils.validators import limpar_cep, validar_cep, validar_estado

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding one upstream.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow ONE request through; concurrent calls are rejected
              until it settles
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not thread-safe; uvicorn async workers share a single process and each
    worker keeps its own breaker.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None
        self.trial_in_flight = False

    def can_execute(self) -> bool:
        """
        Returns True when a call may proceed.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout has not elapsed,
            or if HALF_OPEN and the trial request is still running.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                self.trial_in_flight = True
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=max(remaining, 1))

        if self.trial_in_flight:
            raise CircuitBreakerOpenError(recovery_time=1)
        self.trial_in_flight = True
        return True

    def release_trial(self) -> None:
        self.trial_in_flight = False

    def record_success(self) -> None:
        self.trial_in_flight = False
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.trial_in_flight = False
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# ViaCEP Client
# ══════════════════════════════════════════════════════════════════════════


class ViaCepIndisponivel(Exception):
    """ViaCEP answered 5xx or an unreadable body; retried."""


TRANSITORIOS = (httpx.TransportError, ViaCepIndisponivel)


def _para_endereco(dados: dict) -> Endereco:
    return Endereco(
        cep=dados.get("cep"),
        logradouro=dados.get("logradouro"),
        complemento=dados.get("complemento"),
        bairro=dados.get("bairro"),
        cidade=dados.get("localidade"),
        uf=dados.get("uf"),
        ibge=dados.get("ibge"),
        gia=dados.get("gia"),
        ddd=dados.get("ddd"),
        siafi=dados.get("siafi"),
    )


class CepService:
    """
    ViaCEP client. A singleton holds the circuit breaker so its state is
    shared by every request in the worker.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url:  Override settings.viacep_base_url.
            timeout:   Override settings.viacep_timeout (seconds).
            transport: httpx transport override (tests use httpx.MockTransport).
        """
        self.base_url = (base_url or settings.viacep_base_url).rstrip("/")
        self.timeout = timeout or settings.viacep_timeout
        self._transport = transport
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

    async def buscar_por_cep(self, cep: str) -> Endereco:
        cep_limpo = limpar_cep(cep)
        if not validar_cep(cep_limpo):
            raise ValidationError(message="CEP inválido. Deve conter 8 dígitos.", field="cep")

        dados = await self._consultar(f"/{cep_limpo}/json/")
        if not isinstance(dados, dict) or dados.get("erro"):
            raise ValidationError(message="CEP não encontrado", field="cep")

        endereco = _para_endereco(dados)
        logger.info("CEP %s resolved to %s/%s", cep_limpo, endereco.cidade, endereco.uf)
        return endereco

    async def buscar_por_endereco(self, uf: str, cidade: str, logradouro: str) -> List[Endereco]:
        uf = (uf or "").strip().upper()
        cidade = (cidade or "").strip()
        logradouro = (logradouro or "").strip()

        if not uf or not cidade or not logradouro:
            raise ValidationError(message="UF, cidade e logradouro são obrigatórios")
        if not validar_estado(uf):
            raise ValidationError(message="UF inválida", field="uf")
        if len(cidade) < 3:
            raise ValidationError(message="Cidade deve ter no mínimo 3 caracteres", field="cidade")
        if len(logradouro) < 3:
            raise ValidationError(
                message="Logradouro deve ter no mínimo 3 caracteres", field="logradouro"
            )

        dados = await self._consultar(f"/{uf}/{quote(cidade)}/{quote(logradouro)}/json/")
        if not isinstance(dados, list) or not dados:
            raise ValidationError(message="Nenhum CEP encontrado para este endereço")

        enderecos = [_para_endereco(item) for item in dados]
        logger.info("Address search %s/%s returned %d CEPs", cidade, uf, len(enderecos))
        return enderecos

    async def _consultar(self, caminho: str) -> Any:
        """
        Flow:
            1. Check circuit breaker → may raise CircuitBreakerOpenError
            2. GET with retry (transport errors / 5xx only)
            3. Record success/failure in the circuit breaker
        """
        request_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        try:
            dados = await self._get_com_retry(caminho, request_id)
        except CircuitBreakerOpenError:
            raise
        except ValidationError:
            # ViaCEP answered 4xx: the upstream is healthy
            self.circuit_breaker.record_success()
            raise
        except TRANSITORIOS as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] All ViaCEP retries exhausted: %s", request_id, str(e))
            raise ExternalServiceError(
                message="Erro de conexão com serviço de CEP. Tente novamente.",
                retry_after=settings.retry_max_wait,
                context={"request_id": request_id, "attempts": settings.retry_max_attempts},
            )
        except Exception:
            # A half-open trial that ends unrecorded must not block the circuit
            self.circuit_breaker.release_trial()
            raise

        self.circuit_breaker.record_success()
        return dados

    @retry(
        retry=retry_if_exception_type(TRANSITORIOS),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get_com_retry(self, caminho: str, request_id: str) -> Any:
        start_time = time.time()
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.get(caminho)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "[%s] ViaCEP GET %s → %d in %.0fms",
            request_id,
            caminho,
            response.status_code,
            duration_ms,
        )

        if response.status_code >= 500:
            raise ViaCepIndisponivel(f"HTTP {response.status_code}")
        if response.status_code >= 400:
            raise ValidationError(
                message="Consulta de CEP rejeitada. Verifique os dados informados.",
                context={"status_code": response.status_code},
            )
        try:
            return response.json()
        except ValueError:
            raise ViaCepIndisponivel("Resposta inválida do ViaCEP")

    async def health_check(self) -> str:
        """Reports the circuit state without calling ViaCEP."""
        return self.circuit_breaker.state


# ── Singleton Instance ────────────────────────────────────────────────────
cep_service = CepService()
