"""
Vistoria Naval API — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-facing messages, without leaking internals.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, dependencies and middleware; caught by global handlers.

Exception Hierarchy:
    VistoriaError (base)
    ├── ValidationError          → 400 Bad Request (client can fix the input)
    ├── BusinessRuleError        → 400 Bad Request (workflow rule violated)
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── FileStorageError         → 500 Internal Server Error
    ├── ExternalServiceError     → 503 Service Unavailable (ViaCEP)
    ├── CircuitBreakerOpenError  → 503 Service Unavailable (circuit open)
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests

Messages are written in Portuguese: they are shown verbatim by the frontend.
"""

from typing import Any, Dict, Optional


class VistoriaError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "Ocorreu um erro inesperado",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VistoriaError):
    """
    Raised when client input fails validation.

    When:    Invalid CPF/CNPJ, bad CEP, missing required field, file type mismatch.
    HTTP:    400 Bad Request

    FastAPI already answers schema violations with 422; this one is for the
    domain checks pydantic cannot express (check digits, state codes, ...).
    """

    def __init__(
        self,
        message: str = "Dados inválidos",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class BusinessRuleError(VistoriaError):
    """
    Raised when a request is well-formed but the workflow forbids it.

    Examples: starting an inspection twice, paying a batch that was already
    paid, deleting a client that still owns vessels.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Operação não permitida",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(VistoriaError):
    """Missing, malformed, expired or otherwise invalid credentials (401)."""

    def __init__(
        self,
        message: str = "Token de acesso não fornecido",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(VistoriaError):
    """
    The caller is authenticated but may not perform the action.

    HTTP:    403 Forbidden

    `code` is a machine-readable reason the frontend branches on, e.g.
    PASSWORD_UPDATE_REQUIRED sends the user to the password-change screen.
    """

    def __init__(
        self,
        message: str = "Acesso negado",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if code:
            ctx["code"] = code
        super().__init__(message=message, context=ctx)
        self.code = code


class NotFoundError(VistoriaError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found

    SQLAlchemy returns None for missing records; the service layer converts
    that into this exception so routes stay free of status-code logic.
    """

    def __init__(
        self,
        resource: str = "Registro",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} não encontrado(a)"
        if resource_id is not None:
            message = f"{resource} com ID {resource_id} não encontrado(a)"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
        self.resource = resource


class FileStorageError(VistoriaError):
    """
    Raised when object storage operations fail.

    When:    Disk full, permission denied, unreadable image, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Falha ao acessar o armazenamento de arquivos",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExternalServiceError(VistoriaError):
    """
    Raised when an upstream HTTP service (ViaCEP) fails after all retries.

    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "Serviço externo temporariamente indisponível",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(VistoriaError):
    """
    Raised when the circuit breaker guarding an upstream is OPEN.

    HTTP:    503 Service Unavailable, with Retry-After

    CLOSED → failures increment counter → threshold reached → OPEN
    → recovery timeout elapsed → HALF_OPEN (one test call)
    → success → CLOSED / failure → OPEN again
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Serviço de consulta temporariamente indisponível devido a falhas repetidas. "
            f"Tente novamente em aproximadamente {recovery_time} segundos."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(VistoriaError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The client always receives a generic message; SQL details are logged
    server-side only.
    """

    def __init__(
        self,
        message: str = "Erro ao acessar o banco de dados. Tente novamente.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(VistoriaError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests, with Retry-After
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Limite de requisições excedido. Aguarde {retry_after} segundos."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
