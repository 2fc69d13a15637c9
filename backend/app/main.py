"""
Vistoria Naval API — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
Why:   App configuration, middleware, routers and lifecycle live in one place.
How:   create_app() returns a configured FastAPI instance.
Who:   uvicorn (uvicorn app.main:app) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌──────────┐ ┌─────────┐ ┌───────────┐   │
    │  │ Rate Limit │→│  Req ID  │→│ Logging │→│ GZip/CORS │   │
    │  └────────────┘ └──────────┘ └─────────┘ └───────────┘   │
    │                                                          │
    │  Routers:                                                │
    │  auth · usuarios · clientes · embarcacoes · locais       │
    │  seguradoras · tipos-foto · vistorias · vistoriador      │
    │  checklists · fotos · cep · laudos · pagamentos          │
    │  dashboard · auditoria · health                          │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation/BusinessRule→400 │ Auth→401 │ Permission→403 │
    │  NotFound→404 │ RateLimit→429 │ CEP/circuit→503 │ →500   │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging, configuration check, storage directory
    Shutdown:  dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import (
    AuthenticationError,
    BusinessRuleError,
    CircuitBreakerOpenError,
    DatabaseError,
    ExternalServiceError,
    FileStorageError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    ValidationError,
    VistoriaError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import (
    auditoria,
    auth,
    cep,
    checklists,
    clientes,
    dashboard,
    embarcacoes,
    fotos,
    health,
    laudos,
    locais,
    pagamentos,
    seguradoras,
    tipos_foto,
    usuarios,
    vistoriador,
    vistorias,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Request IDs are added to messages by the modules that log them.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Vistoria Naval API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # The server still starts so /health can report the problem
        logger.error("Configuration error: %s", str(e))

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Vistoria Naval API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _erro(status_code: int, error: str, message: str, details=None, headers=None) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and a single error body:
    {"error", "message", "details"?, "request_id"}.

    Handler hierarchy:
        ValidationError         → 400 validation_error
        BusinessRuleError       → 400 business_rule_error
        AuthenticationError     → 401 authentication_error
        PermissionDeniedError   → 403 (code, e.g. PASSWORD_UPDATE_REQUIRED)
        NotFoundError           → 404 not_found
        RequestValidationError  → 422 validation_error
        RateLimitExceededError  → 429 rate_limit_exceeded
        CircuitBreakerOpenError → 503 service_unavailable
        ExternalServiceError    → 503 external_service_error
        DatabaseError           → 500 server_error (generic message)
        FileStorageError        → 500 server_error
        VistoriaError (base)    → 500 server_error
        Exception (fallback)    → 500 internal_error

    Internal details (SQL, paths, stack traces) are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _erro(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(BusinessRuleError)
    async def handle_business_rule(request: Request, exc: BusinessRuleError):
        logger.info("[%s] Business rule: %s", request_id_var.get(""), exc.message)
        return _erro(400, "business_rule_error", exc.message, exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(request: Request, exc: AuthenticationError):
        return _erro(
            401, "authentication_error", exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        return _erro(403, exc.code, exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _erro(404, "not_found", exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        erros = [
            {"field": ".".join(str(p) for p in e.get("loc", ())[1:]), "message": e.get("msg")}
            for e in exc.errors()
        ]
        return _erro(422, "validation_error", "Dados inválidos", {"errors": erros})

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _erro(
            429, "rate_limit_exceeded", exc.message, exc.context,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return _erro(
            503, "service_unavailable", exc.message,
            {"recovery_time": exc.recovery_time},
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(ExternalServiceError)
    async def handle_external_service(request: Request, exc: ExternalServiceError):
        logger.error("[%s] External service error: %s", request_id_var.get(""), exc.message)
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return _erro(503, "external_service_error", exc.message, headers=headers)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _erro(500, "server_error", "Erro interno. Tente novamente mais tarde.")

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error(
            "[%s] File storage error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _erro(500, "server_error", exc.message)

    @app.exception_handler(VistoriaError)
    async def handle_vistoria_error(request: Request, exc: VistoriaError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return _erro(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True
        )
        return _erro(
            500, "internal_error",
            "Ocorreu um erro inesperado. Tente novamente ou contate o suporte.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Vistoria Naval API",
        description=(
            "Backend for vessel inspections: registries, inspection workflow, "
            "photo checklists, PDF reports, inspector payments and audit trail."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in reverse order of addition:
    # RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After", "Content-Disposition"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(usuarios.router)
    app.include_router(clientes.router)
    app.include_router(embarcacoes.router)
    app.include_router(locais.router)
    app.include_router(seguradoras.router)
    app.include_router(tipos_foto.router)
    app.include_router(vistorias.router)
    app.include_router(vistoriador.router)
    app.include_router(checklists.router)
    app.include_router(fotos.router)
    app.include_router(cep.router)
    app.include_router(laudos.router)
    app.include_router(laudos.configuracao_router)
    app.include_router(pagamentos.router)
    app.include_router(dashboard.router)
    app.include_router(auditoria.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
