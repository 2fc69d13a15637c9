"""
Vistoria Naval API — Shared Pydantic Schemas
==============================================

What:  Response models reused across every resource: errors, plain
       messages, health status and pagination metadata.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "CPF inválido",
            "details": {"field": "cpf"},
            "request_id": "550e8400"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str


class PaginationMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class HealthResponse(BaseModel):
    """Service and dependency status returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Object storage: writable, unavailable")
    cep_service: str = Field(description="ViaCEP circuit state: closed, open, half_open")
    uptime_seconds: float = Field(description="Seconds since service started")
