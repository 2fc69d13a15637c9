# Middleware package init
"""
Vistoria Naval API — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip/CORS] → Route
    Response ← [Rate Limit] ← [Request ID] ← [Logging] ← [GZip/CORS] ← Route

    - Rate limiting rejects abusive clients before any work is done
    - The request ID is set before logging so every line carries it
    - The logging middleware measures the full handler duration
"""
