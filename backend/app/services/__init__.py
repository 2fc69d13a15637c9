# Services package init
"""
Vistoria Naval API — Services Layer
=====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Each module exposes a singleton service whose methods take the
       request's AsyncSession first; pure helpers sit beside them at module
       level so they can be tested alone.

Service Inventory:
    - AuthService / UsuarioService:  accounts, passwords, JWT
    - AuditService:                  audit trail writes and queries
    - Cliente/Embarcacao/Local/Seguradora/TipoFoto services: registries
    - VistoriaService:               inspection workflow and status
    - ChecklistService:              templates, items, progress
    - FotoService + StorageService:  photo upload pipeline and object store
    - CepService:                    ViaCEP client (retry + circuit breaker)
    - LaudoService + laudo_pdf:      reports and their PDF rendering
    - PagamentoService:              inspector payment batches
    - DashboardService:              monthly statistics
"""
