"""
Vistoria Naval API — Application Package Initializer
======================================================

What: Marks the `app` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    ┌─────────────────────────────────────┐
    │    Routes + Dependencies (API)      │  ← HTTP, auth gating, audit calls
    ├─────────────────────────────────────┤
    │      Services (Business Rules)      │  ← workflow, checklist, laudo, payments
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database / Object Storage / CEP   │  ← async sessions, files, ViaCEP
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
