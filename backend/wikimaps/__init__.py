"""
WikiMaps Backend: Application Package
=====================================

What:  Server-rendered app for building maps and pinning points of interest on them.
Who:   Imported by uvicorn (wikimaps.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes (HTML views, JSON, 3xx)   │  ← request parsing, status codes
    ├─────────────────────────────────────┤
    │   Session Middleware + Auth Gate     │  ← signed cookie, resolved identity
    ├─────────────────────────────────────┤
    │   Services (Persistence Gateway)     │  ← async queries, Outcome / PointLookup
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)        │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)        │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
