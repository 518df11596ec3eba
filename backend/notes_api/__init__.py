"""
Notes API Backend: Application Package
=======================================

What: Marks `notes_api` as the import package for the notes backend.
Who:  Imported by uvicorn (`notes_api.main:app`), Alembic, and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, status mapping
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← decode, upload, persist
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Collaborators (Database, FileService) are built from an explicit
    Settings object in `create_app()` and hung on `app.state`; routes reach
    them through FastAPI dependencies.
"""

__version__ = "1.0.0"
