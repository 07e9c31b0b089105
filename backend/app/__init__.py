"""
Docsmith Backend: Application Package Initializer
===================================================

What: Marks the `app` directory as a Python package.
Who:  Imported by uvicorn (app.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Template/Document workflows
    ├─────────────────────────────────────┤
    │  Collaborators                      │  ← Repository (SQLAlchemy),
    │                                     │    blob storage (Supabase/local),
    │                                     │    document processor (docx/xlsx/PDF)
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
