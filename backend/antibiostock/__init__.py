"""
AntibioStock Backend: Application Package Initializer
======================================================

What: Marks the `antibiostock` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is layered the same way top to bottom:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │    Services (Stock / Outflow / ...) │  ← Transactions, stock rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes map HTTP to service calls; services own every transaction and
    raise the exceptions that main.py turns into status codes.
"""

__version__ = "1.0.0"
