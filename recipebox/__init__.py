"""
RecipeBox Backend — Application Package
=========================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │   Middleware (request id, access)   │  ← cross-cutting, bearer-token gate
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← credentials, tokens, recipes, uploads
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Database handle, per-request sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
