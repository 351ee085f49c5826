"""
Photo Browser API — Application Package
========================================

What: REST backend for browsing photo albums: registration/login, album CRUD,
      photo upload with resizing, and object storage.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, dependencies
    ├─────────────────────────────────────┤
    │   Security / Validation / Limits    │  ← bearer tokens, schemas, 429s
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← ownership, ids, orchestration
    ├─────────────────────────────────────┤
    │   Models & Schemas / Storage        │  ← SQLAlchemy ORM, Pydantic, assets
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘

Routes never build error responses themselves: they raise the exceptions in
`photo_browser.exceptions` and the central handlers render them.
"""

__version__ = "1.0.0"
