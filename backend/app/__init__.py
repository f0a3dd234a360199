"""
PinDrop Backend — Application Package
=======================================

Layered like every request flows through it:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, caller identity
    ├─────────────────────────────────────┤
    │   Services (follow state machine,   │  ← Business rules, visibility
    │   visibility, pins, users)          │
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← One AsyncSession per request
    └─────────────────────────────────────┘

Services never open sessions themselves: the session is passed in by the
route (or by a test), which keeps each request to one transaction.
"""

__version__ = "1.0.0"
