"""ORM Models — SQLAlchemy declarative models for the document store.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/alembic
"""

from app.models.listing import Listing  # noqa: F401
