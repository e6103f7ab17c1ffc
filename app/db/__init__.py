"""Database Infrastructure — SQLAlchemy declarative Base.

Invariants:
    - All models share one Base and one metadata
"""
