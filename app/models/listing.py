"""Listing ORM — persists one donation listing and its lifecycle timestamps.

Invariants:
    - id is an opaque string, generated once and never reused
    - seq is a private insertion counter: newest-first ordering never depends on clock resolution
    - version increments on every lifecycle write (optimistic concurrency guard)
    - Rows are never deleted

Design Decisions:
    - Surrogate integer primary key + unique public id: autoincrement works on SQLite and PostgreSQL
    - Lifecycle timestamps as nullable columns instead of an event table: one row is the whole state
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Listing(Base):
    """Listing entity — a donation offer moving through a fixed lifecycle."""
    __tablename__ = "listings"

    seq: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    id: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, nullable=False,
    )
    donor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    quantity: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="available", index=True,
    )
    accepted_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    accepted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    picked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    delivered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
