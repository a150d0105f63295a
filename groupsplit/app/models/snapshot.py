"""
models/snapshot.py — Local key-value store for group snapshots.

One row per key; the payload is the full JSON snapshot produced by
GroupSnapshotSchema. The host overwrites the row after every state change.
No business logic. No imports from services or routes.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from groupsplit.app.extensions import db


class GroupSnapshot(db.Model):
    __tablename__ = "group_snapshots"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)

    # {"name": ..., "participants": [...], "expenses": [...]}
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<GroupSnapshot key={self.key!r} updated_at={self.updated_at}>"
