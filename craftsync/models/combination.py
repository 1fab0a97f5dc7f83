"""Combination ORM — one row per recorded combination for the SQL gateway.

Invariants:
    - key is the encoded store key (primary key), identical to the JSON file key
    - Row columns mirror the persisted record dict one-to-one

Design Decisions:
    - Flat table, no relationships: the gateway always saves the full snapshot
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from craftsync.db.base import Base


class Combination(Base):
    __tablename__ = "combinations"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    session_id: Mapped[str] = mapped_column(
        String(200), nullable=False, default="default", index=True,
    )
    first: Mapped[str] = mapped_column(String(200), nullable=False)
    second: Mapped[str] = mapped_column(String(200), nullable=False)
    result: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    emoji: Mapped[str] = mapped_column(String(32), nullable=False)
    was_first_discovery: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    generated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    discovered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
