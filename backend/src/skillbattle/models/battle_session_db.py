"""SQLAlchemy model for shared battle sessions."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import DateTime, Integer, String, JSON, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Declarative base for the session store tables
SessionBase = declarative_base()


class BattleSessionRow(SessionBase, AsyncAttrs):
    """Row holding one shared battle.

    ``version`` is bumped on every write and is the compare-and-set guard.
    ``state`` holds the serialized BattleSessionRecord minus the guard columns.
    """

    __tablename__ = "battle_sessions"

    session_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    turn: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    state: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    # Last commit time; moves with every accepted compare-and-set
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
