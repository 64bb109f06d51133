from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class GameSessionRow(TimestampMixin, Base):
    __tablename__ = "fe_game_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, default="anonymous")
    initial_hook: Mapped[str] = mapped_column(Text, nullable=False, default="")

    game_knowledge_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    # Mirror of gameKnowledge.turnCount so sessions can be listed without parsing JSON.
    turn_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_modified: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    row_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("turn_count >= 0", name="game_session_turn_count_non_negative"),
    )


Index("ix_fe_game_session_user_modified", GameSessionRow.user_id, GameSessionRow.last_modified.desc())
