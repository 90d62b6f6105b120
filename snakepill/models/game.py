"""
Game session and online presence models.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, Boolean, ForeignKey, Index, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, TimestampMixin


class GameSession(BaseModel, TimestampMixin):
    """One row per play session, wallet optional."""

    __tablename__ = "game_sessions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    player_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("players.id", ondelete="SET NULL"),
        nullable=True
    )

    wallet_address: Mapped[Optional[str]] = mapped_column(String(44), nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    score: Mapped[int] = mapped_column(Integer, default=0)

    playtime_seconds: Mapped[int] = mapped_column(Integer, default=0)

    pills_eaten: Mapped[int] = mapped_column(Integer, default=0)

    game_over_reason: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    @property
    def is_finished(self) -> bool:
        return self.ended_at is not None


class OnlinePlayer(BaseModel):
    """Presence row refreshed by heartbeats."""

    __tablename__ = "online_players"

    session_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    wallet_address: Mapped[Optional[str]] = mapped_column(String(44), nullable=True)

    is_playing: Mapped[bool] = mapped_column(Boolean, default=True)

    last_seen: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_online_last_seen", "last_seen"),
    )
