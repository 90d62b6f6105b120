"""
Player model - one row per connected wallet.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import String, Integer, BigInteger, Boolean, JSON, Index, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, TimestampMixin


DEFAULT_SKIN = "classic"


class Player(BaseModel, TimestampMixin):
    """Player accumulating points and playtime across game sessions."""

    __tablename__ = "players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    wallet_address: Mapped[str] = mapped_column(
        String(44),
        unique=True,
        comment="Player's wallet public key"
    )

    username: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        comment="Optional display name"
    )

    # Gameplay totals
    total_points: Mapped[int] = mapped_column(
        BigInteger,
        default=0,
        comment="Spendable points accumulated from sessions"
    )

    total_playtime_seconds: Mapped[int] = mapped_column(
        BigInteger,
        default=0,
        comment="Cumulative playtime across sessions"
    )

    games_played: Mapped[int] = mapped_column(Integer, default=0)

    highest_score: Mapped[int] = mapped_column(Integer, default=0)

    # Cosmetics
    current_skin: Mapped[str] = mapped_column(String(32), default=DEFAULT_SKIN)

    owned_skins: Mapped[List[str]] = mapped_column(
        JSON,
        default=lambda: [DEFAULT_SKIN],
        comment="Skin ids the player has unlocked"
    )

    # Eligibility (written only by the eligibility reconciler)
    is_eligible: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        comment="Whether the wallet currently qualifies for tax distribution"
    )

    eligible_since: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        comment="When the wallet last became eligible"
    )

    __table_args__ = (
        Index("idx_player_highest_score", "highest_score"),
        Index("idx_player_playtime", "total_playtime_seconds"),
    )

    def owns_skin(self, skin_id: str) -> bool:
        return skin_id in (self.owned_skins or [DEFAULT_SKIN])
