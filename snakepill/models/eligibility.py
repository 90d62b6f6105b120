"""
Eligibility records written by the scheduled holder check.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, BigInteger, Boolean, Float, ForeignKey, Index, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, TimestampMixin


class EligiblePlayer(BaseModel, TimestampMixin):
    """
    Last verified holding snapshot for a wallet.

    One row per wallet. Rows are deactivated, never deleted, when the
    holding drops below the threshold.
    """

    __tablename__ = "eligible_players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    player_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("players.id", ondelete="SET NULL"),
        nullable=True
    )

    wallet_address: Mapped[str] = mapped_column(
        String(44),
        unique=True,
        comment="Wallet the snapshot belongs to (upsert key)"
    )

    holding_usd: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        comment="Token holding value in USD at last verification"
    )

    total_playtime_seconds: Mapped[int] = mapped_column(
        BigInteger,
        default=0,
        comment="Player playtime at last verification"
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    last_verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    player = relationship("Player", lazy="joined")

    __table_args__ = (
        Index("idx_eligible_active", "is_active"),
    )
