"""
Skin catalog and donation models.
"""

from typing import Optional

from sqlalchemy import String, Integer, BigInteger, Float, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, TimestampMixin


class Skin(BaseModel, TimestampMixin):
    """Cosmetic snake skin purchasable with points."""

    __tablename__ = "skins"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)

    name: Mapped[str] = mapped_column(String(64))

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    color: Mapped[str] = mapped_column(String(16), default="#00ff00")

    cost_points: Mapped[int] = mapped_column(BigInteger, default=0)


class Donation(BaseModel, TimestampMixin):
    """SOL donation shown on the donation board."""

    __tablename__ = "donates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    wallet_address: Mapped[str] = mapped_column(String(44))

    amount_sol: Mapped[float] = mapped_column(Float)

    tx_signature: Mapped[Optional[str]] = mapped_column(String(88), nullable=True, unique=True)

    message: Mapped[Optional[str]] = mapped_column(String(280), nullable=True)


# Seeded on first start when the catalog is empty
DEFAULT_SKINS = [
    {"id": "classic", "name": "Classic", "color": "#00ff00", "cost_points": 0,
     "description": "The original green snake"},
    {"id": "neon", "name": "Neon", "color": "#00ffff", "cost_points": 1000,
     "description": "Glows in the dark"},
    {"id": "toxic", "name": "Toxic", "color": "#9dff00", "cost_points": 2500,
     "description": "Too many pills"},
    {"id": "gold", "name": "Gold", "color": "#ffd700", "cost_points": 5000,
     "description": "For serious holders"},
    {"id": "rainbow", "name": "Rainbow", "color": "#ff00ff", "cost_points": 10000,
     "description": "Every color at once"},
]
