"""
Database models for the SNAKEPILL backend.

Player and session state for the game plus the eligibility and
distribution records written by the payout pipeline.
"""

from .base import Base, BaseModel, TimestampMixin
from .player import Player, DEFAULT_SKIN
from .eligibility import EligiblePlayer
from .distribution import TaxDistribution
from .game import GameSession, OnlinePlayer
from .shop import Skin, Donation, DEFAULT_SKINS

__all__ = [
    "Base",
    "BaseModel",
    "TimestampMixin",
    "Player",
    "DEFAULT_SKIN",
    "EligiblePlayer",
    "TaxDistribution",
    "GameSession",
    "OnlinePlayer",
    "Skin",
    "Donation",
    "DEFAULT_SKINS",
]
