"""
Player, eligibility and shop schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlayerResponse(BaseModel):
    """Player record as stored."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    wallet_address: str
    username: Optional[str] = None
    total_points: int
    total_playtime_seconds: int
    games_played: int
    highest_score: int
    current_skin: str
    owned_skins: List[str]
    is_eligible: bool
    eligible_since: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EligiblePlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    player_id: Optional[int] = None
    wallet_address: str
    holding_usd: float
    total_playtime_seconds: int
    is_active: bool
    last_verified_at: Optional[datetime] = None


class EligibilityStatusResponse(BaseModel):
    """On-demand eligibility for one wallet, nothing persisted."""
    model_config = ConfigDict(populate_by_name=True)

    is_eligible: bool = Field(alias="isEligible")
    reason: Optional[str] = None
    holding_usd: Optional[float] = Field(default=None, alias="holdingUSD")
    min_holding_required: Optional[float] = Field(
        default=None,
        alias="minHoldingRequired"
    )
    playtime_seconds: int = Field(alias="playtimeSeconds")
    min_playtime_required: int = Field(alias="minPlaytimeRequired")


class SkinResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    cost_points: int


class SkinActionRequest(BaseModel):
    """Body of skin buy / equip requests."""
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: str = Field(alias="walletAddress")
    skin_id: str = Field(alias="skinId", min_length=1)


class SkinActionResponse(BaseModel):
    success: bool = True
    player: PlayerResponse


class DonationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    wallet_address: str
    amount_sol: float
    tx_signature: Optional[str] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = None
