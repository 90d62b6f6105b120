"""
Game session request and response schemas.

Request bodies keep the camelCase keys the game client sends.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .players import PlayerResponse


class GameStartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")


class GameStartResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    game_session_id: str = Field(alias="gameSessionId")
    player: Optional[PlayerResponse] = None


class GameEndRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    game_session_id: str = Field(alias="gameSessionId")
    score: int = Field(ge=0)
    playtime_seconds: int = Field(alias="playtimeSeconds", ge=0)
    pills_eaten: int = Field(default=0, alias="pillsEaten", ge=0)
    reason: Optional[str] = Field(default=None, max_length=32)
    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")


class GameSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    player_id: Optional[int] = None
    wallet_address: Optional[str] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    score: int
    playtime_seconds: int
    pills_eaten: int
    game_over_reason: Optional[str] = None


class GameEndResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    session: GameSessionResponse
    points_earned: int = Field(alias="pointsEarned")
    player: Optional[PlayerResponse] = None


class HeartbeatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1, max_length=64)
    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")
    is_playing: bool = Field(default=True, alias="isPlaying")
