"""
Leaderboard routes.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from snakepill.api.dependencies import get_store, validate_wallet_param
from snakepill.api.schemas.players import PlayerResponse
from snakepill.core.exceptions import PlayerNotFoundError
from snakepill.services.player_store import PlayerStore


router = APIRouter(tags=["Leaderboard"])


@router.get(
    "",
    response_model=List[PlayerResponse],
    summary="Get Leaderboard",
    description="Players ordered by highest score"
)
async def get_leaderboard(
    limit: int = Query(100, ge=1, le=1000, description="Number of entries to return"),
    store: PlayerStore = Depends(get_store)
):
    return await store.get_leaderboard(limit)


@router.get(
    "/{wallet}",
    response_model=PlayerResponse,
    summary="Get Player",
    description="Player record for a wallet"
)
async def get_player(
    wallet: str = Depends(validate_wallet_param),
    store: PlayerStore = Depends(get_store)
):
    player = await store.get_player(wallet)
    if player is None:
        raise PlayerNotFoundError(wallet)
    return player
