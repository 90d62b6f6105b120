"""
Skin shop and donation routes.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

import structlog

from snakepill.api.dependencies import get_store
from snakepill.api.schemas.players import (
    DonationResponse,
    PlayerResponse,
    SkinActionRequest,
    SkinActionResponse,
    SkinResponse,
)
from snakepill.core.exceptions import SnakePillException, ValidationError
from snakepill.services.player_store import PlayerStore
from snakepill.utils.validation import validate_wallet_address


router = APIRouter(tags=["Shop"])
logger = structlog.get_logger(__name__)


@router.get("/skins", response_model=List[SkinResponse], summary="List Skins")
async def get_skins(store: PlayerStore = Depends(get_store)):
    return await store.get_skins()


@router.get("/donates", response_model=List[DonationResponse], summary="List Donations")
async def get_donates(
    limit: int = Query(50, ge=1, le=1000, description="Number of entries to return"),
    store: PlayerStore = Depends(get_store)
):
    return await store.get_donates(limit)


def _check_wallet(wallet: str) -> None:
    if not validate_wallet_address(wallet):
        raise ValidationError("Invalid wallet address", {"wallet": wallet})


@router.post("/skin/buy", response_model=SkinActionResponse, summary="Buy Skin")
async def buy_skin(
    body: SkinActionRequest,
    store: PlayerStore = Depends(get_store)
):
    _check_wallet(body.wallet_address)
    try:
        player = await store.buy_skin(body.wallet_address, body.skin_id)
    except SnakePillException as e:
        # Every shop failure is a client error
        raise ValidationError(e.message, e.details) from e
    return SkinActionResponse(player=PlayerResponse.model_validate(player))


@router.post("/skin/equip", response_model=SkinActionResponse, summary="Equip Skin")
async def equip_skin(
    body: SkinActionRequest,
    store: PlayerStore = Depends(get_store)
):
    _check_wallet(body.wallet_address)
    try:
        player = await store.equip_skin(body.wallet_address, body.skin_id)
    except SnakePillException as e:
        raise ValidationError(e.message, e.details) from e

    logger.info("Skin equipped", wallet=body.wallet_address, skin_id=body.skin_id)
    return SkinActionResponse(player=PlayerResponse.model_validate(player))
