"""
Eligibility routes: current eligible list and on-demand wallet checks.
"""

from typing import List

from fastapi import APIRouter, Depends

from snakepill.api.dependencies import (
    get_app_settings,
    get_reconciler,
    get_store,
    validate_wallet_param,
)
from snakepill.api.schemas.players import EligibilityStatusResponse, EligiblePlayerResponse
from snakepill.core.config import Settings
from snakepill.services.eligibility_reconciler import EligibilityReconciler
from snakepill.services.player_store import PlayerStore


router = APIRouter(tags=["Eligibility"])

REASON_NO_PLAYER = "No player record"
REASON_NOT_ENOUGH_PLAYTIME = "Not enough playtime"


@router.get(
    "",
    response_model=List[EligiblePlayerResponse],
    summary="List Eligible Players",
    description="Active eligibility records as of the last reconciliation"
)
async def get_eligible(store: PlayerStore = Depends(get_store)):
    return await store.get_eligible_players()


@router.get(
    "/{wallet}",
    response_model=EligibilityStatusResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    summary="Check Wallet Eligibility",
    description="Live holding check for a wallet; nothing is written"
)
async def check_wallet(
    wallet: str = Depends(validate_wallet_param),
    store: PlayerStore = Depends(get_store),
    reconciler: EligibilityReconciler = Depends(get_reconciler),
    settings: Settings = Depends(get_app_settings)
):
    """
    Playtime is checked first from the stored player; only players past the
    threshold trigger a chain read.
    """
    min_playtime = settings.min_playtime_seconds

    player = await store.get_player(wallet)
    if player is None:
        return EligibilityStatusResponse(
            is_eligible=False,
            reason=REASON_NO_PLAYER,
            playtime_seconds=0,
            min_playtime_required=min_playtime
        )

    if player.total_playtime_seconds < min_playtime:
        return EligibilityStatusResponse(
            is_eligible=False,
            reason=REASON_NOT_ENOUGH_PLAYTIME,
            playtime_seconds=player.total_playtime_seconds,
            min_playtime_required=min_playtime
        )

    check = await reconciler.check_player_eligibility(wallet)
    return EligibilityStatusResponse(
        is_eligible=check.is_eligible,
        holding_usd=check.holding_usd,
        min_holding_required=check.min_required,
        playtime_seconds=player.total_playtime_seconds,
        min_playtime_required=min_playtime
    )
