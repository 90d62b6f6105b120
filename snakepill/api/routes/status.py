"""
System status and online counter routes.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from snakepill.api.dependencies import get_app_settings, get_distributor, get_store
from snakepill.api.schemas.common import OnlineCountResponse
from snakepill.core.config import Settings
from snakepill.services.player_store import PlayerStore
from snakepill.services.tax_distributor import TaxDistributor


router = APIRouter(tags=["Status"])


@router.get("/status", summary="System Status")
async def get_status(
    store: PlayerStore = Depends(get_store),
    distributor: TaxDistributor = Depends(get_distributor),
    settings: Settings = Depends(get_app_settings)
) -> Dict[str, Any]:
    status = await store.get_system_status(settings.online_timeout_seconds)
    status["distribution"] = await distributor.get_distribution_stats()
    status["min_holding_usd"] = settings.min_holding_usd
    status["min_playtime_seconds"] = settings.min_playtime_seconds
    return status


@router.get("/online", response_model=OnlineCountResponse, summary="Online Players")
async def get_online(
    store: PlayerStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings)
):
    count = await store.get_online_count(settings.online_timeout_seconds)
    return OnlineCountResponse(count=count)
