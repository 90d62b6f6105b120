"""
Externally triggered cron route for the eligibility reconciliation.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends

import structlog

from snakepill.api.dependencies import (
    get_app_settings,
    get_reconciler,
    get_store,
    require_cron_secret,
)
from snakepill.core.config import Settings
from snakepill.services.eligibility_reconciler import EligibilityReconciler
from snakepill.services.player_store import PlayerStore


router = APIRouter(tags=["Cron"], dependencies=[Depends(require_cron_secret)])
logger = structlog.get_logger(__name__)


@router.get(
    "/eligibility",
    summary="Run Eligibility Check",
    description="Clear stale presence rows, then reconcile eligibility for every qualifying player"
)
async def run_eligibility(
    store: PlayerStore = Depends(get_store),
    reconciler: EligibilityReconciler = Depends(get_reconciler),
    settings: Settings = Depends(get_app_settings)
) -> Dict[str, Any]:
    removed_offline = await store.cleanup_offline_players(settings.online_timeout_seconds)
    result = await reconciler.check_all_eligibility()

    logger.info("Cron eligibility run finished", skipped=result.skipped)
    return {
        "success": True,
        **result.to_dict(),
        "removed_offline": removed_offline,
        "timestamp": datetime.utcnow().isoformat(),
    }
