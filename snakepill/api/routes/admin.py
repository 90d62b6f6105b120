"""
Admin routes for tax distribution.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

import structlog

from snakepill.api.dependencies import get_distributor, get_store, require_admin_secret
from snakepill.api.schemas.admin import DistributeRequest, TaxDistributionResponse
from snakepill.services.player_store import PlayerStore
from snakepill.services.tax_distributor import TaxDistributor


router = APIRouter(tags=["Admin"], dependencies=[Depends(require_admin_secret)])
logger = structlog.get_logger(__name__)


@router.post(
    "/distribute",
    summary="Distribute Tax",
    description="Pay the distribution share of the reported tax to every eligible wallet"
)
async def distribute(
    body: DistributeRequest,
    distributor: TaxDistributor = Depends(get_distributor)
) -> Dict[str, Any]:
    logger.info("Admin distribution requested", total_tax_sol=body.total_tax_sol)
    result = await distributor.distribute(body.total_tax_sol)
    return result.to_dict()


@router.get(
    "/distributions",
    response_model=List[TaxDistributionResponse],
    summary="Distribution History"
)
async def get_distributions(
    limit: int = Query(20, ge=1, le=500, description="Number of entries to return"),
    store: PlayerStore = Depends(get_store)
):
    return await store.get_distribution_history(limit)
