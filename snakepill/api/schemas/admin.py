"""
Admin schemas for tax distribution.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DistributeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_tax_sol: float = Field(alias="totalTaxSol", gt=0, allow_inf_nan=False)


class TaxDistributionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    total_tax_sol: float
    distribution_amount_sol: float
    recipients_count: int
    per_player_sol: float
    tx_signatures: List[str]
    created_at: Optional[datetime] = None
