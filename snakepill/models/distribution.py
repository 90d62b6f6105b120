"""
Audit log of tax distribution runs.
"""

from typing import List

from sqlalchemy import Integer, Float, JSON
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, TimestampMixin


class TaxDistribution(BaseModel, TimestampMixin):
    """Append-only record of a single distribution run."""

    __tablename__ = "tax_distributions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    total_tax_sol: Mapped[float] = mapped_column(
        Float,
        comment="Tax amount reported for the run"
    )

    distribution_amount_sol: Mapped[float] = mapped_column(
        Float,
        comment="Pool set aside from the reported tax"
    )

    recipients_count: Mapped[int] = mapped_column(
        Integer,
        comment="Number of successful transfers"
    )

    per_player_sol: Mapped[float] = mapped_column(Float)

    tx_signatures: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        comment="Signatures of confirmed transfers only"
    )
