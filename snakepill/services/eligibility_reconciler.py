"""
Eligibility reconciler - refreshes holder eligibility from on-chain balances.

Runs on a fixed interval. For every player past the playtime threshold it
reads the wallet's token holding value and flips the eligibility state:

- holding >= minimum: upsert an active record, mark the player eligible
  (stamping `eligible_since` on the transition only)
- holding < minimum and previously eligible: deactivate record and flag
- holding < minimum and never eligible: no writes

A failure on one wallet is logged and counted, never fatal to the batch.
"""

import asyncio
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional

import structlog

from snakepill.core.config import Settings
from snakepill.services.chain_reader import ChainReader
from snakepill.services.player_store import PlayerStore
from snakepill.utils.helpers import format_wallet
from snakepill.utils.rate_limiter import TokenBucket, build_bucket


logger = structlog.get_logger(__name__)


@dataclass
class ReconcileResult:
    """Aggregate counts for one reconciler run."""
    checked: int = 0
    eligible: int = 0
    removed: int = 0
    errors: int = 0
    skipped: bool = False
    started_at: Optional[datetime] = None
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat() if self.started_at else None
        return data


@dataclass
class EligibilityCheck:
    """Read-only holding check for a single wallet."""
    wallet_address: str
    holding_usd: float
    min_required: float
    is_eligible: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EligibilityReconciler:
    """Scheduled batch that keeps eligibility records in line with holdings."""

    def __init__(
        self,
        settings: Settings,
        store: PlayerStore,
        chain_reader: ChainReader,
        rate_limiter: Optional[TokenBucket] = None
    ):
        self.store = store
        self.chain_reader = chain_reader
        self.min_holding_usd = settings.min_holding_usd
        self.min_playtime_seconds = settings.min_playtime_seconds
        self.rate_limiter = rate_limiter or build_bucket(settings.reconciler_rate_per_second)
        self._run_lock = asyncio.Lock()
        self.last_result: Optional[ReconcileResult] = None
        self.logger = logger.bind(service="eligibility_reconciler")

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    async def check_all_eligibility(self) -> ReconcileResult:
        """Run one reconciliation pass over all players past the playtime threshold."""
        if self._run_lock.locked():
            self.logger.warning("Eligibility check already running, skipping")
            return ReconcileResult(skipped=True)

        async with self._run_lock:
            result = await self._reconcile()
            self.last_result = result
            return result

    async def _reconcile(self) -> ReconcileResult:
        result = ReconcileResult(started_at=datetime.utcnow())
        self.logger.info("Starting eligibility check")

        players = await self.store.get_players_with_min_playtime(self.min_playtime_seconds)
        self.logger.info(
            "Loaded eligibility candidates",
            candidates=len(players),
            min_playtime_seconds=self.min_playtime_seconds
        )

        for player in players:
            wallet = player.wallet_address
            try:
                if self.rate_limiter is not None:
                    await self.rate_limiter.acquire()

                holding_usd = await self.chain_reader.get_token_holding_value_usd(wallet)
                result.checked += 1

                if holding_usd >= self.min_holding_usd:
                    await self.store.set_player_eligible(
                        player.id,
                        wallet,
                        holding_usd,
                        player.total_playtime_seconds
                    )
                    if not player.is_eligible:
                        await self.store.update_player(
                            wallet,
                            is_eligible=True,
                            eligible_since=datetime.utcnow()
                        )
                    result.eligible += 1
                    self.logger.info(
                        "Wallet eligible",
                        wallet=format_wallet(wallet),
                        holding_usd=round(holding_usd, 2)
                    )

                elif player.is_eligible:
                    await self.store.remove_player_eligibility(wallet)
                    await self.store.update_player(wallet, is_eligible=False)
                    result.removed += 1
                    self.logger.warning(
                        "Wallet no longer eligible",
                        wallet=format_wallet(wallet),
                        holding_usd=round(holding_usd, 2)
                    )

            except Exception as e:
                result.errors += 1
                self.logger.error(
                    "Error checking wallet eligibility",
                    wallet=wallet,
                    error=str(e)
                )

        result.duration_seconds = (datetime.utcnow() - result.started_at).total_seconds()
        self.logger.info(
            "Eligibility check complete",
            checked=result.checked,
            eligible=result.eligible,
            removed=result.removed,
            errors=result.errors,
            duration=result.duration_seconds
        )
        return result

    async def check_player_eligibility(self, wallet: str) -> EligibilityCheck:
        """Holding check for one wallet without touching stored state."""
        holding_usd = await self.chain_reader.get_token_holding_value_usd(wallet)
        return EligibilityCheck(
            wallet_address=wallet,
            holding_usd=holding_usd,
            min_required=self.min_holding_usd,
            is_eligible=holding_usd >= self.min_holding_usd
        )
