"""
Tax distributor - pays a share of reported taxes to eligible wallets.

The pool is a fixed fraction of the reported tax, split evenly across
every active eligibility record. Preconditions (distributor balance,
recipients present, per-recipient amount above dust) are checked before
any transfer; once transfers start every recipient is attempted and
individual failures are recorded, not raised.
"""

import asyncio
import math
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple

import structlog

from snakepill.core.config import Settings
from snakepill.core.exceptions import ValidationError
from snakepill.services.payment_sender import PaymentSender
from snakepill.services.player_store import PlayerStore
from snakepill.utils.helpers import format_sol, format_wallet
from snakepill.utils.rate_limiter import TokenBucket, build_bucket


logger = structlog.get_logger(__name__)


REASON_INSUFFICIENT_BALANCE = "Insufficient balance"
REASON_NO_RECIPIENTS = "No eligible players"
REASON_AMOUNT_TOO_SMALL = "Amount per player too small"
REASON_ALREADY_RUNNING = "Distribution already in progress"


@dataclass
class DistributionResult:
    """Outcome of one distribution attempt, partial success included."""
    success: bool
    total_tax_sol: float
    distribution_amount: float = 0.0
    reason: Optional[str] = None
    eligible_count: int = 0
    success_count: int = 0
    fail_count: int = 0
    per_player_sol: float = 0.0
    wallet_balance: Optional[float] = None
    tx_signatures: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)
    distribution_id: Optional[int] = None
    audit_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["failures"] = [
            {"wallet": wallet, "error": error} for wallet, error in self.failures
        ]
        return data


class TaxDistributor:
    """On-demand payout of the distribution pool to eligible wallets."""

    def __init__(
        self,
        settings: Settings,
        store: PlayerStore,
        payment_sender: PaymentSender,
        rate_limiter: Optional[TokenBucket] = None
    ):
        self.store = store
        self.payment_sender = payment_sender
        self.distribution_rate = settings.tax_distribution_rate
        self.fee_buffer_sol = settings.fee_buffer_sol
        self.min_per_player_sol = settings.min_per_player_sol
        self.rate_limiter = rate_limiter or build_bucket(settings.distributor_rate_per_second)
        self._run_lock = asyncio.Lock()
        self.logger = logger.bind(service="tax_distributor")

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def calculate_pool(self, total_tax_sol: float) -> float:
        return total_tax_sol * self.distribution_rate

    async def distribute(self, total_tax_sol: float) -> DistributionResult:
        """Distribute the pool derived from `total_tax_sol` to all eligible wallets."""
        if total_tax_sol is None or not math.isfinite(total_tax_sol) or total_tax_sol <= 0:
            raise ValidationError(
                "Total tax amount must be positive",
                {"total_tax_sol": total_tax_sol}
            )

        if self._run_lock.locked():
            self.logger.warning("Distribution already running, refusing concurrent run")
            return DistributionResult(
                success=False,
                total_tax_sol=total_tax_sol,
                reason=REASON_ALREADY_RUNNING
            )

        async with self._run_lock:
            return await self._distribute(total_tax_sol)

    async def _distribute(self, total_tax_sol: float) -> DistributionResult:
        distribution_amount = self.calculate_pool(total_tax_sol)
        result = DistributionResult(
            success=False,
            total_tax_sol=total_tax_sol,
            distribution_amount=distribution_amount
        )
        self.logger.info(
            "Starting tax distribution",
            total_tax_sol=format_sol(total_tax_sol),
            distribution_amount=format_sol(distribution_amount)
        )

        wallet_balance = await self.payment_sender.get_distributor_balance()
        result.wallet_balance = wallet_balance
        required = distribution_amount + self.fee_buffer_sol
        if wallet_balance < required:
            self.logger.error(
                "Insufficient distributor balance",
                balance_sol=format_sol(wallet_balance),
                required_sol=format_sol(required)
            )
            result.reason = REASON_INSUFFICIENT_BALANCE
            return result

        recipients = await self.store.get_eligible_players()
        result.eligible_count = len(recipients)
        if not recipients:
            self.logger.warning("No eligible players to distribute to")
            result.reason = REASON_NO_RECIPIENTS
            return result

        per_player = distribution_amount / len(recipients)
        result.per_player_sol = per_player
        if per_player < self.min_per_player_sol:
            self.logger.warning(
                "Per-player amount too small, skipping distribution",
                per_player_sol=per_player,
                min_per_player_sol=self.min_per_player_sol,
                recipients=len(recipients)
            )
            result.reason = REASON_AMOUNT_TOO_SMALL
            return result

        self.logger.info(
            "Sending payouts",
            recipients=len(recipients),
            per_player_sol=format_sol(per_player)
        )

        for recipient in recipients:
            wallet = recipient.wallet_address
            try:
                if self.rate_limiter is not None:
                    await self.rate_limiter.acquire()

                signature = await self.payment_sender.send_payment(wallet, per_player)
                result.tx_signatures.append(signature)
                result.success_count += 1
                self.logger.info(
                    "Payout sent",
                    wallet=format_wallet(wallet),
                    amount_sol=format_sol(per_player),
                    signature=signature
                )

            except Exception as e:
                result.fail_count += 1
                result.failures.append((wallet, str(e)))
                self.logger.error(
                    "Payout failed",
                    wallet=wallet,
                    amount_sol=per_player,
                    error=str(e)
                )

        # Transfers are final from here; audit failures are reported on the result
        result.success = True
        try:
            entry = await self.store.log_tax_distribution(
                total_tax_sol,
                distribution_amount,
                result.success_count,
                per_player,
                result.tx_signatures
            )
            result.distribution_id = entry.id
        except Exception as e:
            result.audit_error = str(e)
            self.logger.error(
                "Failed to record distribution, payouts were sent",
                total_tax_sol=total_tax_sol,
                distribution_amount=distribution_amount,
                per_player_sol=per_player,
                success_count=result.success_count,
                tx_signatures=result.tx_signatures,
                error=str(e)
            )

        self.logger.info(
            "Distribution complete",
            success_count=result.success_count,
            fail_count=result.fail_count,
            distribution_id=result.distribution_id
        )
        return result

    async def get_distribution_stats(self) -> Dict[str, Any]:
        eligible = await self.store.get_eligible_players()
        wallet_balance = await self.payment_sender.get_distributor_balance()
        return {
            "eligible_count": len(eligible),
            "wallet_balance": wallet_balance,
            "distribution_percentage": self.distribution_rate * 100,
        }
