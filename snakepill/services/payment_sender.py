"""
Payment sender - signs and submits SOL transfers from the distributor wallet.
"""

import math
from typing import Optional

import base58
import structlog
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import transfer, TransferParams
from solders.transaction import Transaction

from snakepill.core.config import Settings, LAMPORTS_PER_SOL
from snakepill.core.exceptions import ConfigurationError, PaymentError
from snakepill.utils.validation import SolanaValidator


logger = structlog.get_logger(__name__)


def load_keypair(private_key: Optional[str]) -> Keypair:
    """Decode a base58 secret key into a keypair."""
    if not private_key:
        raise ConfigurationError("No private key configured")
    try:
        return Keypair.from_bytes(base58.b58decode(private_key.strip()))
    except Exception as e:
        raise ConfigurationError(f"Invalid distributor private key: {e}")


def sol_to_lamports(amount_sol: float) -> int:
    return int(math.floor(amount_sol * LAMPORTS_PER_SOL))


class PaymentSender:
    """Distributor wallet: balance reads and confirmed SOL transfers."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[AsyncClient] = None,
        keypair: Optional[Keypair] = None
    ):
        self.settings = settings
        self.commitment = Commitment(settings.solana_commitment)
        self.client = client or AsyncClient(
            endpoint=settings.rpc_url,
            commitment=self.commitment,
            timeout=settings.rpc_timeout
        )
        self._keypair = keypair
        self.logger = logger.bind(service="payment_sender")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self.client.close()

    @property
    def keypair(self) -> Keypair:
        """Distributor keypair, decoded on first use."""
        if self._keypair is None:
            self._keypair = load_keypair(self.settings.private_key)
            self.logger.info(
                "Distributor keypair loaded",
                distributor_pubkey=str(self._keypair.pubkey())
            )
        return self._keypair

    def is_configured(self) -> bool:
        return self._keypair is not None or bool(self.settings.private_key)

    @staticmethod
    def is_valid_address(address: str) -> bool:
        return SolanaValidator.is_valid_pubkey(address)

    async def get_distributor_balance(self) -> float:
        """Current distributor balance in SOL, 0.0 on any failure."""
        try:
            response = await self.client.get_balance(self.keypair.pubkey())
            return response.value / LAMPORTS_PER_SOL
        except Exception as e:
            self.logger.error("Failed to get distributor balance", error=str(e))
            return 0.0

    async def send_payment(self, to_address: str, amount_sol: float) -> str:
        """
        Transfer `amount_sol` to `to_address` and wait for confirmation.

        Returns:
            Confirmed transaction signature

        Raises:
            PaymentError: on invalid input or any submission/confirmation failure
        """
        if not self.is_valid_address(to_address):
            raise PaymentError("Invalid recipient wallet address", to_address, amount_sol)

        lamports = sol_to_lamports(amount_sol)
        if lamports <= 0:
            raise PaymentError("Transfer amount rounds to zero lamports", to_address, amount_sol)

        try:
            sender = self.keypair
            recipient = Pubkey.from_string(to_address)

            recent_blockhash = await self.client.get_latest_blockhash()

            instruction = transfer(
                TransferParams(
                    from_pubkey=sender.pubkey(),
                    to_pubkey=recipient,
                    lamports=lamports
                )
            )

            transaction = Transaction.new_signed_with_payer(
                [instruction],
                sender.pubkey(),
                [sender],
                recent_blockhash.value.blockhash
            )

            response = await self.client.send_transaction(transaction)
            signature = response.value

            confirmation = await self.client.confirm_transaction(
                signature,
                commitment=self.commitment
            )
            status = confirmation.value[0] if confirmation.value else None
            if status is not None and status.err:
                raise PaymentError(f"Transaction failed: {status.err}", to_address, amount_sol)

        except PaymentError:
            raise
        except Exception as e:
            self.logger.error(
                "Failed to send payment",
                wallet=to_address,
                amount_sol=amount_sol,
                error=str(e)
            )
            raise PaymentError(str(e), to_address, amount_sol) from e

        self.logger.info(
            "Payment confirmed",
            wallet=to_address,
            amount_sol=amount_sol,
            lamports=lamports,
            transaction_signature=str(signature)
        )
        return str(signature)
