"""
Chain reader for token holdings and token price.

Reads are fail-soft: any RPC or market-data failure is logged and
reported as zero, so an outage reads as "holds nothing".
"""

import asyncio
import time
from typing import Any, Dict, Optional

import aiohttp
import structlog
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.types import TokenAccountOpts
from solders.pubkey import Pubkey

from snakepill.core.config import Settings
from snakepill.core.exceptions import ExternalServiceError


logger = structlog.get_logger(__name__)


class ChainReader:
    """
    Reads a wallet's SPL token balance and the token's USD price.

    Balance comes from `getTokenAccountsByOwner` on the configured RPC
    (summed over every account for the owner/mint pair); price comes from
    the pump.fun coin endpoint as market cap divided by total supply.
    """

    def __init__(self, settings: Settings, client: Optional[AsyncClient] = None):
        self.settings = settings
        self.client = client or AsyncClient(
            endpoint=settings.rpc_url,
            commitment=Commitment(settings.solana_commitment),
            timeout=settings.rpc_timeout
        )
        self.token_mint = settings.token_mint
        self.price_url = f"{settings.price_api_url.rstrip('/')}/coins/{settings.token_mint}"
        self.cache_duration = settings.price_cache_seconds
        self._cached_price: Optional[float] = None
        self._cache_timestamp = 0.0
        self.logger = logger.bind(service="chain_reader")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the RPC client connection."""
        await self.client.close()

    async def get_token_balance(self, wallet: str) -> float:
        """Sum of UI token amounts held by `wallet` for the configured mint."""
        try:
            owner = Pubkey.from_string(wallet)
            mint = Pubkey.from_string(self.token_mint)

            response = await self.client.get_token_accounts_by_owner_json_parsed(
                owner,
                TokenAccountOpts(mint=mint)
            )

            accounts = response.value or []
            total = 0.0
            for keyed_account in accounts:
                parsed = keyed_account.account.data.parsed
                amount = parsed["info"]["tokenAmount"].get("uiAmount")
                total += float(amount or 0)

            return max(total, 0.0)

        except Exception as e:
            self.logger.error("Failed to get token balance", wallet=wallet, error=str(e))
            return 0.0

    async def _fetch_coin_data(self) -> Dict[str, Any]:
        """Raw coin payload from the market-data endpoint."""
        timeout = aiohttp.ClientTimeout(total=10)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.price_url) as response:
                if response.status != 200:
                    raise ExternalServiceError(
                        "Price API error",
                        {"status": response.status, "url": self.price_url}
                    )
                return await response.json()

    async def get_token_price(self) -> float:
        """Current USD price per token, 0.0 when unknown."""
        current_time = time.monotonic()
        if (self._cached_price is not None and
                current_time - self._cache_timestamp < self.cache_duration):
            return self._cached_price

        try:
            data = await self._fetch_coin_data()
            if not data:
                return 0.0

            market_cap = data.get("usd_market_cap")
            total_supply = data.get("total_supply")
            if not market_cap or not total_supply:
                return 0.0

            price = float(market_cap) / float(total_supply)
            if price < 0:
                return 0.0

            self._cached_price = price
            self._cache_timestamp = current_time
            self.logger.debug("Token price updated", price_usd=price)
            return price

        except asyncio.TimeoutError:
            self.logger.warning("Price API timeout")
        except ExternalServiceError as e:
            self.logger.warning(e.message, **e.details)
        except Exception as e:
            self.logger.error("Error fetching token price", error=str(e))

        return 0.0

    async def get_token_holding_value_usd(self, wallet: str) -> float:
        """Holding value in USD. Never raises; exactly 0.0 for empty wallets."""
        try:
            balance = await self.get_token_balance(wallet)
            if balance == 0:
                return 0.0

            price = await self.get_token_price()
            return max(balance * price, 0.0)

        except Exception as e:
            self.logger.error("Failed to get holding value", wallet=wallet, error=str(e))
            return 0.0
