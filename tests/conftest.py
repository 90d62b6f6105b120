"""
Shared fixtures: a real PlayerStore on a temporary SQLite file and
in-process stand-ins for the chain reader and payment sender.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import pytest
import pytest_asyncio
from solders.keypair import Keypair

from snakepill.core.config import Settings
from snakepill.core.database import Database
from snakepill.core.exceptions import PaymentError
from snakepill.services.container import ServiceContainer
from snakepill.services.player_store import PlayerStore


def make_wallet() -> str:
    return str(Keypair().pubkey())


class FakeChainReader:
    """Holdings keyed by wallet; wallets in `failing` raise."""

    def __init__(self, holdings: Optional[Dict[str, float]] = None, failing: Iterable[str] = ()):
        self.holdings = dict(holdings or {})
        self.failing = set(failing)
        self.calls: List[str] = []

    async def get_token_holding_value_usd(self, wallet: str) -> float:
        self.calls.append(wallet)
        if wallet in self.failing:
            raise RuntimeError("rpc unavailable")
        return self.holdings.get(wallet, 0.0)

    async def close(self):
        pass


class FakePaymentSender:
    """Records payments; wallets in `failing` raise PaymentError."""

    def __init__(self, balance: float = 10.0, failing: Iterable[str] = ()):
        self.balance = balance
        self.failing = set(failing)
        self.payments: List[Tuple[str, float]] = []
        self.attempts: List[str] = []

    async def get_distributor_balance(self) -> float:
        return self.balance

    async def send_payment(self, to_address: str, amount_sol: float) -> str:
        self.attempts.append(to_address)
        if to_address in self.failing:
            raise PaymentError("Transaction failed: blockhash not found", to_address, amount_sol)
        self.payments.append((to_address, amount_sol))
        self.balance -= amount_sol
        return f"sig{len(self.payments)}"

    async def close(self):
        pass


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        environment="development",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'snakepill.db'}",
        token_mint=make_wallet(),
        log_format="console",
        scheduler_enabled=False,
        reconciler_rate_per_second=0,
        distributor_rate_per_second=0,
        cron_secret=None,
        admin_secret="admin-secret",
    )


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings)
    await db.init()
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
def store(database) -> PlayerStore:
    return PlayerStore(database)


@pytest.fixture
def chain_reader() -> FakeChainReader:
    return FakeChainReader()


@pytest.fixture
def payment_sender() -> FakePaymentSender:
    return FakePaymentSender()


@pytest_asyncio.fixture
async def services(settings, database, chain_reader, payment_sender):
    container = ServiceContainer(
        settings,
        database=database,
        chain_reader=chain_reader,
        payment_sender=payment_sender
    )
    await container.start()
    return container


async def add_player(store: PlayerStore, playtime_seconds: int = 0, **fields) -> str:
    wallet = make_wallet()
    await store.create_player(wallet)
    if playtime_seconds or fields:
        await store.update_player(wallet, total_playtime_seconds=playtime_seconds, **fields)
    return wallet
