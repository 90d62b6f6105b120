"""
Wires the services together from a single Settings instance.
"""

from typing import Optional

import structlog

from snakepill.core.config import Settings
from snakepill.core.database import Database
from snakepill.services.chain_reader import ChainReader
from snakepill.services.eligibility_reconciler import EligibilityReconciler
from snakepill.services.payment_sender import PaymentSender
from snakepill.services.player_store import PlayerStore
from snakepill.services.tax_distributor import TaxDistributor


logger = structlog.get_logger(__name__)


class ServiceContainer:
    """Owns the long-lived services for one process (API, scheduler or CLI)."""

    def __init__(
        self,
        settings: Settings,
        database: Optional[Database] = None,
        chain_reader: Optional[ChainReader] = None,
        payment_sender: Optional[PaymentSender] = None
    ):
        self.settings = settings
        self.database = database or Database(settings)
        self.store = PlayerStore(self.database)
        self.chain_reader = chain_reader or ChainReader(settings)
        self.payment_sender = payment_sender or PaymentSender(settings)
        self.reconciler = EligibilityReconciler(settings, self.store, self.chain_reader)
        self.distributor = TaxDistributor(settings, self.store, self.payment_sender)

    async def start(self, create_tables: bool = True) -> None:
        await self.database.init()
        if create_tables:
            await self.database.create_tables()
            seeded = await self.store.seed_skins()
            if seeded:
                logger.info("Seeded skin catalog", count=seeded)

    async def close(self) -> None:
        for closer in (self.chain_reader.close, self.payment_sender.close):
            try:
                await closer()
            except Exception as e:
                logger.warning("Error closing client", error=str(e))
        await self.database.close()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
