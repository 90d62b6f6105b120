"""
Test tax distribution preconditions, arithmetic and partial failure.
"""

import asyncio

import pytest

from snakepill.core.exceptions import ValidationError
from snakepill.services.tax_distributor import (
    REASON_ALREADY_RUNNING,
    REASON_AMOUNT_TOO_SMALL,
    REASON_INSUFFICIENT_BALANCE,
    REASON_NO_RECIPIENTS,
    TaxDistributor,
)
from snakepill.utils.rate_limiter import TokenBucket
from tests.conftest import FakeClock, FakePaymentSender, make_wallet


async def seed_eligible(store, count):
    wallets = []
    for _ in range(count):
        wallet = make_wallet()
        player = await store.create_player(wallet)
        await store.set_player_eligible(player.id, wallet, 10.0, 600)
        wallets.append(wallet)
    return wallets


def test_pool_is_rate_of_tax(settings, store):
    distributor = TaxDistributor(settings, store, FakePaymentSender())
    assert distributor.calculate_pool(1000) == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_pool_split_evenly(settings, store):
    wallets = await seed_eligible(store, 10)
    sender = FakePaymentSender(balance=5.0)
    distributor = TaxDistributor(settings, store, sender)

    result = await distributor.distribute(1000)

    assert result.success is True
    assert result.distribution_amount == pytest.approx(1.0)
    assert result.per_player_sol == pytest.approx(0.1)
    assert result.success_count == 10
    assert sorted(w for w, _ in sender.payments) == sorted(wallets)
    assert all(amount == pytest.approx(0.1) for _, amount in sender.payments)

    history = await store.get_distribution_history()
    assert len(history) == 1
    assert history[0].id == result.distribution_id
    assert history[0].recipients_count == 10


@pytest.mark.asyncio
async def test_insufficient_balance_aborts_before_transfers(settings, store):
    await seed_eligible(store, 10)
    sender = FakePaymentSender(balance=0.5)
    distributor = TaxDistributor(settings, store, sender)

    result = await distributor.distribute(1000)

    assert result.success is False
    assert result.reason == REASON_INSUFFICIENT_BALANCE
    assert result.wallet_balance == 0.5
    assert sender.attempts == []
    assert await store.get_distribution_history() == []


@pytest.mark.asyncio
async def test_balance_must_cover_fee_buffer(settings, store):
    await seed_eligible(store, 2)
    sender = FakePaymentSender(balance=1.005)
    distributor = TaxDistributor(settings, store, sender)

    result = await distributor.distribute(1000)

    assert result.reason == REASON_INSUFFICIENT_BALANCE
    assert sender.attempts == []


@pytest.mark.asyncio
async def test_dust_amount_aborts(settings, store):
    await seed_eligible(store, 10)
    sender = FakePaymentSender(balance=5.0)
    distributor = TaxDistributor(settings, store, sender)

    result = await distributor.distribute(0.5)

    assert result.success is False
    assert result.reason == REASON_AMOUNT_TOO_SMALL
    assert result.per_player_sol == pytest.approx(0.00005)
    assert sender.attempts == []
    assert await store.get_distribution_history() == []


@pytest.mark.asyncio
async def test_partial_failure_still_completes(settings, store):
    wallets = await seed_eligible(store, 5)
    sender = FakePaymentSender(balance=5.0, failing={wallets[1], wallets[3]})
    distributor = TaxDistributor(settings, store, sender)

    result = await distributor.distribute(1000)

    assert result.success is True
    assert result.success_count == 3
    assert result.fail_count == 2
    assert len(result.tx_signatures) == 3
    assert sorted(wallet for wallet, _ in result.failures) == sorted([wallets[1], wallets[3]])
    assert len(sender.attempts) == 5

    history = await store.get_distribution_history()
    assert history[0].recipients_count == 3
    assert len(history[0].tx_signatures) == 3

    failures = result.to_dict()["failures"]
    assert {"wallet", "error"} == set(failures[0])


@pytest.mark.asyncio
async def test_zero_recipients(settings, store):
    sender = FakePaymentSender(balance=5.0)
    distributor = TaxDistributor(settings, store, sender)

    result = await distributor.distribute(1000)

    assert result.success is False
    assert result.reason == REASON_NO_RECIPIENTS
    assert sender.balance == 5.0
    assert sender.attempts == []
    assert await store.get_distribution_history() == []


@pytest.mark.asyncio
async def test_inactive_records_are_not_paid(settings, store):
    wallets = await seed_eligible(store, 3)
    await store.remove_player_eligibility(wallets[0])
    sender = FakePaymentSender(balance=5.0)
    distributor = TaxDistributor(settings, store, sender)

    result = await distributor.distribute(1000)

    assert result.eligible_count == 2
    assert wallets[0] not in sender.attempts


@pytest.mark.asyncio
async def test_non_positive_tax_rejected(settings, store):
    distributor = TaxDistributor(settings, store, FakePaymentSender())

    with pytest.raises(ValidationError):
        await distributor.distribute(0)


@pytest.mark.asyncio
async def test_distribution_stats(settings, store):
    await seed_eligible(store, 4)
    distributor = TaxDistributor(settings, store, FakePaymentSender(balance=2.5))

    stats = await distributor.get_distribution_stats()

    assert stats == {
        "eligible_count": 4,
        "wallet_balance": 2.5,
        "distribution_percentage": pytest.approx(0.1),
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [float("nan"), float("inf"), -1.0])
async def test_non_finite_tax_rejected(settings, store, amount):
    await seed_eligible(store, 2)
    sender = FakePaymentSender(balance=5.0)
    distributor = TaxDistributor(settings, store, sender)

    with pytest.raises(ValidationError):
        await distributor.distribute(amount)

    assert sender.attempts == []
    assert await store.get_distribution_history() == []


@pytest.mark.asyncio
async def test_audit_write_failure_keeps_sent_payouts(settings, store, monkeypatch):
    await seed_eligible(store, 3)
    sender = FakePaymentSender(balance=5.0)
    distributor = TaxDistributor(settings, store, sender)

    async def broken_log(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(store, "log_tax_distribution", broken_log)

    result = await distributor.distribute(1000)

    assert result.success is True
    assert result.success_count == 3
    assert result.tx_signatures == ["sig1", "sig2", "sig3"]
    assert result.distribution_id is None
    assert result.audit_error == "db down"
    assert len(sender.payments) == 3


class SlowPaymentSender(FakePaymentSender):
    def __init__(self, balance):
        super().__init__(balance=balance)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def send_payment(self, to_address, amount_sol):
        self.entered.set()
        await self.release.wait()
        return await super().send_payment(to_address, amount_sol)


@pytest.mark.asyncio
async def test_concurrent_distribution_is_refused(settings, store):
    await seed_eligible(store, 2)
    sender = SlowPaymentSender(balance=5.0)
    distributor = TaxDistributor(settings, store, sender)

    first = asyncio.create_task(distributor.distribute(1000))
    await asyncio.wait_for(sender.entered.wait(), timeout=5)
    assert distributor.is_running

    refused = await distributor.distribute(1000)
    sender.release.set()
    completed = await first

    assert refused.success is False
    assert refused.reason == REASON_ALREADY_RUNNING
    assert completed.success is True
    assert completed.success_count == 2
    assert len(sender.payments) == 2
    assert len(await store.get_distribution_history()) == 1
    assert distributor.is_running is False


@pytest.mark.asyncio
async def test_each_transfer_takes_a_rate_limit_token(settings, store):
    await seed_eligible(store, 4)
    clock = FakeClock()
    bucket = TokenBucket(rate=2.0, clock=clock, sleep=clock.sleep)
    sender = FakePaymentSender(balance=5.0)
    distributor = TaxDistributor(settings, store, sender, rate_limiter=bucket)

    result = await distributor.distribute(1000)

    assert result.success_count == 4
    assert bucket.total_acquired == 4
    assert clock.now == pytest.approx(1.5)
