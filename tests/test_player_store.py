"""
Test the player store on SQLite.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import update

from snakepill.core.database import Database
from snakepill.core.exceptions import (
    DatabaseError,
    GameSessionFinishedError,
    GameSessionNotFoundError,
    InsufficientPointsError,
    PlayerNotFoundError,
    SkinNotFoundError,
    SkinOwnershipError,
)
from snakepill.models import GameSession, OnlinePlayer
from snakepill.services.player_store import PlayerStore
from tests.conftest import add_player, make_wallet


@pytest.mark.asyncio
async def test_create_and_get_player(store):
    wallet = make_wallet()
    created = await store.create_player(wallet)
    fetched = await store.get_player(wallet)

    assert fetched.id == created.id
    assert fetched.total_points == 0
    assert fetched.current_skin == "classic"
    assert fetched.owned_skins == ["classic"]
    assert fetched.is_eligible is False
    assert await store.get_player(make_wallet()) is None


@pytest.mark.asyncio
async def test_get_or_create_player_is_stable(store):
    wallet = make_wallet()
    first = await store.get_or_create_player(wallet)
    second = await store.get_or_create_player(wallet)

    assert first.id == second.id


@pytest.mark.asyncio
async def test_update_player(store):
    wallet = await add_player(store)

    updated = await store.update_player(wallet, username="viper", total_points=42)

    assert updated.username == "viper"
    assert (await store.get_player(wallet)).total_points == 42

    with pytest.raises(ValueError):
        await store.update_player(wallet, wallet_address="other")
    with pytest.raises(PlayerNotFoundError):
        await store.update_player(make_wallet(), total_points=1)


@pytest.mark.asyncio
async def test_apply_session_result_accumulates(store):
    wallet = await add_player(store)

    await store.apply_session_result(wallet, points=150, playtime_seconds=90, score=50)
    player = await store.apply_session_result(wallet, points=30, playtime_seconds=20, score=30)

    assert player.total_points == 180
    assert player.total_playtime_seconds == 110
    assert player.games_played == 2
    assert player.highest_score == 50
    assert await store.apply_session_result(make_wallet(), 1, 1, 1) is None


@pytest.mark.asyncio
async def test_players_with_min_playtime(store):
    short = await add_player(store, playtime_seconds=299)
    exact = await add_player(store, playtime_seconds=300)
    long = await add_player(store, playtime_seconds=5000)

    players = await store.get_players_with_min_playtime(300)

    wallets = [p.wallet_address for p in players]
    assert wallets == [exact, long]
    assert short not in wallets


@pytest.mark.asyncio
async def test_leaderboard_order(store):
    idle = await add_player(store)
    low = await add_player(store, games_played=1, highest_score=10)
    high = await add_player(store, games_played=3, highest_score=99)

    leaderboard = await store.get_leaderboard(limit=10)

    assert [p.wallet_address for p in leaderboard] == [high, low]
    assert idle not in [p.wallet_address for p in leaderboard]
    assert len(await store.get_leaderboard(limit=1)) == 1


@pytest.mark.asyncio
async def test_eligibility_upsert_and_removal(store):
    wallet = make_wallet()
    player = await store.create_player(wallet)

    await store.set_player_eligible(player.id, wallet, 8.0, 400)
    await store.set_player_eligible(player.id, wallet, 9.5, 450)

    records = await store.get_eligible_players()
    assert len(records) == 1
    assert records[0].holding_usd == pytest.approx(9.5)
    assert records[0].total_playtime_seconds == 450

    await store.remove_player_eligibility(wallet)
    assert await store.get_eligible_players() == []

    await store.set_player_eligible(player.id, wallet, 6.0, 500)
    reactivated = await store.get_eligibility_record(wallet)
    assert reactivated.is_active is True
    assert reactivated.id == records[0].id


@pytest.mark.asyncio
async def test_distribution_log_history(store):
    await store.log_tax_distribution(100, 0.1, 2, 0.05, ["a", "b"])
    latest = await store.log_tax_distribution(200, 0.2, 1, 0.2, ["c"])

    history = await store.get_distribution_history(limit=5)

    assert [entry.id for entry in history][0] == latest.id
    assert history[0].tx_signatures == ["c"]
    assert len(history) == 2


@pytest.mark.asyncio
async def test_game_session_lifecycle(store):
    wallet = await add_player(store)
    player = await store.get_player(wallet)

    session = await store.create_game_session(player.id, wallet)
    assert session.is_finished is False

    ended = await store.end_game_session(session.id, 77, 125, 9, "wall")
    assert ended.is_finished is True
    assert ended.score == 77
    assert ended.game_over_reason == "wall"

    with pytest.raises(GameSessionFinishedError):
        await store.end_game_session(session.id, 500, 900, 40, "wall")
    async with store.database.session() as db:
        assert (await db.get(GameSession, session.id)).score == 77

    with pytest.raises(GameSessionNotFoundError):
        await store.end_game_session("missing", 1, 1, 1, None)


@pytest.mark.asyncio
async def test_online_presence(store):
    await store.update_online_player("s1", None, True)
    await store.update_online_player("s2", make_wallet(), False)
    await store.update_online_player("s1", None, False)

    assert await store.get_online_count(120) == 2

    async with store.database.session() as db:
        await db.execute(
            update(OnlinePlayer)
            .where(OnlinePlayer.session_id == "s2")
            .values(last_seen=datetime.utcnow() - timedelta(minutes=10))
        )

    assert await store.get_online_count(120) == 1
    assert await store.cleanup_offline_players(120) == 1

    await store.remove_online_player("s1")
    assert await store.get_online_count(120) == 0


@pytest.mark.asyncio
async def test_seed_skins_is_idempotent(store):
    assert await store.seed_skins() == 5
    assert await store.seed_skins() == 0

    skins = await store.get_skins()
    costs = [skin.cost_points for skin in skins]
    assert costs == sorted(costs)
    assert skins[0].id == "classic"


@pytest.mark.asyncio
async def test_buy_and_equip_skin(store):
    await store.seed_skins()
    wallet = await add_player(store, total_points=1200)

    with pytest.raises(InsufficientPointsError):
        await store.buy_skin(wallet, "toxic")
    with pytest.raises(SkinNotFoundError):
        await store.buy_skin(wallet, "plaid")
    with pytest.raises(SkinOwnershipError):
        await store.equip_skin(wallet, "neon")

    player = await store.buy_skin(wallet, "neon")
    assert player.total_points == 200
    assert "neon" in player.owned_skins

    with pytest.raises(SkinOwnershipError):
        await store.buy_skin(wallet, "neon")

    equipped = await store.equip_skin(wallet, "neon")
    assert equipped.current_skin == "neon"
    assert (await store.get_player(wallet)).current_skin == "neon"

    with pytest.raises(PlayerNotFoundError):
        await store.buy_skin(make_wallet(), "neon")


@pytest.mark.asyncio
async def test_donations_by_amount(store):
    await store.add_donation(make_wallet(), 0.5, message="gl")
    await store.add_donation(make_wallet(), 2.0)
    await store.add_donation(make_wallet(), 1.0)

    donates = await store.get_donates(limit=2)

    assert [d.amount_sol for d in donates] == [2.0, 1.0]


@pytest.mark.asyncio
async def test_system_status(store):
    wallet = await add_player(store)
    player = await store.get_player(wallet)
    await store.create_game_session(player.id, wallet)
    await store.update_online_player("s1", wallet, True)
    await store.set_player_eligible(player.id, wallet, 10.0, 300)
    await store.log_tax_distribution(1000, 1.0, 4, 0.25, ["a", "b", "c", "d"])

    status = await store.get_system_status(120)

    assert status["total_players"] == 1
    assert status["total_games"] == 1
    assert status["online_count"] == 1
    assert status["eligible_count"] == 1
    assert status["total_distributed_sol"] == pytest.approx(1.0)
    assert status["last_distribution_at"] is not None


@pytest.mark.asyncio
async def test_uninitialized_database_raises(settings):
    store = PlayerStore(Database(settings))

    with pytest.raises(DatabaseError):
        await store.get_player(make_wallet())
