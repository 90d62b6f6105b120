"""
Repository for player, session, eligibility and distribution data.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import select, update, delete, func

from snakepill.core.database import Database
from snakepill.core.exceptions import (
    PlayerNotFoundError,
    SkinNotFoundError,
    GameSessionNotFoundError,
    GameSessionFinishedError,
    InsufficientPointsError,
    SkinOwnershipError,
)
from snakepill.models import (
    Player,
    EligiblePlayer,
    TaxDistribution,
    GameSession,
    OnlinePlayer,
    Skin,
    Donation,
    DEFAULT_SKIN,
    DEFAULT_SKINS,
)


logger = structlog.get_logger(__name__)

# Columns callers may change through update_player
UPDATABLE_PLAYER_FIELDS = {
    "username",
    "total_points",
    "total_playtime_seconds",
    "games_played",
    "highest_score",
    "current_skin",
    "owned_skins",
    "is_eligible",
    "eligible_since",
}


class PlayerStore:
    """
    Repository for all persistence used by the game API and the payout pipeline.

    Every method opens its own session, so each write is its own
    transaction.
    """

    def __init__(self, database: Database):
        self.database = database
        self.logger = logger.bind(service="player_store")

    # Players

    async def get_player(self, wallet: str) -> Optional[Player]:
        async with self.database.session() as db:
            result = await db.execute(
                select(Player).where(Player.wallet_address == wallet)
            )
            return result.scalar_one_or_none()

    async def create_player(self, wallet: str, username: Optional[str] = None) -> Player:
        async with self.database.session() as db:
            player = Player(
                wallet_address=wallet,
                username=username,
                total_points=0,
                total_playtime_seconds=0,
                games_played=0,
                highest_score=0,
                current_skin=DEFAULT_SKIN,
                owned_skins=[DEFAULT_SKIN],
                is_eligible=False,
            )
            db.add(player)
            await db.flush()
            self.logger.info("Player created", wallet=wallet, player_id=player.id)
            return player

    async def get_or_create_player(self, wallet: str) -> Player:
        player = await self.get_player(wallet)
        if player is None:
            player = await self.create_player(wallet)
        return player

    async def update_player(self, wallet: str, **fields: Any) -> Player:
        """Apply a partial update to the player identified by `wallet`."""
        unknown = set(fields) - UPDATABLE_PLAYER_FIELDS
        if unknown:
            raise ValueError(f"Unknown player fields: {sorted(unknown)}")

        async with self.database.session() as db:
            result = await db.execute(
                select(Player).where(Player.wallet_address == wallet)
            )
            player = result.scalar_one_or_none()
            if player is None:
                raise PlayerNotFoundError(wallet)

            for key, value in fields.items():
                setattr(player, key, value)
            player.updated_at = datetime.utcnow()
            return player

    async def apply_session_result(
        self,
        wallet: str,
        points: int,
        playtime_seconds: int,
        score: int
    ) -> Optional[Player]:
        """Accumulate a finished session into the player's totals atomically."""
        # sqlite spells GREATEST as the two-argument MAX
        if self.database.engine.dialect.name == "sqlite":
            best_score = func.max(Player.highest_score, score)
        else:
            best_score = func.greatest(Player.highest_score, score)

        async with self.database.session() as db:
            result = await db.execute(
                update(Player)
                .where(Player.wallet_address == wallet)
                .values(
                    total_points=Player.total_points + points,
                    total_playtime_seconds=Player.total_playtime_seconds + playtime_seconds,
                    games_played=Player.games_played + 1,
                    highest_score=best_score,
                    updated_at=datetime.utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None

            player_result = await db.execute(
                select(Player).where(Player.wallet_address == wallet)
            )
            return player_result.scalar_one()

    async def get_players_with_min_playtime(self, min_seconds: int) -> List[Player]:
        async with self.database.session() as db:
            result = await db.execute(
                select(Player)
                .where(Player.total_playtime_seconds >= min_seconds)
                .order_by(Player.id)
            )
            return list(result.scalars().all())

    async def get_leaderboard(self, limit: int = 100) -> List[Player]:
        async with self.database.session() as db:
            result = await db.execute(
                select(Player)
                .where(Player.games_played > 0)
                .order_by(Player.highest_score.desc(), Player.total_points.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    # Eligibility

    async def set_player_eligible(
        self,
        player_id: Optional[int],
        wallet: str,
        holding_usd: float,
        playtime_seconds: int
    ) -> EligiblePlayer:
        """Upsert the active eligibility snapshot for `wallet`."""
        now = datetime.utcnow()
        async with self.database.session() as db:
            result = await db.execute(
                select(EligiblePlayer).where(EligiblePlayer.wallet_address == wallet)
            )
            record = result.unique().scalar_one_or_none()

            if record is None:
                record = EligiblePlayer(wallet_address=wallet)
                db.add(record)

            record.player_id = player_id
            record.holding_usd = holding_usd
            record.total_playtime_seconds = playtime_seconds
            record.is_active = True
            record.last_verified_at = now
            record.updated_at = now
            await db.flush()
            return record

    async def remove_player_eligibility(self, wallet: str) -> None:
        """Deactivate (never delete) the eligibility snapshot for `wallet`."""
        async with self.database.session() as db:
            await db.execute(
                update(EligiblePlayer)
                .where(EligiblePlayer.wallet_address == wallet)
                .values(is_active=False, updated_at=datetime.utcnow())
            )

    async def get_eligibility_record(self, wallet: str) -> Optional[EligiblePlayer]:
        async with self.database.session() as db:
            result = await db.execute(
                select(EligiblePlayer).where(EligiblePlayer.wallet_address == wallet)
            )
            return result.unique().scalar_one_or_none()

    async def get_eligible_players(self) -> List[EligiblePlayer]:
        """Active eligibility records with their players, in insertion order."""
        async with self.database.session() as db:
            result = await db.execute(
                select(EligiblePlayer)
                .where(EligiblePlayer.is_active.is_(True))
                .order_by(EligiblePlayer.id)
            )
            return list(result.unique().scalars().all())

    # Distribution log

    async def log_tax_distribution(
        self,
        total_tax_sol: float,
        distribution_amount_sol: float,
        recipients_count: int,
        per_player_sol: float,
        tx_signatures: List[str]
    ) -> TaxDistribution:
        async with self.database.session() as db:
            entry = TaxDistribution(
                total_tax_sol=total_tax_sol,
                distribution_amount_sol=distribution_amount_sol,
                recipients_count=recipients_count,
                per_player_sol=per_player_sol,
                tx_signatures=list(tx_signatures),
            )
            db.add(entry)
            await db.flush()
            self.logger.info(
                "Tax distribution logged",
                distribution_id=entry.id,
                recipients=recipients_count,
                per_player_sol=per_player_sol
            )
            return entry

    async def get_distribution_history(self, limit: int = 20) -> List[TaxDistribution]:
        async with self.database.session() as db:
            result = await db.execute(
                select(TaxDistribution)
                .order_by(TaxDistribution.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    # Game sessions

    async def create_game_session(
        self,
        player_id: Optional[int],
        wallet: Optional[str]
    ) -> GameSession:
        async with self.database.session() as db:
            session = GameSession(
                player_id=player_id,
                wallet_address=wallet,
                started_at=datetime.utcnow(),
            )
            db.add(session)
            await db.flush()
            return session

    async def end_game_session(
        self,
        session_id: str,
        score: int,
        playtime_seconds: int,
        pills_eaten: int,
        reason: Optional[str]
    ) -> GameSession:
        """Close a session once; a second end for the same session is rejected."""
        async with self.database.session() as db:
            result = await db.execute(
                update(GameSession)
                .where(GameSession.id == session_id, GameSession.ended_at.is_(None))
                .values(
                    score=score,
                    playtime_seconds=playtime_seconds,
                    pills_eaten=pills_eaten,
                    game_over_reason=reason,
                    ended_at=datetime.utcnow(),
                )
                .execution_options(synchronize_session=False)
            )

            session = await db.get(GameSession, session_id, populate_existing=True)
            if session is None:
                raise GameSessionNotFoundError(session_id)
            if result.rowcount == 0:
                raise GameSessionFinishedError(session_id)
            return session

    # Online presence

    async def update_online_player(
        self,
        session_id: str,
        wallet: Optional[str],
        is_playing: bool
    ) -> None:
        async with self.database.session() as db:
            row = await db.get(OnlinePlayer, session_id)
            if row is None:
                row = OnlinePlayer(session_id=session_id)
                db.add(row)
            row.wallet_address = wallet
            row.is_playing = is_playing
            row.last_seen = datetime.utcnow()

    async def remove_online_player(self, session_id: str) -> None:
        async with self.database.session() as db:
            await db.execute(
                delete(OnlinePlayer).where(OnlinePlayer.session_id == session_id)
            )

    async def get_online_count(self, timeout_seconds: int = 120) -> int:
        cutoff = datetime.utcnow() - timedelta(seconds=timeout_seconds)
        async with self.database.session() as db:
            result = await db.execute(
                select(func.count()).select_from(OnlinePlayer)
                .where(OnlinePlayer.last_seen >= cutoff)
            )
            return result.scalar() or 0

    async def cleanup_offline_players(self, timeout_seconds: int = 120) -> int:
        cutoff = datetime.utcnow() - timedelta(seconds=timeout_seconds)
        async with self.database.session() as db:
            result = await db.execute(
                delete(OnlinePlayer).where(OnlinePlayer.last_seen < cutoff)
            )
            removed = result.rowcount or 0
        if removed:
            self.logger.info("Removed offline players", count=removed)
        return removed

    # Skins and donations

    async def seed_skins(self) -> int:
        """Insert the default skin catalog entries that are missing."""
        async with self.database.session() as db:
            result = await db.execute(select(Skin.id))
            existing = {row[0] for row in result.all()}
            missing = [Skin(**skin) for skin in DEFAULT_SKINS if skin["id"] not in existing]
            db.add_all(missing)
            return len(missing)

    async def get_skins(self) -> List[Skin]:
        async with self.database.session() as db:
            result = await db.execute(select(Skin).order_by(Skin.cost_points.asc()))
            return list(result.scalars().all())

    async def buy_skin(self, wallet: str, skin_id: str) -> Player:
        async with self.database.session() as db:
            result = await db.execute(
                select(Player).where(Player.wallet_address == wallet)
            )
            player = result.scalar_one_or_none()
            if player is None:
                raise PlayerNotFoundError(wallet)

            skin = await db.get(Skin, skin_id)
            if skin is None:
                raise SkinNotFoundError(skin_id)

            if player.owns_skin(skin_id):
                raise SkinOwnershipError(skin_id, owned=True)

            if player.total_points < skin.cost_points:
                raise InsufficientPointsError(skin.cost_points, player.total_points)

            player.total_points = player.total_points - skin.cost_points
            player.owned_skins = list(player.owned_skins or [DEFAULT_SKIN]) + [skin_id]
            player.updated_at = datetime.utcnow()

            self.logger.info("Skin purchased", wallet=wallet, skin_id=skin_id, cost=skin.cost_points)
            return player

    async def equip_skin(self, wallet: str, skin_id: str) -> Player:
        async with self.database.session() as db:
            result = await db.execute(
                select(Player).where(Player.wallet_address == wallet)
            )
            player = result.scalar_one_or_none()
            if player is None:
                raise PlayerNotFoundError(wallet)

            if not player.owns_skin(skin_id):
                raise SkinOwnershipError(skin_id, owned=False)

            player.current_skin = skin_id
            player.updated_at = datetime.utcnow()
            return player

    async def add_donation(
        self,
        wallet: str,
        amount_sol: float,
        tx_signature: Optional[str] = None,
        message: Optional[str] = None
    ) -> Donation:
        async with self.database.session() as db:
            donation = Donation(
                wallet_address=wallet,
                amount_sol=amount_sol,
                tx_signature=tx_signature,
                message=message,
            )
            db.add(donation)
            await db.flush()
            return donation

    async def get_donates(self, limit: int = 50) -> List[Donation]:
        async with self.database.session() as db:
            result = await db.execute(
                select(Donation).order_by(Donation.amount_sol.desc()).limit(limit)
            )
            return list(result.scalars().all())

    # Status

    async def get_system_status(self, online_timeout_seconds: int = 120) -> Dict[str, Any]:
        """Aggregate counters for the status endpoint."""
        cutoff = datetime.utcnow() - timedelta(seconds=online_timeout_seconds)
        async with self.database.session() as db:
            total_players = (await db.execute(
                select(func.count(Player.id))
            )).scalar() or 0

            total_games = (await db.execute(
                select(func.count(GameSession.id))
            )).scalar() or 0

            online_count = (await db.execute(
                select(func.count()).select_from(OnlinePlayer)
                .where(OnlinePlayer.last_seen >= cutoff)
            )).scalar() or 0

            eligible_count = (await db.execute(
                select(func.count(EligiblePlayer.id))
                .where(EligiblePlayer.is_active.is_(True))
            )).scalar() or 0

            total_distributed = (await db.execute(
                select(func.coalesce(
                    func.sum(TaxDistribution.per_player_sol * TaxDistribution.recipients_count),
                    0.0
                ))
            )).scalar() or 0.0

            last_distribution_at = (await db.execute(
                select(func.max(TaxDistribution.created_at))
            )).scalar()

        return {
            "total_players": total_players,
            "total_games": total_games,
            "online_count": online_count,
            "eligible_count": eligible_count,
            "total_distributed_sol": float(total_distributed),
            "last_distribution_at": last_distribution_at.isoformat() if last_distribution_at else None,
        }
