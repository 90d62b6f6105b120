"""
Game session routes: start, end and heartbeat.
"""

from fastapi import APIRouter, Depends

import structlog

from snakepill.api.dependencies import get_store
from snakepill.api.schemas.common import SuccessResponse
from snakepill.api.schemas.game import (
    GameStartRequest,
    GameStartResponse,
    GameEndRequest,
    GameEndResponse,
    GameSessionResponse,
    HeartbeatRequest,
)
from snakepill.api.schemas.players import PlayerResponse
from snakepill.services.player_store import PlayerStore
from snakepill.utils.helpers import calculate_points, generate_session_id
from snakepill.utils.validation import validate_wallet_address


router = APIRouter(tags=["Game"])
logger = structlog.get_logger(__name__)


@router.post(
    "/start",
    response_model=GameStartResponse,
    summary="Start Game",
    description="Open a game session; a valid wallet gets a player record on first play"
)
async def start_game(
    body: GameStartRequest,
    store: PlayerStore = Depends(get_store)
):
    session_id = generate_session_id()
    wallet = body.wallet_address or None

    player = None
    if wallet and validate_wallet_address(wallet):
        player = await store.get_or_create_player(wallet)

    session = await store.create_game_session(player.id if player else None, wallet)
    await store.update_online_player(session_id, wallet, True)

    logger.info(
        "Game started",
        game_session_id=session.id,
        wallet=wallet,
        anonymous=player is None
    )
    return GameStartResponse(
        session_id=session_id,
        game_session_id=session.id,
        player=PlayerResponse.model_validate(player) if player else None
    )


@router.post(
    "/end",
    response_model=GameEndResponse,
    summary="End Game",
    description="Finish a session and add points and playtime to the player"
)
async def end_game(
    body: GameEndRequest,
    store: PlayerStore = Depends(get_store)
):
    session = await store.end_game_session(
        body.game_session_id,
        body.score,
        body.playtime_seconds,
        body.pills_eaten,
        body.reason
    )
    await store.remove_online_player(body.session_id)

    points = calculate_points(body.score, body.playtime_seconds, body.pills_eaten)

    player = None
    if body.wallet_address and validate_wallet_address(body.wallet_address):
        player = await store.apply_session_result(
            body.wallet_address,
            points,
            body.playtime_seconds,
            body.score
        )

    logger.info(
        "Game ended",
        game_session_id=session.id,
        score=body.score,
        playtime_seconds=body.playtime_seconds,
        points=points,
        credited=player is not None
    )
    return GameEndResponse(
        session=GameSessionResponse.model_validate(session),
        points_earned=points,
        player=PlayerResponse.model_validate(player) if player else None
    )


@router.post(
    "/heartbeat",
    response_model=SuccessResponse,
    summary="Heartbeat",
    description="Refresh online presence for a session"
)
async def heartbeat(
    body: HeartbeatRequest,
    store: PlayerStore = Depends(get_store)
):
    await store.update_online_player(body.session_id, body.wallet_address, body.is_playing)
    return SuccessResponse()
