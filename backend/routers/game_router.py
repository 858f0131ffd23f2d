"""
Game HTTP endpoints (web play page + gallery).

Routes:
  GET  /api/games                                   Completed games (recent or sampled, optional channel)
  GET  /api/games/{name}                            A completed game with players, avatars and turns
  GET  /api/games/{name}/turns/{turn_id}            Input for a turn (previous caption or drawing)
  PUT  /api/games/{name}/turns/{turn_id}/caption    Play a caption turn
  PUT  /api/games/{name}/turns/{turn_id}/image      Play a drawing turn (raw PNG body)
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from agents.game_master import GameMaster
from models.errors import GameLogicError, GameNotFound, TurnNotFound
from models.game import CaptionRequest, Channel, Platform

logger = logging.getLogger(__name__)

router = APIRouter(tags=["games"])


def get_game_master(request: Request) -> GameMaster:
    return request.app.state.engine.game_master


def _http_error(exc: GameLogicError) -> HTTPException:
    status = 404 if isinstance(exc, (GameNotFound, TurnNotFound)) else 409
    return HTTPException(status_code=status, detail=str(exc))


def _internal_error(what: str) -> HTTPException:
    logger.exception("Request failed: %s", what)
    return HTTPException(status_code=500, detail="Something went wrong")


@router.get("/games")
async def list_games(
    channel_id: Optional[str] = None,
    channel_platform: Optional[Platform] = None,
    limit: int = Query(default=50, ge=1, le=200),
    sample: bool = False,
    gm: GameMaster = Depends(get_game_master),
):
    channel = None
    if channel_id:
        if channel_platform is None:
            raise HTTPException(status_code=400, detail="channel_platform is required with channel_id")
        channel = Channel(platform=channel_platform, id=channel_id)

    try:
        games = await gm.list_games(channel=channel, limit=limit, sample=sample)
    except Exception:
        raise _internal_error("list games")
    return {"games": [g.to_summary() for g in games]}


@router.get("/games/{name}")
async def get_game(name: str, gm: GameMaster = Depends(get_game_master)) -> Dict[str, Any]:
    """Only finished games are public; an in-progress game looks like a missing one."""
    try:
        game = await gm.get_game(name)
        if game is None or not game.is_complete:
            raise GameNotFound(name)
        players = await gm.get_turn_players(game)
    except GameLogicError as exc:
        raise _http_error(exc)
    except Exception:
        raise _internal_error(f"get game {name}")

    turns = []
    for turn in game.turns:
        player = players.get(turn.player_id)
        turns.append({
            "id": turn.id,
            "person": player.to_public() if player else None,
            "title": turn.caption,
            "image": turn.image.to_public() if turn.image else None,
        })
    return {**game.to_summary(), "turns": turns}


@router.get("/games/{name}/turns/{turn_id}")
async def get_turn(name: str, turn_id: str, gm: GameMaster = Depends(get_game_master)) -> Dict[str, Any]:
    try:
        turn_input = await gm.get_turn_input(name, turn_id)
    except GameLogicError as exc:
        raise _http_error(exc)
    except Exception:
        raise _internal_error(f"get turn {name}/{turn_id}")

    if turn_input is None:
        return {"title": None, "image": None}
    return turn_input.to_public()


@router.put("/games/{name}/turns/{turn_id}/caption")
async def play_caption(
    name: str, turn_id: str, req: CaptionRequest, gm: GameMaster = Depends(get_game_master)
):
    try:
        await gm.submit_caption(name, turn_id, req.caption)
    except GameLogicError as exc:
        raise _http_error(exc)
    except Exception:
        raise _internal_error(f"caption {name}/{turn_id}")
    return {"status": "ok"}


@router.put("/games/{name}/turns/{turn_id}/image")
async def play_image(name: str, turn_id: str, request: Request, gm: GameMaster = Depends(get_game_master)):
    try:
        await gm.submit_image(name, turn_id, request.stream())
    except GameLogicError as exc:
        raise _http_error(exc)
    except Exception:
        raise _internal_error(f"image {name}/{turn_id}")
    return {"status": "ok"}
