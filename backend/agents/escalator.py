"""
Inactivity Escalator: nudge, then drop, players who sit on their turn.

Each sweep looks at the first pending turn of every active game. Below the
warning threshold the turn-holder gets a reminder DM and the turn's warning
count goes up; at the threshold the turn is dropped through the same path as
a voluntary leave, and the player is told how to rejoin.

Sweeps hold no state of their own: everything they need is on the game
document, so a missed or repeated sweep just moves the counter along.
"""
import asyncio
import logging
from enum import Enum
from typing import Dict

from agents.game_master import GameMaster
from agents.notifier import Notifier
from config import Settings, settings
from models.content import bold, code
from models.errors import GameLogicError
from models.game import Game
from services.store import Store, update_game

logger = logging.getLogger(__name__)

# Upper bound on active games read per sweep
SWEEP_LIMIT = 10_000


class EscalationResult(str, Enum):
    REMINDED = "reminded"
    DROPPED = "dropped"
    SKIPPED = "skipped"


class _TurnMoved(Exception):
    """The turn being escalated stopped being the active one mid-sweep."""


class InactivityEscalator:
    def __init__(self, store: Store, game_master: GameMaster, notifier: Notifier, cfg: Settings = settings):
        self.store = store
        self.game_master = game_master
        self.notifier = notifier
        self.cfg = cfg

    async def sweep(self) -> Dict[str, EscalationResult]:
        games = await self.store.list_games(is_complete=False, limit=SWEEP_LIMIT)
        outcomes = await asyncio.gather(*(self.escalate(g) for g in games), return_exceptions=True)

        results: Dict[str, EscalationResult] = {}
        for game, outcome in zip(games, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("[%s] Escalation failed", game.name, exc_info=outcome)
                continue
            results[game.name] = outcome

        counts = {r: list(results.values()).count(r) for r in EscalationResult}
        logger.info(
            "Sweep over %d games: %d reminded, %d dropped, %d skipped",
            len(games),
            counts[EscalationResult.REMINDED],
            counts[EscalationResult.DROPPED],
            counts[EscalationResult.SKIPPED],
        )
        return results

    async def escalate(self, game: Game) -> EscalationResult:
        idx = game.active_index()
        if idx is None:
            return EscalationResult.SKIPPED
        turn = game.turns[idx]
        player = await self.store.get_player(turn.player_id)

        if turn.warnings >= self.cfg.max_warnings:
            try:
                await self.game_master.drop_turn(game.name, turn.id)
            except GameLogicError as exc:
                logger.info("[%s] Not dropping turn %s: %s", game.name, turn.id, exc)
                return EscalationResult.SKIPPED

            if player is not None:
                await self.notifier.send_dm(
                    player,
                    "Oh no!  You took too long to play your turn on game ",
                    bold(game.name),
                    "!\nIf you'd like to re-join the game, you can use the command ",
                    code(f"{self.cfg.bot_name} join {game.name}"),
                )
            return EscalationResult.DROPPED

        def _warn(g: Game) -> None:
            active = g.active_index()
            if active is None or g.turns[active].id != turn.id:
                raise _TurnMoved()
            g.turns[active].warnings += 1

        try:
            await update_game(self.store, game.name, _warn, self.cfg.store_retry_attempts)
        except _TurnMoved:
            logger.info("[%s] Turn %s was played during the sweep", game.name, turn.id)
            return EscalationResult.SKIPPED

        logger.info("[%s] Reminder %d for turn %d", game.name, turn.warnings + 1, idx)
        if player is not None:
            await self.notifier.send_dm(
                player,
                "This is a reminder to play your turn on game ",
                bold(game.name),
                " in the next day!\n",
                f"You can go here to play your turn: {self.game_master.play_url(game, turn)}",
            )
        return EscalationResult.REMINDED
