"""
Persistence contract for the engine.

Games are keyed by name and written with a conditional replace: put_game()
only succeeds when the stored version equals game.version, and bumps it.
Channel queries (games, interest) transparently expand linked channels.
"""
import logging
from typing import Callable, List, Optional, Protocol, Tuple, TypeVar

from models.game import Channel, Game, Platform, Player

logger = logging.getLogger(__name__)

R = TypeVar("R")


class StoreConflict(Exception):
    """A conditional write lost a race; reload and retry."""


class Store(Protocol):
    # ── Games ─────────────────────────────────────────────────────────────────

    async def create_game(self, game: Game) -> Game:
        """Insert a new game. Raises StoreConflict if the name is taken."""
        ...

    async def get_game(self, name: str) -> Optional[Game]:
        ...

    async def put_game(self, game: Game) -> Game:
        """Conditional replace on game.version. Returns the stored copy."""
        ...

    async def list_games(
        self,
        is_complete: Optional[bool] = None,
        channel: Optional[Channel] = None,
        limit: int = 50,
    ) -> List[Game]:
        """Newest first."""
        ...

    # ── Players ───────────────────────────────────────────────────────────────

    async def get_player(self, player_id: str) -> Optional[Player]:
        ...

    async def get_player_from_platform(self, platform: Platform, platform_id: str) -> Optional[Player]:
        ...

    async def put_player(self, player: Player) -> None:
        ...

    # ── Interest + channel links ──────────────────────────────────────────────

    async def get_interest(self, channel: Channel) -> List[Player]:
        ...

    async def put_interest(self, player: Player, channel: Channel, is_interested: bool) -> None:
        ...

    async def get_linked_channels(self, channel: Channel) -> List[Channel]:
        """The channel itself plus every channel linked to it."""
        ...


async def update_game(
    store: Store,
    name: str,
    mutate: Callable[[Game], R],
    attempts: int = 3,
) -> Tuple[Optional[Game], Optional[R]]:
    """
    Read-modify-write one game with a conditional replace.

    mutate() edits the freshly loaded game in place and returns a result; it
    may raise to abort (nothing is written). On a lost race the game is
    reloaded and mutate() runs again, up to `attempts` times.
    Returns (None, None) if the game does not exist.
    """
    for attempt in range(1, attempts + 1):
        game = await store.get_game(name)
        if game is None:
            return None, None
        result = mutate(game)
        try:
            return await store.put_game(game), result
        except StoreConflict:
            if attempt == attempts:
                raise
            logger.info("[%s] Write conflict, retrying (%d/%d)", name, attempt, attempts)
    raise AssertionError("unreachable")
