"""
In-process store for local development and tests.

Documents are kept in their serialised JSON form so every read hands out a
fresh copy, the same as a round trip through Firestore.
"""
from typing import Any, Dict, List, Optional, Set, Tuple

from models.game import Channel, ChannelLink, Game, Platform, Player
from services.store import StoreConflict


class MemoryStore:
    def __init__(self):
        self._games: Dict[str, Dict[str, Any]] = {}
        self._players: Dict[str, Dict[str, Any]] = {}
        self._interests: Set[Tuple[str, str]] = set()  # (player_id, channel.key)
        self._links: List[ChannelLink] = []

    # ── Games ─────────────────────────────────────────────────────────────────

    async def create_game(self, game: Game) -> Game:
        if game.name in self._games:
            raise StoreConflict(f"Game {game.name} already exists")
        stored = game.model_copy(update={"version": 1})
        self._games[game.name] = stored.model_dump(mode="json")
        return stored

    async def get_game(self, name: str) -> Optional[Game]:
        doc = self._games.get(name)
        return Game.model_validate(doc) if doc is not None else None

    async def put_game(self, game: Game) -> Game:
        doc = self._games.get(game.name)
        stored_version = doc["version"] if doc is not None else None
        if stored_version != game.version:
            raise StoreConflict(
                f"Game {game.name} is at version {stored_version}, write was based on {game.version}"
            )
        stored = game.model_copy(update={"version": game.version + 1})
        self._games[game.name] = stored.model_dump(mode="json")
        return stored

    async def list_games(
        self,
        is_complete: Optional[bool] = None,
        channel: Optional[Channel] = None,
        limit: int = 50,
    ) -> List[Game]:
        keys = None
        if channel is not None:
            keys = {c.key for c in await self.get_linked_channels(channel)}
        games = [Game.model_validate(doc) for doc in self._games.values()]
        if is_complete is not None:
            games = [g for g in games if g.is_complete == is_complete]
        if keys is not None:
            games = [g for g in games if g.channel.key in keys]
        games.sort(key=lambda g: g.created_at, reverse=True)
        return games[:limit]

    # ── Players ───────────────────────────────────────────────────────────────

    async def get_player(self, player_id: str) -> Optional[Player]:
        doc = self._players.get(player_id)
        return Player.model_validate(doc) if doc is not None else None

    async def get_player_from_platform(self, platform: Platform, platform_id: str) -> Optional[Player]:
        for doc in self._players.values():
            if doc["platform"] == platform.value and doc["platform_id"] == platform_id:
                return Player.model_validate(doc)
        return None

    async def put_player(self, player: Player) -> None:
        self._players[player.id] = player.model_dump(mode="json")

    # ── Interest + channel links ──────────────────────────────────────────────

    async def get_interest(self, channel: Channel) -> List[Player]:
        keys = {c.key for c in await self.get_linked_channels(channel)}
        seen: Set[str] = set()
        players = []
        for player_id, channel_key in sorted(self._interests):
            if channel_key in keys and player_id not in seen:
                player = await self.get_player(player_id)
                if player:
                    seen.add(player_id)
                    players.append(player)
        return players

    async def put_interest(self, player: Player, channel: Channel, is_interested: bool) -> None:
        entry = (player.id, channel.key)
        if is_interested:
            self._interests.add(entry)
        else:
            self._interests.discard(entry)

    async def get_linked_channels(self, channel: Channel) -> List[Channel]:
        channels = [channel]
        for link in self._links:
            other = link.other(channel)
            if other is not None and other not in channels:
                channels.append(other)
        return channels

    def link_channels(self, a: Channel, b: Channel) -> None:
        self._links.append(ChannelLink(a=a, b=b))
