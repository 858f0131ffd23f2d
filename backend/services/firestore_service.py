import asyncio
import os
from typing import Optional, List, Dict, Any

from models.game import Channel, ChannelLink, Game, Interest, Platform, Player
from services.store import StoreConflict
from config import Settings


class FirestoreStore:
    """
    Async-friendly Firestore wrapper using run_in_executor to avoid
    blocking the event loop. Switch to AsyncClient once stable.

    Collections:
      games/{name}                      Game documents (+ channel_key for queries)
      players/{id}                      Player documents
      interests/{player_id}:{channel}   Opt-ins for auto-inclusion in new games
      channel_links/{auto}              {"channels": [key_a, key_b], "a": ..., "b": ...}
    """

    def __init__(self, cfg: Settings):
        if cfg.firestore_emulator_host:
            os.environ["FIRESTORE_EMULATOR_HOST"] = cfg.firestore_emulator_host
        # Lazy import so the store can be instantiated before GCP creds exist
        from google.cloud import firestore
        self.db = firestore.Client(project=cfg.google_cloud_project or None)

    def _run(self, fn):
        """Run a sync Firestore call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(None, fn)

    # ── Collection helpers ────────────────────────────────────────────────────

    def _game_ref(self, name: str):
        return self.db.collection("games").document(name)

    def _player_ref(self, player_id: str):
        return self.db.collection("players").document(player_id)

    def _interest_ref(self, player_id: str, channel: Channel):
        return self.db.collection("interests").document(f"{player_id}:{channel.key}")

    @staticmethod
    def _game_doc(game: Game) -> Dict[str, Any]:
        data = game.model_dump(mode="json")
        data["channel_key"] = game.channel.key
        return data

    # ── Game CRUD ─────────────────────────────────────────────────────────────

    async def create_game(self, game: Game) -> Game:
        from google.api_core import exceptions as gexc

        stored = game.model_copy(update={"version": 1})
        data = self._game_doc(stored)
        try:
            await self._run(lambda: self._game_ref(game.name).create(data))
        except gexc.AlreadyExists as exc:
            raise StoreConflict(f"Game {game.name} already exists") from exc
        return stored

    async def get_game(self, name: str) -> Optional[Game]:
        doc = await self._run(lambda: self._game_ref(name).get())
        if doc.exists:
            return Game.model_validate(doc.to_dict())
        return None

    async def put_game(self, game: Game) -> Game:
        from google.cloud import firestore

        ref = self._game_ref(game.name)
        stored = game.model_copy(update={"version": game.version + 1})
        data = self._game_doc(stored)

        @firestore.transactional
        def _replace(transaction):
            snapshot = ref.get(transaction=transaction)
            current = (snapshot.to_dict() or {}).get("version") if snapshot.exists else None
            if current != game.version:
                raise StoreConflict(
                    f"Game {game.name} is at version {current}, write was based on {game.version}"
                )
            transaction.set(ref, data)

        await self._run(lambda: _replace(self.db.transaction()))
        return stored

    async def list_games(
        self,
        is_complete: Optional[bool] = None,
        channel: Optional[Channel] = None,
        limit: int = 50,
    ) -> List[Game]:
        from google.cloud import firestore

        query = self.db.collection("games")
        if is_complete is not None:
            query = query.where("is_complete", "==", is_complete)
        if channel is not None:
            keys = [c.key for c in await self.get_linked_channels(channel)]
            query = query.where("channel_key", "in", keys)
        query = query.order_by("created_at", direction=firestore.Query.DESCENDING).limit(limit)
        docs = await self._run(lambda: list(query.stream()))
        return [Game.model_validate(d.to_dict()) for d in docs]

    # ── Player CRUD ───────────────────────────────────────────────────────────

    async def get_player(self, player_id: str) -> Optional[Player]:
        doc = await self._run(lambda: self._player_ref(player_id).get())
        if doc.exists:
            return Player.model_validate(doc.to_dict())
        return None

    async def get_player_from_platform(self, platform: Platform, platform_id: str) -> Optional[Player]:
        query = (
            self.db.collection("players")
            .where("platform", "==", platform.value)
            .where("platform_id", "==", platform_id)
            .limit(1)
        )
        docs = await self._run(lambda: list(query.stream()))
        return Player.model_validate(docs[0].to_dict()) if docs else None

    async def put_player(self, player: Player) -> None:
        data = player.model_dump(mode="json")
        await self._run(lambda: self._player_ref(player.id).set(data))

    # ── Interest ──────────────────────────────────────────────────────────────

    async def get_interest(self, channel: Channel) -> List[Player]:
        keys = [c.key for c in await self.get_linked_channels(channel)]
        query = self.db.collection("interests").where("channel_key", "in", keys)
        docs = await self._run(lambda: list(query.stream()))

        players: List[Player] = []
        seen = set()
        for d in docs:
            player_id = d.to_dict()["player_id"]
            if player_id in seen:
                continue
            seen.add(player_id)
            player = await self.get_player(player_id)
            if player:
                players.append(player)
        return players

    async def put_interest(self, player: Player, channel: Channel, is_interested: bool) -> None:
        ref = self._interest_ref(player.id, channel)
        if is_interested:
            data = Interest(player_id=player.id, channel=channel).model_dump(mode="json")
            data["channel_key"] = channel.key
            await self._run(lambda: ref.set(data))
        else:
            await self._run(lambda: ref.delete())

    # ── Channel links (read-only to the engine) ───────────────────────────────

    async def get_linked_channels(self, channel: Channel) -> List[Channel]:
        query = self.db.collection("channel_links").where("channels", "array_contains", channel.key)
        docs = await self._run(lambda: list(query.stream()))
        channels = [channel]
        for d in docs:
            data = d.to_dict()
            link = ChannelLink(a=data["a"], b=data["b"])
            other = link.other(channel)
            if other is not None and other not in channels:
                channels.append(other)
        return channels
