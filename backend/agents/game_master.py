"""
Game Master Agent: the turn state machine.

Responsibilities:
- Starting games (roster, interested players, role-aware seating)
- Serving the input for a turn and accepting its caption or drawing
- Advancing play: DM the next player, announce, detect completion
- Join / leave resequencing (shared with the inactivity escalator via drop_turn)
- Channel availability, role preferences, status reports, gallery queries

Every mutation is one read-modify-write on a single game document, written
with a conditional replace and retried on conflict. Messages and background
work only happen after the write has landed.
"""
import io
import logging
import random
import uuid
from typing import AsyncIterable, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from agents.avatar_agent import AvatarAgent
from agents.notifier import Notifier
from agents.player_resolver import PlayerResolver
from agents.role_assigner import assign_roles
from agents.title_composer import TitleComposer
from config import Settings, settings
from models.content import MessageChunk, bold
from models.errors import (
    AlreadyInGame,
    EmptyCaption,
    GameAlreadyComplete,
    GameNotFound,
    InconsistentTurnState,
    InsufficientPlayers,
    NotInGame,
    PrecedingTurnIncomplete,
    TurnAlreadyComplete,
    TurnAlreadyPlayed,
    TurnNotFound,
)
from models.game import (
    Channel,
    FrameImage,
    Game,
    Player,
    PlayerRef,
    RolePreference,
    Turn,
    TurnInput,
    TurnKind,
)
from services.image_processor import ImageProcessor
from services.object_store import ObjectStore
from services.store import Store, StoreConflict, update_game
from utils.background import BackgroundRunner
from utils.emojis import random_emoji
from utils.files import remove, spool
from utils.names import generate_game_name
from utils.random_utils import shuffled

logger = logging.getLogger(__name__)

R = TypeVar("R")

NAME_ATTEMPTS = 10
# Completed games considered when the gallery asks for a random sample
SAMPLE_POOL = 500


class GameMaster:
    def __init__(
        self,
        store: Store,
        resolver: PlayerResolver,
        notifier: Notifier,
        object_store: ObjectStore,
        image_processor: ImageProcessor,
        avatar_agent: AvatarAgent,
        title_composer: TitleComposer,
        background: BackgroundRunner,
        cfg: Settings = settings,
        rng: random.Random = random,
    ):
        self.store = store
        self.resolver = resolver
        self.notifier = notifier
        self.object_store = object_store
        self.image_processor = image_processor
        self.avatar_agent = avatar_agent
        self.title_composer = title_composer
        self.background = background
        self.cfg = cfg
        self.rng = rng

    # ── URLs ──────────────────────────────────────────────────────────────────

    def game_url(self, game: Game) -> str:
        return f"{self.cfg.base_web_path}/game/{game.name}"

    def play_url(self, game: Game, turn: Turn) -> str:
        return f"{self.cfg.base_web_path}/play/{game.name}/{turn.id}"

    # ── Persistence helpers ───────────────────────────────────────────────────

    async def _load(self, game_name: str) -> Game:
        game = await self.store.get_game(game_name)
        if game is None:
            raise GameNotFound(game_name)
        return game

    async def _update_game(self, game_name: str, mutate: Callable[[Game], R]) -> Tuple[Game, R]:
        game, result = await update_game(self.store, game_name, mutate, self.cfg.store_retry_attempts)
        if game is None:
            raise GameNotFound(game_name)
        return game, result

    async def _create_game(self, channel: Channel, turns: List[Turn]) -> Game:
        for _ in range(NAME_ATTEMPTS):
            game = Game(name=generate_game_name(self.rng), channel=channel, turns=turns)
            try:
                return await self.store.create_game(game)
            except StoreConflict:
                logger.info("Game name %s is taken, picking another", game.name)
        raise RuntimeError(f"Could not find a free game name after {NAME_ATTEMPTS} attempts")

    async def _role_prefs(self, player_ids: Iterable[str]) -> Dict[str, Optional[RolePreference]]:
        prefs: Dict[str, Optional[RolePreference]] = {}
        for player_id in set(player_ids):
            player = await self.store.get_player(player_id)
            prefs[player_id] = player.preferred_game_role if player else None
        return prefs

    def _resequence(self, game: Game, start: int, prefs: Dict[str, Optional[RolePreference]]) -> None:
        """Re-run role seating over game.turns[start:], in place."""
        game.turns[start:] = assign_roles(
            game.turns[start:],
            offset=start,
            role_of=lambda turn: prefs.get(turn.player_id),
            rng=self.rng,
        )

    # ── Starting ──────────────────────────────────────────────────────────────

    async def start_game(
        self, players: List[PlayerRef], channel: Channel, include_interested: bool = False
    ) -> Game:
        roster: List[Player] = []
        seen = set()

        candidates = await self.resolver.resolve_many(players)
        if include_interested:
            for person in await self.store.get_interest(channel):
                candidates.append(await self.resolver.follow_redirects(person))

        for person in candidates:
            if person.id not in seen:
                seen.add(person.id)
                roster.append(person)

        order = assign_roles(shuffled(roster, self.rng), rng=self.rng)
        if len(order) < self.cfg.min_players:
            raise InsufficientPlayers(self.cfg.min_players)

        game = await self._create_game(channel, [Turn(player_id=p.id) for p in order])
        logger.info("[%s] Started in %s with %d players", game.name, channel.key, len(order))

        first = order[0]
        await self.notifier.send_channel(
            channel, "Game ", bold(game.name), " has begun!  It is now ", bold(first.name), "'s turn."
        )
        await self._send_turn_dm(game, game.turns[0], first)
        return game

    # ── Playing ───────────────────────────────────────────────────────────────

    @staticmethod
    def _turn_index(game: Game, turn_id: str) -> int:
        idx = game.find_turn(turn_id)
        if idx is None:
            raise TurnNotFound(game.name, turn_id)
        return idx

    async def get_turn_input(self, game_name: str, turn_id: str) -> Optional[TurnInput]:
        """What the holder of turn_id responds to; None for the opening caption."""
        game = await self._load(game_name)
        idx = self._turn_index(game, turn_id)
        if game.turns[idx].is_complete:
            raise TurnAlreadyComplete(game_name)
        if idx == 0:
            return None
        previous = game.turns[idx - 1]
        if not previous.is_complete:
            raise PrecedingTurnIncomplete(game_name)
        return TurnInput(caption=previous.caption, image=previous.image)

    def _check_submission(self, game: Game, turn_id: str, kind: TurnKind) -> int:
        idx = self._turn_index(game, turn_id)
        if game.turns[idx].is_complete:
            raise TurnAlreadyComplete(game.name)

        # Captions and drawings alternate, starting with a caption
        expected = TurnKind.CAPTION
        if idx > 0:
            previous = game.turns[idx - 1]
            if not previous.is_complete:
                raise PrecedingTurnIncomplete(game.name)
            expected = TurnKind.IMAGE if previous.kind == TurnKind.CAPTION else TurnKind.CAPTION
        if kind != expected:
            raise InconsistentTurnState(game.name, "caption" if expected == TurnKind.CAPTION else "drawing")
        return idx

    async def submit_caption(self, game_name: str, turn_id: str, text: str) -> Game:
        caption = text.strip()
        if not caption:
            raise EmptyCaption()

        def _apply(game: Game) -> int:
            idx = self._check_submission(game, turn_id, TurnKind.CAPTION)
            game.turns[idx].caption = caption
            game.is_complete = game.active_index() is None
            return idx

        game, idx = await self._update_game(game_name, _apply)
        logger.info("[%s] Caption submitted for turn %d", game_name, idx)
        await self._after_submission(game, idx)
        return game

    async def submit_image(self, game_name: str, turn_id: str, chunks: AsyncIterable[bytes]) -> Game:
        # Reject early so a stale play page never uploads anything
        self._check_submission(await self._load(game_name), turn_id, TurnKind.IMAGE)

        data = bytearray()
        async for chunk in chunks:
            data.extend(chunk)

        path = await spool(bytes(data))
        try:
            size = await self.image_processor.decode(path)
            # One key per attempt; a rejected attempt's object is deleted below
            stored = await self.object_store.upload(
                f"{game_name}/{turn_id}-{uuid.uuid4().hex[:12]}.png", io.BytesIO(data)
            )
        finally:
            await remove(path)

        image = FrameImage(
            image_url=stored.file_url,
            file_name=stored.file_name,
            width=size.width,
            height=size.height,
        )

        def _apply(game: Game) -> int:
            idx = self._check_submission(game, turn_id, TurnKind.IMAGE)
            game.turns[idx].image = image
            game.is_complete = game.active_index() is None
            return idx

        try:
            game, idx = await self._update_game(game_name, _apply)
        except Exception:
            await self._discard_upload(game_name, stored.file_name)
            raise
        logger.info("[%s] Drawing submitted for turn %d (%dx%d)", game_name, idx, size.width, size.height)
        await self._after_submission(game, idx)
        return game

    async def _discard_upload(self, game_name: str, file_name: str) -> None:
        try:
            await self.object_store.delete(file_name)
        except Exception:
            logger.warning("[%s] Could not remove rejected drawing %s", game_name, file_name, exc_info=True)

    async def _after_submission(self, game: Game, idx: int) -> None:
        player_id = game.turns[idx].player_id
        await self._advance(game, idx + 1)
        await self.background.spawn(self.avatar_agent.refresh(player_id), f"avatar:{player_id}")

    async def _advance(self, game: Game, index: int) -> None:
        """Hand play to the turn at index, or wrap the game up if there is none."""
        if index >= len(game.turns):
            logger.info("[%s] Game complete", game.name)
            await self.notifier.send_channel(
                game.channel, "Game ", bold(game.name), f" is done!  {self.game_url(game)}"
            )
            await self.background.spawn(self.title_composer.compose(game.name), f"title:{game.name}")
            return

        turn = game.turns[index]
        player = await self.store.get_player(turn.player_id)
        await self._send_turn_dm(game, turn, player)
        await self.notifier.send_channel(
            game.channel,
            "It is now ",
            bold(player.name if player else "??"),
            "'s turn for game ",
            bold(game.name),
            ".",
        )

    async def _send_turn_dm(self, game: Game, turn: Turn, player: Optional[Player]) -> None:
        if player is None:
            logger.warning("[%s] Turn %s belongs to unknown player %s", game.name, turn.id, turn.player_id)
            return
        await self.notifier.send_dm(
            player,
            "It's your turn to play Eat Poop You Cat on game ",
            bold(game.name),
            f"!  You have two days to play your turn.\nYou can go here to play: {self.play_url(game, turn)}",
        )

    # ── Join / leave ──────────────────────────────────────────────────────────

    async def join_game(self, channel: Channel, ref: PlayerRef, game_name: str) -> Game:
        player = await self.resolver.resolve(ref)
        current = await self._load(game_name)
        prefs = await self._role_prefs([t.player_id for t in current.turns] + [player.id])

        def _apply(game: Game) -> None:
            if game.is_complete:
                raise GameAlreadyComplete(game_name)
            if game.find_player_turn(player.id) is not None:
                raise AlreadyInGame(game_name)
            game.turns.append(Turn(player_id=player.id))
            # Played turns and the one being played stay put
            self._resequence(game, game.active_index() + 1, prefs)

        game, _ = await self._update_game(game_name, _apply)
        logger.info("[%s] %s joined (%d turns)", game_name, player.id, len(game.turns))
        await self.notifier.send_channel(
            channel, "OK ", bold(player.name), ", you are now in game ", bold(game_name)
        )
        return game

    async def leave_game(self, channel: Channel, ref: PlayerRef, game_name: str) -> Game:
        game = await self._load(game_name)
        if game.is_complete:
            raise GameAlreadyComplete(game_name)

        player = await self.resolver.lookup(ref)
        idx = game.find_player_turn(player.id) if player else None
        if idx is None:
            raise NotInGame(game_name)
        if game.turns[idx].is_complete:
            raise TurnAlreadyPlayed(game_name)

        game, _ = await self.drop_turn(game_name, game.turns[idx].id)
        await self.notifier.send_channel(
            channel, "OK ", bold(player.name), ", you have left game ", bold(game_name)
        )
        return game

    async def drop_turn(self, game_name: str, turn_id: str) -> Tuple[Game, bool]:
        """
        Remove a pending turn and reseat everyone from that slot on.

        Returns the stored game and whether the removed turn was the one being
        played; in that case play is handed to whoever now holds the slot (or
        the game finishes if nobody does).
        """
        current = await self._load(game_name)
        prefs = await self._role_prefs(t.player_id for t in current.turns)

        def _apply(game: Game) -> Tuple[int, bool]:
            idx = self._turn_index(game, turn_id)
            if game.is_complete:
                raise GameAlreadyComplete(game_name)
            if game.turns[idx].is_complete:
                raise TurnAlreadyPlayed(game_name)
            was_active = idx == game.active_index()
            del game.turns[idx]
            self._resequence(game, idx, prefs)
            game.is_complete = game.active_index() is None
            return idx, was_active

        game, (idx, was_active) = await self._update_game(game_name, _apply)
        logger.info("[%s] Dropped turn %d (active=%s)", game_name, idx, was_active)
        if was_active:
            await self._advance(game, idx)
        return game, was_active

    # ── Channel preferences ───────────────────────────────────────────────────

    async def set_available(self, channel: Channel, ref: PlayerRef, is_available: bool) -> None:
        player = await self.resolver.resolve(ref)
        await self.store.put_interest(player, channel, is_available)

        if is_available:
            tail = ", you are now available for new games in this channel."
        else:
            tail = ", you are no longer available for new games in this channel."
        await self.notifier.send_channel(channel, "OK ", bold(player.name), tail)

    async def set_role_preference(
        self, channel: Channel, ref: PlayerRef, role: Optional[RolePreference]
    ) -> Player:
        player = await self.resolver.set_role_preference(ref, role)

        if role is None:
            lead = "OK "
            tail = ", you no longer have a preferred game role."
        elif role == RolePreference.AUTHOR:
            lead = f"{random_emoji('writer')} OK "
            tail = ", you will now be seated to write captions where possible."
        else:
            lead = f"{random_emoji('artist')} OK "
            tail = ", you will now be seated to draw pictures where possible."
        await self.notifier.send_channel(channel, lead, bold(player.name), tail)
        return player

    async def set_preferred_player(
        self, channel: Channel, ref: PlayerRef, target: Optional[PlayerRef]
    ) -> Player:
        """Send ref's future turns and DMs to target's record, or stop doing so."""
        player = await self.resolver.set_preferred_player(ref, target)

        if player.preferred_player_id is None:
            await self.notifier.send_channel(
                channel, "OK ", bold(player.name), ", your turns and messages will come to you directly."
            )
            return player

        effective = await self.resolver.follow_redirects(player)
        await self.notifier.send_channel(
            channel, "OK ", bold(player.name), ", your turns and messages will now go to ", bold(effective.name), "."
        )
        return player

    # ── Status ────────────────────────────────────────────────────────────────

    async def _game_statuses(self, channel: Channel) -> List[MessageChunk]:
        games = await self.store.list_games(is_complete=False, channel=channel)
        if not games:
            return [f"{random_emoji('shrugger')} No games are in progress in this channel"]

        content: List[MessageChunk] = ["🕒 The following games are in progress:"]
        for game in games:
            idx = game.active_index()
            if idx is None:
                continue
            player = await self.store.get_player(game.turns[idx].player_id)
            content += [
                "\n• ",
                bold(game.name),
                ": Waiting on ",
                bold(player.name if player else "??"),
                f".  {idx} turns completed, {len(game.turns) - idx} remaining.",
            ]
        return content

    async def _available_statuses(self, channel: Channel) -> List[MessageChunk]:
        available = await self.store.get_interest(channel)
        if not available:
            return [f"\n\n{random_emoji('shrugger')} No people are available to play in this channel"]

        content: List[MessageChunk] = [
            f"\n\n{random_emoji('artist')} The following people are available to play in this channel: "
        ]
        for i, player in enumerate(available):
            if i:
                content.append(", ")
            content.append(bold(player.name))
        return content

    async def report_status(self, channel: Channel) -> None:
        content = await self._game_statuses(channel) + await self._available_statuses(channel)
        await self.notifier.send_channel(channel, *content)

    # ── Queries ───────────────────────────────────────────────────────────────

    async def get_game(self, game_name: str) -> Optional[Game]:
        return await self.store.get_game(game_name)

    async def list_games(
        self, channel: Optional[Channel] = None, limit: int = 50, sample: bool = False
    ) -> List[Game]:
        """Completed games for the gallery: newest first, or a random sample."""
        if not sample:
            return await self.store.list_games(is_complete=True, channel=channel, limit=limit)
        pool = await self.store.list_games(is_complete=True, channel=channel, limit=SAMPLE_POOL)
        return self.rng.sample(pool, min(limit, len(pool)))

    async def get_turn_players(self, game: Game) -> Dict[str, Player]:
        players: Dict[str, Player] = {}
        for turn in game.turns:
            if turn.player_id in players:
                continue
            player = await self.store.get_player(turn.player_id)
            if player is not None:
                players[player.id] = player
        return players
