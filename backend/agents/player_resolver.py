"""
Player Resolver: map platform identities to durable Player records.

A player seen for the first time is created on the spot. A player may point
preferred_player_id at another record (e.g. their account on the other chat
platform); turns and DMs then go to that record instead. Redirects are
followed as a chain, stopping at a missing target, a cycle, or after
max_depth hops.
"""
import logging
from typing import List, Optional

from models.game import Player, PlayerRef, RolePreference
from services.store import Store

logger = logging.getLogger(__name__)


class PlayerResolver:
    def __init__(self, store: Store, max_depth: int = 8):
        self.store = store
        self.max_depth = max_depth

    async def follow_redirects(self, player: Player) -> Player:
        """The effective player for turns and DMs."""
        current = player
        seen = {player.id}
        for _ in range(self.max_depth):
            target_id = current.preferred_player_id
            if not target_id:
                return current
            if target_id in seen:
                logger.warning("Redirect cycle through player %s; stopping at %s", target_id, current.id)
                return current
            target = await self.store.get_player(target_id)
            if target is None:
                logger.warning("Player %s redirects to missing player %s", current.id, target_id)
                return current
            seen.add(target_id)
            current = target
        logger.warning("Redirect chain from player %s exceeds %d hops", player.id, self.max_depth)
        return current

    async def resolve(self, ref: PlayerRef) -> Player:
        """Look up (creating on first contact) and follow redirects."""
        player = await self.store.get_player_from_platform(ref.platform, ref.id)
        if player is None:
            player = Player.from_ref(ref)
            await self.store.put_player(player)
            logger.info("Created player %s for %s:%s (%s)", player.id, ref.platform.value, ref.id, ref.name)
            return player
        if ref.name and ref.name != player.name:
            player.name = ref.name
            await self.store.put_player(player)
        return await self.follow_redirects(player)

    async def resolve_many(self, refs: List[PlayerRef]) -> List[Player]:
        players = []
        for ref in refs:
            players.append(await self.resolve(ref))
        return players

    async def lookup(self, ref: PlayerRef) -> Optional[Player]:
        """Like resolve() but never creates a record."""
        player = await self.store.get_player_from_platform(ref.platform, ref.id)
        if player is None:
            return None
        return await self.follow_redirects(player)

    async def set_role_preference(self, ref: PlayerRef, role: Optional[RolePreference]) -> Player:
        player = await self.resolve(ref)
        player.preferred_game_role = role
        await self.store.put_player(player)
        return player

    async def set_preferred_player(self, ref: PlayerRef, target: Optional[PlayerRef]) -> Player:
        """Redirect ref's turns and DMs to target (None clears the redirect)."""
        # The source record itself, not where it currently redirects to
        player = await self.store.get_player_from_platform(ref.platform, ref.id)
        if player is None:
            player = Player.from_ref(ref)
            await self.store.put_player(player)

        target_player = None
        if target is not None and (target.platform, target.id) != (ref.platform, ref.id):
            target_player = await self.resolve(target)
        if target_player is not None and target_player.id == player.id:
            logger.info("Redirect from %s would point back at itself; clearing it", player.id)
            target_player = None
        player.preferred_player_id = target_player.id if target_player else None
        await self.store.put_player(player)
        return player
