"""
Notification Dispatcher: channel announcements and DMs through platform bots.

Message delivery is a side effect: a send that fails is logged here and never
fails the game operation that triggered it. DMs follow identity redirects so
a player who linked accounts is reached where they asked to be.
"""
import logging
from typing import Dict, Optional

from agents.player_resolver import PlayerResolver
from models.content import MessageChunk, to_plain
from models.game import BotAvatar, Channel, Platform, Player
from services.bots import Bot

logger = logging.getLogger(__name__)


class Notifier:
    def __init__(self, bots: Dict[Platform, Bot], resolver: PlayerResolver):
        self.bots = bots
        self.resolver = resolver

    def bot_for(self, platform: Platform) -> Bot:
        bot = self.bots.get(platform)
        if bot is None:
            raise LookupError(f"No bot registered for platform '{platform.value}'")
        return bot

    async def send_channel(self, channel: Channel, *content: MessageChunk) -> bool:
        try:
            await self.bot_for(channel.platform).send_channel_message(channel, list(content))
            return True
        except Exception:
            logger.warning(
                "Could not send to channel %s: %s", channel.key, to_plain(list(content)), exc_info=True
            )
            return False

    async def send_dm(self, player: Player, *content: MessageChunk) -> bool:
        try:
            target = await self.resolver.follow_redirects(player)
            await self.bot_for(target.platform).send_direct_message(target, list(content))
            return True
        except Exception:
            logger.warning("Could not DM player %s: %s", player.id, to_plain(list(content)), exc_info=True)
            return False

    async def get_avatar(self, player: Player) -> Optional[BotAvatar]:
        return await self.bot_for(player.platform).get_avatar(player)
