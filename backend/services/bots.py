"""
Chat platform bot contract.

Platform adapters (Slack, Discord) live outside this service; they implement
Bot and are registered per Platform when the app is assembled. TextBot is the
shared base for adapters that speak plain strings: it renders styled chunks
through to_bold()/to_code() and hands the result to the string senders.
"""
import logging
from typing import Optional, Protocol

from models.content import Chunk, MessageContent, Style
from models.game import BotAvatar, Channel, Player

logger = logging.getLogger(__name__)


class Bot(Protocol):
    async def send_channel_message(self, channel: Channel, content: MessageContent) -> None:
        ...

    async def send_direct_message(self, player: Player, content: MessageContent) -> None:
        ...

    async def get_avatar(self, player: Player) -> Optional[BotAvatar]:
        ...


class TextBot:
    def to_bold(self, text: str) -> str:
        return text

    def to_code(self, text: str) -> str:
        return text

    def render(self, content: MessageContent) -> str:
        parts = []
        for chunk in content:
            if isinstance(chunk, Chunk):
                if chunk.style == Style.BOLD:
                    parts.append(self.to_bold(chunk.text))
                elif chunk.style == Style.CODE:
                    parts.append(self.to_code(chunk.text))
                else:
                    parts.append(chunk.text)
            else:
                parts.append(chunk)
        return "".join(parts)

    async def send_channel_text(self, channel: Channel, text: str) -> None:
        raise NotImplementedError

    async def send_direct_text(self, player: Player, text: str) -> None:
        raise NotImplementedError

    async def send_channel_message(self, channel: Channel, content: MessageContent) -> None:
        await self.send_channel_text(channel, self.render(content))

    async def send_direct_message(self, player: Player, content: MessageContent) -> None:
        await self.send_direct_text(player, self.render(content))

    async def get_avatar(self, player: Player) -> Optional[BotAvatar]:
        return None


class LoggingBot(TextBot):
    """Stand-in adapter: renders markdown-ish text into the log."""

    def __init__(self, platform_label: str):
        self.platform_label = platform_label

    def to_bold(self, text: str) -> str:
        return f"**{text}**"

    def to_code(self, text: str) -> str:
        return f"`{text}`"

    async def send_channel_text(self, channel: Channel, text: str) -> None:
        logger.info("[%s #%s] %s", self.platform_label, channel.name or channel.id, text)

    async def send_direct_text(self, player: Player, text: str) -> None:
        logger.info("[%s @%s] %s", self.platform_label, player.name or player.platform_id, text)
