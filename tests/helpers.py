"""Test doubles for the chat platforms and image processing."""

import tempfile
from typing import Dict, List, Optional, Tuple

from models.content import MessageContent, to_plain
from models.game import BotAvatar, Channel, ImageSize, Platform, Player, PlayerRef, TitleImageData


class FakeBot:
    """Records everything it is asked to send."""

    def __init__(self):
        self.channel_messages: List[Tuple[Channel, str]] = []
        self.direct_messages: List[Tuple[str, str]] = []  # (player id, text)
        self.avatars: Dict[str, BotAvatar] = {}
        self.fail_dms = False

    async def send_channel_message(self, channel: Channel, content: MessageContent) -> None:
        self.channel_messages.append((channel, to_plain(content)))

    async def send_direct_message(self, player: Player, content: MessageContent) -> None:
        if self.fail_dms:
            raise ConnectionError("platform is down")
        self.direct_messages.append((player.id, to_plain(content)))

    async def get_avatar(self, player: Player) -> Optional[BotAvatar]:
        return self.avatars.get(player.platform_id)

    def dms_to(self, player_id: str) -> List[str]:
        return [text for pid, text in self.direct_messages if pid == player_id]

    @property
    def channel_texts(self) -> List[str]:
        return [text for _, text in self.channel_messages]


class FakeImageProcessor:
    def __init__(self, width: int = 640, height: int = 480):
        self.size = ImageSize(width=width, height=height)
        self.title_sources: List[bytes] = []
        self.fail_title = False

    async def decode(self, path: str) -> ImageSize:
        return self.size

    async def make_title_image(self, path: str) -> TitleImageData:
        if self.fail_title:
            raise OSError("cannot identify image file")
        with open(path, "rb") as fh:
            self.title_sources.append(fh.read())
        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as out:
            out.write(b"title:" + self.title_sources[-1])
        return TitleImageData(path=out.name, width=400, height=200)


async def byte_chunks(data: bytes, size: int = 4):
    for i in range(0, len(data), size):
        yield data[i:i + size]


def make_refs(count: int, platform: Platform = Platform.SLACK, prefix: str = "U") -> List[PlayerRef]:
    return [PlayerRef(platform=platform, id=f"{prefix}{i}", name=f"player{i}") for i in range(count)]


