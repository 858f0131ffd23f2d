from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from enum import Enum
from datetime import datetime, timezone
import uuid


def _utcnow() -> datetime:
    """Timezone-aware UTC datetime (replaces deprecated datetime.utcnow)."""
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class Platform(str, Enum):
    SLACK = "slack"
    DISCORD = "discord"


class RolePreference(str, Enum):
    AUTHOR = "author"  # writes captions, even turn indices
    ARTIST = "artist"  # draws images, odd turn indices

    @property
    def parity(self) -> int:
        return 0 if self is RolePreference.AUTHOR else 1


class TurnKind(str, Enum):
    CAPTION = "caption"
    IMAGE = "image"


class Channel(BaseModel):
    """A chat channel. Identity is (platform, id); the name is display-only."""

    model_config = ConfigDict(frozen=True)

    platform: Platform
    id: str
    name: str = ""

    @property
    def key(self) -> str:
        return f"{self.platform.value}:{self.id}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Channel):
            return NotImplemented
        return (self.platform, self.id) == (other.platform, other.id)

    def __hash__(self) -> int:
        return hash((self.platform, self.id))


class PlayerRef(BaseModel):
    """An external identity as reported by a chat adapter."""

    platform: Platform
    id: str
    name: str = ""


class Avatar(BaseModel):
    image_url: str
    width: int
    height: int
    hash: str
    last_updated: datetime = Field(default_factory=_utcnow)


class Player(BaseModel):
    id: str = Field(default_factory=_new_id)
    platform: Platform
    platform_id: str
    name: str = ""
    avatar: Optional[Avatar] = None
    preferred_game_role: Optional[RolePreference] = None
    # Redirect: turns and DMs go to this player instead. A lookup, not ownership.
    preferred_player_id: Optional[str] = None

    @classmethod
    def from_ref(cls, ref: PlayerRef) -> "Player":
        return cls(platform=ref.platform, platform_id=ref.id, name=ref.name)

    def to_public(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "avatar": (
                {
                    "imageUrl": self.avatar.image_url,
                    "width": self.avatar.width,
                    "height": self.avatar.height,
                }
                if self.avatar
                else None
            ),
        }


class FrameImage(BaseModel):
    image_url: str
    file_name: str
    width: int
    height: int

    def to_public(self) -> Dict[str, Any]:
        return {"imageUrl": self.image_url, "width": self.width, "height": self.height}


class Turn(BaseModel):
    """One slot in a game's play order (a.k.a. frame)."""

    id: str = Field(default_factory=_new_id)
    player_id: str
    caption: Optional[str] = None
    image: Optional[FrameImage] = None
    warnings: int = 0

    @property
    def is_complete(self) -> bool:
        return self.caption is not None or self.image is not None

    @property
    def kind(self) -> Optional[TurnKind]:
        if self.caption is not None:
            return TurnKind.CAPTION
        if self.image is not None:
            return TurnKind.IMAGE
        return None


class Game(BaseModel):
    name: str
    channel: Channel
    is_complete: bool = False
    turns: List[Turn] = []
    title_image: Optional[FrameImage] = None
    version: int = 0  # optimistic concurrency token, bumped by the store on write
    created_at: datetime = Field(default_factory=_utcnow)

    def active_index(self) -> Optional[int]:
        """Index of the first pending turn, or None when every turn is filled."""
        for idx, turn in enumerate(self.turns):
            if not turn.is_complete:
                return idx
        return None

    def find_turn(self, turn_id: str) -> Optional[int]:
        for idx, turn in enumerate(self.turns):
            if turn.id == turn_id:
                return idx
        return None

    def find_player_turn(self, player_id: str) -> Optional[int]:
        for idx, turn in enumerate(self.turns):
            if turn.player_id == player_id:
                return idx
        return None

    def to_summary(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "titleImage": self.title_image.to_public() if self.title_image else None,
        }


class Interest(BaseModel):
    player_id: str
    channel: Channel


class ChannelLink(BaseModel):
    """Two channels treated as one audience for status and interest queries."""

    a: Channel
    b: Channel

    def other(self, channel: Channel) -> Optional[Channel]:
        if channel == self.a:
            return self.b
        if channel == self.b:
            return self.a
        return None


# ── Collaborator payloads ─────────────────────────────────────────────────────

class BotAvatar(BaseModel):
    url: str
    width: int
    height: int


class StoredObject(BaseModel):
    file_name: str
    file_url: str


class ImageSize(BaseModel):
    width: int
    height: int


class TitleImageData(BaseModel):
    path: str
    width: int
    height: int


class TurnInput(BaseModel):
    """What the current turn-holder has to respond to."""

    caption: Optional[str] = None
    image: Optional[FrameImage] = None

    def to_public(self) -> Dict[str, Any]:
        return {
            "title": self.caption,
            "image": self.image.to_public() if self.image else None,
        }


# ── HTTP request/response models ──────────────────────────────────────────────

class CaptionRequest(BaseModel):
    caption: str


class CommandRequest(BaseModel):
    channel: Channel
    player: PlayerRef
    text: str
    mentions: List[PlayerRef] = []
