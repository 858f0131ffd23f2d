"""
Avatar Cache: keep each player's displayed avatar reasonably fresh.

Called fire-and-forget after a player submits a turn. At most one platform
fetch per refresh window; the downloaded bytes are md5-hashed and only a new
hash is uploaded to the object store. An unchanged avatar still bumps
last_updated so the window restarts. Every failure is swallowed: a stale
avatar never matters to gameplay.
"""
import hashlib
import io
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

import httpx

from agents.notifier import Notifier
from models.game import Avatar, _utcnow
from services.object_store import ObjectStore
from services.store import Store

logger = logging.getLogger(__name__)


class AvatarAgent:
    def __init__(
        self,
        store: Store,
        notifier: Notifier,
        object_store: ObjectStore,
        refresh_days: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.notifier = notifier
        self.object_store = object_store
        self.window = timedelta(days=refresh_days)
        self.transport = transport
        self.clock = clock

    async def _download(self, url: str) -> bytes:
        async with httpx.AsyncClient(timeout=30, follow_redirects=True, transport=self.transport) as client:
            resp = await client.get(url)
            resp.raise_for_status()
        return resp.content

    async def refresh(self, player_id: str) -> bool:
        """Returns True when a new avatar was stored."""
        try:
            return await self._refresh(player_id)
        except Exception:
            logger.warning("Avatar refresh failed for player %s", player_id, exc_info=True)
            return False

    async def _refresh(self, player_id: str) -> bool:
        player = await self.store.get_player(player_id)
        if player is None:
            return False

        now = self.clock()
        if player.avatar and now - player.avatar.last_updated < self.window:
            return False

        bot_avatar = await self.notifier.get_avatar(player)
        if bot_avatar is None:
            return False

        content = await self._download(bot_avatar.url)
        if not content:
            return False
        digest = hashlib.md5(content).hexdigest()

        if player.avatar and player.avatar.hash == digest:
            player.avatar = player.avatar.model_copy(update={"last_updated": now})
            await self.store.put_player(player)
            return False

        stored = await self.object_store.upload(f"avatars/{player.id}/{digest}.png", io.BytesIO(content))
        player.avatar = Avatar(
            image_url=stored.file_url,
            width=bot_avatar.width,
            height=bot_avatar.height,
            hash=digest,
            last_updated=now,
        )
        await self.store.put_player(player)
        logger.info("Stored new avatar for player %s (%s)", player.id, digest)
        return True
