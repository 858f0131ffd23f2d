"""
Title Composer: derive a gallery thumbnail for a finished game.

One of the game's drawings is picked at random, cropped to the title aspect
ratio and scaled down, then stored as "{game}/title-image.png" and attached to
the game. Runs in the background after completion; failures are logged only.
"""
import io
import logging
import random
from typing import Optional

from models.game import FrameImage, Game
from services.image_processor import ImageProcessor
from services.object_store import ObjectStore
from services.store import Store, update_game
from utils.files import read_file, remove, spool

logger = logging.getLogger(__name__)


class TitleComposer:
    def __init__(
        self,
        store: Store,
        object_store: ObjectStore,
        image_processor: ImageProcessor,
        retry_attempts: int = 3,
        rng: random.Random = random,
    ):
        self.store = store
        self.object_store = object_store
        self.image_processor = image_processor
        self.retry_attempts = retry_attempts
        self.rng = rng

    async def compose(self, game_name: str) -> Optional[FrameImage]:
        try:
            return await self._compose(game_name)
        except Exception:
            logger.warning("[%s] Could not compose title image", game_name, exc_info=True)
            return None

    async def _compose(self, game_name: str) -> Optional[FrameImage]:
        game = await self.store.get_game(game_name)
        if game is None:
            logger.warning("[%s] Game vanished before title composition", game_name)
            return None

        images = [turn.image for turn in game.turns if turn.image is not None]
        if not images:
            logger.info("[%s] No drawings; skipping title image", game_name)
            return None
        source = self.rng.choice(images)

        content = await self.object_store.fetch(source.file_name)
        src_path = await spool(content)

        title_path = None
        try:
            title = await self.image_processor.make_title_image(src_path)
            title_path = title.path
            title_bytes = await read_file(title.path)
            stored = await self.object_store.upload(f"{game_name}/title-image.png", io.BytesIO(title_bytes))
        finally:
            await remove(src_path, title_path)

        title_image = FrameImage(
            image_url=stored.file_url,
            file_name=stored.file_name,
            width=title.width,
            height=title.height,
        )

        def _attach(g: Game) -> None:
            g.title_image = title_image

        await update_game(self.store, game_name, _attach, self.retry_attempts)
        logger.info("[%s] Title image stored (%dx%d)", game_name, title.width, title.height)
        return title_image
