import asyncio
import logging
import random
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from agents.avatar_agent import AvatarAgent
from agents.command_agent import CommandHandler
from agents.escalator import InactivityEscalator
from agents.game_master import GameMaster
from agents.notifier import Notifier
from agents.player_resolver import PlayerResolver
from agents.title_composer import TitleComposer
from config import Settings, settings
from models.game import Platform
from services.bots import Bot, LoggingBot
from services.image_processor import ImageProcessor, PillowImageProcessor
from services.memory_store import MemoryStore
from services.object_store import LocalObjectStore
from services.store import Store
from utils.background import BackgroundRunner

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class Engine:
    """Everything the adapters talk to, wired once per process."""

    def __init__(
        self,
        store: Store,
        game_master: GameMaster,
        command_handler: CommandHandler,
        escalator: InactivityEscalator,
        background: BackgroundRunner,
    ):
        self.store = store
        self.game_master = game_master
        self.command_handler = command_handler
        self.escalator = escalator
        self.background = background


def _make_store(cfg: Settings) -> Store:
    if cfg.storage_backend == "memory":
        logger.warning("Using in-memory storage; nothing survives a restart")
        return MemoryStore()
    from services.firestore_service import FirestoreStore
    return FirestoreStore(cfg)


def build_engine(
    cfg: Settings = settings,
    store: Optional[Store] = None,
    bots: Optional[Dict[Platform, Bot]] = None,
    image_processor: Optional[ImageProcessor] = None,
    background: Optional[BackgroundRunner] = None,
    rng: random.Random = random,
) -> Engine:
    store = store if store is not None else _make_store(cfg)
    # Real Slack/Discord adapters register themselves here; the logging bot stands in
    bots = bots if bots is not None else {p: LoggingBot(p.value) for p in Platform}
    image_processor = image_processor or PillowImageProcessor(cfg.title_image_width, cfg.title_image_height)
    background = background or BackgroundRunner()
    object_store = LocalObjectStore(Path(cfg.data_dir) / "objects", cfg.objects_url_path)

    resolver = PlayerResolver(store, max_depth=cfg.redirect_depth)
    notifier = Notifier(bots, resolver)
    avatar_agent = AvatarAgent(store, notifier, object_store, refresh_days=cfg.avatar_refresh_days)
    title_composer = TitleComposer(
        store, object_store, image_processor, retry_attempts=cfg.store_retry_attempts, rng=rng
    )
    game_master = GameMaster(
        store,
        resolver,
        notifier,
        object_store,
        image_processor,
        avatar_agent,
        title_composer,
        background,
        cfg=cfg,
        rng=rng,
    )
    return Engine(
        store=store,
        game_master=game_master,
        command_handler=CommandHandler(game_master, notifier, cfg),
        escalator=InactivityEscalator(store, game_master, notifier, cfg),
        background=background,
    )


async def _sweep_loop(escalator: InactivityEscalator, interval_hours: float) -> None:
    while True:
        await asyncio.sleep(interval_hours * 3600)
        try:
            await escalator.sweep()
        except Exception:
            logger.exception("Reminder sweep failed")


def create_app(engine: Optional[Engine] = None, cfg: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🎨 Eat Poop You Cat backend starting up...")
        if getattr(app.state, "engine", None) is None:
            app.state.engine = build_engine(cfg)

        sweeper = None
        if cfg.reminder_interval_hours > 0:
            sweeper = asyncio.create_task(_sweep_loop(app.state.engine.escalator, cfg.reminder_interval_hours))
            logger.info("Reminder sweep every %s hours", cfg.reminder_interval_hours)

        yield

        if sweeper is not None:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
        await app.state.engine.background.drain()
        logger.info("Backend shutting down.")

    app = FastAPI(
        title="Eat Poop You Cat",
        version="0.1.0",
        description="Asynchronous telephone-with-pictures for Slack and Discord",
        lifespan=lifespan,
    )
    app.state.engine = engine

    origins = list(cfg.allowed_origins)
    if cfg.extra_origin:
        origins.append(cfg.extra_origin)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": "epyc", "version": "0.1.0"}

    from routers.command_router import router as command_router
    from routers.game_router import router as game_router

    app.include_router(game_router, prefix="/api")
    app.include_router(command_router, prefix="/api")

    # Frame images, title images and avatars written by LocalObjectStore
    objects_dir = Path(cfg.data_dir) / "objects"
    app.mount(
        cfg.objects_url_path,
        StaticFiles(directory=str(objects_dir), check_dir=False),
        name="objects",
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
