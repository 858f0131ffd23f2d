"""Shared fixtures: in-memory store, recording bots, fake image processing."""

import random

import pytest
from httpx import ASGITransport, AsyncClient

from config import Settings
from main import Engine, build_engine, create_app
from models.game import Channel, Platform
from services.memory_store import MemoryStore
from utils.background import BackgroundRunner
from tests.helpers import FakeBot, FakeImageProcessor


@pytest.fixture
def cfg(tmp_path) -> Settings:
    return Settings(
        storage_backend="memory",
        data_dir=str(tmp_path),
        base_web_path="http://epyc.test",
        reminder_interval_hours=0,
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def slack_bot() -> FakeBot:
    return FakeBot()


@pytest.fixture
def discord_bot() -> FakeBot:
    return FakeBot()


@pytest.fixture
def image_processor() -> FakeImageProcessor:
    return FakeImageProcessor()


@pytest.fixture
def engine(cfg, store, slack_bot, discord_bot, image_processor) -> Engine:
    return build_engine(
        cfg,
        store=store,
        bots={Platform.SLACK: slack_bot, Platform.DISCORD: discord_bot},
        image_processor=image_processor,
        background=BackgroundRunner(eager=True),
        rng=random.Random(1234),
    )


@pytest.fixture
def gm(engine):
    return engine.game_master


@pytest.fixture
def channel() -> Channel:
    return Channel(platform=Platform.SLACK, id="C1", name="general")


@pytest.fixture
async def client(engine, cfg):
    app = create_app(engine, cfg)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
