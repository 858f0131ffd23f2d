"""App lifecycle tests."""

import asyncio

import pytest

from main import create_app


@pytest.mark.asyncio
async def test_shutdown_waits_for_the_sweep_task(engine, cfg):
    app = create_app(engine, cfg.model_copy(update={"reminder_interval_hours": 1}))

    before = asyncio.all_tasks()
    async with app.router.lifespan_context(app):
        started = asyncio.all_tasks() - before
        assert len(started) == 1

    (sweeper,) = started
    assert sweeper.cancelled()
