"""Background runner: eager and deferred modes."""

import asyncio
import logging

import pytest

from utils.background import BackgroundRunner


@pytest.mark.asyncio
async def test_eager_runs_inline():
    done = []

    async def work():
        done.append(1)

    runner = BackgroundRunner(eager=True)
    await runner.spawn(work(), "inline")

    assert done == [1]
    assert runner.pending == 0


@pytest.mark.asyncio
async def test_deferred_work_is_drained():
    gate = asyncio.Event()
    done = []

    async def work():
        await gate.wait()
        done.append(1)

    runner = BackgroundRunner()
    await runner.spawn(work(), "deferred")
    assert done == []
    assert runner.pending == 1

    gate.set()
    await runner.drain()

    assert done == [1]
    assert runner.pending == 0


@pytest.mark.asyncio
async def test_failures_are_logged_not_raised(caplog):
    async def boom():
        raise RuntimeError("image service down")

    runner = BackgroundRunner()
    with caplog.at_level(logging.WARNING, logger="utils.background"):
        await runner.spawn(boom(), "title:zoop")
        await runner.drain()
        await BackgroundRunner(eager=True).spawn(boom(), "avatar:p1")

    messages = [r.getMessage() for r in caplog.records]
    assert "Background task 'title:zoop' failed" in messages
    assert "Background task 'avatar:p1' failed" in messages
