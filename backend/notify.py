"""
One-shot reminder sweep, for running from cron instead of the in-app loop.

    python notify.py
"""
import asyncio
import logging

from config import settings
from main import build_engine

logger = logging.getLogger(__name__)


async def run_sweep() -> None:
    engine = build_engine(settings)
    results = await engine.escalator.sweep()
    # Title images and avatar refreshes queued by drops finish before exit
    await engine.background.drain()
    logger.info("Sweep finished: %d games escalated", len(results))


if __name__ == "__main__":
    asyncio.run(run_sweep())
