"""
Temp-file helpers for image work. The blocking file calls run on the default
executor, like the Firestore and object-store wrappers.
"""
import asyncio
import os
import tempfile
from pathlib import Path
from typing import Optional


def _write_temp(data: bytes, suffix: str) -> str:
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp.write(data)
        return tmp.name


def _remove(paths) -> None:
    for path in paths:
        if path and os.path.exists(path):
            os.unlink(path)


async def spool(data: bytes, suffix: str = ".png") -> str:
    """Write data to a fresh temp file and return its path; the caller removes it."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _write_temp, data, suffix)


async def read_file(path: str) -> bytes:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, Path(path).read_bytes)


async def remove(*paths: Optional[str]) -> None:
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, _remove, paths)
