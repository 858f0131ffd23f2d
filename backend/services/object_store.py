"""
Binary object storage for frame images, title images and avatars.

LocalObjectStore keeps files under {data_dir}/objects and the app serves that
directory at settings.objects_url_path, so stored URLs resolve against the
public web root.
"""
import asyncio
import functools
import shutil
from pathlib import Path
from typing import BinaryIO, Protocol

from models.game import StoredObject


class ObjectStore(Protocol):
    async def upload(self, key: str, source: BinaryIO) -> StoredObject:
        ...

    async def fetch(self, file_name: str) -> bytes:
        ...

    async def delete(self, file_name: str) -> None:
        ...


class LocalObjectStore:
    def __init__(self, root: Path, url_base: str):
        self.root = root
        self.url_base = url_base.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Object key escapes the store root: {key}")
        return path

    def _write(self, key: str, source: BinaryIO) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as out:
            shutil.copyfileobj(source, out)

    async def upload(self, key: str, source: BinaryIO) -> StoredObject:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, key, source)
        return StoredObject(file_name=key, file_url=f"{self.url_base}/{key}")

    async def fetch(self, file_name: str) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._path(file_name).read_bytes)

    async def delete(self, file_name: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, functools.partial(self._path(file_name).unlink, missing_ok=True))
