"""
Pillow-backed image processing.

decode() validates an uploaded frame and reports its size.
make_title_image() centre-crops to the title aspect ratio and scales the
result to fit the title box, writing a PNG to a fresh temp file.
"""
import asyncio
import tempfile
from typing import Protocol

from models.game import ImageSize, TitleImageData


class ImageProcessor(Protocol):
    async def decode(self, path: str) -> ImageSize:
        ...

    async def make_title_image(self, path: str) -> TitleImageData:
        ...


class PillowImageProcessor:
    def __init__(self, title_width: int = 400, title_height: int = 200):
        self.title_width = title_width
        self.title_height = title_height

    @property
    def title_ratio(self) -> float:
        return self.title_width / self.title_height

    def _decode(self, path: str) -> ImageSize:
        from PIL import Image

        with Image.open(path) as image:
            image.verify()  # raises on truncated / non-image data
        with Image.open(path) as image:
            return ImageSize(width=image.width, height=image.height)

    def _make_title_image(self, path: str) -> TitleImageData:
        from PIL import Image, ImageOps

        with Image.open(path) as image:
            width, height = image.size
            if width / height > self.title_ratio:
                crop_width = round(height * self.title_ratio)
                left = (width - crop_width) // 2
                box = (left, 0, left + crop_width, height)
            else:
                crop_height = round(width / self.title_ratio)
                top = (height - crop_height) // 2
                box = (0, top, width, top + crop_height)

            title = ImageOps.contain(
                image.crop(box), (self.title_width, self.title_height), Image.LANCZOS
            )

            with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as out:
                title.save(out, format="PNG")
                out_path = out.name

        return TitleImageData(path=out_path, width=title.width, height=title.height)

    async def decode(self, path: str) -> ImageSize:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._decode, path)

    async def make_title_image(self, path: str) -> TitleImageData:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._make_title_image, path)
