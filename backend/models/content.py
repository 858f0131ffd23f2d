"""
Rich chat content.

The engine never emits platform markup. Messages are lists of plain strings
and styled chunks; each bot adapter renders the styles its own way.
"""
from enum import Enum
from typing import List, Union

from pydantic import BaseModel


class Style(str, Enum):
    PLAIN = "plain"
    BOLD = "bold"
    CODE = "code"  # inline code / command block


class Chunk(BaseModel):
    text: str
    style: Style = Style.PLAIN


MessageChunk = Union[str, Chunk]
MessageContent = List[MessageChunk]


def bold(text: str) -> Chunk:
    return Chunk(text=text, style=Style.BOLD)


def code(text: str) -> Chunk:
    return Chunk(text=text, style=Style.CODE)


def to_plain(content: MessageContent) -> str:
    """Flatten content to unstyled text (logs, exception messages)."""
    return "".join(c if isinstance(c, str) else c.text for c in content)
