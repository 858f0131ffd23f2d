import random
from typing import Dict, List

_EMOJIS: Dict[str, List[str]] = {
    "artist": ["🧑🏻‍🎨", "🧑🏼‍🎨", "🧑🏽‍🎨", "🧑🏾‍🎨", "🧑🏿‍🎨", "👨🏽‍🎨", "👩🏾‍🎨"],
    "writer": ["💁🏻", "💁🏼", "💁🏽", "💁🏾", "💁🏿", "💁🏽‍♂️", "💁🏾‍♀️"],
    "shrugger": ["🤷🏻", "🤷🏼", "🤷🏽", "🤷🏾", "🤷🏿", "🤷🏽‍♂️", "🤷🏾‍♀️"],
}


def random_emoji(kind: str) -> str:
    return random.choice(_EMOJIS[kind])
