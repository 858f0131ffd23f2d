import random
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")


def shuffled(items: Sequence[T], rng: random.Random = random) -> List[T]:
    """Return a shuffled copy; the input is left untouched."""
    out = list(items)
    rng.shuffle(out)
    return out


def find_random_index(
    items: Sequence[T],
    predicate: Callable[[T, int], bool],
    rng: random.Random = random,
) -> Optional[int]:
    """Index of a uniformly random element matching predicate(item, index), or None."""
    for idx in shuffled(range(len(items)), rng):
        if predicate(items[idx], idx):
            return idx
    return None
