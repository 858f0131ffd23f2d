"""
Role Assignment: seat players so their preferred role lines up with turn parity.

Turn 0 is a caption, turn 1 a drawing, and so on, so a player who prefers to
write (author) wants an even turn index and one who prefers to draw (artist)
an odd one. Parity is measured on the game's absolute turn index: when only a
suffix of the game is being resequenced, pass the suffix's start as offset.

The pass is a heuristic, not an exact solver:
  - walk left to right
  - for each player sitting on the wrong parity, pick a uniformly random
    partner (earlier or later) whose swap satisfies both of them, and swap
  - if there is no such partner, leave the player where they are

A swap never unseats anyone who was already satisfied, so the number of
satisfied players only grows. Preferences can still go unmet, e.g. two
authors and no unconstrained players to trade with.
"""
import logging
import random
from typing import Callable, List, Optional, Sequence, TypeVar

from models.game import Player, RolePreference
from utils.random_utils import find_random_index

logger = logging.getLogger(__name__)

T = TypeVar("T")

RoleOf = Callable[[T], Optional[RolePreference]]


def _player_role(player: Player) -> Optional[RolePreference]:
    return player.preferred_game_role


def _conflicts(role: Optional[RolePreference], index: int) -> bool:
    return role is not None and index % 2 != role.parity


def unsatisfied(items: Sequence[T], offset: int = 0, role_of: RoleOf = _player_role) -> List[int]:
    """Local indices of items whose preference does not match their parity."""
    return [i for i, item in enumerate(items) if _conflicts(role_of(item), offset + i)]


def assign_roles(
    items: Sequence[T],
    offset: int = 0,
    role_of: RoleOf = _player_role,
    rng: random.Random = random,
) -> List[T]:
    """Return a reordered copy of items that honours role preferences where it can."""
    order = list(items)

    for i in range(len(order)):
        role = role_of(order[i])
        if not _conflicts(role, offset + i):
            continue

        def _fits(other: T, j: int) -> bool:
            # other moves to i, order[i] moves to j; both must end up happy
            return (
                j != i
                and (offset + j) % 2 == role.parity
                and not _conflicts(role_of(other), offset + i)
            )

        j = find_random_index(order, _fits, rng)
        if j is None:
            continue
        order[i], order[j] = order[j], order[i]

    leftover = unsatisfied(order, offset, role_of)
    if leftover:
        logger.debug("Role preferences left unmet at local positions %s (offset %d)", leftover, offset)
    return order
