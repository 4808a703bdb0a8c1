"""
Seeding Distributor
===================
Places a category roster into bracket slots so that clubs are spread as far
apart as possible.

Algorithm:
  1. Group competitors by club, shuffle inside each club (order between
     members of the same club is the only randomness), sort clubs largest
     first.
  2. Recursively bisect the slot range. At each level the left half targets
     ceil(total / 2) competitors. Every club is split floor/ceil between the
     halves; a club with an odd count sends its extra member to whichever
     half is further from its target.
  3. A range of size 1 holds the single remaining competitor or a BYE.

Because each club is halved at every level, a club never has more than
ceil(size / 2) members in any range of the given size. If no club is larger
than half the bracket, no round-1 bout pairs two members of the same club.
"""

import logging
import math
import random
from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from ringside.config import settings
from ringside.errors import CapacityError
from ringside.models.bout import BYE
from ringside.models.competitor import Competitor

logger = logging.getLogger(__name__)

SeededSlot = Union[Competitor, str]


@dataclass
class _ClubPool:
    club: str
    members: List[Competitor]


def calculate_bracket_size(competitor_count: int) -> int:
    """Next power of two, minimum 2: 2^ceil(log2(max(n, 2)))."""
    return 2 ** math.ceil(math.log2(max(competitor_count, 2)))


def count_byes(bracket_size: int, competitor_count: int) -> int:
    return bracket_size - competitor_count


def check_capacity(competitor_count: int, max_bracket_size: Optional[int] = None) -> int:
    """
    Return the bracket size for competitor_count, enforcing the cap.

    max_bracket_size of 0 (or negative) disables the cap.
    """
    cap = settings.max_bracket_size if max_bracket_size is None else max_bracket_size
    size = calculate_bracket_size(competitor_count)
    if cap and cap > 0 and size > cap:
        raise CapacityError(
            f"{competitor_count} competitors need a bracket of {size}; "
            f"maximum supported bracket size is {cap}"
        )
    return size


def seed_competitors(
    competitors: Sequence[Competitor],
    rng: Optional[random.Random] = None,
    max_bracket_size: Optional[int] = None,
) -> List[SeededSlot]:
    """
    Return the slot sequence for a roster: competitors and BYEs, length a power of two.

    rng pins the within-club shuffle (tests); production leaves it unset so
    repeated generations differ.
    """
    if not competitors:
        return []

    bracket_size = check_capacity(len(competitors), max_bracket_size)
    shuffler = rng if rng is not None else random

    by_club: "OrderedDict[str, List[Competitor]]" = OrderedDict()
    for competitor in competitors:
        by_club.setdefault(competitor.club, []).append(competitor)

    pools = []
    for club, members in by_club.items():
        shuffled = list(members)
        shuffler.shuffle(shuffled)
        pools.append(_ClubPool(club=club, members=shuffled))

    # Largest clubs first; sorted() is stable so equal sizes keep roster order
    pools = sorted(pools, key=lambda p: len(p.members), reverse=True)

    slots = _distribute(pools, bracket_size)

    logger.debug(
        "Seeded %d competitors from %d clubs into %d slots (%d byes)",
        len(competitors),
        len(pools),
        bracket_size,
        count_byes(bracket_size, len(competitors)),
    )
    return slots


def _distribute(pools: List[_ClubPool], size: int) -> List[SeededSlot]:
    if size == 1:
        for pool in pools:
            if pool.members:
                return [pool.members[0]]
        return [BYE]

    total = sum(len(p.members) for p in pools)
    target_left = math.ceil(total / 2)
    target_right = total - target_left

    # Even split first; odd clubs carry one extra member to place
    left_counts = [len(p.members) // 2 for p in pools]
    assigned_left = sum(left_counts)
    assigned_right = assigned_left

    for index, pool in enumerate(pools):
        if len(pool.members) % 2 == 0:
            continue
        left_gap = target_left - assigned_left
        right_gap = target_right - assigned_right
        if left_gap >= right_gap:
            left_counts[index] += 1
            assigned_left += 1
        else:
            assigned_right += 1

    left_pools = []
    right_pools = []
    for pool, left_count in zip(pools, left_counts):
        left_pools.append(_ClubPool(club=pool.club, members=pool.members[:left_count]))
        right_pools.append(_ClubPool(club=pool.club, members=pool.members[left_count:]))

    half = size // 2
    return _distribute(left_pools, half) + _distribute(right_pools, half)
