"""
Carnival Splitter: divides an oversized category into small sub-groups.

Group sizes favour full groups over an even spread (10 -> 4, 4, 2, not
4, 3, 3). Club members are dealt round-robin across the groups, largest
clubs first, so team-mates land in different groups where capacity allows.
"""

from collections import OrderedDict
from typing import List, Sequence

from ringside.config import settings
from ringside.models.competitor import Competitor

GROUP_SUFFIXES = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def compute_group_sizes(total: int, max_group_size: int) -> List[int]:
    """
    Sizes of the sub-groups for total competitors.

    Examples (max 4):
    - 4 -> [4]
    - 6 -> [4, 2]
    - 10 -> [4, 4, 2]
    - 12 -> [4, 4, 4]
    """
    if max_group_size < 1:
        raise ValueError(f"max_group_size must be >= 1, got {max_group_size}")
    if total <= max_group_size:
        return [total]
    sizes = [max_group_size] * (total // max_group_size)
    if total % max_group_size:
        sizes.append(total % max_group_size)
    return sizes


def group_key(base_key: str, index: int, group_count: int) -> str:
    """Category key of sub-group index: "KEY_A", "KEY_B", ... (base key when unsplit)."""
    if group_count <= 1:
        return base_key
    return f"{base_key}_{GROUP_SUFFIXES[index]}"


def is_group_key(base_key: str, key: str) -> bool:
    """True when key is one of base_key's carnival groups ("U12_A" for "U12", not "U12_GIRLS")."""
    prefix = f"{base_key}_"
    if not key.startswith(prefix):
        return False
    suffix = key[len(prefix):]
    return len(suffix) == 1 and suffix in GROUP_SUFFIXES


def split_competitors(competitors: Sequence[Competitor], max_group_size: int = 0) -> List[List[Competitor]]:
    """
    Partition competitors into the fewest groups of at most max_group_size.

    Args:
        competitors: Category roster
        max_group_size: Upper bound per group; 0 uses the configured default (4)

    Returns:
        List of groups. A roster that already fits is returned as a single group.
    """
    size_limit = max_group_size or settings.carnival_max_group_size
    sizes = compute_group_sizes(len(competitors), size_limit)
    if len(sizes) == 1:
        return [list(competitors)]
    if len(sizes) > len(GROUP_SUFFIXES):
        raise ValueError(f"Cannot split {len(competitors)} competitors into more than {len(GROUP_SUFFIXES)} groups")

    by_club: "OrderedDict[str, List[Competitor]]" = OrderedDict()
    for competitor in competitors:
        by_club.setdefault(competitor.club, []).append(competitor)
    clubs = sorted(by_club.values(), key=len, reverse=True)

    groups: List[List[Competitor]] = [[] for _ in sizes]
    cursor = 0
    for members in clubs:
        for competitor in members:
            for attempt in range(len(groups)):
                index = (cursor + attempt) % len(groups)
                if len(groups[index]) < sizes[index]:
                    groups[index].append(competitor)
                    cursor = (index + 1) % len(groups)
                    break

    return groups
