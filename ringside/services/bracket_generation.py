"""
Category generation: roster -> one or more brackets, by bout mode.

  tree_pro        one seeded elimination tree
  tree_carnival   split into small groups, one tree per group (KEY_A, KEY_B, ...)
  table_pro       one scored table entry per competitor, no tree
  table_carnival  split into small groups, one table per group
"""

import logging
import random
from typing import Dict, List, Optional, Sequence

from ringside.models.bout import Bout, Bracket
from ringside.models.competitor import Competitor
from ringside.models.ring import (
    BOUT_MODE_TABLE_CARNIVAL,
    BOUT_MODE_TABLE_PRO,
    BOUT_MODE_TREE_CARNIVAL,
    BOUT_MODE_TREE_PRO,
    BOUT_MODES,
)
from ringside.services.bracket_builder import build_bracket, new_bout_id
from ringside.services.carnival_split import group_key, split_competitors
from ringside.services.seeding import seed_competitors
from ringside.utils.rounds import FIRST_ROUND

logger = logging.getLogger(__name__)


def _tree(
    competitors: Sequence[Competitor],
    category_key: str,
    ring_id: Optional[str],
    rng: Optional[random.Random],
    max_bracket_size: Optional[int],
) -> Optional[Bracket]:
    slots = seed_competitors(competitors, rng=rng, max_bracket_size=max_bracket_size)
    if not slots:
        return None
    return build_bracket(slots, category_key, ring_id)


def _table(competitors: Sequence[Competitor], category_key: str, ring_id: Optional[str]) -> Bracket:
    bracket = Bracket(category_key)
    for competitor in competitors:
        bracket.add(Bout(id=new_bout_id(), red=competitor, round=FIRST_ROUND, ring_id=ring_id, is_table_mode=True))
    return bracket


def generate_category(
    competitors: Sequence[Competitor],
    category_key: str,
    ring_id: Optional[str] = None,
    bout_mode: str = BOUT_MODE_TREE_PRO,
    max_group_size: int = 0,
    rng: Optional[random.Random] = None,
    max_bracket_size: Optional[int] = None,
) -> Dict[str, Bracket]:
    """
    Generate the bracket(s) for one category.

    Returns:
        category key -> Bracket. Carnival modes return one entry per group,
        keyed KEY_A, KEY_B, ... when the roster was split. An empty roster
        returns an empty dict.

    Raises:
        ValueError: Unknown bout mode
        CapacityError: Roster needs a bracket larger than the configured cap
    """
    if bout_mode not in BOUT_MODES:
        raise ValueError(f"Unknown bout mode: {bout_mode}")

    result: Dict[str, Bracket] = {}

    if bout_mode == BOUT_MODE_TREE_PRO:
        bracket = _tree(competitors, category_key, ring_id, rng, max_bracket_size)
        if bracket is not None:
            result[category_key] = bracket

    elif bout_mode == BOUT_MODE_TABLE_PRO:
        if competitors:
            result[category_key] = _table(competitors, category_key, ring_id)

    else:
        groups: List[List[Competitor]] = split_competitors(competitors, max_group_size)
        for index, group in enumerate(groups):
            if not group:
                continue
            key = group_key(category_key, index, len(groups))
            if bout_mode == BOUT_MODE_TREE_CARNIVAL:
                bracket = _tree(group, key, ring_id, rng, max_bracket_size)
                if bracket is not None:
                    result[key] = bracket
            elif bout_mode == BOUT_MODE_TABLE_CARNIVAL:
                result[key] = _table(group, key, ring_id)

    logger.info(
        "Generated %s for %s: %d competitors -> %d bracket(s)",
        bout_mode,
        category_key,
        len(competitors),
        len(result),
    )
    return result
