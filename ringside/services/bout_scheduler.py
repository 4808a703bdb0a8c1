"""
Bout Scheduler
==============
Stamps ring-scoped display numbers ("A01", "A02", ...) on every bout across
all categories assigned to each ring.

Algorithm:
  1. Every category's bouts are ordered by round rank (earliest first), then
     by tree path signature so bouts of a round follow the bracket's
     left-to-right order.
  2. All non-qualifier numbers are cleared. Numbering is positional and is
     always recomputed from scratch after any topology or ring change.
  3. Per ring, priority groups run in ascending order. Inside a group the
     categories take turns: each emits every bout of its current round, then
     the next category does the same, so same-tier categories progress in
     lockstep.
  4. The counter starts at 1 per ring and advances only for bouts that get a
     number. BYE bouts are passed over; qualifier bouts keep the number minted
     when they were spliced in and do not consume the counter.

Running it twice on an unchanged graph yields identical numbers.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from ringside.config import settings
from ringside.models.bout import Bout, Bracket, is_competitor
from ringside.models.ring import Ring
from ringside.services.carnival_split import is_group_key
from ringside.utils.rounds import FIRST_ROUND, QUALIFIER, round_rank

logger = logging.getLogger(__name__)


def ordered_bouts(bracket: Bracket) -> List[Bout]:
    """Bouts of one category in playing order: round rank, then path signature."""
    return sorted(bracket, key=lambda b: (round_rank(b.round), bracket.path_signature(b)))


def format_bout_number(ring_label: str, counter: int) -> str:
    return f"{ring_label}{counter:02d}"


def _expand_category_keys(keys: Sequence[str], brackets: Mapping[str, Bracket]) -> List[str]:
    """
    Resolve configured keys to bracket keys, keeping the configured order.

    A key without its own bracket stands for its carnival split groups
    (KEY_A, KEY_B, ...), which are taken in suffix order.
    """
    expanded: List[str] = []
    for key in keys:
        if key in brackets:
            candidates = [key]
        else:
            candidates = sorted(k for k in brackets if is_group_key(key, k))
        for candidate in candidates:
            if candidate not in expanded:
                expanded.append(candidate)
    return expanded


def _should_number(bout: Bout, number_pending: bool) -> bool:
    if bout.is_table_mode:
        return bout.round == FIRST_ROUND and is_competitor(bout.red)
    if bout.has_bye:
        return False
    if not number_pending:
        return bout.is_ready
    return True


def _number_ring(
    ring: Ring,
    playing_order: Mapping[str, List[Bout]],
    brackets: Mapping[str, Bracket],
    counter: int,
    number_pending: bool,
) -> int:
    """Number one ring's bouts starting at counter. Returns the next unused counter value."""
    label = ring.label

    for priority in ring.ordered_priorities():
        category_keys = _expand_category_keys(ring.priority_groups[priority], brackets)
        if not category_keys:
            logger.warning("Ring %s priority %s has no generated brackets", ring.id, priority)
            continue

        cursors: Dict[str, int] = {key: 0 for key in category_keys}
        any_left = True
        while any_left:
            any_left = False
            for key in category_keys:
                bouts = playing_order[key]
                index = cursors[key]
                if index >= len(bouts):
                    continue

                current_round = bouts[index].round
                while index < len(bouts) and bouts[index].round == current_round:
                    bout = bouts[index]
                    bout.ring_id = ring.id
                    index += 1
                    if bout.round == QUALIFIER and not bout.is_table_mode:
                        continue
                    if _should_number(bout, number_pending):
                        bout.bout_number = format_bout_number(label, counter)
                        counter += 1

                cursors[key] = index
                if index < len(bouts):
                    any_left = True

    return counter


def assign_bout_numbers(
    rings: Sequence[Ring],
    brackets: Mapping[str, Bracket],
    number_pending_bouts: Optional[bool] = None,
) -> Dict[str, int]:
    """
    Recompute display numbers for every bracket.

    Args:
        rings: Ring configuration (priority groups of category keys)
        brackets: category_key -> Bracket, mutated in place
        number_pending_bouts: Number bouts still waiting on a feeder. Defaults to settings.

    Returns:
        ring_id -> count of numbered bouts
    """
    number_pending = settings.number_pending_bouts if number_pending_bouts is None else number_pending_bouts

    playing_order: Dict[str, List[Bout]] = {}
    for key, bracket in brackets.items():
        playing_order[key] = ordered_bouts(bracket)
        for bout in bracket:
            if bout.round != QUALIFIER or bout.is_table_mode:
                bout.bout_number = None

    numbered: Dict[str, int] = {}
    for ring in rings:
        next_counter = _number_ring(ring, playing_order, brackets, 1, number_pending)
        numbered[ring.id] = next_counter - 1

    logger.info(
        "Assigned bout numbers across %d rings and %d categories: %s",
        len(rings),
        len(brackets),
        numbered,
    )
    return numbered
