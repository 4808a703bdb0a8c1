"""
Bracket Builder: seeded slots -> single-elimination tree.

Slots are paired round by round. A bout with exactly one BYE resolves to the
other side at build time; BYE vs BYE resolves to BYE. Resolved winners (or
None for bouts that must be fought) become the next round's slots, so bye
advances cascade as far as they can without a judge.

Each bout points at its next-round consumer (parent_id). The consumer records
the feeder from an even position as its left (red) child and the feeder from
an odd position as its right (blue) child. No display numbers are assigned
here; see bout_scheduler.
"""

import logging
import math
import uuid
from typing import List, Optional, Sequence

from ringside.errors import MalformedBracketError
from ringside.models.bout import BYE, Bout, Bracket, Slot, is_competitor
from ringside.utils.rounds import round_name

logger = logging.getLogger(__name__)


def new_bout_id() -> str:
    return uuid.uuid4().hex


def resolve_bye(red: Slot, blue: Slot) -> Slot:
    """Winner implied by BYEs alone, or None when the bout has to be fought."""
    if red == BYE and blue == BYE:
        return BYE
    if red == BYE and is_competitor(blue):
        return blue
    if blue == BYE and is_competitor(red):
        return red
    return None


def _is_power_of_two(n: int) -> bool:
    return n >= 2 and (n & (n - 1)) == 0


def build_bracket(slots: Sequence[Slot], category_key: str, ring_id: Optional[str] = None) -> Bracket:
    """
    Build the full elimination tree for one category.

    Args:
        slots: Seeded slot sequence (Competitor | BYE), length a power of two >= 2
        category_key: Category the bracket belongs to
        ring_id: Ring the bouts are initially assigned to (the scheduler may reassign)

    Returns:
        Bracket with bracket_size - 1 bouts

    Raises:
        MalformedBracketError: If the slot count is not a power of two >= 2
    """
    if not _is_power_of_two(len(slots)):
        raise MalformedBracketError(
            f"Slot sequence for {category_key} must have a power-of-two length >= 2, got {len(slots)}"
        )

    bracket = Bracket(category_key)
    total_rounds = int(math.log2(len(slots)))
    current: List[Slot] = list(slots)
    rounds: List[List[Bout]] = []

    for round_number in range(1, total_rounds + 1):
        label = round_name(round_number, total_rounds)
        next_slots: List[Slot] = []
        round_bouts: List[Bout] = []
        for i in range(0, len(current), 2):
            red, blue = current[i], current[i + 1]
            bout = Bout(
                id=new_bout_id(),
                red=red,
                blue=blue,
                round=label,
                ring_id=ring_id,
                winner=resolve_bye(red, blue),
            )
            bracket.add(bout)
            round_bouts.append(bout)
            next_slots.append(bout.winner)
        rounds.append(round_bouts)
        current = next_slots

    # Link each round to its consumer
    for r in range(len(rounds) - 1):
        for i, bout in enumerate(rounds[r]):
            parent = rounds[r + 1][i // 2]
            bout.parent_id = parent.id
            if i % 2 == 0:
                parent.left_child_id = bout.id
            else:
                parent.right_child_id = bout.id

    auto_resolved = sum(1 for b in bracket if b.winner is not None)
    logger.info(
        "Built bracket for %s: %d slots, %d rounds, %d bouts (%d auto-resolved)",
        category_key,
        len(slots),
        total_rounds,
        len(bracket),
        auto_resolved,
    )
    return bracket
