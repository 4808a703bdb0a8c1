"""
Winner advancement: record a bout result and push the winner one level up.

Propagation is single-level. The parent's own winner is never touched, and
re-deciding a bout overwrites the parent slot without retracting decisions
already taken further up.
"""
import logging
from typing import Mapping, Optional, Tuple

from ringside.errors import InvalidWinnerError, NotFoundError
from ringside.models.bout import BYE, Bout, Bracket, Slot, slot_key

logger = logging.getLogger(__name__)


def find_bout(brackets: Mapping[str, Bracket], bout_id: str) -> Tuple[Bracket, Bout]:
    """Locate a bout across categories."""
    for bracket in brackets.values():
        if bout_id in bracket:
            return bracket, bracket.get(bout_id)
    raise NotFoundError(f"Bout {bout_id} not found")


def resolve_winner(bout: Bout, winner_id: str) -> Slot:
    """Map a winner id ("BYE" or a competitor id) to the bout's slot value."""
    if winner_id == BYE:
        return BYE
    for slot in (bout.red, bout.blue):
        if slot_key(slot) == winner_id and slot != BYE:
            return slot
    raise InvalidWinnerError(f"Competitor {winner_id} is not in bout {bout.id}")


def advance_winner(bracket: Bracket, bout_id: str, winner: Slot) -> Optional[Bout]:
    """
    Set the winner of a bout and place it into the parent's fed slot.

    Args:
        bracket: Category bracket, mutated in place
        bout_id: Bout being decided
        winner: One of the bout's current slots, or BYE

    Returns:
        The parent bout that received the winner, or None for the Final

    Raises:
        NotFoundError: Unknown bout id
        InvalidWinnerError: Winner is neither slot nor BYE
        MalformedBracketError: Parent does not list this bout as a feeder
    """
    bout = bracket.get(bout_id)
    if winner != BYE and not bout.holds(winner):
        raise InvalidWinnerError(f"Winner {slot_key(winner)} does not match either slot of bout {bout_id}")

    # Linkage is checked before any slot changes
    parent = bracket.parent_of(bout)
    side = bracket.side_of(parent, bout.id) if parent is not None else None

    bout.winner = winner
    if parent is None:
        logger.info("Bout %s (%s) decided: %s", bout_id, bout.round, slot_key(winner))
        return None

    parent.set_slot(side, winner)
    logger.info(
        "Bout %s (%s) decided: %s advances to %s slot of bout %s",
        bout_id,
        bout.round,
        slot_key(winner),
        side,
        parent.id,
    )
    return parent
