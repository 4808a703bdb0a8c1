"""
Late-Entry Inserter
===================
Adds a competitor to a category after its bracket was generated, disturbing
as little of the existing draw as possible.

Strategy, in order:
  1. Bye fill: the earliest bout from round 1 through the semi-final that
     still has a BYE slot takes the newcomer. Any bye advance that slot had
     produced is walked back up the tree until the ancestors agree with the
     new state again.
  2. Qualifier splice: when no BYE is left, the last bout of the first round
     (or the deepest qualifier already hanging off its red side) gives up its
     red occupant to a new "Qualifier" bout against the newcomer. The
     qualifier's winner feeds the red slot that was vacated.

Qualifier numbers derive from the bout they feed: "A04" -> "A04A", then
"A04B", ... for later qualifiers under the same root.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, MutableMapping, Optional, Sequence

from ringside.errors import MalformedBracketError
from ringside.models.bout import BLUE, BYE, RED, Bout, Bracket, slot_key
from ringside.models.competitor import Competitor
from ringside.models.ring import Ring
from ringside.services.bracket_builder import new_bout_id, resolve_bye
from ringside.utils.rounds import FIRST_ROUND, QUALIFIER, is_early_round, round_rank

logger = logging.getLogger(__name__)

ACTION_ROSTER_ONLY = "roster_only"
ACTION_BYE_FILL = "bye_fill"
ACTION_QUALIFIER = "qualifier"
ACTION_TABLE_ENTRY = "table_entry"

SUFFIX_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
SUFFIX_FALLBACK = "AA"

# Root label = everything up to the last digit; the suffix is trailing letters
_BOUT_NUMBER_RE = re.compile(r"^(.*\d)([A-Za-z]*)$")
_NATURAL_SPLIT_RE = re.compile(r"(\d+)")


@dataclass
class InsertResult:
    action: str  # roster_only | bye_fill | qualifier | table_entry
    message: str
    bout_id: Optional[str] = None
    bout_number: Optional[str] = None


def qualifier_root(bout_number: str) -> str:
    """Strip a trailing alphabetic suffix: "A05B" -> "A05", "A05" -> "A05"."""
    match = _BOUT_NUMBER_RE.match(bout_number)
    if match:
        return match.group(1)
    return bout_number


def next_qualifier_suffix(root: str, bouts: Sequence[Bout]) -> str:
    """First single letter not yet used after root in this category, else "AA"."""
    used = set()
    for bout in bouts:
        number = bout.bout_number
        if number and number.startswith(root):
            suffix = number[len(root):]
            if suffix and suffix.isalpha():
                used.add(suffix)
    for letter in SUFFIX_LETTERS:
        if letter not in used:
            return letter
    return SUFFIX_FALLBACK


def _natural_key(value: str) -> List:
    return [int(part) if part.isdigit() else part for part in _NATURAL_SPLIT_RE.split(value)]


def _ordered(bracket: Bracket, bouts: List[Bout]) -> List[Bout]:
    return sorted(bouts, key=lambda b: (round_rank(b.round), bracket.path_signature(b)))


def retract_upward(bracket: Bracket, bout: Bout) -> int:
    """
    Push bout's current winner into its parent and keep walking while the
    ancestors change.

    Each ancestor's fed slot is overwritten with the child's winner (which
    may be None), and the ancestor's winner is re-derived from BYEs alone.
    The walk stops at the first ancestor left unchanged, so it unwinds
    cascaded bye advances of any depth.

    Returns:
        Number of ancestors modified
    """
    visited = {bout.id}
    child = bout
    changed = 0
    while True:
        parent = bracket.parent_of(child)
        if parent is None or parent.id in visited:
            break
        visited.add(parent.id)

        side = bracket.side_of(parent, child.id)
        if slot_key(parent.slot(side)) == slot_key(child.winner):
            break
        parent.set_slot(side, child.winner)
        changed += 1

        new_winner = resolve_bye(parent.red, parent.blue)
        if slot_key(parent.winner) == slot_key(new_winner):
            break
        parent.winner = new_winner
        child = parent
    return changed


def _ring_label(ring_id: Optional[str], rings: Sequence[Ring]) -> str:
    for ring in rings:
        if ring.id == ring_id:
            return ring.label
    return ring_id or ""


def _assign_number_if_missing(bout: Bout, bracket: Bracket, rings: Sequence[Ring]) -> None:
    if bout.bout_number:
        return
    existing = sorted(
        (b.bout_number for b in bracket if b.bout_number and b.round == bout.round),
        key=_natural_key,
    )
    root = qualifier_root(existing[-1]) if existing else f"{_ring_label(bout.ring_id, rings)}00"
    bout.bout_number = f"{root}{next_qualifier_suffix(root, list(bracket))}"


def _is_leaf(bout: Bout) -> bool:
    return bout.left_child_id is None and bout.right_child_id is None


def _find_bye_slot(bracket: Bracket) -> Optional[Bout]:
    # A two-slot bracket's only bout is its Final, which is also its first round
    candidates = [
        b
        for b in bracket
        if not b.is_table_mode
        and b.has_bye
        and b.round != QUALIFIER
        and (is_early_round(b.round) or _is_leaf(b))
    ]
    if not candidates:
        return None
    return _ordered(bracket, candidates)[0]


def _fill_bye(bracket: Bracket, bout: Bout, competitor: Competitor, rings: Sequence[Ring]) -> InsertResult:
    side = RED if bout.red == BYE else BLUE
    bout.set_slot(side, competitor)
    bout.winner = resolve_bye(bout.red, bout.blue)
    changed = retract_upward(bracket, bout)
    _assign_number_if_missing(bout, bracket, rings)

    logger.info(
        "Late entry %s filled %s slot of bout %s (%s); %d ancestors updated",
        competitor.id,
        side,
        bout.id,
        bout.round,
        changed,
    )
    return InsertResult(
        action=ACTION_BYE_FILL,
        message=f"Competitor inserted into existing slot (Bout {bout.bout_number}).",
        bout_id=bout.id,
        bout_number=bout.bout_number,
    )


def _splice_qualifier(bracket: Bracket, competitor: Competitor) -> InsertResult:
    tree_bouts = [b for b in bracket if not b.is_table_mode and b.round != QUALIFIER]
    if not tree_bouts:
        raise MalformedBracketError(f"Could not identify a first-round bout to expand in {bracket.category_key}")

    first_rank = min(round_rank(b.round) for b in tree_bouts)
    round_bouts = _ordered(bracket, [b for b in tree_bouts if round_rank(b.round) == first_rank])
    target = round_bouts[-1]

    # Follow earlier splices down the red side so none of them is orphaned
    visited = {target.id}
    while target.left_child_id:
        child = bracket.bouts.get(target.left_child_id)
        if child is None or child.id in visited:
            break
        visited.add(child.id)
        target = child

    displaced = target.red
    qualifier = Bout(
        id=new_bout_id(),
        red=displaced,
        blue=competitor,
        round=QUALIFIER,
        ring_id=target.ring_id,
        parent_id=target.id,
    )

    target.red = None
    target.left_child_id = qualifier.id
    bracket.add(qualifier)

    # A decided target no longer stands once its red occupant has to re-qualify
    target.winner = resolve_bye(target.red, target.blue)
    retract_upward(bracket, target)

    if target.bout_number:
        root = qualifier_root(target.bout_number)
        qualifier.bout_number = f"{root}{next_qualifier_suffix(root, list(bracket))}"
    else:
        logger.warning("Qualifier %s feeds unnumbered bout %s; left unnumbered", qualifier.id, target.id)

    logger.info(
        "Late entry %s: qualifier %s (%s) spliced under bout %s against %s",
        competitor.id,
        qualifier.id,
        qualifier.bout_number,
        target.id,
        slot_key(displaced),
    )
    return InsertResult(
        action=ACTION_QUALIFIER,
        message=f"Bracket expanded. Created qualifier {qualifier.bout_number} feeding into {target.bout_number}.",
        bout_id=qualifier.id,
        bout_number=qualifier.bout_number,
    )


def _add_table_entry(bracket: Bracket, competitor: Competitor) -> InsertResult:
    ring_id = next((b.ring_id for b in bracket if b.ring_id), None)
    entry = bracket.add(
        Bout(id=new_bout_id(), red=competitor, round=FIRST_ROUND, ring_id=ring_id, is_table_mode=True)
    )
    logger.info("Late entry %s added as table entry %s", competitor.id, entry.id)
    return InsertResult(action=ACTION_TABLE_ENTRY, message="Competitor added to the table.", bout_id=entry.id)


def insert_late_entry(
    brackets: MutableMapping[str, Bracket],
    competitor: Competitor,
    rings: Sequence[Ring] = (),
) -> InsertResult:
    """
    Add competitor to the bracket of its category.

    Args:
        brackets: category_key -> Bracket, mutated in place
        competitor: Newcomer; category_key selects the bracket
        rings: Ring configuration, used for fallback bout numbering

    Returns:
        InsertResult describing what changed. Re-run the scheduler afterwards.

    Raises:
        MalformedBracketError: If no first-round bout can be identified
    """
    bracket = brackets.get(competitor.category_key)
    if bracket is None or len(bracket) == 0:
        return InsertResult(action=ACTION_ROSTER_ONLY, message="Competitor added. No existing bracket to update.")

    if all(b.is_table_mode for b in bracket):
        return _add_table_entry(bracket, competitor)

    target = _find_bye_slot(bracket)
    if target is not None:
        return _fill_bye(bracket, target, competitor, rings)
    return _splice_qualifier(bracket, competitor)
