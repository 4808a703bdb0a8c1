"""
Round labels and their ordering.

Labels are named by distance from the Final; early rounds are counted from
round 1 ("Round 1", "Round 2", ...). Rank is used to order bouts within a
category: earlier rounds sort first, qualifiers and unknown labels last.
"""

import re
from typing import Optional

FINAL = "Final"
SEMI_FINAL = "Semi Final"
QUARTER_FINAL = "Quarter Final"
QUALIFIER = "Qualifier"
ROUND_PREFIX = "Round"
FIRST_ROUND = f"{ROUND_PREFIX} 1"

RANK_QUARTER_FINAL = 100
RANK_SEMI_FINAL = 200
RANK_FINAL = 300
RANK_UNKNOWN = 999

_ROUND_NUMBER_RE = re.compile(r"round\s*(\d+)")


def round_name(round_number: int, total_rounds: int) -> str:
    """Label for 1-based round_number in a bracket of total_rounds rounds."""
    diff = total_rounds - round_number
    if diff == 0:
        return FINAL
    if diff == 1:
        return SEMI_FINAL
    if diff == 2:
        return QUARTER_FINAL
    return f"{ROUND_PREFIX} {round_number}"


def round_number_of(label: str) -> Optional[int]:
    """Numeric round for "Round n" labels, else None."""
    match = _ROUND_NUMBER_RE.fullmatch(label.strip().lower())
    if match:
        return int(match.group(1))
    return None


def round_rank(label: str) -> int:
    """Sort key for a round label. Lower = earlier."""
    r = label.strip().lower()
    if r == FINAL.lower():
        return RANK_FINAL
    if r == SEMI_FINAL.lower():
        return RANK_SEMI_FINAL
    if r == QUARTER_FINAL.lower():
        return RANK_QUARTER_FINAL
    number = round_number_of(r)
    if number is not None:
        return number
    return RANK_UNKNOWN


def is_early_round(label: str) -> bool:
    """Round 1 through Semi Final (excludes Final and Qualifier)."""
    return round_rank(label) <= RANK_SEMI_FINAL
