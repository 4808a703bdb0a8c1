"""
Ring scheduling and late entries.

Both operations load every stored bracket of the tournament, because bout
numbers are shared across all categories of a ring, and store everything
back in one commit.
"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from ringside.database import get_session
from ringside.errors import MalformedBracketError
from ringside.models.ring import BOUT_MODE_TREE_PRO, Ring
from ringside.routes.brackets import CompetitorIn
from ringside.services.bout_scheduler import assign_bout_numbers
from ringside.services.bracket_store import load_brackets, save_brackets
from ringside.services.late_entry import ACTION_ROSTER_ONLY, insert_late_entry

router = APIRouter()


class RingIn(BaseModel):
    id: str
    name: str
    priority_groups: Dict[int, List[str]] = {}
    order_index: Optional[int] = None
    bout_mode: str = BOUT_MODE_TREE_PRO

    def to_ring(self) -> Ring:
        return Ring(
            id=self.id,
            name=self.name,
            priority_groups={p: list(keys) for p, keys in self.priority_groups.items()},
            order_index=self.order_index,
            bout_mode=self.bout_mode,
        )


class ScheduleRequest(BaseModel):
    rings: List[RingIn]


class ScheduleResponse(BaseModel):
    numbered_by_ring: Dict[str, int]
    bout_numbers: Dict[str, Optional[str]]  # bout_id -> display number


class LateEntryRequest(BaseModel):
    competitor: CompetitorIn
    rings: List[RingIn] = []


class LateEntryResponse(BaseModel):
    action: str  # roster_only | bye_fill | qualifier | table_entry
    message: str
    bout_id: Optional[str] = None
    bout_number: Optional[str] = None


def _ordered_rings(rings: List[RingIn]) -> List[Ring]:
    indexed = list(enumerate(rings))
    indexed.sort(key=lambda item: (item[1].order_index is None, item[1].order_index or 0, item[0]))
    return [ring.to_ring() for _, ring in indexed]


@router.post("/tournaments/{tournament_id}/schedule", response_model=ScheduleResponse)
def schedule_bouts(
    tournament_id: int,
    payload: ScheduleRequest,
    session: Session = Depends(get_session),
) -> ScheduleResponse:
    """
    Recompute bout numbers for every ring from scratch.

    Safe to call repeatedly; an unchanged draw yields identical numbers.
    """
    brackets = load_brackets(session, tournament_id)
    numbered = assign_bout_numbers(_ordered_rings(payload.rings), brackets)
    save_brackets(session, tournament_id, brackets.values())

    bout_numbers = {bout.id: bout.bout_number for bracket in brackets.values() for bout in bracket}
    return ScheduleResponse(numbered_by_ring=numbered, bout_numbers=bout_numbers)


@router.post("/tournaments/{tournament_id}/late-entries", response_model=LateEntryResponse)
def add_late_entry(
    tournament_id: int,
    payload: LateEntryRequest,
    session: Session = Depends(get_session),
) -> LateEntryResponse:
    """
    Add a competitor after generation: fill a BYE, or splice a qualifier bout.

    When rings are supplied the whole tournament is renumbered afterwards.
    """
    if not payload.competitor.category_key:
        raise HTTPException(status_code=422, detail="competitor.category_key is required")

    competitor = payload.competitor.to_competitor(payload.competitor.category_key)
    rings = _ordered_rings(payload.rings)
    brackets = load_brackets(session, tournament_id)

    try:
        result = insert_late_entry(brackets, competitor, rings)
    except MalformedBracketError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if result.action == ACTION_ROSTER_ONLY:
        return LateEntryResponse(action=result.action, message=result.message)

    if rings:
        assign_bout_numbers(rings, brackets)
    save_brackets(session, tournament_id, brackets.values())

    bout_number = result.bout_number
    if result.bout_id is not None:
        bout_number = brackets[competitor.category_key].get(result.bout_id).bout_number

    return LateEntryResponse(
        action=result.action,
        message=result.message,
        bout_id=result.bout_id,
        bout_number=bout_number,
    )
