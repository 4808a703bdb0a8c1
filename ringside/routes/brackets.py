"""
Bracket generation and result entry.

Generation replaces a category's stored snapshot (carnival groups included).
Result entry advances the winner one level and stores the category again;
display numbers are left alone because propagation never changes topology.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session

from ringside.database import get_session
from ringside.errors import CapacityError, InvalidWinnerError, MalformedBracketError, NotFoundError
from ringside.models.bout import Bracket
from ringside.models.competitor import Competitor
from ringside.models.ring import BOUT_MODE_TREE_PRO
from ringside.services.advancement_service import advance_winner, find_bout, resolve_winner
from ringside.services.bracket_generation import generate_category
from ringside.services.bracket_store import delete_bracket, load_bracket, load_brackets, save_bracket, save_brackets

router = APIRouter()


# ============================================================================
# Request / Response Models
# ============================================================================


class CompetitorIn(BaseModel):
    id: str
    name: str
    club: str = ""
    category_key: Optional[str] = None  # Defaults to the category in the path
    gender: Optional[str] = None
    category: Optional[str] = None

    def to_competitor(self, default_category_key: str) -> Competitor:
        return Competitor(
            id=self.id,
            name=self.name,
            club=self.club,
            category_key=self.category_key or default_category_key,
            gender=self.gender,
            category=self.category,
        )


class GenerateBracketRequest(BaseModel):
    competitors: List[CompetitorIn]
    ring_id: Optional[str] = None
    bout_mode: str = BOUT_MODE_TREE_PRO
    max_group_size: int = Field(default=0, ge=0)


class BoutOut(BaseModel):
    id: str
    red: Optional[Any] = None
    blue: Optional[Any] = None
    round: str
    winner: Optional[Any] = None
    ring_id: Optional[str] = None
    bout_number: Optional[str] = None
    parent_id: Optional[str] = None
    left_child_id: Optional[str] = None
    right_child_id: Optional[str] = None
    is_table_mode: bool = False
    score: Optional[float] = None
    rank: Optional[int] = None


class BracketOut(BaseModel):
    category_key: str
    bout_count: int
    bouts: List[BoutOut]


class GenerateBracketResponse(BaseModel):
    category_key: str
    brackets: List[BracketOut]


class WinnerUpdate(BaseModel):
    winner_id: str  # Competitor id, or "BYE"


class WinnerUpdateResponse(BaseModel):
    bout: BoutOut
    parent: Optional[BoutOut] = None


def bracket_to_out(bracket: Bracket) -> BracketOut:
    return BracketOut(
        category_key=bracket.category_key,
        bout_count=len(bracket),
        bouts=[BoutOut(**record) for record in bracket.to_records()],
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/tournaments/{tournament_id}/categories/{category_key}/bracket",
    response_model=GenerateBracketResponse,
)
def generate_bracket(
    tournament_id: int,
    category_key: str,
    payload: GenerateBracketRequest,
    session: Session = Depends(get_session),
) -> GenerateBracketResponse:
    """
    Seed and build the bracket(s) for a category, replacing any stored ones.

    Carnival modes may return several brackets (KEY_A, KEY_B, ...).
    Run the schedule endpoint afterwards to stamp bout numbers.
    """
    competitors = [c.to_competitor(category_key) for c in payload.competitors]
    foreign = [c.id for c in competitors if c.category_key != category_key]
    if foreign:
        raise HTTPException(status_code=422, detail=f"Competitors not in category {category_key}: {foreign}")

    try:
        brackets = generate_category(
            competitors,
            category_key,
            ring_id=payload.ring_id,
            bout_mode=payload.bout_mode,
            max_group_size=payload.max_group_size,
        )
    except CapacityError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    # Old rows go in the same commit as the new ones
    delete_bracket(session, tournament_id, category_key, commit=False)
    save_brackets(session, tournament_id, brackets.values())

    return GenerateBracketResponse(
        category_key=category_key,
        brackets=[bracket_to_out(b) for b in brackets.values()],
    )


@router.get(
    "/tournaments/{tournament_id}/categories/{category_key}/bracket",
    response_model=BracketOut,
)
def get_bracket(
    tournament_id: int,
    category_key: str,
    session: Session = Depends(get_session),
) -> BracketOut:
    bracket = load_bracket(session, tournament_id, category_key)
    if bracket is None:
        raise HTTPException(status_code=404, detail="Bracket not found")
    return bracket_to_out(bracket)


@router.delete("/tournaments/{tournament_id}/categories/{category_key}/bracket")
def reset_bracket(
    tournament_id: int,
    category_key: str,
    session: Session = Depends(get_session),
) -> Dict[str, int]:
    """Full category reset: every bout of the category (and its carnival groups) is removed."""
    removed = delete_bracket(session, tournament_id, category_key)
    return {"bouts_removed": removed}


@router.patch(
    "/tournaments/{tournament_id}/bouts/{bout_id}/winner",
    response_model=WinnerUpdateResponse,
)
def set_bout_winner(
    tournament_id: int,
    bout_id: str,
    payload: WinnerUpdate,
    session: Session = Depends(get_session),
) -> WinnerUpdateResponse:
    """Record the winner of a bout and place them into the next bout."""
    brackets = load_brackets(session, tournament_id)

    try:
        bracket, bout = find_bout(brackets, bout_id)
        winner = resolve_winner(bout, payload.winner_id)
        parent = advance_winner(bracket, bout_id, winner)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidWinnerError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except MalformedBracketError as e:
        raise HTTPException(status_code=409, detail=str(e))

    save_bracket(session, tournament_id, bracket)

    return WinnerUpdateResponse(
        bout=BoutOut(**bout.to_record()),
        parent=BoutOut(**parent.to_record()) if parent is not None else None,
    )
