"""
Bracket snapshots in the database.

A category bracket is stored as flat BoutRecord rows with explicit
parent/child ids. Saving replaces the whole category snapshot in one commit,
so readers never observe a half-written graph.
"""
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlmodel import Session, select

from ringside.models.bout import Bracket, Bout
from ringside.models.bout_record import BoutRecord
from ringside.services.carnival_split import is_group_key


def _to_row(tournament_id: int, category_key: str, position: int, bout: Bout) -> BoutRecord:
    record = bout.to_record()
    return BoutRecord(
        tournament_id=tournament_id,
        category_key=category_key,
        bout_id=bout.id,
        position=position,
        red=record["red"],
        blue=record["blue"],
        winner=record["winner"],
        round=bout.round,
        ring_id=bout.ring_id,
        bout_number=bout.bout_number,
        parent_id=bout.parent_id,
        left_child_id=bout.left_child_id,
        right_child_id=bout.right_child_id,
        is_table_mode=bout.is_table_mode,
        score=bout.score,
        rank=bout.rank,
        updated_at=datetime.now(timezone.utc),
    )


def _from_row(row: BoutRecord) -> Bout:
    return Bout.from_record(
        {
            "id": row.bout_id,
            "red": row.red,
            "blue": row.blue,
            "winner": row.winner,
            "round": row.round,
            "ring_id": row.ring_id,
            "bout_number": row.bout_number,
            "parent_id": row.parent_id,
            "left_child_id": row.left_child_id,
            "right_child_id": row.right_child_id,
            "is_table_mode": row.is_table_mode,
            "score": row.score,
            "rank": row.rank,
        }
    )


def _delete_rows(session: Session, tournament_id: int, category_key: str) -> int:
    rows = session.exec(
        select(BoutRecord).where(
            BoutRecord.tournament_id == tournament_id,
            BoutRecord.category_key == category_key,
        )
    ).all()
    for row in rows:
        session.delete(row)
    return len(rows)


def save_brackets(session: Session, tournament_id: int, brackets: Iterable[Bracket]) -> None:
    """Replace the stored snapshot of each bracket's category. Single commit."""
    for bracket in brackets:
        _delete_rows(session, tournament_id, bracket.category_key)
        # Flush deletes first so re-inserted bout ids don't trip uq_tournament_bout
        session.flush()
        for position, bout in enumerate(bracket):
            session.add(_to_row(tournament_id, bracket.category_key, position, bout))
    session.commit()


def save_bracket(session: Session, tournament_id: int, bracket: Bracket) -> None:
    save_brackets(session, tournament_id, [bracket])


def load_brackets(session: Session, tournament_id: int) -> Dict[str, Bracket]:
    """All stored brackets of a tournament, keyed by category."""
    rows = session.exec(
        select(BoutRecord)
        .where(BoutRecord.tournament_id == tournament_id)
        .order_by(BoutRecord.category_key, BoutRecord.position)
    ).all()

    grouped: "OrderedDict[str, List[Bout]]" = OrderedDict()
    for row in rows:
        grouped.setdefault(row.category_key, []).append(_from_row(row))
    return {key: Bracket(key, bouts) for key, bouts in grouped.items()}


def load_bracket(session: Session, tournament_id: int, category_key: str) -> Optional[Bracket]:
    rows = session.exec(
        select(BoutRecord)
        .where(
            BoutRecord.tournament_id == tournament_id,
            BoutRecord.category_key == category_key,
        )
        .order_by(BoutRecord.position)
    ).all()
    if not rows:
        return None
    return Bracket(category_key, [_from_row(row) for row in rows])


def delete_bracket(
    session: Session,
    tournament_id: int,
    category_key: str,
    include_splits: bool = True,
    commit: bool = True,
) -> int:
    """
    Full category reset, carnival groups (KEY_A, KEY_B, ...) included.

    Only single-letter group suffixes count as carnival groups, so "U12_GIRLS"
    survives a reset of "U12". With commit=False the deletes stay pending in
    the session so a caller can pair them with the replacement rows.

    Returns:
        Number of bouts removed
    """
    removed = _delete_rows(session, tournament_id, category_key)
    if include_splits:
        candidate_keys = session.exec(
            select(BoutRecord.category_key)
            .where(
                BoutRecord.tournament_id == tournament_id,
                BoutRecord.category_key.startswith(f"{category_key}_", autoescape=True),
            )
            .distinct()
        ).all()
        for key in candidate_keys:
            if is_group_key(category_key, key):
                removed += _delete_rows(session, tournament_id, key)
    if commit:
        session.commit()
    return removed
