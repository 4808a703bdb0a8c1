"""
Bouts and the per-category bracket arena.

A bracket is an arena of Bout records keyed by id. Parent/child links are ids,
never object references, so a bracket serializes to a flat list of records and
rebuilds without relying on in-memory identity.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union

from ringside.errors import MalformedBracketError, NotFoundError
from ringside.models.competitor import Competitor

BYE = "BYE"

RED = "red"  # left feeder
BLUE = "blue"  # right feeder

# A slot holds a competitor, the BYE sentinel, or None while pending
Slot = Optional[Union[Competitor, str]]


def slot_key(slot: Slot) -> Optional[str]:
    """Comparable identity for a slot: competitor id, "BYE", or None."""
    if slot is None:
        return None
    if isinstance(slot, Competitor):
        return slot.id
    return BYE


def is_competitor(slot: Slot) -> bool:
    return isinstance(slot, Competitor)


def slot_to_json(slot: Slot) -> Any:
    if isinstance(slot, Competitor):
        return slot.to_dict()
    return slot


def slot_from_json(data: Any) -> Slot:
    if data is None:
        return None
    if data == BYE:
        return BYE
    return Competitor.from_dict(data)


@dataclass
class Bout:
    id: str
    red: Slot = None
    blue: Slot = None
    round: str = ""
    winner: Slot = None
    ring_id: Optional[str] = None
    bout_number: Optional[str] = None
    parent_id: Optional[str] = None
    left_child_id: Optional[str] = None
    right_child_id: Optional[str] = None

    # Table mode: one entry per competitor, scored rather than fought
    is_table_mode: bool = False
    score: Optional[float] = None
    rank: Optional[int] = None

    def slot(self, side: str) -> Slot:
        return self.red if side == RED else self.blue

    def set_slot(self, side: str, value: Slot) -> None:
        if side == RED:
            self.red = value
        else:
            self.blue = value

    def child_id(self, side: str) -> Optional[str]:
        return self.left_child_id if side == RED else self.right_child_id

    @property
    def has_bye(self) -> bool:
        return self.red == BYE or self.blue == BYE

    @property
    def is_ready(self) -> bool:
        """Both slots hold real competitors."""
        return is_competitor(self.red) and is_competitor(self.blue)

    def holds(self, candidate: Slot) -> bool:
        key = slot_key(candidate)
        return key is not None and key in (slot_key(self.red), slot_key(self.blue))

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "red": slot_to_json(self.red),
            "blue": slot_to_json(self.blue),
            "round": self.round,
            "winner": slot_to_json(self.winner),
            "ring_id": self.ring_id,
            "bout_number": self.bout_number,
            "parent_id": self.parent_id,
            "left_child_id": self.left_child_id,
            "right_child_id": self.right_child_id,
            "is_table_mode": self.is_table_mode,
            "score": self.score,
            "rank": self.rank,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Bout":
        return cls(
            id=record["id"],
            red=slot_from_json(record.get("red")),
            blue=slot_from_json(record.get("blue")),
            round=record.get("round") or "",
            winner=slot_from_json(record.get("winner")),
            ring_id=record.get("ring_id"),
            bout_number=record.get("bout_number") or None,
            parent_id=record.get("parent_id"),
            left_child_id=record.get("left_child_id"),
            right_child_id=record.get("right_child_id"),
            is_table_mode=bool(record.get("is_table_mode", False)),
            score=record.get("score"),
            rank=record.get("rank"),
        )


class Bracket:
    """All bouts of one category, keyed by bout id (insertion ordered)."""

    def __init__(self, category_key: str, bouts: Optional[List[Bout]] = None):
        self.category_key = category_key
        self.bouts: Dict[str, Bout] = {}
        for bout in bouts or []:
            self.add(bout)

    def __iter__(self) -> Iterator[Bout]:
        return iter(self.bouts.values())

    def __len__(self) -> int:
        return len(self.bouts)

    def __contains__(self, bout_id: object) -> bool:
        return bout_id in self.bouts

    def add(self, bout: Bout) -> Bout:
        self.bouts[bout.id] = bout
        return bout

    def get(self, bout_id: str) -> Bout:
        bout = self.bouts.get(bout_id)
        if bout is None:
            raise NotFoundError(f"Bout {bout_id} not found in category {self.category_key}")
        return bout

    def parent_of(self, bout: Bout) -> Optional[Bout]:
        if bout.parent_id is None:
            return None
        parent = self.bouts.get(bout.parent_id)
        if parent is None:
            raise MalformedBracketError(f"Bout {bout.id} points at missing parent {bout.parent_id}")
        return parent

    def side_of(self, parent: Bout, child_id: str) -> str:
        """Which slot of parent the child feeds."""
        if parent.left_child_id == child_id:
            return RED
        if parent.right_child_id == child_id:
            return BLUE
        raise MalformedBracketError(f"Bout {parent.id} does not list {child_id} as a feeder")

    def root(self) -> Optional[Bout]:
        for bout in self:
            if bout.parent_id is None and not bout.is_table_mode:
                return bout
        return None

    def rounds(self) -> List[str]:
        """Distinct round labels in first-seen order."""
        seen: Dict[str, None] = {}
        for bout in self:
            seen.setdefault(bout.round, None)
        return list(seen)

    def path_signature(self, bout: Bout) -> str:
        """
        Left(0)/right(1) choices from the root down to bout.

        Lexicographic order of signatures within a round reproduces the
        left-to-right visual order of the tree.
        """
        path: List[str] = []
        current = bout
        visited = {bout.id}
        while current.parent_id is not None:
            parent = self.bouts.get(current.parent_id)
            if parent is None or parent.id in visited:
                break
            visited.add(parent.id)
            path.append("0" if parent.left_child_id == current.id else "1")
            current = parent
        return "".join(reversed(path))

    def to_records(self) -> List[Dict[str, Any]]:
        return [bout.to_record() for bout in self]

    @classmethod
    def from_records(cls, category_key: str, records: List[Dict[str, Any]]) -> "Bracket":
        return cls(category_key, [Bout.from_record(r) for r in records])
