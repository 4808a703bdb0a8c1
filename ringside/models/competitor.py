from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Competitor:
    """One entrant as supplied by the roster. Immutable once created."""

    id: str
    name: str
    club: str
    category_key: str
    gender: Optional[str] = None
    category: Optional[str] = None  # Human label (e.g. "Cadet -45kg"); category_key is the grouping key

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Competitor":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            club=data.get("club") or "",
            category_key=data["category_key"],
            gender=data.get("gender"),
            category=data.get("category"),
        )
