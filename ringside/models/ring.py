import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

_RING_PREFIX_RE = re.compile(r"^ring\s+", re.IGNORECASE)

BOUT_MODE_TREE_PRO = "tree_pro"
BOUT_MODE_TREE_CARNIVAL = "tree_carnival"
BOUT_MODE_TABLE_PRO = "table_pro"
BOUT_MODE_TABLE_CARNIVAL = "table_carnival"

BOUT_MODES = (
    BOUT_MODE_TREE_PRO,
    BOUT_MODE_TREE_CARNIVAL,
    BOUT_MODE_TABLE_PRO,
    BOUT_MODE_TABLE_CARNIVAL,
)


@dataclass
class Ring:
    """
    A competition area.

    priority_groups maps a priority number to the ordered category keys that
    progress together (round by round) before the next priority starts.
    Lower numbers go first.
    """

    id: str
    name: str
    priority_groups: Dict[int, List[str]] = field(default_factory=dict)
    order_index: Optional[int] = None
    bout_mode: str = BOUT_MODE_TREE_PRO

    @property
    def label(self) -> str:
        """Ring name with a leading "RING " word stripped: "RING A" -> "A", "RINGSIDE" unchanged."""
        return _RING_PREFIX_RE.sub("", self.name.strip()).strip()

    def ordered_priorities(self) -> List[int]:
        return sorted(self.priority_groups.keys())
