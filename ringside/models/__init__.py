from ringside.models.bout import BLUE, BYE, RED, Bout, Bracket
from ringside.models.bout_record import BoutRecord
from ringside.models.competitor import Competitor
from ringside.models.ring import Ring

__all__ = [
    "BYE",
    "RED",
    "BLUE",
    "Bout",
    "Bracket",
    "BoutRecord",
    "Competitor",
    "Ring",
]
