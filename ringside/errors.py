"""
Bracket engine errors.

Services raise these synchronously and validate before mutating, so a raised
error never leaves a half-applied change behind. Routes translate them to
HTTP responses.
"""


class BracketEngineError(Exception):
    """Base class for all bracket engine failures"""

    pass


class NotFoundError(BracketEngineError):
    """Raised when a bout or bracket id is unknown"""

    pass


class InvalidWinnerError(BracketEngineError):
    """Raised when a winner matches neither slot of the bout (and is not BYE)"""

    pass


class MalformedBracketError(BracketEngineError):
    """Raised when no first round can be identified or parent/child linkage is broken"""

    pass


class CapacityError(BracketEngineError):
    """Raised when a roster needs a bracket larger than the configured cap"""

    pass
