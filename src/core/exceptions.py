"""
Exceptions shared by all layers.

The domain raises these, the service layer catches `GameError` subclasses and turns them into a failed outcome for the caller.
"""


class GameError(Exception):
    """Base class for anything that goes wrong while handling a chess game."""


class InvalidSquareError(GameError):
    """Square name cannot be read as algebraic notation (a1 - h8)."""


class InvalidFENError(GameError):
    """String cannot be parsed into a structurally valid position."""


class InvalidPGNError(GameError):
    """Game record text cannot be parsed or replayed."""


class IllegalMoveError(GameError):
    """Attempted move is not in the set of legal moves."""


class EmptyHistoryError(GameError):
    """Undo requested while no move has been made."""


class GameStateError(GameError):
    """Operation not allowed in the current game state (ex. moving after checkmate)."""


class AnalysisStaleError(GameError):
    """Analysis finished for a position that is no longer the current one."""


class RepositoryError(GameError):
    """Persistence layer could not find / store the requested game."""


class InvalidRequestError(GameError):
    """Incoming request data failed validation."""
