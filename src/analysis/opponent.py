"""
The coach's sparring partner: no search, just a random legal move with a taste for captures.
"""

import random
from typing import Optional

from src.chess.moves import Move
from src.chess.position import Position

DEFAULT_CAPTURE_PREFERENCE = 0.7


def choose_opponent_move(
    position: Position,
    rng: Optional[random.Random] = None,
    capture_preference: float = DEFAULT_CAPTURE_PREFERENCE,
) -> Optional[Move]:
    """
    Pick a move for the side to move
    ---

    When captures are available, they are the only candidates with probability `capture_preference`.
    Returns None when there is no legal move.
    """
    rng = rng or random.Random()
    legal_moves = position.legal_moves()
    if not legal_moves:
        return None

    captures = [move for move in legal_moves if position.accepted_move(move).is_capture]
    candidates = captures if captures and rng.random() < capture_preference else legal_moves
    return rng.choice(candidates)
