"""
Templated coach commentary.

Which category of lines gets used is a pure function of the move quality. Only the pick inside a category is random.
"""

import random
from typing import Optional

from src.chess.position import Position
from src.core.shared_types import MoveQuality

COMMENT_TEMPLATES: dict[MoveQuality, tuple[str, ...]] = {
    MoveQuality.BRILLIANT: (
        "Magnificent! This move is absolutely brilliant!",
        "Extraordinary! You found the best move there is!",
        "What a find! This combination is remarkable!",
    ),
    MoveQuality.EXCELLENT: (
        "Excellent choice! You have full control of the position.",
        "Very well played! This move strengthens your advantage.",
        "Perfect! You follow the strategic principles to the letter.",
    ),
    MoveQuality.GOOD: (
        "Good move! You are heading in the right direction.",
        "Solid! This approach is perfectly sound.",
        "Well spotted! Your pieces are developing harmoniously.",
    ),
    MoveQuality.INACCURATE: (
        "Hmm, this move is not optimal. There was something better.",
        "Careful! You let a better opportunity slip away.",
        "This move works, but there was a stronger one.",
    ),
    MoveQuality.MISTAKE: (
        "Ouch! This move gives away your advantage.",
        "Tactical error! Your opponent can now strike back.",
        "Too bad! You had been playing well until now.",
    ),
    MoveQuality.BLUNDER: (
        "Oh no! This error is very costly!",
        "Disaster! This move turns the evaluation upside down.",
        "Watch out! You just made a serious mistake!",
    ),
}

CHECK_WARNING = "Your king is in check!"
CAPTURE_WARNING = "Watch out for possible captures!"

DECISIVE_MARGIN = 2.0
WHITE_DECISIVE = "White has a decisive advantage. Convert it."
BLACK_DECISIVE = "Difficult position for white. Look for complications."
BALANCED = "Balanced position. Develop your pieces harmoniously."


def comment_category(quality: Optional[MoveQuality]) -> tuple[str, ...]:
    """Lines the coach may pick from. Without a quality, the coach sticks to the neutral 'good' lines."""
    return COMMENT_TEMPLATES[quality or MoveQuality.GOOD]


def threats(position: Position) -> list[str]:
    """Warnings for the side to move: being in check, or having captures available on the board."""
    warnings: list[str] = []
    if position.is_check():
        warnings.append(CHECK_WARNING)

    if any(position.accepted_move(move).is_capture for move in position.legal_moves()):
        warnings.append(CAPTURE_WARNING)
    return warnings


def suggestions(evaluation: float) -> list[str]:
    """One line of advice, keyed by the sign and size of the evaluation (white's perspective)"""
    if abs(evaluation) > DECISIVE_MARGIN:
        return [WHITE_DECISIVE if evaluation > 0 else BLACK_DECISIVE]
    return [BALANCED]


class CommentaryGenerator:
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def comment(self, quality: Optional[MoveQuality]) -> str:
        return self.rng.choice(comment_category(quality))
