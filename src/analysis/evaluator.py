"""
Position evaluation: a material count, not an engine.
---

The numeric score is a pure function of the position. Randomness only ever enters through `flavor()`, which may upgrade
a move to "brilliant" for the coach's commentary, and never feeds back into the score.
"""

import random
from typing import Optional

from src.chess.board import Board
from src.chess.pieces import Color, PieceType
from src.chess.position import Position
from src.core.config import EvaluationSettings
from src.core.shared_types import MoveQuality


def material_balance(board: Board, piece_values: dict[str, int]) -> int:
    """White's material minus black's material"""
    material = board.count_material(piece_values)
    return material[Color.WHITE] - material[Color.BLACK]


class PositionEvaluator:
    """Scores a position from white's perspective and classifies the move that led to it."""

    def __init__(
        self,
        settings: Optional[EvaluationSettings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or EvaluationSettings()
        self.rng = rng or random.Random()
        missing = {
            piece_type.name.lower()
            for piece_type in PieceType
            if piece_type != PieceType.EMPTY
        } - set(self.settings.piece_values)
        if missing:
            raise ValueError(f"No piece value configured for: {sorted(missing)}")

    def score(self, position: Position) -> float:
        """
        Material balance, damped during the opening, clamped to [-clamp, +clamp]

        NOTE: the ply number comes from the position's move counters, so identical FEN strings always score the same.
        """
        evaluation = float(material_balance(position.board, self.settings.piece_values))
        if position.ply_number < self.settings.opening_ply_threshold:
            evaluation *= self.settings.opening_damping
        clamp = self.settings.clamp
        return max(-clamp, min(clamp, evaluation))

    def classify(self, evaluation: float) -> MoveQuality:
        """Ladder on the magnitude of the evaluation. Never returns BRILLIANT."""
        magnitude = abs(evaluation)
        thresholds = self.settings.thresholds
        if magnitude < thresholds.excellent:
            return MoveQuality.EXCELLENT
        if magnitude < thresholds.good:
            return MoveQuality.GOOD
        if magnitude < thresholds.inaccurate:
            return MoveQuality.INACCURATE
        if magnitude < thresholds.mistake:
            return MoveQuality.MISTAKE
        return MoveQuality.BLUNDER

    def flavor(self, quality: MoveQuality) -> MoveQuality:
        """Once in a while the coach calls a move brilliant, whatever the ladder says."""
        if self.rng.random() < self.settings.brilliant_probability:
            return MoveQuality.BRILLIANT
        return quality
