"""Results produced by the analysis layer"""

from dataclasses import dataclass
from typing import Optional

from src.core.shared_types import MoveQuality


@dataclass(frozen=True)
class Analysis:
    """
    Evaluation of one position, with the coach's comments on the move that produced it.

    Owned by the AnalysisCache (keyed by `fen`) and never mutated: a new analysis replaces an old one.
    """

    fen: str
    evaluation: float
    best_move: Optional[str]
    principal_variation: tuple[str, ...]
    depth: int
    commentary: str
    move_quality: MoveQuality
    threats: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()
