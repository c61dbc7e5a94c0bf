"""The coach's mood and the running log of its comments."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, assert_never

from src.analysis.models import Analysis
from src.chess.game import utc_now
from src.core.shared_types import CoachMood, MoveQuality

GREETING = "Welcome! I am your personal coach. Strategy is the art of not panicking."
COMMENT_HISTORY_LENGTH = 10
ANALYTICAL_MARGIN = 2.0


def determine_mood(quality: MoveQuality, evaluation: float) -> CoachMood:
    match quality:
        case MoveQuality.BRILLIANT | MoveQuality.EXCELLENT:
            return CoachMood.IMPRESSED
        case MoveQuality.BLUNDER | MoveQuality.MISTAKE:
            return CoachMood.CONCERNED
        case MoveQuality.GOOD | MoveQuality.INACCURATE:
            if abs(evaluation) > ANALYTICAL_MARGIN:
                return CoachMood.ANALYTICAL
            return CoachMood.ENCOURAGING
        case _:
            assert_never(quality)


@dataclass(frozen=True)
class CoachComment:
    san: str
    comment: str
    mood: CoachMood
    timestamp: datetime = field(default_factory=utc_now)


@dataclass
class CoachState:
    """Most recent comment first. Only the last COMMENT_HISTORY_LENGTH comments are kept."""

    mood: CoachMood = CoachMood.NEUTRAL
    last_comment: str = GREETING
    comment_history: deque[CoachComment] = field(
        default_factory=lambda: deque(maxlen=COMMENT_HISTORY_LENGTH)
    )

    def update(self, analysis: Analysis, san: Optional[str] = None) -> CoachComment:
        comment = CoachComment(
            san=san or "",
            comment=analysis.commentary,
            mood=determine_mood(analysis.move_quality, analysis.evaluation),
        )
        self.mood = comment.mood
        self.last_comment = comment.comment
        self.comment_history.appendleft(comment)
        return comment

    def reset(self) -> None:
        """New game: back to the greeting"""
        self.mood = CoachMood.NEUTRAL
        self.last_comment = GREETING
        self.comment_history.clear()
