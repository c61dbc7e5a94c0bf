"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    IN_PROGRESS = "in progress"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW_REPETITION = "draw by repetition"
    DRAW_FIFTY_MOVE_RULE = "draw by fifty-move rule"
    DRAW_INSUFFICIENT_MATERIAL = "draw by insufficient material"


class GameOverReason(StrEnum):
    """The three ways a game can end. Every draw rule collapses into DRAW."""

    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"


class GameMode(StrEnum):
    """NOTE: ONLINE is only a label. There is no networking behind it."""

    AI = "ai"
    ONLINE = "online"
    ANALYSIS = "analysis"
    TRAINING = "training"


# --- Color and PieceType DO NOT contain options for empty squares. Those live in src/chess/pieces.py
# --- NOTE: Same names (Color and PieceType) are used on purpose, the imports show which versions are used in what part of the code


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class MoveQuality(StrEnum):
    """Ladder from best to worst. BRILLIANT sits outside the ladder that is computed from the evaluation."""

    BRILLIANT = "brilliant"
    EXCELLENT = "excellent"
    GOOD = "good"
    INACCURATE = "inaccurate"
    MISTAKE = "mistake"
    BLUNDER = "blunder"


class CoachMood(StrEnum):
    IMPRESSED = "impressed"
    CONCERNED = "concerned"
    ANALYTICAL = "analytical"
    ENCOURAGING = "encouraging"
    NEUTRAL = "neutral"


class FailureReason(StrEnum):
    """Why a requested transition did not happen."""

    ILLEGAL_MOVE = "illegal move"
    INVALID_POSITION = "invalid position"
    INVALID_PGN = "invalid pgn"
    EMPTY_HISTORY = "empty history"
    GAME_OVER = "game over"
    ANALYSIS_STALE = "analysis stale"
