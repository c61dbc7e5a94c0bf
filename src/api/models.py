"""Requests and Response models"""

from datetime import datetime
from typing import Optional, Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from src.chess.fen import is_valid_fen
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import (
    CoachMood,
    Color,
    FailureReason,
    GameMode,
    MoveQuality,
    PieceType,
    Status,
)

PieceColor = str
PlayerName = str


def _check_square(value: str) -> str:
    value = value.strip().lower()
    if len(value) != 2 or value[0] not in "abcdefgh" or value[1] not in "12345678":
        raise InvalidRequestError(f"Cannot interpret {value!r} as a valid square name.")
    return value


def _check_fen(value: str) -> str:
    value = value.strip()
    if not is_valid_fen(value):
        raise InvalidRequestError(f"Cannot interpret {value!r} as a FEN string.")
    return value


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    player_name: str
    color: Color = Color.WHITE
    mode: GameMode = GameMode.AI
    starting_fen: Optional[str] = None
    opponent_name: str = "Coach"

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("Player name cannot be empty.")
        return value.strip()

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _check_fen(value)


class GetGameRequest(BaseModel):
    game_id: UUID


class DeleteGameRequest(BaseModel):
    game_id: UUID


class LegalMovesRequest(BaseModel):
    game_id: UUID
    from_square: Optional[str] = None

    @field_validator("from_square")
    @classmethod
    def validate_square(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _check_square(value)


class MoveRequest(BaseModel):
    """A move is given either as two squares (+ promotion), or as one string in UCI / SAN."""

    game_id: UUID
    from_square: Optional[str] = None
    to_square: Optional[str] = None
    promote_to: Optional[PieceType] = None
    notation: Optional[str] = None

    @field_validator("from_square", "to_square")
    @classmethod
    def validate_square(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _check_square(value)

    @field_validator("notation")
    @classmethod
    def validate_notation(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not value.strip():
            raise InvalidRequestError("Move notation cannot be empty.")
        return value.strip()

    @model_validator(mode="after")
    def check_move_given(self) -> Self:
        has_squares = self.from_square is not None and self.to_square is not None
        if not has_squares and self.notation is None:
            raise InvalidRequestError(
                "A move needs either from_square and to_square, or a notation."
            )
        return self


class UndoRequest(BaseModel):
    game_id: UUID


class ResetRequest(BaseModel):
    game_id: UUID


class LoadPositionRequest(BaseModel):
    """The FEN is only checked for its shape here, the domain decides whether the position is playable."""

    game_id: UUID
    fen: str

    @field_validator("fen")
    @classmethod
    def validate_fen(cls, value: str) -> str:
        return _check_fen(value)


class ImportPGNRequest(BaseModel):
    game_id: UUID
    pgn: str

    @field_validator("pgn")
    @classmethod
    def validate_pgn(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("PGN text cannot be empty.")
        return value


class ExportPGNRequest(BaseModel):
    game_id: UUID
    event: str = "Casual Game"
    site: str = "?"


class AnalysisRequest(BaseModel):
    game_id: UUID
    depth: Optional[int] = Field(default=None, gt=0)


class OpponentMoveRequest(BaseModel):
    game_id: UUID


# --- RESPONSE MODELS ---
class MoveRecordResponse(BaseModel):
    san: str
    uci: str
    fen: str
    timestamp: datetime
    evaluation: Optional[float] = None
    quality: Optional[MoveQuality] = None


class GameResponse(BaseModel):
    game_id: UUID
    players: dict[PieceColor, PlayerName]
    mode: GameMode
    fen: str
    starting_fen: str
    turn: Color
    status: Status
    game_over: bool
    in_check: bool
    in_checkmate: bool
    in_stalemate: bool
    in_draw: bool
    winner: Optional[Color] = None
    moves: list[str]
    move_history: list[MoveRecordResponse]
    captured_pieces: dict[PieceColor, list[PieceType]]


class LegalMovesResponse(BaseModel):
    game_id: UUID
    color: Color
    from_square: Optional[str] = None
    legal_moves: list[str]


class ActionResponse(BaseModel):
    """Outcome of a transition. On failure, `game` holds the unchanged state."""

    success: bool
    reason: Optional[FailureReason] = None
    message: str = ""
    game: GameResponse


class AnalysisResponse(BaseModel):
    game_id: UUID
    fen: str
    evaluation: float
    best_move: Optional[str]
    principal_variation: list[str]
    depth: int
    commentary: str
    move_quality: MoveQuality
    threats: list[str]
    suggestions: list[str]
    coach_mood: CoachMood


class ExportResponse(BaseModel):
    game_id: UUID
    pgn: str
