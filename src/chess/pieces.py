"""Defines the types of chess pieces"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Self

from src.core import shared_types


class PieceType(Enum):
    EMPTY = auto()
    PAWN = auto()
    KNIGHT = auto()
    BISHOP = auto()
    ROOK = auto()
    QUEEN = auto()
    KING = auto()

    def to_shared(self) -> shared_types.PieceType:
        """Convert into the boundary version (which has no EMPTY)."""
        return shared_types.PieceType[self.name]


class Color(Enum):
    NONE = auto()
    WHITE = auto()
    BLACK = auto()

    @property
    def opponent(self) -> "Color":
        if self == Color.WHITE:
            return Color.BLACK
        if self == Color.BLACK:
            return Color.WHITE
        return Color.NONE

    def to_shared(self) -> shared_types.Color:
        return shared_types.Color[self.name]


PLAYER_COLORS: tuple[Color, Color] = (Color.WHITE, Color.BLACK)

FEN_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}

# Letters used in short algebraic notation (pawns have none)
PIECE_TO_SAN: dict[PieceType, str] = {
    PieceType.KNIGHT: "N",
    PieceType.BISHOP: "B",
    PieceType.ROOK: "R",
    PieceType.QUEEN: "Q",
    PieceType.KING: "K",
}

PIECE_POINTS: dict[PieceType, int] = {
    PieceType.PAWN: 1,
    PieceType.KNIGHT: 3,
    PieceType.BISHOP: 3,
    PieceType.ROOK: 5,
    PieceType.QUEEN: 9,
}


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @property
    def points(self) -> int:
        # NOTE: The King's worth is undefined (does not count towards total points), and an empty square should also have zero points
        return PIECE_POINTS.get(self.type, 0)

    @property
    def is_empty(self) -> bool:
        return self.type == PieceType.EMPTY

    @classmethod
    def from_fen(cls, character: str) -> Self:
        # lower case: Black pieces, upper case: White pieces
        color = Color.WHITE if character.isupper() else Color.BLACK
        piece_type = FEN_TO_PIECE[character.lower()]
        return cls(piece_type, color)

    def to_fen(self) -> str:
        return (
            PIECE_TO_FEN[self.type].upper()
            if self.color == Color.WHITE
            else PIECE_TO_FEN[self.type].lower()
        )

    def promoted(self, new_type: PieceType) -> Self:
        """Pieces are immutable: promotion hands back a new piece of the same color."""
        return type(self)(new_type, self.color)


EMPTY_SQUARE = Piece(PieceType.EMPTY, Color.NONE)
