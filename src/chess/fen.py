"""
Forsyth-Edwards Notation: syntax checks on the six fields, and the FENState they decode into.
"""

from dataclasses import dataclass, replace
from itertools import combinations
from typing import Callable, Optional, Self

from src.chess.castling import CASTLING_ORDER, CastlingDirection, castling_directions
from src.chess.pieces import FEN_TO_PIECE, Color
from src.chess.square import BOARD_DIMENSIONS, FILE_NAMES, Square
from src.core.exceptions import InvalidFENError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

COLOR_CODES: dict[str, Color] = {"w": Color.WHITE, "b": Color.BLACK}
NO_SQUARE = "-"
# squares right behind a pawn that just made a double step
EN_PASSANT_RANKS = {"3", "6"}

# Any subset of KQkq, written in that order. "-" when all rights have been revoked.
VALID_CASTLING_ENCODINGS: list[str] = ["-"] + [
    "".join(direction.value for direction in subset)
    for size in range(1, len(CASTLING_ORDER) + 1)
    for subset in combinations(CASTLING_ORDER, size)
]


# --- CASTLING FIELD ---
def castling_from_fen(castle_fen: str) -> dict[CastlingDirection, bool]:
    return {direction: direction.value in castle_fen for direction in CastlingDirection}


def castling_to_fen(castling_rights: dict[CastlingDirection, bool]) -> str:
    letters = [direction.value for direction in CASTLING_ORDER if castling_rights[direction]]
    return "".join(letters) or "-"


# --- SYNTAX CHECKS, ONE PER FIELD ---
def is_valid_position(position: str) -> bool:
    """
    Board field: 8 ranks separated by "/", each rank describes exactly 8 files.
    Runs of empty squares are a single digit 1-8, so "44" or "0" are refused (they would not survive a round trip).
    """
    num_files, num_ranks = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_ranks:
        return False
    return all(_rank_width(rank_fen) == num_files for rank_fen in rank_fens)


def _rank_width(rank_fen: str) -> Optional[int]:
    """Number of files the rank describes, None when the rank is malformed"""
    width = 0
    previous = ""
    for character in rank_fen:
        if character.isdigit():
            if character == "0" or previous.isdigit():
                return None
            width += int(character)
        elif character.lower() in FEN_TO_PIECE:
            width += 1
        else:
            return None
        previous = character
    return width


def is_valid_color_code(color: str) -> bool:
    return color in COLOR_CODES


def is_valid_castling_rights(castling: str) -> bool:
    return castling in VALID_CASTLING_ENCODINGS


def is_valid_square(square: str) -> bool:
    """A file letter followed by a rank number, both on the board"""
    file_char, rank_chars = square[:1], square[1:]
    if not file_char or file_char not in FILE_NAMES:
        return False
    return rank_chars.isdigit() and 1 <= int(rank_chars) <= BOARD_DIMENSIONS[1]


def is_valid_en_passant(en_passant: str) -> bool:
    if en_passant == NO_SQUARE:
        return True
    return is_valid_square(en_passant) and en_passant[1:] in EN_PASSANT_RANKS


def is_valid_move_counter(counter: str) -> bool:
    """Non-negative integer without leading zeros (otherwise '01' would be written back as '1')"""
    return counter.isdigit() and str(int(counter)) == counter


def is_valid_full_move_number(counter: str) -> bool:
    """The full move number starts counting at 1"""
    return is_valid_move_counter(counter) and int(counter) >= 1


FIELD_CHECKS: tuple[Callable[[str], bool], ...] = (
    is_valid_position,
    is_valid_color_code,
    is_valid_castling_rights,
    is_valid_en_passant,
    is_valid_move_counter,
    is_valid_full_move_number,
)


def is_valid_fen(fen: str) -> bool:
    """
    Check if given string follows proper FEN notation.

    NOTE: Only the syntax is checked here. Whether the position could occur in a game (one king each, ...) is checked by Position.
    """
    fields = fen.split(" ")
    if len(fields) != len(FIELD_CHECKS):
        return False
    return all(check(field) for check, field in zip(FIELD_CHECKS, fields))


@dataclass(frozen=True)
class FENState:
    """
    Everything a FEN string encodes apart from where the pieces stand (that part is kept as text, see Board)
    ----

    <board position> <active color> <castling rights> <en passant square> <half move clock> <full move number>

    * active color: "w" or "b"
    * castling rights: K/Q for white king-/queen-side, k/q for black, "-" once all are gone
    * en passant square: the square a pawn can capture onto right after a double step, "-" otherwise
    * half move clock: half-moves since the last pawn move or capture (fifty-move rule: draw once it reaches 100)
    * full move number: starts at 1, incremented after every move of black

    ex) rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1 is the standard starting position.

    NOTE: frozen. Moving to a next position means creating a new state (see `Position.apply`).
    """

    position: str
    color_to_move: Color
    castling_rights: dict[CastlingDirection, bool]
    en_passant_square: Optional[Square]
    half_move_clock: int
    num_turns: int

    def __hash__(self) -> int:
        return hash(self.to_fen())

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen}")

        position, color, castling, en_passant, half_moves, full_moves = fen.split(" ")
        return cls(
            position=position,
            color_to_move=COLOR_CODES[color],
            castling_rights=castling_from_fen(castling),
            en_passant_square=None if en_passant == NO_SQUARE else Square.from_algebraic(en_passant),
            half_move_clock=int(half_moves),
            num_turns=int(full_moves),
        )

    def to_fen(self) -> str:
        color = "w" if self.color_to_move == Color.WHITE else "b"
        en_passant = self.en_passant_square.to_algebraic() if self.en_passant_square else NO_SQUARE
        fields = [
            self.position,
            color,
            castling_to_fen(self.castling_rights),
            en_passant,
            str(self.half_move_clock),
            str(self.num_turns),
        ]
        return " ".join(fields)

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)

    @property
    def ply_number(self) -> int:
        """Number of half-moves played to reach this position (as far as the move counter tells)."""
        return 2 * (self.num_turns - 1) + (1 if self.color_to_move == Color.BLACK else 0)

    # -- CASTLING RIGHTS --
    def castling_options(self, color: Color) -> list[CastlingDirection]:
        """Directions for which this color still holds the right to castle"""
        return [direction for direction in castling_directions(color) if self.castling_rights[direction]]

    def can_castle(self, color: Color) -> bool:
        return bool(self.castling_options(color))

    def without_castling_rights(self, directions: list[CastlingDirection]) -> Self:
        rights = dict(self.castling_rights)
        for direction in directions:
            rights[direction] = False
        return replace(self, castling_rights=rights)
