"""The Game board implements all rules that effect the `position` (in chess: the configuration of pieces on the board)"""

from dataclasses import dataclass
from itertools import groupby
from typing import Optional, Self

from src.chess.moves import ATTACK_RULES, MOVEMENT_RULES, CandidateMovesFn, Move
from src.chess.pieces import EMPTY_SQUARE, PLAYER_COLORS, Color, Piece, PieceType
from src.chess.square import ALL_SQUARES, BOARD_DIMENSIONS, FILE_NAMES, Square

RANKS_TOP_DOWN = range(BOARD_DIMENSIONS[1], 0, -1)
FILES = range(1, len(FILE_NAMES) + 1)


@dataclass
class Board:
    position: dict[Square, Piece]

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """
        Construct a board from the first field of a FEN string
        ---

        Ranks are listed from the 8th down to the 1st, separated by "/". Within a rank, files run a -> h.
        A letter is a piece (capitals for white), a digit is a run of empty squares.

        NOTE: the string is assumed to be validated already (see `is_valid_position()` in fen.py)
        """
        board = cls.empty()
        for rank, rank_fen in zip(RANKS_TOP_DOWN, fen_str.split("/")):
            file = 1
            for character in rank_fen:
                if character.isdigit():
                    file += int(character)
                    continue
                board.place_piece(Piece.from_fen(character), Square(file, rank))
                file += 1
        return board

    @classmethod
    def empty(cls) -> Self:
        return cls({square: EMPTY_SQUARE for square in ALL_SQUARES})

    def to_fen(self) -> str:
        return "/".join(self._rank_to_fen(rank) for rank in RANKS_TOP_DOWN)

    def _rank_to_fen(self, rank: int) -> str:
        """Runs of empty squares collapse into their count"""
        characters: list[str] = []
        for key, run in groupby(self.piece(Square(file, rank)) for file in FILES):
            pieces = list(run)
            if key.is_empty:
                characters.append(str(len(pieces)))
            else:
                characters.extend(piece.to_fen() for piece in pieces)
        return "".join(characters)

    def copy(self) -> Self:
        """Pieces are immutable, so a shallow copy of the mapping is enough to get an independent board."""
        return type(self)(dict(self.position))

    # --- QUERIES ---
    def piece(self, square: Square) -> Piece:
        return self.position[square]

    def is_empty(self, square: Square) -> bool:
        return self.piece(square).is_empty

    def is_any_occupied(self, squares: list[Square]) -> bool:
        return not all(self.is_empty(square) for square in squares)

    def locate_pieces(self, piece_type: PieceType, color: Optional[Color] = None) -> list[Square]:
        return [
            square
            for square, piece in self.position.items()
            if piece.type == piece_type and (color is None or piece.color == color)
        ]

    def occupied_by(self, color: Color) -> list[tuple[Square, Piece]]:
        return [(square, piece) for square, piece in self.position.items() if piece.color == color]

    def king_square(self, color: Color) -> Optional[Square]:
        """None only on boards that could never occur in a game (no king of that color)"""
        kings = self.locate_pieces(PieceType.KING, color)
        return kings[0] if kings else None

    # --- UPDATES ---
    def place_piece(self, piece: Piece, square: Square) -> None:
        self.position[square] = piece

    def remove_piece(self, square: Square) -> Piece:
        """Empty the square and hand back whatever was standing there"""
        piece = self.piece(square)
        self.position[square] = EMPTY_SQUARE
        return piece

    def move_piece(self, move: Move) -> None:
        """Plain displacement. Castling, en passant and promotion are composed from this by Position."""
        self.place_piece(self.remove_piece(move.from_square), move.to_square)

    def promote_piece(self, square: Square, to: PieceType) -> None:
        self.position[square] = self.piece(square).promoted(to)

    # --- ATTACKS ---
    def is_under_attack(self, square: Square, by_color: Color) -> bool:
        """Could any piece of `by_color` capture on this square (ignoring pins)?"""
        return any(
            is_attacked(square, by_color, self) for is_attacked in ATTACK_RULES.values()
        )

    def is_any_under_attack(self, squares: list[Square], by_color: Color) -> bool:
        return any(self.is_under_attack(square, by_color) for square in squares)

    def is_check(self, color: Color) -> bool:
        king = self.king_square(color)
        return king is not None and self.is_under_attack(king, color.opponent)

    def generate_candidate_moves(self, color: Color) -> list[Move]:
        """
        Pseudo-legal moves of every piece of `color`, found with the movement rule of its type.
        Whether a move leaves the own king in check is tested later.

        ---
        NOTE: Castling, en passant and promotion choices are added in Position.
        """
        candidate_moves: list[Move] = []
        for square, piece in self.occupied_by(color):
            movement_rule: CandidateMovesFn = MOVEMENT_RULES[piece.type]
            candidate_moves.extend(movement_rule(square, self))
        return candidate_moves

    # --- MATERIAL ---
    def count_material(self, piece_values: Optional[dict[str, int]] = None) -> dict[Color, int]:
        """
        Points of material per player.
        `piece_values` maps lowercase piece type names ("knight") to points, the standard 1/3/3/5/9 otherwise.
        """
        def value(piece: Piece) -> int:
            if piece_values is None:
                return piece.points
            return piece_values[piece.type.name.lower()]

        return {
            color: sum(value(piece) for _, piece in self.occupied_by(color))
            for color in PLAYER_COLORS
        }
