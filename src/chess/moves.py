"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define candidate (pseudo-legal) move sets for each piece type.


Legality (not leaving your own king in check) is checked later by Position
"""

from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Protocol, Self

from src.chess.castling import CASTLING_RULES, CastlingDirection
from src.chess.pieces import (
    FEN_TO_PIECE,
    PIECE_TO_FEN,
    Color,
    Piece,
    PieceType,
)
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import IllegalMoveError, InvalidSquareError


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Piece: ...


Vector = tuple[int, int]

DIAGONALS: list[Vector] = [(1, 1), (-1, 1), (1, -1), (-1, -1)]
STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]
KING_DELTAS: list[Vector] = STRAIGHTS + DIAGONALS
# |delta_file| + |delta_rank| = 3, never along a line
KNIGHT_DELTAS: list[Vector] = [
    (df, dr) for df in (-2, -1, 1, 2) for dr in (-2, -1, 1, 2) if abs(df) != abs(dr)
]

PROMOTION_OPTIONS: list[PieceType] = [
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.ROOK,
    PieceType.QUEEN,
]


@dataclass(frozen=True)
class Move:
    """
    basic definition of a move to be made
    ---

    A value: two moves are equal when squares and promotion piece are equal.
    The flags for castling / en passant are filled in by the move generator and do not take part in comparisons,
    so a move parsed from "e1g1" matches the generated castling move.
    """

    from_square: Square
    to_square: Square
    promote_to: Optional[PieceType] = None
    castling_direction: Optional[CastlingDirection] = field(default=None, compare=False)
    is_en_passant: bool = field(default=False, compare=False)

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """
        Universal Chess Interface:
        ---
        One of the standard chess notations for moves

        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        * "e1g1": the king castles king-side (if it is a legal move at all is decided by the move generator)
        """
        if len(uci) not in (4, 5):
            raise IllegalMoveError(f"Cannot interpret {uci!r} as a UCI move.")
        try:
            from_sq = Square.from_algebraic(uci[:2])
            to_sq = Square.from_algebraic(uci[2:4])
        except InvalidSquareError as exc:
            raise IllegalMoveError(f"Cannot interpret {uci!r} as a UCI move.") from exc

        promote_to = None
        if len(uci) == 5:
            promote_to = FEN_TO_PIECE.get(uci[4].lower())
            if promote_to not in PROMOTION_OPTIONS:
                raise IllegalMoveError(f"Cannot promote into {uci[4]!r}.")
        return cls(from_sq, to_sq, promote_to)

    def to_uci(self) -> str:
        """Convert into UCI notation"""
        piece_char = PIECE_TO_FEN[self.promote_to] if self.promote_to else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{piece_char}"

    def __str__(self) -> str:
        return self.to_uci()


@dataclass(frozen=True)
class AcceptedMove:
    """Snapshot of the pieces involved, taken on the board BEFORE the move is made."""

    move: Move
    moving_piece: Piece
    captured_piece: Optional[Piece]

    @classmethod
    def from_move_and_board(cls, move: Move, board: Board) -> Self:
        moving_piece = board.piece(move.from_square)
        if move.is_en_passant:
            # the captured pawn is not standing on the target square, but next to the moving pawn
            target = board.piece(Square(move.to_square.file, move.from_square.rank))
        else:
            target = board.piece(move.to_square)
        captured = None if target.is_empty else target
        return cls(move, moving_piece, captured)

    @property
    def is_capture(self) -> bool:
        return self.captured_piece is not None

    @property
    def is_pawn_move(self) -> bool:
        return self.moving_piece.type == PieceType.PAWN


# --- MOVEMENT RULES ---
def walk(square: Square, direction: Vector) -> Iterator[Square]:
    """Squares along a direction, starting next to `square`, until the edge of the board"""
    df, dr = direction
    target_square = square.offset(df, dr)
    while target_square.is_within_bounds():
        yield target_square
        target_square = target_square.offset(df, dr)


def raycasting_move(
    square: Square, board: Board, directions: list[Vector]
) -> list[Move]:
    """
    Raycasting algorithm
    -----

    Line of sight of a sliding piece: walk along each direction up to the first occupied square.
    That square is included only when it holds an opponent's piece (a capture).
    """
    player_color = board.piece(square).color
    moves: list[Move] = []
    for direction in directions:
        for target_square in walk(square, direction):
            piece_found = board.piece(target_square)
            if piece_found.is_empty or piece_found.color != player_color:
                moves.append(Move(from_square=square, to_square=target_square))
            if not piece_found.is_empty:
                break
    return moves


def single_step_move(square: Square, board: Board, deltas: list[Vector]) -> list[Move]:
    """Kings and knights: one jump per delta, onto an empty square or an opponent's piece"""
    player_color = board.piece(square).color
    targets = (square.offset(df, dr) for df, dr in deltas)
    return [
        Move(from_square=square, to_square=target_square)
        for target_square in targets
        if target_square.is_within_bounds() and board.piece(target_square).color != player_color
    ]


def pawn_direction(color: Color) -> int:
    """White moves UP the board, black moves DOWN"""
    return 1 if color == Color.WHITE else -1


def pawn_starting_rank(color: Color) -> int:
    return 2 if color == Color.WHITE else BOARD_DIMENSIONS[1] - 1


def candidate_pawn_moves(square: Square, board: Board) -> list[Move]:
    """
    A pawn:
    - moves by a single square forward (only onto an empty square)
    - It can move by two in their first move (so when on their starting rank), if both squares are empty
    - takes diagonally

    NOTE: En passant and the expansion into the promotion choices are taken care of in Position
    """
    color = board.piece(square).color
    direction = pawn_direction(color)
    moves: list[Move] = []

    one_step = square.offset(0, direction)
    if one_step.is_within_bounds() and board.piece(one_step).is_empty:
        moves.append(Move(from_square=square, to_square=one_step))

        two_steps = square.offset(0, 2 * direction)
        if square.rank == pawn_starting_rank(color) and board.piece(two_steps).is_empty:
            moves.append(Move(from_square=square, to_square=two_steps))

    # pawns take diagonally:
    for df in (-1, 1):
        target_square = square.offset(df, direction)
        if not target_square.is_within_bounds():
            continue
        if board.piece(target_square).color == color.opponent:
            moves.append(Move(from_square=square, to_square=target_square))
    return moves


def candidate_knight_moves(square: Square, board: Board) -> list[Move]:
    """Knights always move such that |delta_rank| + |delta_file| = 3"""
    return single_step_move(square, board, KNIGHT_DELTAS)


def candidate_bishop_moves(square: Square, board: Board) -> list[Move]:
    """Bishops move diagonally: |delta_rank| = |delta_file|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(square: Square, board: Board) -> list[Move]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(square: Square, board: Board) -> list[Move]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return raycasting_move(square, board, DIAGONALS + STRAIGHTS)


def candidate_king_moves(square: Square, board: Board) -> list[Move]:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move (handled separately).
    """
    return single_step_move(square, board, KING_DELTAS)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Square, Board], list[Move]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


# --- CAPTURING RULES / ATTACKING RULES ---
# Attacks are found by looking outward from the attacked square, with the geometry of the attacking piece.
def first_piece_along(square: Square, board: Board, direction: Vector) -> Optional[Piece]:
    for target_square in walk(square, direction):
        piece_found = board.piece(target_square)
        if not piece_found.is_empty:
            return piece_found
    return None


def raycasting_attack(
    square: Square,
    by_color: Color,
    by_piece_types: tuple[PieceType, ...],
    board: Board,
    directions: list[Vector],
) -> bool:
    """
    Raycasting algorithm for attacks.
    ---

    Where `raycasting_move()` answers _"What does the piece on this square see?"_,
    this answers _"Is this square seen by a piece of `by_color` that slides along these directions?"_

    Returns TRUE if the first piece met along one of the directions is of the given color and one of the given types.
    """
    attackers = {Piece(piece_type, by_color) for piece_type in by_piece_types}
    return any(first_piece_along(square, board, direction) in attackers for direction in directions)


def single_step_attack(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    deltas: list[Vector],
) -> bool:
    """Equivalent of `raycasting_attack()` for pawns, kings and knights"""
    attacker = Piece(by_piece_type, by_color)
    targets = (square.offset(df, dr) for df, dr in deltas)
    return any(
        target_square.is_within_bounds() and board.piece(target_square) == attacker
        for target_square in targets
    )


def is_attacked_by_pawn(square: Square, by_color: Color, board: Board) -> bool:
    """
    Pawns take diagonally, but only forward
    ----

    NOTE: to find a white pawn attacking this square, look one rank DOWN the board (white pawns move UP).
    """
    back = -pawn_direction(by_color)
    return single_step_attack(square, by_color, PieceType.PAWN, board, [(1, back), (-1, back)])


# How the other piece types attack: the deltas, and whether they slide along them
ATTACK_GEOMETRY: dict[PieceType, tuple[list[Vector], bool]] = {
    PieceType.KNIGHT: (KNIGHT_DELTAS, False),
    PieceType.BISHOP: (DIAGONALS, True),
    PieceType.ROOK: (STRAIGHTS, True),
    PieceType.QUEEN: (DIAGONALS + STRAIGHTS, True),
    PieceType.KING: (KING_DELTAS, False),
}


IsAttackedFn = Callable[[Square, Color, Board], bool]


def attack_rule(piece_type: PieceType) -> IsAttackedFn:
    deltas, slides = ATTACK_GEOMETRY[piece_type]

    def is_attacked(square: Square, by_color: Color, board: Board) -> bool:
        if slides:
            return raycasting_attack(square, by_color, (piece_type,), board, deltas)
        return single_step_attack(square, by_color, piece_type, board, deltas)

    return is_attacked


# --- STRATEGY PATTERN: ATTACKING RULES ---
ATTACK_RULES: dict[PieceType, IsAttackedFn] = {
    PieceType.PAWN: is_attacked_by_pawn,
    **{piece_type: attack_rule(piece_type) for piece_type in ATTACK_GEOMETRY},
}


# -- CASTLING MOVES ---
def candidate_castling_move(direction: CastlingDirection) -> Move:
    rule = CASTLING_RULES[direction]
    return Move(rule.king_from, rule.king_to, castling_direction=direction)


# -- EN PASSANT MOVES ---
def en_passant_moves(
    en_passant_square: Square, color: Color, board: Board
) -> list[Move]:
    """Pawns of `color` standing diagonally "behind" the en passant square (from their point of view) can capture onto it."""
    back = -pawn_direction(color)
    own_pawn = Piece(PieceType.PAWN, color)
    candidates = (en_passant_square.offset(df, back) for df in (-1, 1))
    return [
        Move(from_square=pawn_square, to_square=en_passant_square, is_en_passant=True)
        for pawn_square in candidates
        if pawn_square.is_within_bounds() and board.piece(pawn_square) == own_pawn
    ]


# -- PAWN PROMOTION MOVES --
PROMOTION_RANKS = (1, BOARD_DIMENSIONS[1])


def is_pawn_push_to_promotion_square(move: Move, board: Board) -> bool:
    return (
        board.piece(move.from_square).type == PieceType.PAWN
        and move.to_square.rank in PROMOTION_RANKS
    )


def pawn_pushes_w_promotion(pawn_push: Move) -> list[Move]:
    """One copy of the pawn push per piece type it can promote into"""
    return [
        Move(pawn_push.from_square, pawn_push.to_square, promote_to=piece_type)
        for piece_type in PROMOTION_OPTIONS
    ]
