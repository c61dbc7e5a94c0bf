"""
A full chess position: the Board plus the rest of the FEN state (side to move, castling rights, en passant, counters).

Everything in here is a pure function of the position: generating legal moves, applying a move (returns a NEW Position),
and the predicates for the end of the game.
"""

from dataclasses import dataclass, replace
from typing import Self

from src.chess.board import Board
from src.chess.castling import CASTLING_RULES, ROOK_HOME_SQUARES, CastlingDirection
from src.chess.fen import STARTING_FEN, FENState
from src.chess.moves import (
    AcceptedMove,
    Move,
    candidate_castling_move,
    en_passant_moves,
    is_pawn_push_to_promotion_square,
    pawn_direction,
    pawn_pushes_w_promotion,
    pawn_starting_rank,
)
from src.chess.pieces import PLAYER_COLORS, Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError

FIFTY_MOVE_RULE_PLIES = 100


@dataclass(frozen=True)
class Position:
    board: Board
    state: FENState

    def __hash__(self) -> int:
        # equal positions serialize to the same FEN
        return hash(self.to_fen())

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """
        Parse AND validate a FEN string.
        ---

        On top of the syntax checks done by FENState, the position must be one that can occur in a game:
        * exactly one king of each color
        * no pawns on the first or last rank
        * the side that is NOT to move is not in check (otherwise the previous move was illegal)
        * an en passant square sits right behind an opponent pawn that could just have made a double step
        """
        state = FENState.from_fen(fen)
        board = Board.from_fen(state.position)

        for color in PLAYER_COLORS:
            num_kings = len(board.locate_pieces(PieceType.KING, color))
            if num_kings != 1:
                raise InvalidFENError(
                    f"Position needs exactly one {color.name.lower()} king, found {num_kings}: {fen}"
                )

        back_ranks = (1, BOARD_DIMENSIONS[1])
        if any(square.rank in back_ranks for square in board.locate_pieces(PieceType.PAWN)):
            raise InvalidFENError(f"Pawns cannot stand on the first or last rank: {fen}")

        if board.is_check(state.color_to_move.opponent):
            raise InvalidFENError(
                f"The side that is not to move cannot be in check: {fen}"
            )
        if not _is_possible_en_passant_target(board, state):
            raise InvalidFENError(f"No pawn can just have made a double step past the en passant square: {fen}")
        return cls(board, state)

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)

    def to_fen(self) -> str:
        return self.state.to_fen()

    @property
    def color_to_move(self) -> Color:
        return self.state.color_to_move

    @property
    def ply_number(self) -> int:
        return self.state.ply_number

    def piece(self, square: Square) -> Piece:
        return self.board.piece(square)

    # --- LEGAL MOVES ---
    def legal_moves(self) -> list[Move]:
        """
        List of legal moves for the side to move
        ----

        **Combines the following**

        1. generate candidate moves, using the basic movement rules for all pieces (the board does this calculation)
        2. add candidate castling moves
        3. add candidate en passant moves
        4. remove illegal options --> a move that would put you in check or you are in check and the move does not get you out of it.
        5. Pawn push to promotion square? --> expand the set of moves to include one for every choice of piece type to promote into.

        NOTE: no particular order is guaranteed.
        """
        color = self.color_to_move
        candidate_moves = self.board.generate_candidate_moves(color)
        candidate_moves.extend(self._castling_moves())
        if self.state.en_passant_square is not None:
            candidate_moves.extend(
                en_passant_moves(self.state.en_passant_square, color, self.board)
            )

        legal_moves: list[Move] = []
        for move in candidate_moves:
            if self._is_putting_yourself_in_check(move):
                continue
            if is_pawn_push_to_promotion_square(move, self.board):
                legal_moves.extend(pawn_pushes_w_promotion(move))
            else:
                legal_moves.append(move)
        return legal_moves

    def has_legal_move(self) -> bool:
        return len(self.legal_moves()) > 0

    def find_legal_move(self, move: Move) -> Move | None:
        """Look up the generated version of a move (the one carrying the castling / en passant flags)"""
        for legal_move in self.legal_moves():
            if legal_move == move:
                return legal_move
        return None

    def _is_putting_yourself_in_check(self, move: Move) -> bool:
        """Return True if the move leaves your own king under attack"""
        board = self.board.copy()
        _update_board(board, move)
        return board.is_check(self.color_to_move)

    def _castling_moves(self) -> list[Move]:
        """
        **you are allowed to castle if**

        * Castling rights are not yet revoked (and the king and rook are indeed on their home squares).
        * You are not currently in check (you cannot castle out of check).
        * The squares between king and rook are empty.
        * None of the squares the king passes through or lands on is under attack.
        """
        color = self.color_to_move
        directions = self.state.castling_options(color)
        if not directions or self.board.is_check(color):
            return []

        moves: list[Move] = []
        opponent = color.opponent
        for direction in directions:
            squares = CASTLING_RULES[direction]
            if self.board.piece(squares.king_from) != Piece(PieceType.KING, color):
                continue
            if self.board.piece(squares.rook_from) != Piece(PieceType.ROOK, color):
                continue
            if self.board.is_any_occupied(squares.between):
                continue
            if self.board.is_any_under_attack(squares.king_path, opponent):
                continue
            moves.append(candidate_castling_move(direction))
        return moves

    # --- MAKING A MOVE ---
    def apply(self, move: Move) -> "Position":
        """
        Return the position after the move.
        ---

        NOTE: the move is assumed to be legal (use a move generated by `legal_moves()`).
        1. update the board (castling moves the rook too, en passant removes the pawn that got taken)
        2. revoke castling rights if needed
        3. set the en passant square after a pawn moved two squares
        4. move counters, and finally the side to move
        """
        accepted = AcceptedMove.from_move_and_board(move, self.board)
        color = self.color_to_move

        board = self.board.copy()
        _update_board(board, move)

        state = self.state.without_castling_rights(
            _revoked_castling_rights(accepted)
        )

        en_passant_square = None
        if accepted.is_pawn_move and abs(move.to_square.rank - move.from_square.rank) == 2:
            en_passant_square = move.from_square.offset(0, pawn_direction(color))

        half_move_clock = (
            0 if accepted.is_pawn_move or accepted.is_capture else state.half_move_clock + 1
        )
        num_turns = state.num_turns + 1 if color == Color.BLACK else state.num_turns

        state = replace(
            state,
            position=board.to_fen(),
            color_to_move=color.opponent,
            en_passant_square=en_passant_square,
            half_move_clock=half_move_clock,
            num_turns=num_turns,
        )
        return Position(board, state)

    def accepted_move(self, move: Move) -> AcceptedMove:
        """Snapshot of moving / captured piece for a move made from this position"""
        return AcceptedMove.from_move_and_board(move, self.board)

    # --- CHECKS FOR ENDING THE GAME ---
    def is_check(self) -> bool:
        """Side to move is in check"""
        return self.board.is_check(self.color_to_move)

    def is_checkmate(self) -> bool:
        return self.is_check() and not self.has_legal_move()

    def is_stalemate(self) -> bool:
        return not self.is_check() and not self.has_legal_move()

    def is_fifty_move_draw(self) -> bool:
        """Fifty moves by each side (100 half-moves) without a pawn move or capture"""
        return self.state.half_move_clock >= FIFTY_MOVE_RULE_PLIES

    def has_insufficient_material(self) -> bool:
        """
        Neither side can ever mate:
        * king vs king
        * king + single knight or bishop vs king
        * king + bishop vs king + bishop, with both bishops on the same square color
        """
        remaining = [
            (square, piece)
            for square, piece in self.board.position.items()
            if not piece.is_empty and piece.type != PieceType.KING
        ]
        if not remaining:
            return True
        if len(remaining) == 1:
            return remaining[0][1].type in (PieceType.KNIGHT, PieceType.BISHOP)
        if len(remaining) == 2:
            (square_a, piece_a), (square_b, piece_b) = remaining
            return (
                piece_a.type == piece_b.type == PieceType.BISHOP
                and piece_a.color != piece_b.color
                and square_a.is_light() == square_b.is_light()
            )
        return False

    def repetition_key(self) -> str:
        """
        Identity of a position for the threefold repetition rule.
        NOTE: the en passant square only counts when an en passant capture is actually possible.
        """
        state = self.state
        if state.en_passant_square is not None and not any(
            move.is_en_passant for move in self.legal_moves()
        ):
            state = replace(state, en_passant_square=None)
        # drop the two move counters
        return " ".join(state.to_fen().split(" ")[:4])


# -- BOARD UPDATE HELPERS ---
def _update_board(board: Board, move: Move) -> None:
    """Displace the pieces for any kind of move"""
    if move.castling_direction is not None:
        _move_castling_pieces(board, move.castling_direction)
        return

    if move.is_en_passant:
        # NOTE The pawn removed stands in the same file as the en passant square, on the rank the moving pawn came from.
        board.remove_piece(Square(file=move.to_square.file, rank=move.from_square.rank))

    board.move_piece(move)
    if move.promote_to is not None:
        board.promote_piece(move.to_square, to=move.promote_to)


def _move_castling_pieces(board: Board, direction: CastlingDirection) -> None:
    """Move both the King and the Rook"""
    squares = CASTLING_RULES[direction]
    board.move_piece(Move(from_square=squares.king_from, to_square=squares.king_to))
    board.move_piece(Move(from_square=squares.rook_from, to_square=squares.rook_to))


def _revoked_castling_rights(move: AcceptedMove) -> list[CastlingDirection]:
    """
    Checks which rights should get revoked
    ----

    1. If you are moving your king (castling included) --> revoke both of yours
    2. A move starting from a rook's home square --> that rook moved (or it already left earlier)
    3. A move ending on a rook's home square --> that rook got captured
    """
    revoked: list[CastlingDirection] = []
    if move.moving_piece.type == PieceType.KING:
        revoked.extend(
            direction
            for direction in CastlingDirection
            if direction.color == move.moving_piece.color
        )
    for square in (move.move.from_square, move.move.to_square):
        if square in ROOK_HOME_SQUARES:
            revoked.append(ROOK_HOME_SQUARES[square])
    return revoked


def _is_possible_en_passant_target(board: Board, state: FENState) -> bool:
    """
    The opponent's pawn that made the double step stands just beyond the target square,
    and both the target square and the square the pawn came from are empty.
    """
    target = state.en_passant_square
    if target is None:
        return True
    opponent = state.color_to_move.opponent
    forward = pawn_direction(opponent)
    if target.rank != pawn_starting_rank(opponent) + forward:
        return False
    return (
        board.piece(target.offset(0, forward)) == Piece(PieceType.PAWN, opponent)
        and board.is_empty(target)
        and board.is_empty(target.offset(0, -forward))
    )
