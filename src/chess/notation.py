"""
Human-readable move notation (Standard Algebraic Notation, SAN)
---

UCI ("e2e4") is the machine-facing identifier of a move. SAN ("Nf3", "exd5", "O-O", "e8=Q+") is what gets displayed in the
move history and written into exported game records. Writing SAN requires the position the move is played from:
captures, disambiguation and check markers all depend on it.
"""

import re

from src.chess.castling import CastlingDirection
from src.chess.moves import Move
from src.chess.pieces import PIECE_TO_SAN, PieceType
from src.chess.position import Position
from src.core.exceptions import IllegalMoveError

CASTLE_KING_SIDE = "O-O"
CASTLE_QUEEN_SIDE = "O-O-O"
UCI_PATTERN = re.compile(r"^[a-h][1-8][a-h][1-8][nbrq]?$")


def castling_san(direction: CastlingDirection) -> str:
    return CASTLE_KING_SIDE if direction.is_king_side else CASTLE_QUEEN_SIDE


def to_san(
    position: Position, move: Move, legal_moves: list[Move] | None = None
) -> str:
    """
    SAN of a legal move played from the given position
    ---

    NOTE: the move should be the generated version (with castling/en passant flags), see `Position.find_legal_move()`
    Pass `legal_moves` when they are already known, to spare generating them again.
    """
    if legal_moves is None:
        legal_moves = position.legal_moves()
    san = _san_without_suffix(position, move, legal_moves)
    after = position.apply(move)
    if after.is_check():
        san += "#" if not after.has_legal_move() else "+"
    return san


def _san_without_suffix(
    position: Position, move: Move, legal_moves: list[Move]
) -> str:
    if move.castling_direction is not None:
        return castling_san(move.castling_direction)

    accepted = position.accepted_move(move)
    piece_type = accepted.moving_piece.type
    destination = move.to_square.to_algebraic()
    capture = "x" if accepted.is_capture else ""

    if piece_type == PieceType.PAWN:
        # pawn captures are identified by the file the pawn came from
        prefix = move.from_square.file_name if accepted.is_capture else ""
        promotion = f"={PIECE_TO_SAN[move.promote_to]}" if move.promote_to else ""
        return f"{prefix}{capture}{destination}{promotion}"

    return f"{PIECE_TO_SAN[piece_type]}{_disambiguation(position, move, piece_type, legal_moves)}{capture}{destination}"


def _disambiguation(
    position: Position, move: Move, piece_type: PieceType, legal_moves: list[Move]
) -> str:
    """
    When another piece of the same type can also reach the destination, add the file (preferred), the rank,
    or, if neither is unique, both.
    """
    rivals = [
        other.from_square
        for other in legal_moves
        if other.to_square == move.to_square
        and other.from_square != move.from_square
        and position.piece(other.from_square).type == piece_type
    ]
    if not rivals:
        return ""
    origin = move.from_square
    if all(square.file != origin.file for square in rivals):
        return origin.file_name
    if all(square.rank != origin.rank for square in rivals):
        return str(origin.rank)
    return origin.to_algebraic()


def _normalize(san: str) -> str:
    """Strip check/mate markers and annotation glyphs, accept zeros for castling."""
    san = san.strip().rstrip("+#!?")
    san = san.replace("0-0-0", CASTLE_QUEEN_SIDE).replace("0-0", CASTLE_KING_SIDE)
    return san


def parse_san(position: Position, san: str) -> Move:
    """Find the legal move the SAN token refers to. Raises IllegalMoveError if there is none."""
    wanted = _normalize(san)
    legal_moves = position.legal_moves()
    for move in legal_moves:
        if _san_without_suffix(position, move, legal_moves) == wanted:
            return move
    raise IllegalMoveError(f"No legal move matches {san!r} in position {position.to_fen()}")


def parse_move(position: Position, text: str) -> Move:
    """Accept either UCI ("g1f3") or SAN ("Nf3") and return the generated legal move."""
    if UCI_PATTERN.match(text):
        legal = position.find_legal_move(Move.from_uci(text))
        if legal is None:
            raise IllegalMoveError(f"Move not allowed: {text}")
        return legal
    return parse_san(position, text)
