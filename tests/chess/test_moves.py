"""Unit tests for /src/chess/moves.py"""

from unittest.mock import patch

import pytest

import src.chess.moves as mv
from src.chess.board import Board
from src.chess.castling import CastlingDirection
from src.chess.moves import (
    AcceptedMove,
    Color,
    Move,
    Piece,
    PieceType,
    Square,
    candidate_bishop_moves,
    candidate_castling_move,
    candidate_king_moves,
    candidate_knight_moves,
    candidate_pawn_moves,
    candidate_queen_moves,
    candidate_rook_moves,
    en_passant_moves,
    is_pawn_push_to_promotion_square,
    pawn_pushes_w_promotion,
    raycasting_attack,
)
from src.core.exceptions import IllegalMoveError

EMPTY_FEN = "/".join(["8"] * 8)


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def targets(moves: list[Move]) -> set[str]:
    return {move.to_square.to_algebraic() for move in moves}


def board_with(**pieces: str) -> Board:
    """board_with(e4="Q", d5="p") places a white queen on e4 and a black pawn on d5"""
    board = Board.empty()
    for square, fen in pieces.items():
        board.place_piece(Piece.from_fen(fen), sq(square))
    return board


# -- MOVE CREATION, ENCODING/DECODING UCI NOTATION ---
@pytest.mark.parametrize(
    "uci_move, from_uci, to_uci, promote_to",
    [
        ("e2e4", "e2", "e4", None),
        ("a1a5", "a1", "a5", None),
        ("g3a7", "g3", "a7", None),
        ("e7e8q", "e7", "e8", PieceType.QUEEN),
        ("b2a1n", "b2", "a1", PieceType.KNIGHT),
    ],
)
def test_move_uci_roundtrip(
    uci_move: str, from_uci: str, to_uci: str, promote_to: PieceType | None
) -> None:
    move = Move.from_uci(uci_move)
    assert move.from_square == sq(from_uci)
    assert move.to_square == sq(to_uci)
    assert move.promote_to == promote_to
    assert move.to_uci() == uci_move
    assert str(move) == uci_move


@pytest.mark.parametrize("uci_move", ["", "e2", "e2e", "e2e9", "i2e4", "e7e8k", "e7e8x", "e2e4qq"])
def test_invalid_uci(uci_move: str) -> None:
    with pytest.raises(IllegalMoveError):
        Move.from_uci(uci_move)


def test_flags_do_not_take_part_in_equality() -> None:
    """'e1g1' parsed from text must match the generated castling move"""
    castling = candidate_castling_move(CastlingDirection.WHITE_KING_SIDE)
    assert castling.castling_direction == CastlingDirection.WHITE_KING_SIDE
    assert Move.from_uci("e1g1") == castling


# -- MOVEMENT RULES --
def test_knight_moves_from_the_corner() -> None:
    board = board_with(a1="N")
    assert targets(candidate_knight_moves(sq("a1"), board)) == {"b3", "c2"}


def test_knight_cannot_land_on_own_piece() -> None:
    board = board_with(a1="N", b3="P", c2="p")
    assert targets(candidate_knight_moves(sq("a1"), board)) == {"c2"}


def test_rook_raycasting_stops_at_pieces() -> None:
    """Own piece blocks, opponent piece can be captured"""
    board = board_with(d4="R", d6="P", f4="p")
    expected = {"d5", "d3", "d2", "d1", "e4", "f4", "c4", "b4", "a4"}
    assert targets(candidate_rook_moves(sq("d4"), board)) == expected


def test_bishop_moves() -> None:
    board = board_with(c1="B", b2="P")
    assert targets(candidate_bishop_moves(sq("c1"), board)) == {"d2", "e3", "f4", "g5", "h6"}


def test_queen_combines_rook_and_bishop() -> None:
    board = board_with(d4="Q")
    moves = candidate_queen_moves(sq("d4"), board)
    assert len(moves) == 27
    assert targets(moves) == targets(candidate_rook_moves(sq("d4"), board)) | targets(
        candidate_bishop_moves(sq("d4"), board)
    )


def test_king_moves() -> None:
    board = board_with(e1="K", d2="P")
    assert targets(candidate_king_moves(sq("e1"), board)) == {"d1", "f1", "e2", "f2"}


def test_pawn_single_and_double_push() -> None:
    board = board_with(e2="P")
    assert targets(candidate_pawn_moves(sq("e2"), board)) == {"e3", "e4"}


def test_pawn_double_push_only_from_starting_rank() -> None:
    board = board_with(e3="P", d6="p")
    assert targets(candidate_pawn_moves(sq("e3"), board)) == {"e4"}
    assert targets(candidate_pawn_moves(sq("d6"), board)) == {"d5"}


@pytest.mark.parametrize("blocker", ["p", "P", "N"])
def test_pawn_cannot_push_into_any_piece(blocker: str) -> None:
    """Pawns capture diagonally only: a piece straight ahead (of either color) blocks both pushes"""
    board = Board.empty()
    board.place_piece(Piece.from_fen("P"), sq("e2"))
    board.place_piece(Piece.from_fen(blocker), sq("e3"))
    assert candidate_pawn_moves(sq("e2"), board) == []


def test_pawn_double_push_blocked_on_second_square() -> None:
    board = board_with(e7="p", e5="N")
    assert targets(candidate_pawn_moves(sq("e7"), board)) == {"e6"}


def test_pawn_captures_diagonally() -> None:
    board = board_with(e4="P", d5="p", f5="P", e5="n")
    assert targets(candidate_pawn_moves(sq("e4"), board)) == {"d5"}


@patch.object(mv, "raycasting_move")
def test_sliding_pieces_delegate_to_raycasting(mock_raycasting) -> None:
    board = board_with(d4="B")
    candidate_bishop_moves(sq("d4"), board)
    mock_raycasting.assert_called_once_with(sq("d4"), board, mv.DIAGONALS)


# -- ATTACKS --
def test_raycasting_attack_checks_piece_type() -> None:
    board = board_with(a1="B", h8="k")
    assert raycasting_attack(sq("h8"), Color.WHITE, (PieceType.BISHOP,), board, mv.DIAGONALS)
    assert not raycasting_attack(sq("h8"), Color.WHITE, (PieceType.ROOK,), board, mv.DIAGONALS)
    assert not raycasting_attack(sq("h8"), Color.BLACK, (PieceType.BISHOP,), board, mv.DIAGONALS)


@pytest.mark.parametrize("piece_type", list(mv.ATTACK_RULES.keys()))
def test_attacking_piece_types_also_have_movement_rules(piece_type: PieceType) -> None:
    assert piece_type in mv.MOVEMENT_RULES


# -- SPECIAL MOVES --
def test_en_passant_moves() -> None:
    """Black just played d7d5, white pawns on c5 and e5 can both take on d6"""
    board = board_with(c5="P", d5="p", e5="P")
    moves = en_passant_moves(sq("d6"), Color.WHITE, board)
    assert {move.from_square.to_algebraic() for move in moves} == {"c5", "e5"}
    assert all(move.is_en_passant for move in moves)


def test_accepted_move_en_passant_captures_the_passed_pawn() -> None:
    board = board_with(e5="P", d5="p")
    move = en_passant_moves(sq("d6"), Color.WHITE, board)[0]
    accepted = AcceptedMove.from_move_and_board(move, board)
    assert accepted.captured_piece == Piece(PieceType.PAWN, Color.BLACK)
    assert accepted.is_capture
    assert accepted.is_pawn_move


def test_accepted_move_en_passant_onto_nothing_is_not_a_capture() -> None:
    board = board_with(d5="P")
    move = Move(sq("d5"), sq("e6"), is_en_passant=True)
    accepted = AcceptedMove.from_move_and_board(move, board)
    assert accepted.captured_piece is None
    assert not accepted.is_capture


def test_accepted_move_without_capture() -> None:
    board = board_with(g1="N")
    accepted = AcceptedMove.from_move_and_board(Move(sq("g1"), sq("f3")), board)
    assert accepted.captured_piece is None
    assert not accepted.is_pawn_move


def test_promotion_expansion() -> None:
    board = board_with(b7="P")
    push = Move(sq("b7"), sq("b8"))
    assert is_pawn_push_to_promotion_square(push, board)
    promotions = pawn_pushes_w_promotion(push)
    assert [move.to_uci() for move in promotions] == ["b7b8n", "b7b8b", "b7b8r", "b7b8q"]


def test_non_pawn_reaching_back_rank_does_not_promote() -> None:
    board = board_with(b7="R")
    assert not is_pawn_push_to_promotion_square(Move(sq("b7"), sq("b8")), board)
