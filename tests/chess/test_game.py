"""Unit tests for /src/chess/game.py"""

import logging
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from src.chess.game import Game, MoveRecord
from src.chess.pieces import Color, Piece, PieceType
from src.core.exceptions import (
    EmptyHistoryError,
    GameStateError,
    IllegalMoveError,
    InvalidFENError,
    InvalidPGNError,
    InvalidSquareError,
)
from src.core.models import GameModel
from src.core.shared_types import GameMode, GameOverReason, MoveQuality, Status

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
FOOLS_MATE = ["f2f3", "e7e5", "g2g4", "d8h4"]
STALEMATE_FEN = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"
KNIGHT_SHUFFLE = ["g1f3", "g8f6", "f3g1", "f6g8"]


def play(game: Game, moves: list[str]) -> Game:
    for uci in moves:
        game.make_move(uci)
    return game


@pytest.fixture
def game() -> Game:
    return Game(players={Color.WHITE: "Alice", Color.BLACK: "Coach"})


# -- NEW GAME / QUERIES --
def test_new_game(game: Game) -> None:
    assert game.fen == STARTING_FEN
    assert game.turn == Color.WHITE
    assert game.status == Status.IN_PROGRESS
    assert not game.is_game_over
    assert game.game_over_reason is None
    assert game.winner is None
    assert len(game.legal_moves()) == 20
    assert "Nf3" in game.legal_moves()
    assert "g1f3" in game.legal_moves_uci()


def test_twenty_black_replies_after_e4(game: Game) -> None:
    record = game.make_move("e2e4")
    assert record.san == "e4"
    assert record.uci == "e2e4"
    assert record.fen == game.fen
    assert game.turn == Color.BLACK
    assert len(game.legal_moves()) == 20
    assert game.ply_count == 1


def test_legal_destinations(game: Game) -> None:
    assert sorted(game.legal_destinations("e2")) == ["e3", "e4"]
    assert sorted(game.legal_destinations("b1")) == ["a3", "c3"]
    assert game.legal_destinations("e1") == []
    assert game.legal_destinations("e7") == []  # not black's turn
    assert game.is_valid_move("g1", "f3")
    assert not game.is_valid_move("g1", "g3")


def test_promotion_destination_listed_once() -> None:
    game = Game("8/P3k3/8/8/8/8/8/4K3 w - - 0 1")
    assert game.legal_destinations("a7") == ["a8"]


def test_invalid_square_name(game: Game) -> None:
    with pytest.raises(InvalidSquareError):
        game.legal_destinations("z9")


def test_piece_at(game: Game) -> None:
    assert game.piece_at("d1") == Piece(PieceType.QUEEN, Color.WHITE)
    assert game.piece_at("d4") is None


def test_is_square_attacked(game: Game) -> None:
    assert game.is_square_attacked("f3", Color.WHITE)
    assert not game.is_square_attacked("f3", Color.BLACK)


# -- MAKING MOVES --
def test_illegal_move_leaves_game_untouched(game: Game, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="src.chess.game"):
        with pytest.raises(IllegalMoveError):
            game.make_move("e2e5")
    assert game.fen == STARTING_FEN
    assert game.history == []
    assert "e2e5" in caplog.text


@pytest.mark.parametrize("uci", ["e2", "hello", "e7e8k"])
def test_unreadable_move(game: Game, uci: str) -> None:
    with pytest.raises(IllegalMoveError):
        game.make_move(uci)


def test_promotion_needs_a_piece() -> None:
    game = Game("8/P3k3/8/8/8/8/8/4K3 w - - 0 1")
    with pytest.raises(IllegalMoveError):
        game.make_move("a7a8")
    record = game.make_move("a7a8q")
    assert record.san == "a8=Q"
    assert game.piece_at("a8") == Piece(PieceType.QUEEN, Color.WHITE)


def test_make_san_move(game: Game) -> None:
    game.make_san_move("e4")
    game.make_san_move("e5")
    record = game.make_san_move("Nf3")
    assert record.uci == "g1f3"
    with pytest.raises(IllegalMoveError):
        game.make_san_move("Nf3")


def test_play_accepts_both_notations(game: Game) -> None:
    assert game.play("e2e4").san == "e4"
    assert game.play("e5").uci == "e7e5"
    with pytest.raises(IllegalMoveError):
        game.play("e1e3")
    assert len(game.history) == 2


def test_castling_through_game(game: Game) -> None:
    play(game, ["e2e4", "e7e5", "g1f3", "b8c6", "f1c4", "g8f6"])
    record = game.make_move("e1g1")
    assert record.san == "O-O"
    assert game.piece_at("f1") == Piece(PieceType.ROOK, Color.WHITE)
    assert game.fen.split(" ")[2] == "kq"


def test_captured_pieces(game: Game) -> None:
    play(game, ["e2e4", "d7d5", "e4d5", "d8d5"])
    assert game.captured_pieces() == {
        Color.WHITE: [PieceType.PAWN],
        Color.BLACK: [PieceType.PAWN],
    }
    game.undo()
    assert game.captured_pieces() == {Color.WHITE: [], Color.BLACK: [PieceType.PAWN]}


# -- ENDING THE GAME --
def test_fools_mate(game: Game) -> None:
    play(game, FOOLS_MATE)
    assert game.status == Status.CHECKMATE
    assert game.is_game_over
    assert game.game_over_reason == GameOverReason.CHECKMATE
    assert game.turn == Color.WHITE
    assert game.winner == Color.BLACK
    assert game.legal_moves() == []
    assert game.history[-1].san == "Qh4#"

    state = game.game_state()
    assert state.in_check
    assert state.in_checkmate
    assert not state.in_draw
    assert state.moves == []


def test_no_moves_after_game_over(game: Game) -> None:
    play(game, FOOLS_MATE)
    with pytest.raises(GameStateError):
        game.make_move("e2e4")
    with pytest.raises(GameStateError):
        game.make_san_move("e4")
    assert len(game.history) == 4


def test_stalemate() -> None:
    game = Game(STALEMATE_FEN)
    assert game.status == Status.STALEMATE
    assert game.game_over_reason == GameOverReason.STALEMATE
    assert game.winner is None

    state = game.game_state()
    assert state.in_stalemate
    assert not state.in_check
    # stalemate is reported on its own, not as a draw
    assert not state.in_draw


def test_threefold_repetition(game: Game) -> None:
    play(game, KNIGHT_SHUFFLE)
    assert game.status == Status.IN_PROGRESS
    play(game, KNIGHT_SHUFFLE)
    assert game.status == Status.DRAW_REPETITION
    assert game.game_over_reason == GameOverReason.DRAW
    assert game.game_state().in_draw


def test_fifty_move_rule() -> None:
    game = Game("8/8/8/4k3/8/8/8/R3K3 w - - 99 80")
    assert game.status == Status.IN_PROGRESS
    game.make_move("a1a2")
    assert game.status == Status.DRAW_FIFTY_MOVE_RULE


def test_insufficient_material_after_capture() -> None:
    game = Game("8/8/8/4k3/8/8/3r4/4K3 w - - 0 1")
    assert game.status == Status.IN_PROGRESS
    game.make_move("e1d2")
    assert game.status == Status.DRAW_INSUFFICIENT_MATERIAL
    assert game.game_state().in_draw


def test_status_is_only_recomputed_when_the_position_changes(game: Game) -> None:
    with patch.object(Game, "_update_game_status") as mock_update:
        with pytest.raises(IllegalMoveError):
            game.make_move("e2e5")
        mock_update.assert_not_called()
        game.make_move("e2e4")
        mock_update.assert_called_once()


# -- UNDO / RESET / LOAD --
def test_undo_restores_previous_position(game: Game) -> None:
    game.make_move("e2e4")
    after_e4 = game.fen
    game.make_move("e7e5")
    undone = game.undo()
    assert isinstance(undone, MoveRecord)
    assert undone.uci == "e7e5"
    assert game.fen == after_e4
    game.undo()
    assert game.fen == STARTING_FEN
    assert game.history == []


def test_undo_without_history(game: Game) -> None:
    with pytest.raises(EmptyHistoryError):
        game.undo()


def test_undo_reopens_finished_game(game: Game) -> None:
    play(game, FOOLS_MATE)
    game.undo()
    assert game.status == Status.IN_PROGRESS
    assert game.turn == Color.BLACK


def test_reset(game: Game) -> None:
    play(game, FOOLS_MATE)
    game.reset()
    assert game.fen == STARTING_FEN
    assert game.history == []
    assert game.status == Status.IN_PROGRESS
    assert game.players[Color.WHITE] == "Alice"


def test_load_position(game: Game) -> None:
    game.make_move("e2e4")
    game.load_position(STALEMATE_FEN)
    assert game.fen == STALEMATE_FEN
    assert game.history == []
    assert game.status == Status.STALEMATE


@pytest.mark.parametrize(
    "fen",
    [
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQ1BNR w kq - 0 1",  # no white king
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP w KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq e3 0 1",  # no pawn made a double step
        "4k3/8/8/3P4/8/8/8/4K3 w - e6 0 1",  # no black pawn to take en passant
        "",
    ],
)
def test_invalid_position_leaves_game_untouched(game: Game, fen: str) -> None:
    game.make_move("e2e4")
    before = game.fen
    with pytest.raises(InvalidFENError):
        game.load_position(fen)
    assert game.fen == before
    assert len(game.history) == 1


# -- PGN IMPORT --
def test_load_pgn(game: Game) -> None:
    pgn = '[White "Magnus"]\n[Black "Hikaru"]\n\n1. f3 e5 2. g4 Qh4# 0-1\n'
    game.load_pgn(pgn)
    assert game.status == Status.CHECKMATE
    assert [record.uci for record in game.history] == FOOLS_MATE
    assert game.players == {Color.WHITE: "Magnus", Color.BLACK: "Hikaru"}


def test_load_pgn_with_illegal_move_leaves_game_untouched(game: Game) -> None:
    game.make_move("d2d4")
    before = game.fen
    with pytest.raises(InvalidPGNError):
        game.load_pgn("1. e4 e5 2. Ke3 *")
    assert game.fen == before
    assert game.players[Color.WHITE] == "Alice"


# -- ANALYSIS ATTACHED TO MOVES --
def test_annotate_last_move(game: Game) -> None:
    game.make_move("e2e4")
    assert game.annotate_last_move(game.fen, 0.5, MoveQuality.GOOD)
    assert game.history[-1].evaluation == 0.5
    assert game.history[-1].quality == MoveQuality.GOOD


def test_stale_annotation_is_refused(game: Game) -> None:
    game.make_move("e2e4")
    analysed_fen = game.fen
    game.make_move("e7e5")
    assert not game.annotate_last_move(analysed_fen, 0.5, MoveQuality.GOOD)
    assert game.history[-1].evaluation is None


def test_nothing_to_annotate(game: Game) -> None:
    assert not game.annotate_last_move(STARTING_FEN, 0.0, MoveQuality.EXCELLENT)


# -- CONVERSION FROM / TO GameModel --
def test_model_roundtrip(game: Game) -> None:
    play(game, ["e2e4", "e7e5", "g1f3"])
    game.annotate_last_move(game.fen, 0.0, MoveQuality.EXCELLENT)
    model = game.to_model()

    assert model.starting_fen == STARTING_FEN
    assert model.current_fen == game.fen
    assert model.moves_uci == ["e2e4", "e7e5", "g1f3"]
    assert model.history_fen[-1] == game.fen
    assert model.registered_players == {"white": "Alice", "black": "Coach"}
    assert model.status == "in progress"
    assert model.evaluations == [None, None, 0.0]
    assert model.qualities == [None, None, "excellent"]

    rebuilt = Game.from_model(model)
    assert rebuilt.fen == game.fen
    assert rebuilt.players == game.players
    assert rebuilt.history[-1].quality == MoveQuality.EXCELLENT
    # move times survive storage instead of being reset to the time of the replay
    assert [record.timestamp for record in rebuilt.history] == [record.timestamp for record in game.history]
    assert rebuilt.to_model() == model


def test_from_model_with_custom_start() -> None:
    model = GameModel(
        starting_fen="4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 2",
        current_fen="4k3/8/3P4/8/8/8/8/4K3 b - - 0 2",
        moves_uci=["e5d6"],
        history_fen=["4k3/8/3P4/8/8/8/8/4K3 b - - 0 2"],
        registered_players={"black": "Coach"},
        status="in progress",
        mode="training",
    )
    game = Game.from_model(model)
    assert game.fen == model.current_fen
    assert game.mode == GameMode.TRAINING
    assert game.players == {Color.BLACK: "Coach"}
    assert game.captured_pieces()[Color.BLACK] == [PieceType.PAWN]


def test_stored_move_times_are_restored() -> None:
    model = Game().to_model()
    model.moves_uci = ["e2e4"]
    model.timestamps = ["2026-01-01T12:00:00+00:00"]
    game = Game.from_model(model)
    assert game.history[0].timestamp == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
