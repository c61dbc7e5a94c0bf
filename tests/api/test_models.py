"""Unit tests for src/api/models.py"""

from uuid import UUID, uuid4

import pytest

from src.api.models import (
    AnalysisRequest,
    CreateGameRequest,
    ImportPGNRequest,
    LegalMovesRequest,
    LoadPositionRequest,
    MoveRequest,
)
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, GameMode, PieceType

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


@pytest.fixture
def mock_id() -> UUID:
    return uuid4()


# -- Validation - CreateGameRequest --
def test_valid_fen() -> None:
    request = CreateGameRequest(
        player_name="don't hate the player, hate the name.",
        color=Color.BLACK,
        starting_fen=f"  {STARTING_FEN} ",
    )
    assert request.starting_fen == STARTING_FEN


def test_create_game_defaults() -> None:
    request = CreateGameRequest(player_name="Alice")
    assert request.color == Color.WHITE
    assert request.mode == GameMode.AI
    assert request.starting_fen is None
    assert request.opponent_name == "Coach"


@pytest.mark.parametrize(
    "invalid_fen",
    [
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0",  # only 5 space-separated values
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1 extra",  # too many space-separated values
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNX w KQkq - 0 1",  # unknown piece
    ],
)
def test_invalid_fen(invalid_fen: str) -> None:
    with pytest.raises(InvalidRequestError):
        CreateGameRequest(player_name="Alice", color=Color.BLACK, starting_fen=invalid_fen)


def test_empty_player_name() -> None:
    with pytest.raises(InvalidRequestError):
        CreateGameRequest(player_name="   ")


# -- Validation - MoveRequest --
def test_valid_square_names(mock_id: UUID) -> None:
    request = MoveRequest(game_id=mock_id, from_square="E2", to_square="e4")
    assert request.from_square == "e2"
    assert request.to_square == "e4"


def test_promotion_request(mock_id: UUID) -> None:
    request = MoveRequest(game_id=mock_id, from_square="a7", to_square="a8", promote_to=PieceType.QUEEN)
    assert request.promote_to == PieceType.QUEEN


@pytest.mark.parametrize("square", ["nonsense", "11", "aa", "i1", "a9", ""])
def test_invalid_from_square(mock_id: UUID, square: str) -> None:
    with pytest.raises(InvalidRequestError):
        MoveRequest(game_id=mock_id, from_square=square, to_square="e4")


@pytest.mark.parametrize("square", ["nonsense", "11", "aa"])
def test_invalid_to_square(mock_id: UUID, square: str) -> None:
    with pytest.raises(InvalidRequestError):
        MoveRequest(game_id=mock_id, from_square="e2", to_square=square)


@pytest.mark.parametrize("notation", ["e2e4", "e7e8q", " Nf3 ", "O-O"])
def test_move_in_notation(mock_id: UUID, notation: str) -> None:
    request = MoveRequest(game_id=mock_id, notation=notation)
    assert request.notation == notation.strip()
    assert request.from_square is None


def test_move_request_needs_a_move(mock_id: UUID) -> None:
    with pytest.raises(InvalidRequestError):
        MoveRequest(game_id=mock_id, from_square="e2")
    with pytest.raises(InvalidRequestError):
        MoveRequest(game_id=mock_id, notation="  ")


# -- Validation - other requests --
def test_legal_moves_from_square(mock_id: UUID) -> None:
    assert LegalMovesRequest(game_id=mock_id).from_square is None
    assert LegalMovesRequest(game_id=mock_id, from_square="g1").from_square == "g1"
    with pytest.raises(InvalidRequestError):
        LegalMovesRequest(game_id=mock_id, from_square="z1")


def test_load_position_checks_the_fen_shape(mock_id: UUID) -> None:
    # missing king: shape is fine, the domain rejects it later
    request = LoadPositionRequest(game_id=mock_id, fen="8/8/8/8/8/8/8/8 w - - 0 1")
    assert request.fen == "8/8/8/8/8/8/8/8 w - - 0 1"
    with pytest.raises(InvalidRequestError):
        LoadPositionRequest(game_id=mock_id, fen="8/8/8 w - - 0 1")


def test_import_pgn_needs_text(mock_id: UUID) -> None:
    with pytest.raises(InvalidRequestError):
        ImportPGNRequest(game_id=mock_id, pgn="\n  ")


def test_analysis_depth_is_optional(mock_id: UUID) -> None:
    assert AnalysisRequest(game_id=mock_id).depth is None
    assert AnalysisRequest(game_id=mock_id, depth=8).depth == 8
