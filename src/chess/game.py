"""
The Game class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic required to play a turn -->
passes this information to the service layer, which can then pass it onwards to the API layer.

States: a game is either in progress, or over (checkmate / stalemate / draw).
Transitions: make_move, undo, reset, load_position (and load_pgn). A failed transition raises and leaves the game untouched.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Self

from src.chess.fen import STARTING_FEN
from src.chess.moves import Move
from src.chess.notation import parse_move, parse_san, to_san
from src.chess.pieces import PLAYER_COLORS, Color, Piece, PieceType
from src.chess.position import Position
from src.chess.square import Square
from src.core.exceptions import (
    EmptyHistoryError,
    GameStateError,
    IllegalMoveError,
    InvalidFENError,
    InvalidPGNError,
)
from src.core.models import GameModel
from src.core.shared_types import GameMode, GameOverReason, MoveQuality, Status

logger = logging.getLogger(__name__)

REPETITIONS_FOR_DRAW = 3


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MoveRecord:
    """
    One entry of the move history.

    `fen` is the position AFTER the move. `evaluation` and `quality` get attached later, once the analysis of that position is in.
    """

    move: Move
    san: str
    fen: str
    moving_piece: Piece
    captured_piece: Optional[Piece] = None
    timestamp: datetime = field(default_factory=utc_now)
    evaluation: Optional[float] = None
    quality: Optional[MoveQuality] = None

    @property
    def uci(self) -> str:
        return self.move.to_uci()


@dataclass(frozen=True)
class GameState:
    """Snapshot of everything the UI needs to render the game. Derived, never stored."""

    fen: str
    turn: Color
    game_over: bool
    in_check: bool
    in_checkmate: bool
    in_stalemate: bool
    in_draw: bool
    status: Status
    moves: list[str]
    move_history: list[MoveRecord]
    captured_pieces: dict[Color, list[PieceType]]


class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    def __init__(
        self,
        starting_fen: str = STARTING_FEN,
        players: Optional[dict[Color, str]] = None,
        mode: GameMode = GameMode.AI,
    ) -> None:
        self.initial_position = Position.from_fen(starting_fen)
        self.position = self.initial_position
        self.history: list[MoveRecord] = []
        self.players: dict[Color, str] = dict(players or {})
        self.mode = mode
        # Status only depends on the position + history, so compute once per transition
        self.status = Status.IN_PROGRESS
        self._update_game_status()

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """
        Define how to construct a Game from the information the Service layer actually has
        ---

        The history gets rebuilt by replaying the recorded moves from the starting position.
        Stored move times are put back on the replayed records (a game stored without them keeps the replay time).
        """
        players = {
            color: model.registered_players[color.name.lower()]
            for color in PLAYER_COLORS
            if color.name.lower() in model.registered_players
        }
        game = cls(model.starting_fen, players=players, mode=GameMode(model.mode))
        for uci in model.moves_uci:
            game.make_move(uci)

        # re-attach analysis results
        annotated: list[MoveRecord] = []
        for idx, record in enumerate(game.history):
            evaluation = model.evaluations[idx] if idx < len(model.evaluations) else None
            quality = model.qualities[idx] if idx < len(model.qualities) else None
            timestamp = (
                datetime.fromisoformat(model.timestamps[idx]) if idx < len(model.timestamps) else record.timestamp
            )
            annotated.append(
                replace(
                    record,
                    evaluation=evaluation,
                    quality=MoveQuality(quality) if quality else None,
                    timestamp=timestamp,
                )
            )
        game.history = annotated
        return game

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            starting_fen=self.initial_position.to_fen(),
            current_fen=self.fen,
            moves_uci=[record.uci for record in self.history],
            history_fen=[record.fen for record in self.history],
            registered_players={
                color.name.lower(): name for color, name in self.players.items()
            },
            status=self.status.value,
            mode=self.mode.value,
            evaluations=[record.evaluation for record in self.history],
            qualities=[
                record.quality.value if record.quality else None
                for record in self.history
            ],
            timestamps=[record.timestamp.isoformat() for record in self.history],
        )

    # --- QUERIES ---
    @property
    def fen(self) -> str:
        return self.position.to_fen()

    @property
    def turn(self) -> Color:
        return self.position.color_to_move

    @property
    def ply_count(self) -> int:
        """Half-moves played in this game (since the last reset / load)"""
        return len(self.history)

    @property
    def is_game_over(self) -> bool:
        return self.status != Status.IN_PROGRESS

    @property
    def game_over_reason(self) -> Optional[GameOverReason]:
        match self.status:
            case Status.IN_PROGRESS:
                return None
            case Status.CHECKMATE:
                return GameOverReason.CHECKMATE
            case Status.STALEMATE:
                return GameOverReason.STALEMATE
            case (
                Status.DRAW_REPETITION
                | Status.DRAW_FIFTY_MOVE_RULE
                | Status.DRAW_INSUFFICIENT_MATERIAL
            ):
                return GameOverReason.DRAW

    @property
    def winner(self) -> Optional[Color]:
        """Only a checkmate has a winner: the player who is NOT to move."""
        if self.status != Status.CHECKMATE:
            return None
        return self.turn.opponent

    def legal_moves(self) -> list[str]:
        """All legal moves for the side to move, in SAN. Empty once the game is over."""
        if self.is_game_over:
            return []
        legal_moves = self.position.legal_moves()
        return [to_san(self.position, move, legal_moves) for move in legal_moves]

    def legal_moves_uci(self) -> list[str]:
        if self.is_game_over:
            return []
        return [move.to_uci() for move in self.position.legal_moves()]

    def legal_destinations(self, square: str) -> list[str]:
        """Squares the piece on `square` can legally move to (a promotion shows up once, not four times)"""
        origin = Square.from_algebraic(square)
        destinations: list[str] = []
        if self.is_game_over:
            return destinations
        for move in self.position.legal_moves():
            target = move.to_square.to_algebraic()
            if move.from_square == origin and target not in destinations:
                destinations.append(target)
        return destinations

    def is_valid_move(self, from_square: str, to_square: str) -> bool:
        return to_square in self.legal_destinations(from_square)

    def piece_at(self, square: str) -> Optional[Piece]:
        piece = self.position.piece(Square.from_algebraic(square))
        return None if piece.is_empty else piece

    def is_square_attacked(self, square: str, by_color: Color) -> bool:
        return self.position.board.is_under_attack(Square.from_algebraic(square), by_color)

    def captured_pieces(self) -> dict[Color, list[PieceType]]:
        """
        Pieces taken so far, grouped by the color they belonged to.
        Derived from the history every time, so undo / reset can never leave it out of sync.
        """
        captured: dict[Color, list[PieceType]] = {color: [] for color in PLAYER_COLORS}
        for record in self.history:
            if record.captured_piece is not None:
                captured[record.captured_piece.color].append(record.captured_piece.type)
        return captured

    def game_state(self) -> GameState:
        checkmate = self.status == Status.CHECKMATE
        stalemate = self.status == Status.STALEMATE
        return GameState(
            fen=self.fen,
            turn=self.turn,
            game_over=self.is_game_over,
            in_check=self.position.is_check(),
            in_checkmate=checkmate,
            in_stalemate=stalemate,
            in_draw=self.game_over_reason == GameOverReason.DRAW,
            status=self.status,
            moves=self.legal_moves(),
            move_history=list(self.history),
            captured_pieces=self.captured_pieces(),
        )

    # --- TRANSITIONS ---
    def make_move(self, move_uci: str) -> MoveRecord:
        """
        Attempt to make a move
        -----

        1. make sure the game is still in progress
        2. check the move is in the set of legal moves
        3. update the position and append to the history
        4. update game status (if needed)
        """
        if self.is_game_over:
            raise GameStateError(f"Game is not in progress. status: {self.status}")

        legal_moves = self.position.legal_moves()
        requested = Move.from_uci(move_uci)
        move = next((legal for legal in legal_moves if legal == requested), None)
        if move is None:
            logger.warning("Rejected illegal move %s in %s", move_uci, self.fen)
            raise IllegalMoveError(f"Move not allowed: {move_uci}")

        return self._play(move, legal_moves)

    def make_san_move(self, san: str) -> MoveRecord:
        """Same as `make_move`, but the move is written in SAN ("Nf3")"""
        if self.is_game_over:
            raise GameStateError(f"Game is not in progress. status: {self.status}")
        move = parse_san(self.position, san)
        return self._play(move, self.position.legal_moves())

    def play(self, notation: str) -> MoveRecord:
        """Same as `make_move`, with the move written either in UCI or in SAN"""
        if self.is_game_over:
            raise GameStateError(f"Game is not in progress. status: {self.status}")
        move = parse_move(self.position, notation)
        return self._play(move, self.position.legal_moves())

    def undo(self) -> MoveRecord:
        """Take back the last move. The position is restored from the remaining history (or the initial position)."""
        if not self.history:
            raise EmptyHistoryError("There is no move to undo.")

        record = self.history.pop()
        self.position = (
            Position.from_fen(self.history[-1].fen) if self.history else self.initial_position
        )
        self._update_game_status()
        logger.debug("Undid %s, back to %s", record.san, self.fen)
        return record

    def reset(self) -> None:
        """Back to the standard starting position with an empty history."""
        self.initial_position = Position.starting_position()
        self.position = self.initial_position
        self.history = []
        self._update_game_status()
        logger.info("Game reset")

    def load_position(self, fen: str) -> None:
        """
        Start over from the given position.
        Raises InvalidFENError when the string is not a valid position; the game is left as it was.
        """
        try:
            position = Position.from_fen(fen)
        except InvalidFENError:
            logger.warning("Rejected position %r", fen)
            raise

        self.initial_position = position
        self.position = position
        self.history = []
        self._update_game_status()
        logger.info("Loaded position %s", fen)

    def load_pgn(self, pgn: str) -> None:
        """
        Replace the game with the one recorded in the PGN text.
        Raises InvalidPGNError; the game is left as it was on failure.
        """
        # local import: pgn.py needs the Game class for exporting
        from src.chess.pgn import parse_pgn

        tags, sans = parse_pgn(pgn)
        starting_fen = tags.get("FEN", STARTING_FEN)
        try:
            replay = type(self)(starting_fen, players=self.players, mode=self.mode)
            for san in sans:
                replay.make_san_move(san)
        except (InvalidFENError, IllegalMoveError, GameStateError) as exc:
            raise InvalidPGNError(f"Cannot replay game record: {exc}") from exc

        if "White" in tags:
            self.players[Color.WHITE] = tags["White"]
        if "Black" in tags:
            self.players[Color.BLACK] = tags["Black"]
        self.initial_position = replay.initial_position
        self.position = replay.position
        self.history = replay.history
        self.status = replay.status
        logger.info("Loaded game record with %d half-moves", len(self.history))

    def annotate_last_move(
        self, fen: str, evaluation: float, quality: MoveQuality
    ) -> bool:
        """
        Attach an analysis result to the last move.
        Returns False (and changes nothing) if the last move no longer led to `fen`: the analysis is stale.
        """
        if not self.history or self.history[-1].fen != fen:
            return False
        self.history[-1] = replace(self.history[-1], evaluation=evaluation, quality=quality)
        return True

    # -- PRIVATE HELPERS ---
    def _play(self, move: Move, legal_moves: list[Move]) -> MoveRecord:
        """Apply an already validated move"""
        accepted = self.position.accepted_move(move)
        san = to_san(self.position, move, legal_moves)
        self.position = self.position.apply(move)
        record = MoveRecord(
            move=move,
            san=san,
            fen=self.fen,
            moving_piece=accepted.moving_piece,
            captured_piece=accepted.captured_piece,
        )
        self.history.append(record)
        self._update_game_status()
        if self.is_game_over:
            logger.info("Game over after %s: %s", san, self.status)
        return record

    def _update_game_status(self) -> None:
        """
        Performs checks to see if game has ended and changes status accordingly.

        NOTE: several draw rules can apply at once: the first one found is reported, and only once.
        Priority: checkmate, stalemate, repetition, fifty-move rule, insufficient material.
        """
        if not self.position.has_legal_move():
            self.status = Status.CHECKMATE if self.position.is_check() else Status.STALEMATE
        elif self._is_three_fold_repetition():
            self.status = Status.DRAW_REPETITION
        elif self.position.is_fifty_move_draw():
            self.status = Status.DRAW_FIFTY_MOVE_RULE
        elif self.position.has_insufficient_material():
            self.status = Status.DRAW_INSUFFICIENT_MATERIAL
        else:
            self.status = Status.IN_PROGRESS

    def _is_three_fold_repetition(self) -> bool:
        """Check if the current position occurred (at least) 3 times in this game"""
        if len(self.history) < 2 * (REPETITIONS_FOR_DRAW - 1):
            return False

        current = self.position.repetition_key()
        placement = self.position.state.position
        earlier_fens = [self.initial_position.to_fen()] + [
            record.fen for record in self.history[:-1]
        ]
        # cheap comparison of the piece placement first, only rebuild the positions that could match
        repetitions = 1 + sum(
            1
            for fen in earlier_fens
            if fen.split(" ")[0] == placement
            and Position.from_fen(fen).repetition_key() == current
        )
        return repetitions >= REPETITIONS_FOR_DRAW
