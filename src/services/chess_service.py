"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
import random
from typing import Optional
from uuid import UUID

from src.analysis.analyzer import AnalysisPipeline, PositionAnalyzer
from src.analysis.coach import CoachState
from src.analysis.opponent import choose_opponent_move
from src.api.models import (
    ActionResponse,
    AnalysisRequest,
    AnalysisResponse,
    CreateGameRequest,
    DeleteGameRequest,
    ExportPGNRequest,
    ExportResponse,
    GameResponse,
    GetGameRequest,
    ImportPGNRequest,
    LegalMovesRequest,
    LegalMovesResponse,
    LoadPositionRequest,
    MoveRecordResponse,
    MoveRequest,
    OpponentMoveRequest,
    ResetRequest,
    UndoRequest,
)
from src.chess import pieces
from src.chess.fen import STARTING_FEN
from src.chess.game import Game
from src.chess.pgn import GameTags, export_pgn
from src.core.config import Settings
from src.core.exceptions import (
    AnalysisStaleError,
    EmptyHistoryError,
    GameError,
    GameStateError,
    IllegalMoveError,
    InvalidFENError,
    InvalidPGNError,
    InvalidRequestError,
    InvalidSquareError,
    RepositoryError,
)
from src.core.models import GameModel
from src.core.shared_types import FailureReason, GameMode
from src.db.repository import GameRepository

logger = logging.getLogger(__name__)

# NOTE: order matters, the first matching exception type wins
FAILURE_REASONS: list[tuple[type[GameError], FailureReason]] = [
    (IllegalMoveError, FailureReason.ILLEGAL_MOVE),
    (InvalidSquareError, FailureReason.ILLEGAL_MOVE),
    (InvalidFENError, FailureReason.INVALID_POSITION),
    (InvalidPGNError, FailureReason.INVALID_PGN),
    (EmptyHistoryError, FailureReason.EMPTY_HISTORY),
    (GameStateError, FailureReason.GAME_OVER),
    (AnalysisStaleError, FailureReason.ANALYSIS_STALE),
]

# In a game against the coach, undo takes back the player's move together with the coach's reply
AI_UNDO_PLIES = 2


def failure_reason(exc: GameError) -> FailureReason:
    for exc_type, reason in FAILURE_REASONS:
        if isinstance(exc, exc_type):
            return reason
    raise exc


class ChessService:
    """Orchestration of layers for chess game."""

    def __init__(
        self,
        repository: GameRepository,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.repo = repository
        self.settings = settings or Settings()
        self.rng = rng or random.Random()
        # analysis state lives in memory only, one pipeline (and cache) and one coach per game
        self.pipelines: dict[UUID, AnalysisPipeline] = {}
        self.coaches: dict[UUID, CoachState] = {}

    # -- API routes logic ---
    def create_new_game(self, request: CreateGameRequest) -> GameResponse:
        """Player requested a new game, against the coach or not."""
        player_color = pieces.Color[request.color.name]
        players = {
            player_color: request.player_name,
            player_color.opponent: request.opponent_name,
        }
        try:
            game = Game(request.starting_fen or STARTING_FEN, players=players, mode=request.mode)
        except InvalidFENError as exc:
            raise InvalidRequestError(f"Cannot start a game from this position: {exc}") from exc

        _, game_id = self.repo.create_game(game.to_model())
        logger.info("Created %s game %s for %s", request.mode, game_id, request.player_name)
        return self._create_game_response(game_id, game)

    def get_game_state(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        game = self._fetch_game(request.game_id)
        return self._create_game_response(request.game_id, game)

    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """All legal moves in SAN, or the destination squares of the piece on `from_square`."""
        game = self._fetch_game(request.game_id)
        if request.from_square is None:
            legal_moves = game.legal_moves()
        else:
            legal_moves = game.legal_destinations(request.from_square)
        return LegalMovesResponse(
            game_id=request.game_id,
            color=game.turn.to_shared(),
            from_square=request.from_square,
            legal_moves=legal_moves,
        )

    def make_move(self, request: MoveRequest) -> ActionResponse:
        game = self._fetch_game(request.game_id)
        try:
            if request.notation is None:
                game.make_move(self._build_uci(request))
            else:
                game.play(request.notation)
        except GameError as exc:
            return self._failure(request.game_id, game, exc)
        return self._commit(request.game_id, game)

    def undo(self, request: UndoRequest) -> ActionResponse:
        game = self._fetch_game(request.game_id)
        plies = AI_UNDO_PLIES if game.mode == GameMode.AI else 1
        try:
            game.undo()
            for _ in range(plies - 1):
                if game.history:
                    game.undo()
        except GameError as exc:
            return self._failure(request.game_id, game, exc)
        return self._commit(request.game_id, game)

    def reset(self, request: ResetRequest) -> ActionResponse:
        game = self._fetch_game(request.game_id)
        game.reset()
        self._forget_analysis(request.game_id)
        return self._commit(request.game_id, game)

    def load_position(self, request: LoadPositionRequest) -> ActionResponse:
        game = self._fetch_game(request.game_id)
        try:
            game.load_position(request.fen)
        except GameError as exc:
            return self._failure(request.game_id, game, exc)
        self._forget_analysis(request.game_id)
        return self._commit(request.game_id, game)

    def import_pgn(self, request: ImportPGNRequest) -> ActionResponse:
        game = self._fetch_game(request.game_id)
        try:
            game.load_pgn(request.pgn)
        except GameError as exc:
            return self._failure(request.game_id, game, exc)
        self._forget_analysis(request.game_id)
        return self._commit(request.game_id, game)

    def export_pgn(self, request: ExportPGNRequest) -> ExportResponse:
        game = self._fetch_game(request.game_id)
        tags = GameTags(
            event=request.event,
            site=request.site,
            white=game.players.get(pieces.Color.WHITE, "?"),
            black=game.players.get(pieces.Color.BLACK, "?"),
        )
        return ExportResponse(game_id=request.game_id, pgn=export_pgn(game, tags))

    def opponent_move(self, request: OpponentMoveRequest) -> ActionResponse:
        """Let the coach play a move for the side to move."""
        game = self._fetch_game(request.game_id)
        try:
            if game.is_game_over:
                raise GameStateError(f"Game is not in progress. status: {game.status}")
            move = choose_opponent_move(
                game.position, self.rng, self.settings.analysis.capture_preference
            )
            if move is None:
                raise GameStateError("No legal move available.")
            game.make_move(move.to_uci())
        except GameError as exc:
            return self._failure(request.game_id, game, exc)
        return self._commit(request.game_id, game)

    async def analyze(self, request: AnalysisRequest) -> Optional[AnalysisResponse]:
        """
        Analyse the current position and attach the result to the last move
        ---

        Returns None when the game moved on (another move, undo, reset, ...) while the analysis was running:
        a stale result is never attached to a position it was not computed for.
        """
        game = self._fetch_game(request.game_id)
        try:
            analysis = await self._pipeline(request.game_id).request(game, request.depth)
            # the stored game may have changed while we were waiting
            latest = self._fetch_game(request.game_id)
            if latest.fen != analysis.fen:
                raise AnalysisStaleError(f"Game moved on, analysis of {analysis.fen} dropped")
        except AnalysisStaleError as exc:
            logger.debug("Game %s: analysis discarded (%s): %s", request.game_id, failure_reason(exc), exc)
            return None

        if latest.annotate_last_move(analysis.fen, analysis.evaluation, analysis.move_quality):
            self.repo.update_game(request.game_id, latest.to_model())

        coach = self.coaches.setdefault(request.game_id, CoachState())
        last_san = latest.history[-1].san if latest.history else None
        comment = coach.update(analysis, last_san)
        return AnalysisResponse(
            game_id=request.game_id,
            fen=analysis.fen,
            evaluation=analysis.evaluation,
            best_move=analysis.best_move,
            principal_variation=list(analysis.principal_variation),
            depth=analysis.depth,
            commentary=analysis.commentary,
            move_quality=analysis.move_quality,
            threats=list(analysis.threats),
            suggestions=list(analysis.suggestions),
            coach_mood=comment.mood,
        )

    def delete_game(self, request: DeleteGameRequest) -> None:
        """Handle a request to delete a Game record."""
        self.repo.delete_game(request.game_id)
        self.pipelines.pop(request.game_id, None)
        self.coaches.pop(request.game_id, None)

    # -- Internal helpers --
    def _commit(self, game_id: UUID, game: Game) -> ActionResponse:
        """Store the new state of the game and report success."""
        self.repo.update_game(game_id, game.to_model())
        return ActionResponse(success=True, game=self._create_game_response(game_id, game))

    def _failure(self, game_id: UUID, game: Game, exc: GameError) -> ActionResponse:
        """The game object is left untouched by a failed transition, so its state is still the stored one."""
        reason = failure_reason(exc)
        logger.info("Game %s: request refused (%s): %s", game_id, reason, exc)
        return ActionResponse(
            success=False,
            reason=reason,
            message=str(exc),
            game=self._create_game_response(game_id, game),
        )

    def _pipeline(self, game_id: UUID) -> AnalysisPipeline:
        if game_id not in self.pipelines:
            self.pipelines[game_id] = AnalysisPipeline(
                PositionAnalyzer(self.settings.evaluation, self.rng),
                settings=self.settings.analysis,
            )
        return self.pipelines[game_id]

    def _forget_analysis(self, game_id: UUID) -> None:
        if game_id in self.pipelines:
            self.pipelines[game_id].clear()
        self.coaches.setdefault(game_id, CoachState()).reset()

    @staticmethod
    def _build_uci(request: MoveRequest) -> str:
        uci = f"{request.from_square}{request.to_square}"
        if request.promote_to is not None:
            uci += pieces.PIECE_TO_FEN[pieces.PieceType[request.promote_to.name]]
        return uci

    def _create_game_response(self, game_id: UUID, game: Game) -> GameResponse:
        """Convert the state of the Game into a GameResponse (for game with given ID.)"""
        state = game.game_state()
        winner = game.winner
        return GameResponse(
            game_id=game_id,
            players={color.name.lower(): name for color, name in game.players.items()},
            mode=game.mode,
            fen=state.fen,
            starting_fen=game.initial_position.to_fen(),
            turn=state.turn.to_shared(),
            status=state.status,
            game_over=state.game_over,
            in_check=state.in_check,
            in_checkmate=state.in_checkmate,
            in_stalemate=state.in_stalemate,
            in_draw=state.in_draw,
            winner=winner.to_shared() if winner else None,
            moves=state.moves,
            move_history=[
                MoveRecordResponse(
                    san=record.san,
                    uci=record.uci,
                    fen=record.fen,
                    timestamp=record.timestamp,
                    evaluation=record.evaluation,
                    quality=record.quality,
                )
                for record in state.move_history
            ],
            captured_pieces={
                color.name.lower(): [piece_type.to_shared() for piece_type in taken]
                for color, taken in state.captured_pieces.items()
            },
        )

    def _fetch_game(self, game_id: UUID) -> Game:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model: GameModel | None = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return Game.from_model(game_model)
