"""
Analysis of positions for the coach
---

PositionAnalyzer: synchronous, a pure function of the position apart from the commentary pick and the "brilliant" flavor.
AnalysisPipeline: the asynchronous entrypoint used per game. Requests are handled one at a time, the work itself runs
in a worker thread, and a result that arrives after the game has moved on is thrown away.
"""

import asyncio
import logging
import random
from typing import Optional

from src.analysis.cache import AnalysisCache
from src.analysis.commentary import CommentaryGenerator, suggestions, threats
from src.analysis.evaluator import PositionEvaluator, material_balance
from src.analysis.models import Analysis
from src.chess.game import Game
from src.chess.moves import Move
from src.chess.notation import to_san
from src.chess.pieces import Color
from src.chess.position import Position
from src.core.config import AnalysisSettings, EvaluationSettings
from src.core.exceptions import AnalysisStaleError

logger = logging.getLogger(__name__)


class PositionAnalyzer:
    def __init__(
        self,
        settings: Optional[EvaluationSettings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        rng = rng or random.Random()
        self.evaluator = PositionEvaluator(settings, rng)
        self.commentary = CommentaryGenerator(rng)

    def analyze(self, position: Position, depth: int) -> Analysis:
        evaluation = self.evaluator.score(position)
        quality = self.evaluator.flavor(self.evaluator.classify(evaluation))
        best_move = self.best_move(position)
        return Analysis(
            fen=position.to_fen(),
            evaluation=evaluation,
            best_move=best_move,
            principal_variation=(best_move,) if best_move else (),
            depth=depth,
            commentary=self.commentary.comment(quality),
            move_quality=quality,
            threats=tuple(threats(position)),
            suggestions=tuple(suggestions(evaluation)),
        )

    def best_move(self, position: Position) -> Optional[str]:
        """
        SAN of the legal move leaving the mover with the best material balance.
        NOTE: one ply of material only, not a search. Ties go to the first move in SAN order.
        """
        legal_moves = position.legal_moves()
        if not legal_moves:
            return None

        sign = 1 if position.color_to_move == Color.WHITE else -1
        piece_values = self.evaluator.settings.piece_values

        def mover_material(move: Move) -> int:
            return sign * material_balance(position.apply(move).board, piece_values)

        scored = sorted(
            (to_san(position, move, legal_moves), mover_material(move))
            for move in legal_moves
        )
        san, _ = max(scored, key=lambda entry: entry[1])
        return san


class AnalysisPipeline:
    """One per game. Analyses go through the cache, so a position is only ever computed once."""

    def __init__(
        self,
        analyzer: Optional[PositionAnalyzer] = None,
        cache: Optional[AnalysisCache] = None,
        settings: Optional[AnalysisSettings] = None,
    ) -> None:
        self.settings = settings or AnalysisSettings()
        self.analyzer = analyzer or PositionAnalyzer()
        self.cache = cache or AnalysisCache(self.settings.cache_max_entries)
        self._lock = asyncio.Lock()

    async def analyze(self, fen: str, depth: Optional[int] = None) -> Analysis:
        depth = depth or self.settings.default_depth

        def compute(key: str) -> Analysis:
            return self.analyzer.analyze(Position.from_fen(key), depth)

        async with self._lock:
            return await asyncio.to_thread(self.cache.get_or_compute, fen, compute)

    async def request(self, game: Game, depth: Optional[int] = None) -> Analysis:
        """
        Analyse the current position of `game` and attach the result to its last move.
        Raises AnalysisStaleError when the game changed position while the analysis was running.
        """
        fen = game.fen
        analysis = await self.analyze(fen, depth)
        if game.fen != fen:
            logger.debug("Discarding stale analysis of %s (game is now at %s)", fen, game.fen)
            raise AnalysisStaleError(f"Analysis of {fen} finished after the game moved on to {game.fen}")

        game.annotate_last_move(fen, analysis.evaluation, analysis.move_quality)
        return analysis

    def clear(self) -> None:
        self.cache.clear()
