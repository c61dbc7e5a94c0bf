"""Implementation of (Game)Repository using SQLAlchemy"""

import logging
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import GameModel
from src.db.schema import DBGame

logger = logging.getLogger(__name__)


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: UUID) -> GameModel | None:
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        new_id = uuid4()
        game_db = DBGame(id=new_id)
        self._copy_onto(game_db, game)
        self.db.add(game_db)
        self.db.commit()
        self.db.refresh(game_db)
        logger.info("Stored new game %s", new_id)
        return self._to_model(game_db), new_id

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        self._copy_onto(game_db, game)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_model = self._to_model(game_db)
        self.db.delete(game_db)
        self.db.commit()
        logger.info("Deleted game %s", game_id)
        return game_model

    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    @staticmethod
    def _copy_onto(game_db: DBGame, game: GameModel) -> None:
        """
        NOTE: JSON columns are assigned fresh lists / dicts, so SQLAlchemy sees the change
        (in-place mutation of a JSON value is not tracked).
        """
        game_db.starting_fen = game.starting_fen
        game_db.current_fen = game.current_fen
        game_db.history_fen = list(game.history_fen)
        game_db.moves_uci = list(game.moves_uci)
        game_db.registered_players = dict(game.registered_players)
        game_db.status = game.status
        game_db.mode = game.mode
        game_db.evaluations = list(game.evaluations)
        game_db.qualities = list(game.qualities)
        game_db.move_timestamps = list(game.timestamps)

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            starting_fen=game_db.starting_fen,
            current_fen=game_db.current_fen,
            history_fen=list(game_db.history_fen),
            moves_uci=list(game_db.moves_uci),
            registered_players=dict(game_db.registered_players),
            status=game_db.status,
            mode=game_db.mode,
            evaluations=list(game_db.evaluations),
            qualities=list(game_db.qualities),
            timestamps=list(game_db.move_timestamps),
        )
