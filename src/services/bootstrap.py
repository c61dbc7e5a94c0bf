"""Wire the layers together: settings -> logging -> database -> repository -> service."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from src.core.config import Settings, load_settings
from src.core.logging_config import configure_logging
from src.db.database import get_db
from src.db.sql_repository import SQLGameRepository
from src.services.chess_service import ChessService

logger = logging.getLogger(__name__)


@contextmanager
def chess_service(settings: Optional[Settings] = None) -> Iterator[ChessService]:
    """
    Entrypoint for whatever serves the application.
    The database session lives as long as the `with` block.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    sessions = get_db(settings)
    session = next(sessions)
    try:
        logger.info("Chess service ready")
        yield ChessService(SQLGameRepository(session), settings)
    finally:
        # closing the generator closes the session
        sessions.close()
