"""Generate database session"""

import logging
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings, load_settings
from src.db.schema import Base

logger = logging.getLogger(__name__)


def get_engine(settings: Optional[Settings] = None) -> Engine:
    """Engine for the configured database. All tables are created if missing."""
    settings = settings or load_settings()
    engine = create_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    logger.info("Connected to database %s", engine.url.render_as_string(hide_password=True))
    return engine


def get_db(settings: Optional[Settings] = None) -> Generator[Session, None, None]:
    session_factory = sessionmaker(bind=get_engine(settings))
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
