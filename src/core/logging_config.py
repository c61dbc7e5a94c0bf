"""Logging setup. Modules only ever call `logging.getLogger(__name__)`; the entrypoint calls `configure_logging` once."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    # SQLAlchemy is very chatty on INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
