"""Initialize the local SQLite result store."""

import logging

from athlete_ai.database import sync_engine
from athlete_ai.logging_config import configure_logging
from athlete_ai.models import Base

logger = logging.getLogger(__name__)


def init_db(engine=sync_engine):
    """Create all tables in the database."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


if __name__ == "__main__":
    configure_logging()
    init_db()
