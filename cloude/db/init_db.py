"""
Database initialization script.

Creates the profiles, folders and files tables on DATABASE_URL (the direct
Postgres connection string of the Supabase project). Run once when setting up
a new project:

    python -m cloude.db.init_db
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from cloude.core.config import settings
from cloude.core.logger import setup_logger
from cloude.db import models  # noqa: F401  (registers the tables on Base.metadata)
from cloude.db.base import Base

logger = setup_logger("cloude.db.init_db")


def init_db(engine: Optional[Engine] = None) -> None:
    """
    Initialize the database by creating all missing tables.

    Args:
        engine: Engine to use; one is built from DATABASE_URL when omitted

    Raises:
        RuntimeError: If no engine is given and DATABASE_URL is not set
    """
    if engine is None:
        if not settings.DATABASE_URL:
            raise RuntimeError("DATABASE_URL must be set to initialize the database")
        engine = create_engine(settings.DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database initialized with tables: {sorted(Base.metadata.tables)}")


if __name__ == "__main__":
    init_db()
