# hostel_ledger/db/init_db.py
"""Database initialization utilities."""
import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from hostel_ledger.db.base import Base
from hostel_ledger.db.session import engine as default_engine

logger = logging.getLogger(__name__)


def init_db(engine: Engine = default_engine) -> None:
    """
    Create any missing tables.

    Suitable for development/testing only; production schemas are
    expected to be managed by migrations.
    """
    try:
        existing_tables = set(inspect(engine).get_table_names())
        missing = set(Base.metadata.tables) - existing_tables

        if missing:
            Base.metadata.create_all(bind=engine)
            logger.info(f"Created tables: {', '.join(sorted(missing))}")
        else:
            logger.info(f"Database already initialized with {len(existing_tables)} tables")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def drop_db(engine: Engine = default_engine) -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data!
    """
    try:
        Base.metadata.drop_all(bind=engine)
        logger.warning("All database tables dropped")
    except Exception as e:
        logger.error(f"Error dropping database: {e}")
        raise


def reset_db(engine: Engine = default_engine) -> None:
    """Drop and recreate all tables."""
    logger.warning("Resetting database...")
    drop_db(engine)
    init_db(engine)
    logger.info("Database reset complete")
