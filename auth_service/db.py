"""
Database connection and session management for the Auth Service
"""
from sqlalchemy import create_engine, text, inspect
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Generator
import logging

from .config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def init_db() -> None:
    """Create all tables registered on Base."""
    # Import here to avoid circular dependency
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def connect_db() -> None:
    """
    Open the database connection and make sure the schema exists.
    Called once on application startup.

    Raises:
        SQLAlchemyError: If the database cannot be reached. Startup is aborted.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        init_db()
    except SQLAlchemyError as e:
        logger.error("Database connection failed: %s", e)
        raise

    tables = inspect(engine).get_table_names()
    logger.info("Database connected: %s (%d tables)", engine.url.render_as_string(hide_password=True), len(tables))


def check_db_connection() -> bool:
    """
    Check if database connection is working.

    Returns:
        bool: True if connection is successful, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error("Database connection check failed: %s", e)
        return False


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
