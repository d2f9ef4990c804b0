"""
Database Connection Management

SQLAlchemy 2.0 engine and session handling for the gold-layer publishing
database. The pipeline is a single-threaded batch, so a synchronous engine
is used throughout.
"""

from contextlib import contextmanager
from typing import Generator, Optional

import structlog
from sqlalchemy import Engine, create_engine, make_url, text
from sqlalchemy.orm import Session, sessionmaker

from sales_dwh.config import get_settings
from sales_dwh.database.models import Base

logger = structlog.get_logger(__name__)

# Global engine and session factory
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker[Session]] = None


def init_database(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Initialize the database engine and create the gold tables.

    Args:
        url: Override database URL (defaults to WAREHOUSE_DB_URL). An engine
            bound to a different URL is disposed and replaced.
        echo: Override SQL echo

    Returns:
        Engine: The initialized database engine
    """
    global _engine, _session_factory

    settings = get_settings()
    database_url = url or settings.database.url

    if _engine is not None:
        if url is None or make_url(database_url) == _engine.url:
            logger.warning("Database already initialized")
            return _engine
        logger.info(
            "Switching database",
            previous=_engine.url.render_as_string(hide_password=True),
            url=make_url(database_url).render_as_string(hide_password=True),
        )
        close_database()

    _engine = create_engine(
        database_url,
        echo=settings.database.echo if echo is None else echo,
        pool_pre_ping=True,
    )
    _session_factory = sessionmaker(
        bind=_engine,
        expire_on_commit=False,
        autoflush=False,
    )

    try:
        with _engine.begin() as conn:
            conn.execute(text("SELECT 1"))
        Base.metadata.create_all(_engine)
        logger.info("Database connection established", url=_engine.url.render_as_string(hide_password=True))
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        _engine.dispose()
        _engine = None
        _session_factory = None
        raise

    return _engine


def close_database() -> None:
    """Dispose of the engine and its connection pool."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connection pool closed")


def get_engine() -> Engine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


@contextmanager
def get_db() -> Generator[Session, None, None]:
    """
    Get a database session.

    Commits when the block exits cleanly, rolls back and re-raises otherwise.

    Example:
        with get_db() as db:
            db.execute(query)
    """
    if _session_factory is None:
        logger.error("Database not initialized when get_db() called")
        raise RuntimeError("Database not initialized. Call init_database() first.")

    session = _session_factory()
    try:
        yield session
        session.commit()
        logger.debug("Database session committed successfully")
    except Exception as e:
        logger.error("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
        session.rollback()
        raise
    finally:
        session.close()


def check_database_health() -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    import time

    try:
        start = time.perf_counter()
        with get_db() as db:
            db.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }
